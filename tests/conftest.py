"""Root fixtures for all tests."""

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Clear jarmon-related env vars and reset config singleton before each test."""
    env_prefixes = (
        "JARMON_",
        "JARS",
        "TELEGRAM_",
        "TIMEZONE",
        "SCHEDULE_",
        "FETCH_",
        "HISTORY_",
        "STATE_DIR",
        "OUT_DIR",
    )

    for key in list(os.environ.keys()):
        for prefix in env_prefixes:
            if key.startswith(prefix):
                monkeypatch.delenv(key, raising=False)
                break

    # Never pick up a developer's jarmon.conf
    monkeypatch.setenv("JARMON_CONFIG", str(tmp_path / "no-such-jarmon.conf"))

    # Reset config singleton
    import jarmon.env

    jarmon.env._config = None
    jarmon.env._file_values = {}

    yield

    # Reset again after test
    jarmon.env._config = None
    jarmon.env._file_values = {}


@pytest.fixture
def tmp_state_dir(tmp_path):
    """Create temp directory for the history file."""
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return state_dir


@pytest.fixture
def tmp_out_dir(tmp_path):
    """Create temp directory for rendered charts."""
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    return out_dir


@pytest.fixture
def configured_env(tmp_state_dir, tmp_out_dir, monkeypatch):
    """Set up test environment with temp directories, two jars and a bot."""
    monkeypatch.setenv("STATE_DIR", str(tmp_state_dir))
    monkeypatch.setenv("OUT_DIR", str(tmp_out_dir))
    monkeypatch.setenv("JARS", "jarAlpha:Alpha,jarBeta:Beta")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:test-token")
    monkeypatch.setenv("TELEGRAM_CHANNEL_ID", "-100200300")
    monkeypatch.setenv("FETCH_RETRY_BACKOFF_S", "0")
    # Reset config to pick up new values
    import jarmon.env

    jarmon.env._config = None
    return {"state_dir": tmp_state_dir, "out_dir": tmp_out_dir}


@pytest.fixture
def fixed_now():
    """Fixed wall clock: 2024-03-10 12:00 UTC."""
    return datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def project_root():
    """Path to the project root directory."""
    return Path(__file__).parent.parent


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def png_size(data: bytes) -> tuple[int, int]:
    """Width and height from a PNG's IHDR chunk."""
    assert data[:8] == PNG_SIGNATURE
    width = int.from_bytes(data[16:20], "big")
    height = int.from_bytes(data[20:24], "big")
    return width, height
