"""Fixtures for configuration tests."""

import pytest


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Write a jarmon.conf and point JARMON_CONFIG at it.

    Returns a helper to write config content.
    """
    config_path = tmp_path / "jarmon.conf"
    monkeypatch.setenv("JARMON_CONFIG", str(config_path))

    def write_config(content: str):
        config_path.write_text(content)
        return config_path

    return write_config
