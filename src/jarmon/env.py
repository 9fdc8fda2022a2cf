"""Environment variable parsing and configuration."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _parse_config_value(raw: str) -> str:
    """Parse the value part of a KEY=VALUE config line.

    Quoted values keep everything inside the first pair of quotes; unquoted
    values are stripped and lose any trailing ``# comment``.
    """
    value = raw.strip()
    if not value:
        return ""

    if value[0] in ("'", '"'):
        quote = value[0]
        end = value.find(quote, 1)
        if end == -1:
            return value[1:]
        return value[1:end]

    if " #" in value:
        value = value.split(" #", 1)[0]
    return value.strip()


def _load_config_file(path: Path) -> dict[str, str]:
    """Load KEY=VALUE pairs from a config file.

    Blank lines, comments and lines without ``=`` are ignored. An optional
    leading ``export`` is accepted so the file can be sourced by a shell.
    """
    values: dict[str, str] = {}
    try:
        lines = path.read_text().splitlines()
    except OSError:
        return values

    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if "=" not in line:
            continue
        key, raw = line.split("=", 1)
        key = key.strip()
        if key:
            values[key] = _parse_config_value(raw)
    return values


def _config_file_path() -> Path:
    return Path(os.environ.get("JARMON_CONFIG", "jarmon.conf")).expanduser()


# Values from the config file, used when the real environment has no value
_file_values: dict[str, str] = {}


def _lookup(key: str) -> Optional[str]:
    val = os.environ.get(key)
    if val is None:
        val = _file_values.get(key)
    return val


def get_str(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get string env var."""
    val = _lookup(key)
    return default if val is None else val


def get_int(key: str, default: int) -> int:
    """Get integer env var."""
    val = _lookup(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def get_bool(key: str, default: bool = False) -> bool:
    """Get boolean env var (0/1, true/false, yes/no)."""
    val = (_lookup(key) or "").lower()
    if not val:
        return default
    return val in ("1", "true", "yes", "on")


def get_float(key: str, default: float) -> float:
    """Get float env var."""
    val = _lookup(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


def get_path(key: str, default: str) -> Path:
    """Get path env var, expanding user and making absolute."""
    val = _lookup(key) or default
    return Path(val).expanduser().resolve()


@dataclass(frozen=True)
class JarConfig:
    """A monitored jar: its public id and the name shown in reports."""

    jar_id: str
    name: str


def parse_jars(raw: Optional[str]) -> list[JarConfig]:
    """Parse ``JARS`` ("id:Name,id2:Other name") into JarConfig entries.

    Entries without a name use the id as name. Empty entries are skipped.
    """
    jars: list[JarConfig] = []
    if not raw:
        return jars

    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        jar_id, _, name = entry.partition(":")
        jar_id = jar_id.strip()
        name = name.strip() or jar_id
        jars.append(JarConfig(jar_id=jar_id, name=name))
    return jars


class Config:
    """Configuration loaded from environment variables."""

    def __init__(self):
        global _file_values
        _file_values = _load_config_file(_config_file_path())

        # Jars to monitor
        self.jars = parse_jars(get_str("JARS"))

        # Telegram delivery
        self.telegram_bot_token = get_str("TELEGRAM_BOT_TOKEN", "")
        self.telegram_channel_id = get_str("TELEGRAM_CHANNEL_ID", "")

        # Schedule
        self.timezone = get_str("TIMEZONE", "UTC")
        self.schedule_time = get_str("SCHEDULE_TIME", "00:00")

        # Upstream fetch
        self.fetch_retry_attempts = get_int("FETCH_RETRY_ATTEMPTS", 4)
        self.fetch_retry_backoff_s = get_float("FETCH_RETRY_BACKOFF_S", 1.0)
        self.fetch_timeout_s = get_float("FETCH_TIMEOUT_S", 15.0)

        # Charts
        self.history_chart_days = get_int("HISTORY_CHART_DAYS", 30)

        self.jarmon_debug = get_bool("JARMON_DEBUG", False)

        # Paths
        self.state_dir = get_path("STATE_DIR", "./data")
        self.out_dir = get_path("OUT_DIR", "./out")

    @property
    def history_path(self) -> Path:
        return self.state_dir / "history.json"

    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty when usable)."""
        problems = []
        if not self.jars:
            problems.append("JARS is empty: configure at least one jar")
        for jar in self.jars:
            if not jar.jar_id:
                problems.append(f"Jar '{jar.name}' has an empty id")
        if not self.telegram_bot_token:
            problems.append("TELEGRAM_BOT_TOKEN is not set")
        if not self.telegram_channel_id:
            problems.append("TELEGRAM_CHANNEL_ID is not set")
        return problems


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
