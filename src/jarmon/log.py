"""Timestamped console logging for the jar monitor.

Info and debug lines go to stdout, warnings and errors to stderr so that
cron mail and container logs can separate them.
"""

import sys
from datetime import datetime
from typing import Optional, TextIO

from .env import get_config


def _ts() -> str:
    """Get current timestamp string."""
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _emit(msg: str, level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    prefix = f"{level}: " if level else ""
    print(f"[{_ts()}] {prefix}{msg}", file=stream or sys.stdout)


def info(msg: str) -> None:
    _emit(msg)


def debug(msg: str) -> None:
    """Print debug message if JARMON_DEBUG is enabled."""
    if get_config().jarmon_debug:
        _emit(msg, "DEBUG")


def warn(msg: str) -> None:
    _emit(msg, "WARN", sys.stderr)


def error(msg: str) -> None:
    _emit(msg, "ERROR", sys.stderr)
