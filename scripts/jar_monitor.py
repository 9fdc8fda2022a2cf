#!/usr/bin/env python3
"""
Daily jar report.

Fetches the configured monobank jars, records today's balances in the
history file, renders the progress chart and posts the report to Telegram.

Usage:
    jar_monitor.py            run forever at SCHEDULE_TIME in TIMEZONE
    jar_monitor.py --run-now  run a single report and exit
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from jarmon.env import get_config
from jarmon import log
from jarmon.runner import run


def main():
    """Entry point."""
    run_now = "--run-now" in sys.argv[1:]

    cfg = get_config()
    problems = cfg.validate()
    if problems:
        for problem in problems:
            log.error(f"Configuration error: {problem}")
        sys.exit(1)

    try:
        exit_code = asyncio.run(run(cfg, run_now))
    except KeyboardInterrupt:
        log.info("Interrupted, exiting")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
