"""Daily schedule computation."""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import log


# Zone names that were renamed in the tz database
_ZONE_ALIASES = {
    "Europe/Kyiv": "Europe/Kiev",
    "Europe/Kiev": "Europe/Kyiv",
}


def get_timezone(name: str) -> tzinfo:
    """Resolve an IANA zone name, trying renamed aliases, else UTC."""
    for candidate in (name, _ZONE_ALIASES.get(name)):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            continue
    log.warn(f"Unknown timezone '{name}', using UTC")
    return timezone.utc


def parse_schedule_time(schedule_time: str) -> tuple[int, int]:
    """Parse "HH:MM" (or just "HH") into (hour, minute)."""
    parts = schedule_time.strip().split(":")
    hour = int(parts[0])
    minute = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Time out of range: {schedule_time!r}")
    return hour, minute


def calculate_next_run(
    schedule_time: str,
    tz: tzinfo,
    now: Optional[datetime] = None,
) -> datetime:
    """Next UTC time at which the local clock in tz reads schedule_time.

    The result is always strictly after now. A malformed schedule_time
    logs a warning and schedules the next run one day from now.
    """
    now = now or datetime.now(timezone.utc)
    try:
        hour, minute = parse_schedule_time(schedule_time)
    except (ValueError, IndexError) as e:
        log.warn(f"Failed to parse schedule time '{schedule_time}': {e}")
        return now + timedelta(days=1)

    local_now = now.astimezone(tz)
    candidate = local_now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= local_now:
        # Wall-clock arithmetic: the offset is looked up again for the new day
        candidate += timedelta(days=1)
    return candidate.astimezone(timezone.utc)
