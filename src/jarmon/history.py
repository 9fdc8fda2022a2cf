"""JSON-backed daily history of jar balances.

The store keeps one record per jar per calendar day and never more than
RETENTION_DAYS of them. All mutating operations return a new HistoryData
value; the caller threads it forward and persists it once per run.

Persisted layout (field names are part of the on-disk format):

    {
      "jars": [
        {"jarId": "...", "name": "...",
         "records": [{"date": "2024-01-01", "amount": 500, "goal": 1000}]}
      ],
      "lastUpdated": "2024-01-01T00:00:00+00:00"
    }

Dates are compared as ``YYYY-MM-DD`` strings. This is only equivalent to
comparing calendar dates because the format is fixed-width and zero-padded,
which is why DailyRecord rejects anything else.
"""

import json
import os
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from . import log


RETENTION_DAYS = 90

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _cutoff(now: Optional[datetime], days: int) -> str:
    now = now or _utcnow()
    return (now - timedelta(days=days)).strftime("%Y-%m-%d")


def validate_date(value: str) -> str:
    """Check that value is a real calendar date in ``YYYY-MM-DD`` form."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValueError(f"Invalid record date: {value!r} (expected YYYY-MM-DD)")
    date.fromisoformat(value)
    return value


def _as_list(value: Any, key: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a JSON array")
    return value


@dataclass(frozen=True)
class DailyRecord:
    """Balance of a jar on one day. Amounts are in kopiykas."""

    date: str
    amount: int
    goal: Optional[int] = None

    def __post_init__(self) -> None:
        validate_date(self.date)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"date": self.date, "amount": self.amount}
        if self.goal is not None:
            data["goal"] = self.goal
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DailyRecord":
        if not isinstance(data, dict):
            raise ValueError(f"Record must be a JSON object, got {data!r}")
        goal = data.get("goal")
        return cls(
            date=data["date"],
            amount=int(data["amount"]),
            goal=int(goal) if goal is not None else None,
        )


@dataclass(frozen=True)
class JarHistory:
    """Daily records of one jar, sorted by date with no duplicate dates."""

    jar_id: str
    name: str
    records: tuple[DailyRecord, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "jarId": self.jar_id,
            "name": self.name,
            "records": [r.to_dict() for r in self.records],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JarHistory":
        if not isinstance(data, dict):
            raise ValueError(f"Jar entry must be a JSON object, got {data!r}")
        records = [DailyRecord.from_dict(r) for r in _as_list(data.get("records"), "records")]
        return cls(
            jar_id=str(data["jarId"]),
            name=str(data.get("name") or ""),
            records=_normalize(records),
        )


@dataclass(frozen=True)
class HistoryData:
    """All tracked jars plus the time of the last write."""

    jars: tuple[JarHistory, ...] = ()
    last_updated: str = field(default_factory=lambda: _utcnow().isoformat())

    def get_jar(self, jar_id: str) -> Optional[JarHistory]:
        for jar in self.jars:
            if jar.jar_id == jar_id:
                return jar
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "jars": [j.to_dict() for j in self.jars],
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryData":
        if not isinstance(data, dict):
            raise ValueError("History document must be a JSON object")
        jars = tuple(JarHistory.from_dict(j) for j in _as_list(data.get("jars"), "jars"))
        last_updated = data.get("lastUpdated") or _utcnow().isoformat()
        return cls(jars=jars, last_updated=str(last_updated))


def _normalize(records: list[DailyRecord]) -> tuple[DailyRecord, ...]:
    """Sort by date keeping the last record seen for each date."""
    by_date: dict[str, DailyRecord] = {}
    for record in records:
        by_date[record.date] = record
    return tuple(by_date[d] for d in sorted(by_date))


def empty_history() -> HistoryData:
    return HistoryData()


def load(path: Path) -> HistoryData:
    """Load history from disk.

    A missing file, unreadable file, invalid JSON or a document of the
    wrong shape all produce an empty history; the run continues either way.
    """
    path = Path(path)
    if not path.exists():
        log.debug(f"No history file at {path}, starting empty")
        return empty_history()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return HistoryData.from_dict(data)
    except (OSError, json.JSONDecodeError) as e:
        log.warn(f"Failed to read history {path}: {e}")
    except (KeyError, TypeError, ValueError) as e:
        log.warn(f"Ignoring malformed history {path}: {e}")
    return empty_history()


def save(path: Path, data: HistoryData) -> tuple[bool, Optional[str]]:
    """Write history as pretty-printed JSON via a temp file and rename.

    Returns:
        (True, None) on success, (False, error message) on failure. The
        destination file is left untouched when writing fails.
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(data.to_dict(), indent=2, ensure_ascii=False)
        tmp_path.write_text(payload + "\n", encoding="utf-8")
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as e:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass
        return (False, f"Failed to save history: {e}")

    log.debug(f"Saved history for {len(data.jars)} jar(s) to {path}")
    return (True, None)


def add_record(
    jar_id: str,
    name: str,
    record: DailyRecord,
    data: HistoryData,
    now: Optional[datetime] = None,
) -> HistoryData:
    """Upsert a day's record for a jar and prune records past retention.

    A record for a date that already exists replaces it; the jar name is
    refreshed to the latest value. Only the touched jar is pruned.

    Args:
        jar_id: Jar identifier
        name: Display name to store for the jar
        record: The day's record
        data: Current history (not modified)
        now: Current UTC time, defaults to the wall clock

    Returns:
        New HistoryData with the record applied
    """
    now = now or _utcnow()
    cutoff = _cutoff(now, RETENTION_DAYS)

    existing = data.get_jar(jar_id)
    previous = existing.records if existing else ()
    kept = [r for r in previous if r.date != record.date]
    records = tuple(r for r in _normalize(kept + [record]) if r.date >= cutoff)

    if existing is None:
        jars = data.jars + (JarHistory(jar_id=jar_id, name=name, records=records),)
    else:
        updated = replace(existing, name=name, records=records)
        jars = tuple(updated if j.jar_id == jar_id else j for j in data.jars)

    return HistoryData(jars=jars, last_updated=now.isoformat())


def get_previous_record(
    jar_id: str, reference_date: str, data: HistoryData
) -> Optional[DailyRecord]:
    """Latest record strictly before reference_date, or None."""
    jar = data.get_jar(jar_id)
    if jar is None:
        return None

    earlier = [r for r in jar.records if r.date < reference_date]
    if not earlier:
        return None
    return max(earlier, key=lambda r: r.date)


def get_recent_records(
    jar_id: str,
    days: int,
    data: HistoryData,
    now: Optional[datetime] = None,
) -> list[DailyRecord]:
    """Records dated within the last ``days`` days, oldest first."""
    jar = data.get_jar(jar_id)
    if jar is None:
        return []

    cutoff = _cutoff(now, days)
    return sorted((r for r in jar.records if r.date >= cutoff), key=lambda r: r.date)
