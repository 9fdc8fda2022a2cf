"""Fixtures for history store tests."""

import json

import pytest

from jarmon.history import DailyRecord, HistoryData, add_record


@pytest.fixture
def history_path(tmp_state_dir):
    """History file path inside the temp state directory."""
    return tmp_state_dir / "history.json"


@pytest.fixture
def alpha_history(fixed_now):
    """Alpha jar with two days of records, 500 then 800 towards 1000."""
    data = HistoryData()
    data = add_record("Alpha", "Alpha", DailyRecord("2024-03-01", 500, 1000), data, now=fixed_now)
    data = add_record("Alpha", "Alpha", DailyRecord("2024-03-02", 800, 1000), data, now=fixed_now)
    return data


@pytest.fixture
def two_jar_history(fixed_now):
    """Two jars, one with a goal and one without."""
    data = HistoryData()
    for day, amount in (("2024-03-05", 10_000), ("2024-03-07", 25_000), ("2024-03-09", 40_000)):
        data = add_record("jarAlpha", "Alpha", DailyRecord(day, amount, 100_000), data, now=fixed_now)
    for day, amount in (("2024-03-08", 3_000), ("2024-03-09", 4_500)):
        data = add_record("jarBeta", "Beta", DailyRecord(day, amount), data, now=fixed_now)
    return data


@pytest.fixture
def write_history(history_path):
    """Helper writing raw content to the history file."""
    def write(content):
        if not isinstance(content, str):
            content = json.dumps(content)
        history_path.write_text(content)
        return history_path

    return write
