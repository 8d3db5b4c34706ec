"""
Timestamp parsing and formatting tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ricemill.time_utils import parse_iso_datetime, to_utc_z


@pytest.mark.parametrize("raw,expected", [
    ("2026-10-19T08:30:00Z", datetime(2026, 10, 19, 8, 30)),
    ("2026-10-19T14:00:00+05:30", datetime(2026, 10, 19, 8, 30)),
    ("2026-10-19T08:30", datetime(2026, 10, 19, 8, 30)),
    ("2026-10-19", datetime(2026, 10, 19)),
    ("  ", None),
    (None, None),
])
def test_parse_normalizes_to_naive_utc(raw, expected):
    assert parse_iso_datetime(raw) == expected


def test_bare_date_as_range_end_covers_the_day():
    end = parse_iso_datetime("2026-10-19", end_of_day=True)
    assert end.date() == datetime(2026, 10, 19).date()
    assert end + timedelta(microseconds=1) == datetime(2026, 10, 20)


def test_parse_rejects_garbage():
    with pytest.raises(ValueError):
        parse_iso_datetime("19/10/2026")


def test_to_utc_z():
    assert to_utc_z(datetime(2026, 10, 19, 8, 30, 5, 999)) == "2026-10-19T08:30:05Z"
    ist = timezone(timedelta(hours=5, minutes=30))
    assert to_utc_z(datetime(2026, 10, 19, 14, 0, tzinfo=ist)) == "2026-10-19T08:30:00Z"
    assert to_utc_z(None) is None
