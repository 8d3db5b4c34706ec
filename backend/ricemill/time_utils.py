# Overview: UTC clock, ISO-8601 parsing for query/body dates, and JSON timestamp formatting.

"""
All timestamps are stored naive and mean UTC.

Dates arrive from the dashboards either as full ISO-8601 datetimes or as
bare calendar days ("2026-10-19"). A bare day used as the upper bound of a
range covers that whole day.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: str | None, *, end_of_day: bool = False) -> datetime | None:
    """
    "" / None -> None. A trailing "Z" or an offset is converted to UTC;
    naive input is taken as UTC. A bare date maps to midnight, or to the
    last microsecond of that day when ``end_of_day`` is set.

    Raises ValueError on anything unparseable.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None

    if len(text) == 10:
        day = date.fromisoformat(text)
        return datetime.combine(day, time.max if end_of_day else time.min)

    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    return _naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: datetime | None) -> str | None:
    """Second-precision ISO-8601 with a trailing Z, e.g. 2026-10-19T08:30:00Z."""
    if dt is None:
        return None
    return _naive_utc(dt).replace(microsecond=0).isoformat() + "Z"
