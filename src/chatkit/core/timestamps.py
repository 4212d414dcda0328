"""ISO-8601 timestamp helpers shared by the grouping engine and the UI."""

from __future__ import annotations

import datetime as _dt
from typing import Optional

_UTC = _dt.timezone.utc


def utcnow_iso() -> str:
    return _dt.datetime.now(_UTC).isoformat()


def parse_timestamp(value: str | None) -> Optional[_dt.datetime]:
    """Parse an ISO-8601 string, returning ``None`` when it is not one.

    Aware values are converted to UTC and made naive so that values with and
    without an offset stay comparable.
    """

    if not value:
        return None
    try:
        parsed = _dt.datetime.fromisoformat(value.strip())
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(_UTC).replace(tzinfo=None)
    return parsed


def is_same_minute(a: _dt.datetime, b: _dt.datetime) -> bool:
    return (a.year, a.month, a.day, a.hour, a.minute) == (b.year, b.month, b.day, b.hour, b.minute)


def is_same_day(a: _dt.datetime, b: _dt.datetime) -> bool:
    return (a.year, a.month, a.day) == (b.year, b.month, b.day)


def compare_timestamps(a: str, b: str) -> int:
    """Three-way comparison used by sort routines; unparseable values tie."""

    left = parse_timestamp(a)
    right = parse_timestamp(b)
    if left is None or right is None:
        return 0
    if left < right:
        return -1
    if left > right:
        return 1
    return 0
