# src/streaks_overload/core/clock.py

from __future__ import annotations

"""
Day keys and wall-clock helpers.

A day key is a calendar date formatted as YYYY-MM-DD.

- "today" is always taken in local time.
- Day arithmetic treats a key as UTC midnight, so differences are plain integer
  math and daylight-saving transitions cannot shift a result by one.

Nothing here raises on a malformed key: the affected helpers fall back to today().
"""

import re
import time
from datetime import date, datetime, timedelta

DAY_KEY_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

_EPOCH = date(1970, 1, 1)


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds (storage timestamp unit)."""
    return int(time.time() * 1000)


def today(now: datetime | None = None) -> str:
    """Day key for the current moment in local time."""
    moment = now if now is not None else datetime.now()
    return f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"


def _parse(day_key: object) -> date | None:
    if not isinstance(day_key, str) or not DAY_KEY_RE.fullmatch(day_key):
        return None
    try:
        return date(int(day_key[0:4]), int(day_key[5:7]), int(day_key[8:10]))
    except ValueError:
        return None


def is_day_key(value: object) -> bool:
    return _parse(value) is not None


def day_number(day_key: str) -> int:
    """Integer day index since 1970-01-01 (UTC-anchored)."""
    d = _parse(day_key)
    if d is None:
        d = _parse(today()) or date.today()
    return (d - _EPOCH).days


def diff_days(a: str, b: str) -> int:
    """Number of midnights between a and b (negative when b is earlier)."""
    return day_number(b) - day_number(a)


def add_days(day_key: str, n: int) -> str:
    if _parse(day_key) is None:
        return today()
    d = _EPOCH + timedelta(days=day_number(day_key) + int(n))
    return d.isoformat()
