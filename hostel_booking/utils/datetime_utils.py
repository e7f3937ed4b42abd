"""
Date and time helpers for the booking engine.

All persisted timestamps are naive UTC so that SQLite and PostgreSQL
compare them the same way.
"""

import math
from datetime import date, datetime, time, timezone

SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    """Current time as naive UTC"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values pass through"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(value: date) -> datetime:
    """Midnight at the beginning of the given date"""
    return datetime.combine(value, time.min)


def days_until(target: date, now: datetime) -> int:
    """
    Whole days from `now` until midnight of `target`, rounded up.

    A check-in tomorrow morning seen from this afternoon counts as one
    day; anything at or past the target midnight is zero or negative.
    """
    delta = start_of_day(target) - to_naive_utc(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
