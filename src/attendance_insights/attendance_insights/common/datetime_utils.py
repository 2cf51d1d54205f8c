from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
WORKDAY_NAMES = WEEKDAY_NAMES[:5]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def week_start(value: date) -> date:
    """Monday of the ISO week containing ``value`` (Sunday belongs to the previous Monday)."""
    return value - timedelta(days=value.weekday())


def day_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]


def is_workday(value: date) -> bool:
    return value.weekday() < 5


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def working_days(start: date, end: date) -> int:
    """Number of Monday-Friday dates in the inclusive range."""
    return sum(1 for d in iter_dates(start, end) if is_workday(d))


def next_working_day(value: date) -> date:
    nxt = value + timedelta(days=1)
    while not is_workday(nxt):
        nxt += timedelta(days=1)
    return nxt
