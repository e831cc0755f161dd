from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def fmt_date(value: Optional[date]) -> Optional[str]:
    return value.strftime("%Y-%m-%d") if value else None


def fmt_time(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value else None


def fmt_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every date from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_weekday(day: date) -> bool:
    return day.weekday() < 5


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def next_anniversary(day: date, today: date) -> date:
    """Next occurrence of day's month/day on or after today (Feb 29 falls back to Feb 28)."""

    def _in_year(year: int) -> date:
        if day.month == 2 and day.day == 29 and not calendar.isleap(year):
            return date(year, 2, 28)
        return date(year, day.month, day.day)

    candidate = _in_year(today.year)
    if candidate < today:
        candidate = _in_year(today.year + 1)
    return candidate
