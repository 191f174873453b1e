from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Callable

import pytz

NowFn = Callable[[], datetime]


def parse_month(value: str) -> tuple[int, int]:
    """Parse YYYY-MM string into (year, month)."""
    parsed = datetime.strptime(value, "%Y-%m")
    return parsed.year, parsed.month


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 timestamp sent by a client into an aware UTC datetime.

    Naive values are taken as UTC; a trailing ``Z`` is accepted.
    """
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return ensure_utc(parsed)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime.

    Note: Services take a ``now_fn`` so tests can pin the clock.
    """
    return datetime.now(pytz.utc)


def to_local(instant: datetime, tz_name: str) -> datetime:
    return ensure_utc(instant).astimezone(pytz.timezone(tz_name))


def local_date(instant: datetime, tz_name: str) -> date:
    """Calendar date of an instant in the given timezone (not the UTC date)."""
    return to_local(instant, tz_name).date()


def local_instant(day: date, clock: time, tz_name: str) -> datetime:
    """UTC instant of a wall-clock time on a local date."""
    tz = pytz.timezone(tz_name)
    return tz.localize(datetime.combine(day, clock)).astimezone(pytz.utc)


def local_midnight(day: date, tz_name: str) -> datetime:
    return local_instant(day, time(0, 0), tz_name)


def month_bounds(year: int, month: int, tz_name: str) -> tuple[datetime, datetime]:
    """[start, end) of a local calendar month, as UTC instants."""
    first = date(year, month, 1)
    next_first = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return local_midnight(first, tz_name), local_midnight(next_first, tz_name)


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start) / timedelta(minutes=1)
