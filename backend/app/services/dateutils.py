"""
Calendar helpers for reservations.

Billing and capacity deliberately disagree about the end date:
- `days_between` / `weekdays_touched` treat `date_to` as exclusive (checkout day)
- `enumerate_dates` includes `date_to`, so capacity scanning is one day wider
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Union

DateLike = Union[date, datetime]

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def to_utc_date(value: DateLike) -> date:
    """Calendar day of a date or datetime, read in UTC. Naive datetimes are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def days_between(date_from: DateLike, date_to: DateLike) -> int:
    """Whole calendar days from `date_from` to `date_to`, ignoring time of day."""
    return (to_utc_date(date_to) - to_utc_date(date_from)).days


class DateRange:
    """
    Inclusive range of calendar days. Iterating yields each day from start to
    end; the object can be iterated any number of times.
    """

    __slots__ = ("start", "end")

    def __init__(self, start: DateLike, end: DateLike):
        self.start = to_utc_date(start)
        self.end = to_utc_date(end)

    def __iter__(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return max(days_between(self.start, self.end) + 1, 0)

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= to_utc_date(day) <= self.end

    def __repr__(self) -> str:
        return f"DateRange({self.start.isoformat()}..{self.end.isoformat()})"


def enumerate_dates(date_from: DateLike, date_to: DateLike) -> DateRange:
    return DateRange(date_from, date_to)


def weekdays_touched(date_from: DateLike, date_to: DateLike) -> set[str]:
    """Weekday names of the billed days, `date_to` excluded."""
    start, end = to_utc_date(date_from), to_utc_date(date_to)
    days: set[str] = set()
    current = start
    # A full week already covers every name
    while current < end and len(days) < 7:
        days.add(WEEKDAYS[current.weekday()])
        current += timedelta(days=1)
    return days


def add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def is_within_booking_window(day: date, today: date, months: int = 3) -> bool:
    """True when `day` is after today and no later than `months` from today."""
    return today < day <= add_months(today, months)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()
