"""
Capacity checking and pricing.

A service accepts at most `num_of_guests` guests per calendar day. Only
approved, non-cancelled bookings count. Each day of the requested range is
checked independently and the whole range fails on the first full day; there
is no partial acceptance.
"""

from datetime import date
from typing import Iterable, Optional, Protocol

from app.core.exceptions import CapacityExceeded
from app.services.dateutils import days_between, enumerate_dates


class GuestBooking(Protocol):
    date_from: date
    date_to: date
    num_of_guests: int


def guests_on(day: date, bookings: Iterable[GuestBooking]) -> int:
    """Guests of the given bookings whose inclusive range covers `day`."""
    return sum(b.num_of_guests for b in bookings if b.date_from <= day <= b.date_to)


def first_overbooked_date(
    ceiling: int,
    requested: int,
    date_from: date,
    date_to: date,
    approved: Iterable[GuestBooking],
) -> Optional[date]:
    """First day on which `requested` more guests would exceed `ceiling`, or None."""
    approved = list(approved)
    for day in enumerate_dates(date_from, date_to):
        if guests_on(day, approved) + requested > ceiling:
            return day
    return None


def ensure_capacity(
    ceiling: int,
    requested: int,
    date_from: date,
    date_to: date,
    approved: Iterable[GuestBooking],
) -> None:
    day = first_overbooked_date(ceiling, requested, date_from, date_to, approved)
    if day is not None:
        raise CapacityExceeded(f"Couldn't book, not enough space on {day.isoformat()}")


def calculate_price(date_from: date, date_to: date, unit_price: int, num_of_guests: int) -> int:
    return days_between(date_from, date_to) * unit_price * num_of_guests
