"""
Typed failures raised by the booking domain.

Each one is an HTTPException so FastAPI renders it directly; services raise
them the same way they would raise a bare HTTPException, but callers and tests
can catch the specific type.
"""

from typing import Optional

from fastapi import HTTPException, status


class BookingAPIError(HTTPException):
    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Bad request"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or type(self).detail,
            headers=headers,
        )


class InvalidDateRange(BookingAPIError):
    detail = "Date from must be before date to"


class OutOfWindow(BookingAPIError):
    detail = "You can only make a reservation within the next 3 months"


class UnverifiedAccount(BookingAPIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Please verify your email to use our services"


class ServiceNotFound(BookingAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Service not found"


class DayUnavailable(BookingAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Couldn't book for the required days"


class CapacityExceeded(BookingAPIError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Couldn't book, not enough space"


class InsufficientFunds(BookingAPIError):
    detail = "Not enough credits"


class InvalidPagination(BookingAPIError):
    detail = "Pagination not valid"


class NotFound(BookingAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class Unauthorized(BookingAPIError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Not allowed to access resources of another resort"


class RefundWindowClosed(BookingAPIError):
    detail = "You can't cancel a day before your reservation"


class BookingConflict(BookingAPIError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Booking failed due to high demand. Please try again."


class AlreadyExists(BookingAPIError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Resource already exists"
