"""
Reservation workflow shared by every bookable service (hotels and tracks).

CONCURRENCY STRATEGY: Optimistic Locking with Retry
====================================================

Problem:
  Two guests reserve the last places of an auto-accept hotel at the same time.
  Both read the approved bookings, both pass the capacity check, both insert.
  Result: the day is overbooked.

Solution:
  The service row carries a `version` column.

  1. Read the service and its current version
  2. Run day-of-week, capacity and wallet checks against that snapshot
  3. UPDATE services SET version = version + 1
     WHERE id = :service_id AND version = :current_version
  4. If rows_affected == 0, another reservation or approval touched the
     service in between -> reload and retry
  5. Insert the booking and debit the wallet in the same transaction

  Approvals bump the same version, so a reservation that raced an approval
  re-reads the new approved set before it inserts.

Wallet:
  The balance check uses the strict `wallet > price` rule; the debit itself is
  a conditional UPDATE (`wallet >= price`). If the debit loses a race the
  request fails with InsufficientFunds and the booking insert rolls back with
  the rest of the transaction.
"""

import time
from datetime import date, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking
from app.models.service import BookableService, SERVICE_MODELS
from app.models.user import User
from app.core.config import get_settings
from app.core.exceptions import (
    BookingAPIError,
    BookingConflict,
    DayUnavailable,
    InsufficientFunds,
    InvalidDateRange,
    OutOfWindow,
    ServiceNotFound,
    UnverifiedAccount,
)
from app.core.metrics import (
    record_approval,
    record_reservation_attempt,
    reservation_latency,
    service_version_retries,
)
from app.core.logging import get_logger
from app.services import booking_store, wallet_service
from app.services.capacity import calculate_price, ensure_capacity
from app.services.dateutils import is_within_booking_window, utc_today, weekdays_touched
from app.services.interfaces.notifier import Notifier
from app.services.interfaces.scheduler import ExpirationScheduler

logger = get_logger(__name__)
settings = get_settings()

MAX_RETRY_ATTEMPTS = 3


def validate_request_dates(date_from: date, date_to: date, today: date) -> None:
    if date_to <= date_from:
        raise InvalidDateRange()

    months = settings.BOOKING_WINDOW_MONTHS
    if not (
        is_within_booking_window(date_from, today, months)
        and is_within_booking_window(date_to, today, months)
    ):
        raise OutOfWindow(f"You can only make a reservation within the next {months} months")


async def _load_service(db: AsyncSession, kind: str, service_id: int) -> BookableService:
    model = SERVICE_MODELS[kind]
    result = await db.execute(
        select(model)
        .where(model.id == service_id)
        .execution_options(populate_existing=True)
    )
    service = result.scalar_one_or_none()
    if not service:
        raise ServiceNotFound(f"{kind.capitalize()} {service_id} not found")
    return service


async def reserve_service(
    db: AsyncSession,
    user: User,
    kind: str,
    service_id: int,
    date_from: date,
    date_to: date,
    num_of_guests: int,
    *,
    notifier: Notifier,
    scheduler: ExpirationScheduler,
) -> Booking:
    """
    Reserve `num_of_guests` places of a hotel or track for `[date_from, date_to)`.
    Returns the created booking; its `value` is the price charged.
    """
    start_time = time.perf_counter()
    try:
        booking = await _reserve(
            db, user, kind, service_id, date_from, date_to, num_of_guests,
            notifier=notifier, scheduler=scheduler,
        )
    except BookingConflict:
        record_reservation_attempt(kind, "conflict")
        raise
    except BookingAPIError as e:
        record_reservation_attempt(kind, "rejected")
        logger.info(
            "reservation_rejected",
            kind=kind,
            service_id=service_id,
            user_id=user.id,
            reason=type(e).__name__,
        )
        raise
    finally:
        reservation_latency.observe(time.perf_counter() - start_time)

    record_reservation_attempt(kind, "success")
    return booking


async def _reserve(
    db: AsyncSession,
    user: User,
    kind: str,
    service_id: int,
    date_from: date,
    date_to: date,
    num_of_guests: int,
    *,
    notifier: Notifier,
    scheduler: ExpirationScheduler,
) -> Booking:
    validate_request_dates(date_from, date_to, utc_today())

    if not user.is_validated:
        raise UnverifiedAccount()

    user_id, email, username = user.id, user.email, user.username

    for attempt in range(1, MAX_RETRY_ATTEMPTS + 1):
        # Step 1: Read current service state
        service = await _load_service(db, kind, service_id)

        for day in sorted(weekdays_touched(date_from, date_to)):
            if not service.accepts(day):
                raise DayUnavailable(f"{service.name} does not accept bookings on {day}")

        # Step 2: Capacity against approved bookings, then price and wallet
        approved = await booking_store.find_overlapping(
            db, service.id, date_from, date_to, approved=True
        )
        ensure_capacity(service.num_of_guests, num_of_guests, date_from, date_to, approved)

        price = calculate_price(date_from, date_to, service.price, num_of_guests)
        if not await wallet_service.has_enough_credits(db, user_id, price):
            logger.warning("reservation_insufficient_funds", user_id=user_id, price=price)
            raise InsufficientFunds()

        # Step 3: Optimistic lock - claim the service version we checked against
        current_version = service.version
        lock_result = await db.execute(
            update(BookableService)
            .where(
                BookableService.id == service.id,
                BookableService.version == current_version,
            )
            .values(version=BookableService.version + 1)
        )

        if lock_result.rowcount == 0:
            service_version_retries.inc()
            logger.info(
                "reservation_retry",
                service_id=service.id,
                attempt=attempt,
                reason="version_conflict",
            )
            if attempt == MAX_RETRY_ATTEMPTS:
                raise BookingConflict()
            continue

        # Step 4: Create booking and charge the wallet
        booking = await booking_store.create_booking(
            db,
            user_id=user_id,
            service_id=service.id,
            resort_id=service.resort_id,
            service_type=kind,
            num_of_guests=num_of_guests,
            value=price,
            date_from=date_from,
            date_to=date_to,
            is_approved=bool(service.auto_accept),
            is_cancelled=False,
        )
        await wallet_service.debit_credits(db, user_id, price)

        await scheduler.schedule(booking.id, timedelta(hours=settings.EXPIRATION_DELAY_HOURS))

        logger.info(
            "booking_created",
            booking_id=booking.id,
            user_id=user_id,
            service_id=service.id,
            kind=kind,
            guests=num_of_guests,
            price=price,
            auto_accepted=booking.is_approved,
            attempt=attempt,
        )

        if booking.is_approved:
            record_approval("auto")
            await notifier.notify_approved(email, username, service.name, date_from, date_to)

        return booking

    # Should not reach here, but just in case
    raise BookingConflict()
