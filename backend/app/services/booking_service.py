"""
Booking lifecycle after creation: approval, denial, refund and expiration.

APPROVAL RECONCILIATION
=======================

Problem:
  Several pending requests may overlap the same days of a service. Each one
  fit when it was created, because capacity only counts approved bookings.
  Approving one of them can make the others impossible to honour.

Solution:
  1. Conditionally approve the booking (UPDATE ... WHERE not approved AND
     not cancelled AND resort_id = :admin_resort)
  2. Bump the service version so in-flight reservations re-read capacity
  3. Fetch every non-cancelled booking of the service overlapping the
     approved range in one query and split it into pending and approved
  4. Walk the pending ones oldest first; deny (reason `overBooking`) any that
     would push some day of its own range over the ceiling

  The approved set is fixed for the walk. Surviving pending bookings are not
  counted against each other: this is first-fit, not an optimal packing.

Every cancellation goes through a conditional UPDATE that only matches a
non-cancelled row, so the refund is paid at most once even when an expiration
task, an admin deny and an approval race on the same booking.
"""

from datetime import datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking
from app.models.service import BookableService
from app.models.user import User
from app.core.config import get_settings
from app.core.exceptions import NotFound, RefundWindowClosed
from app.core.metrics import record_approval, record_denial
from app.core.logging import get_logger
from app.services import booking_store, wallet_service
from app.services.capacity import first_overbooked_date
from app.services.dateutils import utc_today
from app.services.interfaces.notifier import Notifier

logger = get_logger(__name__)
settings = get_settings()


async def _service_of(db: AsyncSession, booking: Booking) -> Optional[BookableService]:
    result = await db.execute(
        select(BookableService).where(BookableService.id == booking.service_id)
    )
    return result.scalar_one_or_none()


async def _recipient(db: AsyncSession, user_id: int) -> Optional[tuple[str, str]]:
    result = await db.execute(select(User.email, User.username).where(User.id == user_id))
    row = result.first()
    return (row.email, row.username) if row else None


async def _cancel_and_refund(
    db: AsyncSession,
    booking: Booking,
    reason: str,
    service_name: str,
    notifier: Notifier,
    resort_id: Optional[int] = None,
    pending_only: bool = True,
) -> bool:
    """
    Cancel a booking, return its value to the wallet and notify the user.
    False when the booking was already cancelled (or, with `pending_only`,
    no longer pending).
    """
    cancelled = await booking_store.mark_cancelled(
        db, booking.id, reason, resort_id=resort_id, pending_only=pending_only
    )
    if not cancelled:
        logger.info("booking_cancel_skipped", booking_id=booking.id, reason=reason)
        return False

    balance = await wallet_service.add_credits(db, booking.user_id, booking.value)
    record_denial(reason)
    logger.info(
        "booking_denied",
        booking_id=booking.id,
        user_id=booking.user_id,
        service_id=booking.service_id,
        reason=reason,
        refunded=booking.value,
        balance=balance,
    )

    recipient = await _recipient(db, booking.user_id)
    if recipient:
        email, username = recipient
        await notifier.notify_denied(email, username, service_name, booking.date_from, booking.date_to)
    return True


async def approve_booking(
    db: AsyncSession,
    booking_id: int,
    admin: User,
    *,
    notifier: Notifier,
) -> dict:
    """
    Approve a pending booking of the admin's resort and deny the pending
    bookings that no longer fit. Returns `{message, denied_requests}`.
    """
    resort_id = admin.resort_id
    approved_now = await booking_store.mark_approved(db, booking_id, resort_id)

    booking = await booking_store.get_booking(db, booking_id, resort_id=resort_id)
    if booking is None:
        logger.warning("booking_approve_not_found", booking_id=booking_id, resort_id=resort_id)
        raise NotFound("Booking not found")

    if not approved_now:
        logger.info("booking_approve_noop", booking_id=booking_id, status=booking.status)
        return {
            "message": f"Booking {booking_id} is already {booking.status}",
            "denied_requests": [],
        }

    service = await _service_of(db, booking)
    if service is None:
        raise NotFound("Service not found")

    # Reservations racing this approval will see the new version and retry
    await db.execute(
        update(BookableService)
        .where(BookableService.id == service.id)
        .values(version=BookableService.version + 1)
    )

    overlapping = await booking_store.find_overlapping(
        db, service.id, booking.date_from, booking.date_to
    )
    pending = [b for b in overlapping if not b.is_approved]
    approved = [b for b in overlapping if b.is_approved]

    denied_requests: list[Booking] = []
    for candidate in pending:
        day = first_overbooked_date(
            service.num_of_guests,
            candidate.num_of_guests,
            candidate.date_from,
            candidate.date_to,
            approved,
        )
        if day is None:
            continue
        logger.info(
            "booking_overbooked",
            booking_id=candidate.id,
            approved_booking_id=booking.id,
            date=day.isoformat(),
        )
        if await _cancel_and_refund(db, candidate, "overBooking", service.name, notifier):
            denied_requests.append(candidate)

    # Pick up is_cancelled/cancelled_by written by the conditional updates
    for denied in denied_requests:
        await db.refresh(denied)

    record_approval("admin")
    logger.info(
        "booking_approved",
        booking_id=booking.id,
        service_id=service.id,
        admin_id=admin.id,
        denied=[b.id for b in denied_requests],
    )

    recipient = await _recipient(db, booking.user_id)
    if recipient:
        email, username = recipient
        await notifier.notify_approved(email, username, service.name, booking.date_from, booking.date_to)

    return {
        "message": f"Booking {booking.id} approved",
        "denied_requests": denied_requests,
    }


async def deny_booking(
    db: AsyncSession,
    booking_id: int,
    reason: str,
    *,
    admin: Optional[User] = None,
    notifier: Notifier,
) -> Optional[Booking]:
    """
    Cancel a pending booking with `reason` and refund it.
    With `admin`, only bookings of the admin's resort are visible.
    Returns None when the booking is no longer pending.
    """
    resort_id = admin.resort_id if admin is not None else None

    booking = await booking_store.get_booking(db, booking_id, resort_id=resort_id)
    if booking is None:
        raise NotFound("Booking not found")
    if not booking.is_pending:
        logger.info("booking_deny_noop", booking_id=booking_id, status=booking.status)
        return None

    service = await _service_of(db, booking)
    service_name = service.name if service else booking.service_type

    if not await _cancel_and_refund(db, booking, reason, service_name, notifier, resort_id=resort_id):
        return None

    await db.refresh(booking)
    return booking


async def expire_booking(
    db: AsyncSession,
    booking_id: int,
    *,
    notifier: Notifier,
) -> Optional[Booking]:
    """
    Expiration handler. Safe to run more than once: approved, cancelled or
    deleted bookings are left alone.
    """
    booking = await booking_store.get_booking(db, booking_id)
    if booking is None:
        logger.info("booking_expire_skipped", booking_id=booking_id, reason="missing")
        return None
    if not booking.is_pending:
        logger.info("booking_expire_skipped", booking_id=booking_id, reason=booking.status)
        return None

    expired = await deny_booking(db, booking_id, "expiration", notifier=notifier)
    if expired is not None:
        logger.info("booking_expired", booking_id=booking_id, user_id=expired.user_id)
    return expired


async def refund_booking(db: AsyncSession, user: User, booking_id: int) -> tuple[Booking, int]:
    """
    Cancel the user's own booking and return its value to the wallet.
    Returns the booking and the new balance.
    """
    user_id = user.id
    booking = await booking_store.get_booking(db, booking_id, user_id=user_id)
    if booking is None or booking.is_cancelled:
        raise NotFound("Booking not found")

    starts_at = datetime.combine(booking.date_from, time.min, tzinfo=timezone.utc)
    cutoff = datetime.now(timezone.utc) + timedelta(hours=settings.REFUND_CUTOFF_HOURS)
    if starts_at <= cutoff:
        logger.info("refund_rejected", booking_id=booking_id, user_id=user_id, date_from=str(booking.date_from))
        raise RefundWindowClosed()

    cancelled = await booking_store.mark_cancelled(
        db, booking_id, "user", user_id=user_id, pending_only=False
    )
    if not cancelled:
        raise NotFound("Booking not found")

    balance = await wallet_service.add_credits(db, user_id, booking.value)
    record_denial("user")
    await db.refresh(booking)

    logger.info(
        "booking_refunded",
        booking_id=booking_id,
        user_id=user_id,
        refunded=booking.value,
        balance=balance,
    )
    return booking, balance


async def get_user_bookings(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 10,
    newest_first: bool = True,
) -> tuple[list[Booking], int]:
    """Bookings made by the user, sorted by creation date."""
    return await booking_store.paginate_bookings(
        db, page=page, per_page=per_page, newest_first=newest_first, user_id=user_id
    )


async def list_resort_bookings(
    db: AsyncSession,
    admin: User,
    page: int = 1,
    per_page: int = 10,
    user_id: Optional[int] = None,
    service_id: Optional[int] = None,
    status_filter: Optional[str] = None,
) -> tuple[list[Booking], int]:
    """Bookings of the admin's resort, optionally narrowed by user, service and status."""
    return await booking_store.paginate_bookings(
        db,
        page=page,
        per_page=per_page,
        resort_id=admin.resort_id,
        user_id=user_id,
        service_id=service_id,
        status_filter=status_filter,
    )


async def cancel_service_bookings(
    db: AsyncSession,
    service: BookableService,
    *,
    notifier: Notifier,
) -> list[Booking]:
    """
    Cancel (reason `admin`) and refund every booking of `service` that has
    not ended yet, pending or approved. Runs before the service is removed;
    finished bookings are kept as history.
    """
    result = await db.execute(
        select(Booking)
        .where(
            Booking.service_id == service.id,
            Booking.is_cancelled.is_(False),
            Booking.date_to > utc_today(),
        )
        .order_by(Booking.created_at.asc(), Booking.id.asc())
    )

    cancelled: list[Booking] = []
    for booking in result.scalars().all():
        if await _cancel_and_refund(db, booking, "admin", service.name, notifier, pending_only=False):
            cancelled.append(booking)

    logger.info(
        "service_bookings_cancelled",
        service_id=service.id,
        cancelled=[b.id for b in cancelled],
    )
    return cancelled
