"""
Booking persistence.

State transitions are conditional UPDATEs (`... WHERE is_cancelled = false`),
so a transition that lost a race matches no row and the caller treats it as a
no-op. This is what keeps late expiration/approval/deny from resurrecting or
double-refunding a cancelled booking.
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking
from app.core.config import get_settings
from app.core.exceptions import InvalidPagination

settings = get_settings()

BOOKING_FILTERS = ("pending", "approved", "expired", "finished")


async def create_booking(db: AsyncSession, **fields) -> Booking:
    booking = Booking(**fields)
    db.add(booking)
    await db.flush()
    await db.refresh(booking)
    return booking


async def get_booking(
    db: AsyncSession,
    booking_id: int,
    resort_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> Optional[Booking]:
    query = select(Booking).where(Booking.id == booking_id)
    if resort_id is not None:
        query = query.where(Booking.resort_id == resort_id)
    if user_id is not None:
        query = query.where(Booking.user_id == user_id)
    result = await db.execute(query.execution_options(populate_existing=True))
    return result.scalar_one_or_none()


async def find_overlapping(
    db: AsyncSession,
    service_id: int,
    date_from: date,
    date_to: date,
    approved: Optional[bool] = None,
) -> list[Booking]:
    """
    Non-cancelled bookings of a service whose inclusive range intersects
    `[date_from, date_to]`, oldest first. `approved` narrows to one state.
    """
    query = select(Booking).where(
        Booking.service_id == service_id,
        Booking.is_cancelled.is_(False),
        Booking.date_from <= date_to,
        Booking.date_to >= date_from,
    )
    if approved is not None:
        query = query.where(Booking.is_approved.is_(approved))
    result = await db.execute(query.order_by(Booking.created_at.asc(), Booking.id.asc()))
    return list(result.scalars().all())


async def mark_approved(db: AsyncSession, booking_id: int, resort_id: int) -> bool:
    """Approve a pending booking of the given resort. False if nothing matched."""
    result = await db.execute(
        update(Booking)
        .where(
            Booking.id == booking_id,
            Booking.resort_id == resort_id,
            Booking.is_approved.is_(False),
            Booking.is_cancelled.is_(False),
        )
        .values(is_approved=True)
    )
    return result.rowcount > 0


async def mark_cancelled(
    db: AsyncSession,
    booking_id: int,
    reason: str,
    *,
    resort_id: Optional[int] = None,
    user_id: Optional[int] = None,
    pending_only: bool = True,
) -> bool:
    """Cancel a booking that is not cancelled yet. False if nothing matched."""
    query = update(Booking).where(Booking.id == booking_id, Booking.is_cancelled.is_(False))
    if pending_only:
        query = query.where(Booking.is_approved.is_(False))
    if resort_id is not None:
        query = query.where(Booking.resort_id == resort_id)
    if user_id is not None:
        query = query.where(Booking.user_id == user_id)

    result = await db.execute(query.values(is_cancelled=True, cancelled_by=reason))
    return result.rowcount > 0


def validate_pagination(per_page: int, page: int) -> None:
    if per_page < 1 or page < 1:
        raise InvalidPagination()


async def paginate_bookings(
    db: AsyncSession,
    *,
    page: int = 1,
    per_page: int = 10,
    newest_first: bool = True,
    user_id: Optional[int] = None,
    resort_id: Optional[int] = None,
    service_id: Optional[int] = None,
    status_filter: Optional[str] = None,
) -> tuple[list[Booking], int]:
    validate_pagination(per_page, page)
    per_page = min(per_page, settings.MAX_PER_PAGE)

    query = select(Booking)
    if user_id is not None:
        query = query.where(Booking.user_id == user_id)
    if resort_id is not None:
        query = query.where(Booking.resort_id == resort_id)
    if service_id is not None:
        query = query.where(Booking.service_id == service_id)

    if status_filter == "pending":
        query = query.where(Booking.is_approved.is_(False), Booking.is_cancelled.is_(False))
    elif status_filter == "approved":
        query = query.where(Booking.is_approved.is_(True))
    elif status_filter == "expired":
        query = query.where(Booking.is_cancelled.is_(True), Booking.cancelled_by == "expiration")
    elif status_filter == "finished":
        query = query.where(Booking.date_to <= datetime.now(timezone.utc).date())

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    order = Booking.created_at.desc() if newest_first else Booking.created_at.asc()
    id_order = Booking.id.desc() if newest_first else Booking.id.asc()
    result = await db.execute(
        query.order_by(order, id_order).offset((page - 1) * per_page).limit(per_page)
    )
    return list(result.scalars().all()), total
