"""
Booking endpoints: listings, admin approval/denial and user refunds.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.booking import (
    BookingResponse, BookingListResponse, ApprovalResponse, DenyResponse, RefundResponse,
)
from app.services.booking_service import (
    approve_booking, deny_booking, refund_booking, get_user_bookings, list_resort_bookings,
)
from app.services.cache_service import invalidate_service_cache
from app.services.interfaces.notifier import Notifier
from app.services.providers import get_notifier
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("/me", response_model=BookingListResponse)
async def list_my_bookings(
    page: int = 1,
    per_page: int = 10,
    sort: Literal["asc", "desc"] = "desc",
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Bookings of the authenticated user, sorted by creation date."""
    bookings, total = await get_user_bookings(
        db, user.id, page=page, per_page=per_page, newest_first=(sort == "desc")
    )
    return BookingListResponse(
        items=[BookingResponse.model_validate(b) for b in bookings],
        total_items=total,
    )


@router.get("/", response_model=BookingListResponse)
async def list_bookings(
    page: int = 1,
    per_page: int = 10,
    user_id: Optional[int] = None,
    service_id: Optional[int] = None,
    status: Optional[Literal["pending", "approved", "expired", "finished"]] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Bookings of the admin's resort."""
    bookings, total = await list_resort_bookings(
        db, admin, page=page, per_page=per_page,
        user_id=user_id, service_id=service_id, status_filter=status,
    )
    return BookingListResponse(
        items=[BookingResponse.model_validate(b) for b in bookings],
        total_items=total,
    )


@router.patch("/{booking_id}/approve", response_model=ApprovalResponse)
async def approve_booking_endpoint(
    booking_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Approve a pending booking. Pending bookings of the same service that no
    longer fit are denied and refunded; they are listed in `denied_requests`.
    """
    summary = await approve_booking(db, booking_id, admin, notifier=notifier)
    await invalidate_service_cache()
    return ApprovalResponse(
        message=summary["message"],
        denied_requests=[BookingResponse.model_validate(b) for b in summary["denied_requests"]],
    )


@router.patch("/{booking_id}/deny", response_model=DenyResponse)
async def deny_booking_endpoint(
    booking_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    booking = await deny_booking(db, booking_id, "admin", admin=admin, notifier=notifier)
    if booking is None:
        return DenyResponse(message="Booking is no longer pending", booking_id=booking_id)
    return DenyResponse(message="Booking denied", booking_id=booking.id)


@router.delete("/{booking_id}/refund", response_model=RefundResponse)
async def refund_booking_endpoint(
    booking_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel your own booking more than a day before it starts and get the credits back."""
    booking, balance = await refund_booking(db, user, booking_id)
    if booking.is_approved:
        await invalidate_service_cache()
    return RefundResponse(message="Booking refunded", booking_id=booking.id, wallet=balance)
