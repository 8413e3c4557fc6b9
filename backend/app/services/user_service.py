"""
Account management for signed-in users and the admin's user listings.
"""

from typing import Literal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.booking import Booking
from app.models.user import User
from app.core.config import get_settings
from app.core.security import hash_password, verify_password, generate_confirmation_code
from app.core.logging import get_logger
from app.services.booking_store import validate_pagination
from app.services.dateutils import utc_today
from app.services.interfaces.notifier import Notifier

logger = get_logger(__name__)
settings = get_settings()

SortOrder = Literal["asc", "desc"]


async def list_users(
    db: AsyncSession,
    admin: User,
    role: str,
    page: int = 1,
    per_page: int = 10,
    name_sort: SortOrder = "asc",
    date_sort: SortOrder = "desc",
) -> tuple[list[User], int]:
    """
    Users with `role`, sorted by name and then by registration date.
    Admin listings only show the admins of the caller's own resort.
    """
    validate_pagination(per_page, page)
    per_page = min(per_page, settings.MAX_PER_PAGE)

    query = select(User).where(User.role == role)
    if role == "admin":
        query = query.where(User.resort_id == admin.resort_id)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    name_order = User.name.asc() if name_sort == "asc" else User.name.desc()
    date_order = User.created_at.asc() if date_sort == "asc" else User.created_at.desc()
    result = await db.execute(
        query.order_by(name_order, date_order, User.id.asc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def resend_confirmation(db: AsyncSession, user: User, notifier: Notifier) -> None:
    """Issue a new confirmation code; the previous one stops working."""
    if user.is_validated:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already confirmed",
        )

    code = generate_confirmation_code()
    user.confirmation_code_hash = hash_password(code)
    await db.flush()

    await notifier.send_confirmation(user.email, code, user.id)
    logger.info("confirmation_resent", user_id=user.id)


async def change_password(db: AsyncSession, user: User, old_password: str, new_password: str) -> None:
    if not verify_password(old_password, user.hashed_password):
        logger.warning("password_change_failed", user_id=user.id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Passwords do not match",
        )

    user.hashed_password = hash_password(new_password)
    await db.flush()
    logger.info("password_changed", user_id=user.id)


async def delete_account(db: AsyncSession, user: User) -> None:
    """
    Remove the account. Bookings that have not ended are cancelled first so
    they stop holding capacity; their value goes with the wallet. Past
    bookings stay as history with the user reference cleared.
    """
    user_id = user.id
    result = await db.execute(
        update(Booking)
        .where(
            Booking.user_id == user_id,
            Booking.is_cancelled.is_(False),
            Booking.date_to > utc_today(),
        )
        .values(is_cancelled=True, cancelled_by="user")
    )

    await db.delete(user)
    await db.flush()
    logger.info("account_deleted", user_id=user_id, cancelled_bookings=result.rowcount)
