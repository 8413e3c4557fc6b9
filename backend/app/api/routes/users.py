"""
Admin listings of the resort's clients and fellow admins.
"""

from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.user import UserListResponse, UserResponse
from app.services.user_service import list_users

router = APIRouter(prefix="/users", tags=["Users"])


async def _listing(
    db: AsyncSession,
    admin: User,
    role: str,
    page: int,
    per_page: int,
    name_sort: str,
    date_sort: str,
) -> UserListResponse:
    users, total = await list_users(
        db, admin, role, page=page, per_page=per_page, name_sort=name_sort, date_sort=date_sort
    )
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total_items=total,
    )


@router.get("/clients", response_model=UserListResponse)
async def list_clients(
    page: int = 1,
    per_page: int = 10,
    name_sort: Literal["asc", "desc"] = "asc",
    date_sort: Literal["asc", "desc"] = "desc",
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await _listing(db, admin, "user", page, per_page, name_sort, date_sort)


@router.get("/admins", response_model=UserListResponse)
async def list_admins(
    page: int = 1,
    per_page: int = 10,
    name_sort: Literal["asc", "desc"] = "asc",
    date_sort: Literal["asc", "desc"] = "desc",
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Admins of the caller's resort."""
    return await _listing(db, admin, "admin", page, per_page, name_sort, date_sort)
