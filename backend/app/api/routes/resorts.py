"""
Resort (ski center) endpoints. Mutations require the operator API key.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.resort import ResortCreate, ResortUpdate, ResortResponse
from app.services.resort_service import create_resort, get_resort, update_resort, delete_resort
from app.services.cache_service import invalidate_service_cache
from app.core.security import get_current_user_id, require_api_key
from app.services.interfaces.notifier import Notifier
from app.services.providers import get_notifier

router = APIRouter(prefix="/resorts", tags=["Resorts"])


@router.post(
    "/",
    response_model=ResortResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_api_key)],
)
async def create_resort_endpoint(data: ResortCreate, db: AsyncSession = Depends(get_db)):
    resort = await create_resort(db, data)
    return resort


@router.patch("/{resort_id}", response_model=ResortResponse, dependencies=[Depends(require_api_key)])
async def update_resort_endpoint(
    resort_id: int,
    data: ResortUpdate,
    db: AsyncSession = Depends(get_db),
):
    resort = await update_resort(db, resort_id, data)
    return resort


@router.delete(
    "/{resort_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_api_key)],
)
async def delete_resort_endpoint(
    resort_id: int,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Delete a resort with its hotels and tracks. Bookings not yet ended are refunded."""
    await delete_resort(db, resort_id, notifier=notifier)
    await invalidate_service_cache()


@router.get("/{resort_id}", response_model=ResortResponse)
async def get_resort_endpoint(
    resort_id: int,
    _: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    resort = await get_resort(db, resort_id)
    return resort
