"""
Resort (ski center) management. Mutations are operator-only (API key).
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.resort import Resort
from app.models.service import BookableService
from app.schemas.resort import ResortCreate, ResortUpdate
from app.core.exceptions import AlreadyExists, NotFound
from app.core.logging import get_logger
from app.services.booking_service import cancel_service_bookings
from app.services.interfaces.notifier import Notifier

logger = get_logger(__name__)


async def create_resort(db: AsyncSession, data: ResortCreate) -> Resort:
    existing = await db.execute(select(Resort).where(Resort.name == data.name))
    if existing.scalar_one_or_none():
        raise AlreadyExists(f"Resort {data.name} already exists")

    resort = Resort(name=data.name, location=data.location, description=data.description)
    db.add(resort)
    await db.flush()
    await db.refresh(resort)

    logger.info("resort_created", resort_id=resort.id, name=resort.name)
    return resort


async def get_resort(db: AsyncSession, resort_id: int) -> Resort:
    result = await db.execute(select(Resort).where(Resort.id == resort_id))
    resort = result.scalar_one_or_none()
    if not resort:
        raise NotFound(f"Resort {resort_id} not found")
    return resort


async def update_resort(db: AsyncSession, resort_id: int, data: ResortUpdate) -> Resort:
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No changes committed",
        )

    resort = await get_resort(db, resort_id)
    for field, value in changes.items():
        setattr(resort, field, value)
    await db.flush()
    await db.refresh(resort)

    logger.info("resort_updated", resort_id=resort.id, fields=sorted(changes))
    return resort


async def delete_resort(db: AsyncSession, resort_id: int, *, notifier: Notifier) -> None:
    """
    Delete a resort and its services. Bookings that have not ended are
    cancelled and refunded; the rest stay as history.
    """
    resort = await get_resort(db, resort_id)

    result = await db.execute(select(BookableService).where(BookableService.resort_id == resort_id))
    services = list(result.scalars().all())
    for service in services:
        await cancel_service_bookings(db, service, notifier=notifier)
        await db.delete(service)
    await db.flush()

    await db.delete(resort)
    await db.flush()
    logger.info("resort_deleted", resort_id=resort_id, services=[s.id for s in services])
