"""
Hotel and track catalog: admin create/delete within their own resort, and
filtered listings for guests.

Availability filtering (date range + guest count) happens after the SQL
filters: the candidate services are loaded, their approved bookings for the
range are fetched in one query, and services without room on some day are
dropped before paginating, so `total_items` matches what can be booked.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.booking import Booking
from app.models.service import BookableService, SERVICE_MODELS
from app.models.user import User
from app.schemas.service import HotelCreate, TrackCreate
from app.core.config import get_settings
from app.core.exceptions import InvalidDateRange, ServiceNotFound, Unauthorized
from app.core.logging import get_logger
from app.services.booking_store import validate_pagination
from app.services.capacity import first_overbooked_date
from app.services.dateutils import weekdays_touched
from app.services.booking_service import cancel_service_bookings
from app.services.interfaces.notifier import Notifier

logger = get_logger(__name__)
settings = get_settings()


@dataclass
class ServiceFilters:
    name: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    min_stars: Optional[int] = None
    max_stars: Optional[int] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    rating: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    guests: int = 1
    name_desc: bool = False

    def cache_fragment(self) -> str:
        return "&".join(f"{key}={value}" for key, value in sorted(vars(self).items()))


def _require_resort_admin(admin: User) -> int:
    if not admin.is_admin or admin.resort_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return admin.resort_id


async def create_service(db: AsyncSession, admin: User, kind: str, data: Union[HotelCreate, TrackCreate]) -> BookableService:
    """Create a hotel or track in the admin's own resort."""
    resort_id = _require_resort_admin(admin)
    model = SERVICE_MODELS[kind]

    service = model(resort_id=resort_id, **data.model_dump())
    db.add(service)
    await db.flush()
    await db.refresh(service)

    logger.info("service_created", service_id=service.id, kind=kind, resort_id=resort_id)
    return service


async def get_service(db: AsyncSession, service_id: int, kind: Optional[str] = None) -> BookableService:
    model = SERVICE_MODELS[kind] if kind else BookableService
    result = await db.execute(select(model).where(model.id == service_id))
    service = result.scalar_one_or_none()
    if not service:
        raise ServiceNotFound(f"{(kind or 'service').capitalize()} {service_id} not found")
    return service


async def delete_service(
    db: AsyncSession,
    admin: User,
    kind: str,
    service_id: int,
    *,
    notifier: Notifier,
) -> BookableService:
    """
    Delete a service. Only admins of the owning resort may do this.
    Bookings that have not ended are cancelled and refunded first.
    """
    resort_id = _require_resort_admin(admin)
    service = await get_service(db, service_id, kind)

    if service.resort_id != resort_id:
        logger.warning(
            "service_delete_forbidden",
            service_id=service_id,
            admin_id=admin.id,
            admin_resort=resort_id,
            service_resort=service.resort_id,
        )
        raise Unauthorized("Cannot delete a service of another resort")

    await cancel_service_bookings(db, service, notifier=notifier)
    await db.delete(service)
    await db.flush()

    logger.info("service_deleted", service_id=service_id, kind=kind, resort_id=resort_id)
    return service


async def list_services(
    db: AsyncSession,
    kind: str,
    filters: ServiceFilters,
    page: int = 1,
    per_page: int = 10,
) -> tuple[list[BookableService], int]:
    validate_pagination(per_page, page)
    per_page = min(per_page, settings.MAX_PER_PAGE)

    model = SERVICE_MODELS[kind]
    query = select(model)

    if filters.name:
        query = query.where(model.name.ilike(f"%{filters.name}%"))
    if filters.min_price is not None:
        query = query.where(model.price >= filters.min_price)
    if filters.max_price is not None:
        query = query.where(model.price <= filters.max_price)
    if kind == "hotel":
        if filters.min_stars is not None:
            query = query.where(model.num_of_stars >= filters.min_stars)
        if filters.max_stars is not None:
            query = query.where(model.num_of_stars <= filters.max_stars)
    if kind == "track":
        if filters.min_length is not None:
            query = query.where(model.length >= filters.min_length)
        if filters.max_length is not None:
            query = query.where(model.length <= filters.max_length)
        if filters.rating:
            query = query.where(model.rating == filters.rating)

    order = model.name.desc() if filters.name_desc else model.name.asc()
    result = await db.execute(query.order_by(order, model.id.asc()))
    services = list(result.scalars().all())

    if filters.date_from and filters.date_to:
        services = await _only_available(db, services, filters)

    total = len(services)
    start = (page - 1) * per_page
    return services[start:start + per_page], total


async def _only_available(
    db: AsyncSession,
    services: list[BookableService],
    filters: ServiceFilters,
) -> list[BookableService]:
    if filters.date_to <= filters.date_from:
        raise InvalidDateRange()

    required_days = weekdays_touched(filters.date_from, filters.date_to)
    services = [s for s in services if all(s.accepts(day) for day in required_days)]
    if not services:
        return []

    result = await db.execute(
        select(Booking).where(
            Booking.service_id.in_([s.id for s in services]),
            Booking.is_approved.is_(True),
            Booking.is_cancelled.is_(False),
            Booking.date_from <= filters.date_to,
            Booking.date_to >= filters.date_from,
        )
    )
    approved_by_service: dict[int, list[Booking]] = defaultdict(list)
    for booking in result.scalars().all():
        approved_by_service[booking.service_id].append(booking)

    return [
        s for s in services
        if first_overbooked_date(
            s.num_of_guests,
            filters.guests,
            filters.date_from,
            filters.date_to,
            approved_by_service[s.id],
        ) is None
    ]
