"""
Hotel and track endpoints.

Both kinds expose the same operations (create, delete, list, reserve), so the
router is built once per kind. Listings are cached in Redis; any change that
affects availability invalidates them.
"""

from datetime import date
from typing import Callable, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.service import (
    HotelCreate, TrackCreate, HotelResponse, TrackResponse,
    HotelListResponse, TrackListResponse, ReserveRequest, ReserveResponse,
)
from app.services.catalog_service import ServiceFilters, create_service, delete_service, list_services
from app.services.reservation_service import reserve_service
from app.services.cache_service import (
    get_cached_services, set_cached_services, invalidate_service_cache, make_list_key,
)
from app.services.interfaces.notifier import Notifier
from app.services.interfaces.scheduler import ExpirationScheduler
from app.services.providers import get_notifier, get_expiration_scheduler
from app.core.logging import get_logger

logger = get_logger(__name__)


def hotel_filters(
    name: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    min_stars: Optional[int] = None,
    max_stars: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    guests: int = Query(1, ge=1),
    name_desc: bool = False,
) -> ServiceFilters:
    return ServiceFilters(
        name=name, min_price=min_price, max_price=max_price,
        min_stars=min_stars, max_stars=max_stars,
        date_from=date_from, date_to=date_to, guests=guests, name_desc=name_desc,
    )


def track_filters(
    name: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
    rating: Optional[Literal["green", "blue", "red", "black"]] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    guests: int = Query(1, ge=1),
    name_desc: bool = False,
) -> ServiceFilters:
    return ServiceFilters(
        name=name, min_price=min_price, max_price=max_price,
        min_length=min_length, max_length=max_length, rating=rating,
        date_from=date_from, date_to=date_to, guests=guests, name_desc=name_desc,
    )


def build_service_router(
    kind: str,
    create_schema: type,
    response_schema: type,
    list_schema: type,
    filters_dependency: Callable[..., ServiceFilters],
) -> APIRouter:
    router = APIRouter(prefix=f"/{kind}s", tags=[f"{kind.capitalize()}s"])

    @router.post("/", response_model=response_schema, status_code=status.HTTP_201_CREATED)
    async def create_endpoint(
        data: create_schema,
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db),
    ):
        """Create a service in the admin's resort."""
        service = await create_service(db, admin, kind, data)
        await invalidate_service_cache(kind)
        return service

    @router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_endpoint(
        service_id: int,
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
    ):
        """Delete a service of the admin's resort. Bookings not yet ended are refunded."""
        await delete_service(db, admin, kind, service_id, notifier=notifier)
        await invalidate_service_cache(kind)

    @router.get("/", response_model=list_schema)
    async def list_endpoint(
        page: int = 1,
        per_page: int = 10,
        filters: ServiceFilters = Depends(filters_dependency),
        _: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ):
        """
        List services with filters and pagination.
        With `date_from` and `date_to`, only services with room for `guests`
        on every day of the range are returned.
        """
        key = make_list_key(kind, page, per_page, filters.cache_fragment())
        cached = await get_cached_services(key)
        if cached:
            logger.info("services_list_cache_hit", kind=kind, page=page)
            cached["cached"] = True
            return list_schema(**cached)

        services, total = await list_services(db, kind, filters, page, per_page)

        response_data = {
            "items": [response_schema.model_validate(s).model_dump() for s in services],
            "total_items": total,
            "page": page,
            "per_page": per_page,
            "cached": False,
        }
        await set_cached_services(key, response_data)
        return list_schema(**response_data)

    @router.post("/reserve", response_model=ReserveResponse, status_code=status.HTTP_201_CREATED)
    async def reserve_endpoint(
        data: ReserveRequest,
        user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
        scheduler: ExpirationScheduler = Depends(get_expiration_scheduler),
    ):
        """
        Reserve places for a date range. The price is debited from the wallet
        immediately; pending bookings expire if not approved in time.
        """
        booking = await reserve_service(
            db, user, kind, data.id, data.date_from, data.date_to, data.num_of_guests,
            notifier=notifier, scheduler=scheduler,
        )
        if booking.is_approved:
            await invalidate_service_cache(kind)
        return ReserveResponse(booking_id=booking.id, price=booking.value, status=booking.status)

    return router


hotels_router = build_service_router("hotel", HotelCreate, HotelResponse, HotelListResponse, hotel_filters)
tracks_router = build_service_router("track", TrackCreate, TrackResponse, TrackListResponse, track_filters)
