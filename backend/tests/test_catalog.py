"""
Tests for resorts and the hotel/track catalog: admin scoping, filters and
availability-aware listings.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models.booking import Booking
from app.models.service import BookableService
from app.models.user import User
from app.services.booking_service import expire_booking
from app.services.booking_store import create_booking
from app.services.dateutils import WEEKDAYS
from tests.conftest import API_KEY, STARTING_WALLET, upcoming


def hotel_payload(name: str = "Alpine", **overrides) -> dict:
    payload = {
        "name": name,
        "price": 1000,
        "num_of_guests": 4,
        "available_days": list(WEEKDAYS),
        "auto_accept": True,
        "address": "Ski road 5",
        "num_of_stars": 4,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_resort_with_api_key(client: AsyncClient):
    response = await client.post(
        "/api/v1/resorts/",
        json={"name": "Zlatibor", "location": "Serbia"},
        headers={"X-API-Key": API_KEY},
    )
    assert response.status_code == 201
    assert response.json()["name"] == "Zlatibor"

    duplicate = await client.post(
        "/api/v1/resorts/",
        json={"name": "Zlatibor", "location": "Serbia"},
        headers={"X-API-Key": API_KEY},
    )
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_create_resort_without_api_key(client: AsyncClient):
    response = await client.post("/api/v1/resorts/", json={"name": "Zlatibor", "location": "Serbia"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_update_and_get_resort(client: AsyncClient, auth_headers, resort):
    empty = await client.patch(f"/api/v1/resorts/{resort.id}", json={}, headers={"X-API-Key": API_KEY})
    assert empty.status_code == 400

    response = await client.patch(
        f"/api/v1/resorts/{resort.id}",
        json={"description": "Updated"},
        headers={"X-API-Key": API_KEY},
    )
    assert response.status_code == 200

    fetched = await client.get(f"/api/v1/resorts/{resort.id}", headers=auth_headers)
    assert fetched.json()["description"] == "Updated"
    assert fetched.json()["name"] == "Kopaonik"


@pytest.mark.asyncio
async def test_get_unknown_resort(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/resorts/9999", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_creates_hotel_in_own_resort(client: AsyncClient, admin_headers, resort):
    response = await client.post("/api/v1/hotels/", json=hotel_payload(), headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["kind"] == "hotel"
    assert data["resort_id"] == resort.id
    assert data["num_of_stars"] == 4


@pytest.mark.asyncio
async def test_create_hotel_validation(client: AsyncClient, admin_headers):
    bad_day = await client.post(
        "/api/v1/hotels/", json=hotel_payload(available_days=["Funday"]), headers=admin_headers
    )
    assert bad_day.status_code == 422

    bad_stars = await client.post("/api/v1/hotels/", json=hotel_payload(num_of_stars=6), headers=admin_headers)
    assert bad_stars.status_code == 422


@pytest.mark.asyncio
async def test_regular_user_cannot_create(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/hotels/", json=hotel_payload(), headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_track(client: AsyncClient, db_session, admin_headers, track):
    response = await client.delete(f"/api/v1/tracks/{track.id}", headers=admin_headers)
    assert response.status_code == 204

    result = await db_session.execute(select(BookableService).where(BookableService.id == track.id))
    assert result.scalar_one_or_none() is None


@pytest.mark.asyncio
async def test_delete_track_of_other_resort(client: AsyncClient, foreign_admin_headers, track):
    response = await client.delete(f"/api/v1/tracks/{track.id}", headers=foreign_admin_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_track_through_hotel_route(client: AsyncClient, admin_headers, track):
    response = await client.delete(f"/api/v1/hotels/{track.id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_hotels_filters_and_pagination(client: AsyncClient, admin_headers, auth_headers):
    for name, price, stars in [("Bora", 800, 3), ("Astra", 1500, 5), ("Cima", 1200, 4)]:
        created = await client.post(
            "/api/v1/hotels/",
            json=hotel_payload(name, price=price, num_of_stars=stars),
            headers=admin_headers,
        )
        assert created.status_code == 201

    response = await client.get("/api/v1/hotels/?per_page=2", headers=auth_headers)
    data = response.json()
    assert data["total_items"] == 3
    assert [h["name"] for h in data["items"]] == ["Astra", "Bora"]
    assert data["cached"] is False

    desc = await client.get("/api/v1/hotels/?name_desc=true", headers=auth_headers)
    assert [h["name"] for h in desc.json()["items"]] == ["Cima", "Bora", "Astra"]

    filtered = await client.get("/api/v1/hotels/?min_price=900&min_stars=4&max_stars=4", headers=auth_headers)
    assert [h["name"] for h in filtered.json()["items"]] == ["Cima"]

    by_name = await client.get("/api/v1/hotels/?name=str", headers=auth_headers)
    assert [h["name"] for h in by_name.json()["items"]] == ["Astra"]


@pytest.mark.asyncio
async def test_list_tracks_by_rating(client: AsyncClient, auth_headers, track):
    red = await client.get("/api/v1/tracks/?rating=red", headers=auth_headers)
    assert [t["id"] for t in red.json()["items"]] == [track.id]

    black = await client.get("/api/v1/tracks/?rating=black", headers=auth_headers)
    assert black.json()["total_items"] == 0


@pytest.mark.asyncio
async def test_list_requires_authentication(client: AsyncClient):
    response = await client.get("/api/v1/tracks/")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_invalid_pagination(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/tracks/?page=0", headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_only_available_for_range(client: AsyncClient, auth_headers, other_headers, auto_hotel):
    reserved = await client.post(
        "/api/v1/hotels/reserve",
        json={
            "id": auto_hotel.id,
            "date_from": upcoming(7).isoformat(),
            "date_to": upcoming(9).isoformat(),
            "num_of_guests": 3,
        },
        headers=other_headers,
    )
    assert reserved.status_code == 201

    window = f"date_from={upcoming(8).isoformat()}&date_to={upcoming(10).isoformat()}"
    full = await client.get(f"/api/v1/hotels/?{window}&guests=2", headers=auth_headers)
    assert full.json()["total_items"] == 0

    room = await client.get(f"/api/v1/hotels/?{window}&guests=1", headers=auth_headers)
    assert [h["id"] for h in room.json()["items"]] == [auto_hotel.id]

    later = await client.get(
        f"/api/v1/hotels/?date_from={upcoming(10).isoformat()}&date_to={upcoming(12).isoformat()}&guests=4",
        headers=auth_headers,
    )
    assert later.json()["total_items"] == 1


@pytest.mark.asyncio
async def test_list_skips_closed_weekdays(client: AsyncClient, admin_headers, auth_headers):
    await client.post(
        "/api/v1/hotels/",
        json=hotel_payload("Weekend", available_days=["Saturday", "Sunday"]),
        headers=admin_headers,
    )
    window = f"date_from={upcoming(7).isoformat()}&date_to={upcoming(14).isoformat()}"
    response = await client.get(f"/api/v1/hotels/?{window}", headers=auth_headers)
    assert response.json()["total_items"] == 0


async def reserve_track(client: AsyncClient, headers: dict, track_id: int, start: int, nights: int, guests: int) -> int:
    response = await client.post(
        "/api/v1/tracks/reserve",
        json={
            "id": track_id,
            "date_from": upcoming(start).isoformat(),
            "date_to": upcoming(start + nights).isoformat(),
            "num_of_guests": guests,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["booking_id"]


async def load_booking(db_session, booking_id: int) -> Booking:
    result = await db_session.execute(
        select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def wallet_of(db_session, user_id: int) -> int:
    result = await db_session.execute(select(User.wallet).where(User.id == user_id))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_delete_track_refunds_bookings_not_yet_ended(
    client: AsyncClient, db_session, auth_headers, other_headers, admin_headers,
    test_user, other_user, track, notifier,
):
    pending_id = await reserve_track(client, auth_headers, track.id, start=7, nights=3, guests=4)
    approved_id = await reserve_track(client, other_headers, track.id, start=12, nights=2, guests=1)
    await client.patch(f"/api/v1/bookings/{approved_id}/approve", headers=admin_headers)
    finished = await create_booking(
        db_session,
        user_id=other_user.id,
        service_id=track.id,
        resort_id=track.resort_id,
        service_type="track",
        num_of_guests=1,
        value=1000,
        date_from=upcoming(-5),
        date_to=upcoming(-3),
        is_approved=True,
        is_cancelled=False,
    )
    await db_session.commit()
    assert await wallet_of(db_session, test_user.id) == STARTING_WALLET - 6000

    response = await client.delete(f"/api/v1/tracks/{track.id}", headers=admin_headers)
    assert response.status_code == 204

    assert await wallet_of(db_session, test_user.id) == STARTING_WALLET
    assert await wallet_of(db_session, other_user.id) == STARTING_WALLET
    for booking_id in (pending_id, approved_id):
        booking = await load_booking(db_session, booking_id)
        assert booking.is_cancelled and booking.cancelled_by == "admin"
        assert booking.service_id is None

    history = await load_booking(db_session, finished.id)
    assert history.is_approved and not history.is_cancelled
    assert history.service_id is None

    assert notifier.subjects_for("test@example.com") == ["Your booking was denied!"]

    # The pending booking's expiration still fires later and must not pay twice
    assert await expire_booking(db_session, pending_id, notifier=notifier) is None
    await db_session.commit()
    assert await wallet_of(db_session, test_user.id) == STARTING_WALLET


@pytest.mark.asyncio
async def test_delete_resort_refunds_bookings_not_yet_ended(
    client: AsyncClient, db_session, auth_headers, admin, test_user, resort, track, notifier
):
    booking_id = await reserve_track(client, auth_headers, track.id, start=7, nights=3, guests=4)

    response = await client.delete(f"/api/v1/resorts/{resort.id}", headers={"X-API-Key": API_KEY})
    assert response.status_code == 204

    assert await wallet_of(db_session, test_user.id) == STARTING_WALLET
    booking = await load_booking(db_session, booking_id)
    assert booking.cancelled_by == "admin"
    assert booking.service_id is None and booking.resort_id is None

    result = await db_session.execute(select(User.resort_id).where(User.id == admin.id))
    assert result.scalar_one() is None
    assert notifier.subjects_for("test@example.com") == ["Your booking was denied!"]


@pytest.mark.asyncio
async def test_delete_resort_requires_api_key(client: AsyncClient, resort):
    response = await client.delete(f"/api/v1/resorts/{resort.id}")
    assert response.status_code == 401
