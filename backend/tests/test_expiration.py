"""
Tests for the expiration handler. Delivery is at-least-once, so every case
must be safe to run twice.
"""

from contextlib import asynccontextmanager

import pytest
from sqlalchemy import select

from app.models.booking import Booking
from app.models.user import User
from app.services.booking_service import approve_booking, expire_booking
from app.services.booking_store import create_booking
from tests.conftest import STARTING_WALLET, RecordingNotifier, upcoming


async def pending_booking(db_session, user, track, guests: int = 2) -> Booking:
    booking = await create_booking(
        db_session,
        user_id=user.id,
        service_id=track.id,
        resort_id=track.resort_id,
        service_type="track",
        num_of_guests=guests,
        value=1500,
        date_from=upcoming(7),
        date_to=upcoming(10),
        is_approved=False,
        is_cancelled=False,
    )
    await db_session.commit()
    return booking


async def wallet_of(db_session, user_id: int) -> int:
    result = await db_session.execute(select(User.wallet).where(User.id == user_id))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_expire_pending_refunds_and_notifies(db_session, test_user, track, notifier):
    booking = await pending_booking(db_session, test_user, track)

    expired = await expire_booking(db_session, booking.id, notifier=notifier)
    await db_session.commit()

    assert expired is not None
    assert expired.is_cancelled and expired.cancelled_by == "expiration"
    assert await wallet_of(db_session, test_user.id) == STARTING_WALLET + 1500
    assert notifier.subjects_for("test@example.com") == ["Your booking was denied!"]


@pytest.mark.asyncio
async def test_expire_twice_is_a_noop(db_session, test_user, track, notifier):
    booking = await pending_booking(db_session, test_user, track)

    await expire_booking(db_session, booking.id, notifier=notifier)
    await db_session.commit()
    second = await expire_booking(db_session, booking.id, notifier=notifier)
    await db_session.commit()

    assert second is None
    assert await wallet_of(db_session, test_user.id) == STARTING_WALLET + 1500
    assert len(notifier.sent) == 1


@pytest.mark.asyncio
async def test_expire_approved_is_a_noop(db_session, test_user, admin, track, notifier):
    booking = await pending_booking(db_session, test_user, track)
    await approve_booking(db_session, booking.id, admin, notifier=notifier)
    await db_session.commit()

    assert await expire_booking(db_session, booking.id, notifier=notifier) is None
    await db_session.commit()

    result = await db_session.execute(
        select(Booking).where(Booking.id == booking.id).execution_options(populate_existing=True)
    )
    stored = result.scalar_one()
    assert stored.is_approved and not stored.is_cancelled
    assert await wallet_of(db_session, test_user.id) == STARTING_WALLET


@pytest.mark.asyncio
async def test_expire_missing_booking(db_session, notifier):
    assert await expire_booking(db_session, 9999, notifier=notifier) is None
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_approval_after_expiration_is_a_noop(db_session, test_user, admin, track, notifier):
    booking = await pending_booking(db_session, test_user, track)
    await expire_booking(db_session, booking.id, notifier=notifier)
    await db_session.commit()

    summary = await approve_booking(db_session, booking.id, admin, notifier=notifier)
    assert summary["denied_requests"] == []
    assert summary["message"] == f"Booking {booking.id} is already cancelled"


class FailingNotifier(RecordingNotifier):
    async def send(self, to: str, subject: str, body: str) -> None:
        raise ConnectionError("relay down")


@pytest.mark.asyncio
async def test_notification_failure_does_not_block_expiration(db_session, test_user, track):
    booking = await pending_booking(db_session, test_user, track)

    expired = await expire_booking(db_session, booking.id, notifier=FailingNotifier())
    await db_session.commit()

    assert expired is not None
    assert await wallet_of(db_session, test_user.id) == STARTING_WALLET + 1500


@pytest.mark.asyncio
async def test_worker_runs_expiration_in_its_own_session(
    monkeypatch, session_factory, db_session, test_user, track, notifier
):
    from app.worker import tasks

    booking = await pending_booking(db_session, test_user, track)

    @asynccontextmanager
    async def shared_sessionmaker():
        yield session_factory

    monkeypatch.setattr(tasks, "worker_sessionmaker", shared_sessionmaker)
    monkeypatch.setattr(tasks, "get_notifier", lambda: notifier)

    assert await tasks.run_expiration(booking.id) == booking.id
    assert await tasks.run_expiration(booking.id) is None

    assert await wallet_of(db_session, test_user.id) == STARTING_WALLET + 1500
    assert len(notifier.sent) == 1


@pytest.mark.asyncio
async def test_worker_engine_is_disposed_after_task(monkeypatch):
    from app.db import session as session_module

    disposed = []

    class RecordingEngine:
        async def dispose(self):
            disposed.append(True)

    monkeypatch.setattr(session_module, "create_async_engine", lambda *args, **kwargs: RecordingEngine())

    async with session_module.worker_sessionmaker():
        assert disposed == []
    assert disposed == [True]

    with pytest.raises(RuntimeError):
        async with session_module.worker_sessionmaker():
            raise RuntimeError("task failed")
    assert disposed == [True, True]
