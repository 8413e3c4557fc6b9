"""
Pytest fixtures for test database, client, collaborators and authentication.

Each test gets its own SQLite file (aiosqlite) with a fresh schema. Requests
run in their own session with the same commit/rollback contract as
`get_db`, so a failed reservation leaves nothing behind. Notifications and
expiration scheduling are captured by recording fakes.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_bootstrap.db")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("SCHEDULER_BACKEND", "none")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("API_KEY", "test-operator-key")

from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.security import create_access_token, hash_password
from app.models.resort import Resort
from app.models.service import Hotel, Track
from app.models.user import User
from app.services.dateutils import WEEKDAYS, utc_today
from app.services.interfaces.notifier import Notifier
from app.services.interfaces.scheduler import ExpirationScheduler
from app.services.providers import get_notifier, get_expiration_scheduler

API_KEY = "test-operator-key"
STARTING_WALLET = 12001


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent: list[dict] = []

    async def send(self, to: str, subject: str, body: str) -> None:
        self.sent.append({"to": to, "subject": subject, "body": body})

    def subjects_for(self, email: str) -> list[str]:
        return [m["subject"] for m in self.sent if m["to"] == email]


class RecordingScheduler(ExpirationScheduler):
    def __init__(self):
        self.scheduled: list[tuple[int, timedelta]] = []

    async def schedule(self, booking_id: int, delay: timedelta) -> None:
        self.scheduled.append((booking_id, delay))


def upcoming(days: int) -> date:
    return utc_today() + timedelta(days=days)


def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FK actions unless asked, PostgreSQL always applies them
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables in a throwaway SQLite file, drop them afterwards."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, notifier, scheduler) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB and collaborator dependencies overridden."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_expiration_scheduler] = lambda: scheduler

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def resort(db_session: AsyncSession) -> Resort:
    resort = Resort(name="Kopaonik", location="Serbia", description="Test resort")
    db_session.add(resort)
    await db_session.commit()
    await db_session.refresh(resort)
    return resort


@pytest_asyncio.fixture
async def other_resort(db_session: AsyncSession) -> Resort:
    resort = Resort(name="Jahorina", location="Bosnia", description="Another resort")
    db_session.add(resort)
    await db_session.commit()
    await db_session.refresh(resort)
    return resort


async def create_user(
    db: AsyncSession,
    email: str,
    username: str,
    *,
    role: str = "user",
    resort_id=None,
    validated: bool = True,
    wallet: int = STARTING_WALLET,
) -> User:
    user = User(
        email=email,
        username=username,
        name=username.capitalize(),
        hashed_password=hash_password("testpassword123"),
        role=role,
        resort_id=resort_id,
        is_validated=validated,
        wallet=wallet,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Validated user holding 12001 credits."""
    return await create_user(db_session, "test@example.com", "testuser")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "other@example.com", "otheruser")


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession, resort: Resort) -> User:
    return await create_user(db_session, "admin@example.com", "adminuser", role="admin", resort_id=resort.id)


@pytest_asyncio.fixture
async def foreign_admin(db_session: AsyncSession, other_resort: Resort) -> User:
    return await create_user(
        db_session, "foreign@example.com", "foreignadmin", role="admin", resort_id=other_resort.id
    )


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    return headers_for(test_user)


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict:
    return headers_for(other_user)


@pytest_asyncio.fixture
async def admin_headers(admin: User) -> dict:
    return headers_for(admin)


@pytest_asyncio.fixture
async def foreign_admin_headers(foreign_admin: User) -> dict:
    return headers_for(foreign_admin)


@pytest_asyncio.fixture
async def track(db_session: AsyncSession, resort: Resort) -> Track:
    """Manual-approval track: 500 credits per guest-day, 6 guests, open every day."""
    track = Track(
        name="Pancic",
        resort_id=resort.id,
        price=500,
        num_of_guests=6,
        available_days=list(WEEKDAYS),
        auto_accept=False,
        length=1200,
        rating="red",
    )
    db_session.add(track)
    await db_session.commit()
    await db_session.refresh(track)
    return track


@pytest_asyncio.fixture
async def auto_hotel(db_session: AsyncSession, resort: Resort) -> Hotel:
    """Auto-accept hotel: 1000 credits per guest-night, 4 guests, open every day."""
    hotel = Hotel(
        name="Grand",
        resort_id=resort.id,
        price=1000,
        num_of_guests=4,
        available_days=list(WEEKDAYS),
        auto_accept=True,
        address="Main street 1",
        num_of_stars=4,
    )
    db_session.add(hotel)
    await db_session.commit()
    await db_session.refresh(hotel)
    return hotel
