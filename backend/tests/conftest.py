"""
Pytest fixtures for test database, client, and seeded bookings.

Each test gets its own SQLite file (via aiosqlite) so concurrent requests
use separate connections, as they would against PostgreSQL.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.main import app
from booking_api.db.session import Database
from booking_api.models.booking import Booking, SeatClaim, STATUS_ACTIVE
from booking_api.services.interfaces.admission import ShowingGuard
from booking_api.services.interfaces.local_guard import LocalShowingGuard
from booking_api.services.seats import ShowingKey
from booking_api.services.strategy_factory import get_showing_guard

SHOWING = ShowingKey(title="Inception", date="2024-01-01", time="18:00")


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Create tables in a fresh SQLite file, then drop them after the test."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}")
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.sessionmaker() as session:
        yield session


@pytest.fixture
def guard() -> LocalShowingGuard:
    return LocalShowingGuard()


@pytest_asyncio.fixture(scope="function")
async def client(database: Database, guard: LocalShowingGuard) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the test database and a fresh showing guard."""
    app.state.database = database
    app.dependency_overrides[get_showing_guard] = lambda: guard

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    del app.state.database


@pytest_asyncio.fixture
async def active_booking(db_session: AsyncSession) -> Booking:
    """An active booking holding A1 for Inception on 2024-01-01 18:00."""
    booking = Booking(
        name="alice",
        movie_name=SHOWING.title,
        show_title=SHOWING.title,
        date=SHOWING.date,
        time=SHOWING.time,
        seats=["A1"],
        status=STATUS_ACTIVE,
    )
    booking.claims = [
        SeatClaim(show_title=SHOWING.title, show_date=SHOWING.date, show_time=SHOWING.time, seat="A1")
    ]
    db_session.add(booking)
    await db_session.commit()
    await db_session.refresh(booking)
    return booking


@pytest_asyncio.fixture
async def legacy_booking(db_session: AsyncSession) -> int:
    """A row written by an older client: seats stored as a loose comma string."""
    await db_session.execute(
        text(
            "INSERT INTO bookings (name, movie_name, date, time, seats, status) "
            "VALUES (:name, :movie_name, :date, :time, :seats, 'active')"
        ),
        {
            "name": "bob",
            "movie_name": SHOWING.title,
            "date": SHOWING.date,
            "time": SHOWING.time,
            "seats": ' b4 , "c7"',
        },
    )
    await db_session.commit()
    result = await db_session.execute(text("SELECT id FROM bookings WHERE name = 'bob'"))
    return result.scalar_one()


def booking_payload(seats, **overrides) -> dict:
    payload = {
        "name": "carol",
        "movie_name": SHOWING.title,
        "date": SHOWING.date,
        "time": SHOWING.time,
        "seats": seats,
    }
    payload.update(overrides)
    return payload


class StallingGuard(ShowingGuard):
    """Guard that never lets the storage work start in time."""

    strategy = "stalling"

    @asynccontextmanager
    async def hold(self, key):
        await asyncio.sleep(5)
        yield


class BrokenSession:
    """Session double whose every statement fails at the driver."""

    def __init__(self):
        self.executed = 0

    async def execute(self, *args, **kwargs):
        self.executed += 1
        raise OperationalError("SELECT", {}, Exception("connection reset"))
