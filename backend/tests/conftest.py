from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from hibridge.db import get_session
from hibridge.main import app
from hibridge.models import SQLModel
from hibridge.services.calendar import WeekdayCalendar, set_working_day_calendar
from hibridge.services.clock import FixedClock, SystemClock, set_clock

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

# Friday of the week starting Monday 2025-03-17.
NOW = datetime(2025, 3, 21, 17, 0, tzinfo=UTC)


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory SQLite database per test.

    The services commit and roll back on their own, so every test gets a
    new schema instead of an outer transaction.
    """
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session bound to the per-test engine."""
    session = AsyncSession(engine, expire_on_commit=False)
    yield session
    await session.close()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def calendar() -> WeekdayCalendar:
    return WeekdayCalendar()


@pytest.fixture(autouse=True)
def _pin_collaborators(clock: FixedClock, calendar: WeekdayCalendar) -> Iterator[None]:
    """Pin the clock and reset the working-day calendar for every test."""
    set_clock(clock)
    set_working_day_calendar(calendar)
    yield
    set_clock(SystemClock())
    set_working_day_calendar(WeekdayCalendar())
