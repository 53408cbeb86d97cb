import os

# Settings are cached on first import; pin them before the package loads.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["WEEKDAYS_ONLY"] = "1"
os.environ["TIMEZONE"] = "UTC"
os.environ.pop("TIME_BLOCKS", None)
os.environ.pop("DEVICE_COUNT", None)

from datetime import date
from typing import Any, AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from tablet_booking.config import DEFAULT_TIME_BLOCKS, Settings
from tablet_booking.database import init_db
from tablet_booking.domain.services import BookingPolicy
from tablet_booking.infrastructure.repositories import (
    SqlAlchemyDeviceRepository,
    SqlAlchemyHistoryRepository,
    SqlAlchemyReservationRepository,
)
from tablet_booking.models import HistoryEvent
from tablet_booking.usecases import reservations as uc

TEST_DEVICE_COUNT = 10
BLOCK_1, BLOCK_2, BLOCK_3 = DEFAULT_TIME_BLOCKS[0], DEFAULT_TIME_BLOCKS[1], DEFAULT_TIME_BLOCKS[2]
MONDAY = date(2025, 3, 10)


@pytest.fixture
def policy() -> BookingPolicy:
    return BookingPolicy(time_blocks=DEFAULT_TIME_BLOCKS, weekdays_only=True)


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await init_db(engine, factory, Settings(device_count=TEST_DEVICE_COUNT))
    return factory


ReserveFn = Callable[..., Awaitable[HistoryEvent]]


@pytest.fixture
def reserve(session_factory: async_sessionmaker[AsyncSession], policy: BookingPolicy) -> ReserveFn:
    """Run one Reserve transaction the way the router does."""

    async def _reserve(**kwargs: Any) -> HistoryEvent:
        kwargs.setdefault("reserved_on", MONDAY)
        kwargs.setdefault("time_block", BLOCK_1)
        kwargs.setdefault("requester", "Ana Torres")
        async with session_factory() as session, session.begin():
            return await uc.reserve_devices(
                SqlAlchemyDeviceRepository(session),
                SqlAlchemyReservationRepository(session),
                SqlAlchemyHistoryRepository(session),
                policy=policy,
                **kwargs,
            )

    return _reserve


@pytest.fixture
def give_back(session_factory: async_sessionmaker[AsyncSession], policy: BookingPolicy) -> ReserveFn:
    """Run one Return transaction the way the router does."""

    async def _give_back(**kwargs: Any) -> HistoryEvent:
        kwargs.setdefault("returned_on", MONDAY)
        kwargs.setdefault("today", MONDAY)
        async with session_factory() as session, session.begin():
            return await uc.return_devices(
                SqlAlchemyDeviceRepository(session),
                SqlAlchemyReservationRepository(session),
                SqlAlchemyHistoryRepository(session),
                policy=policy,
                **kwargs,
            )

    return _give_back


@pytest.fixture
def reserved_rows(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[list[tuple[int, str]]]]:
    async def _rows(reserved_on: date = MONDAY, time_block: str | None = None) -> list[tuple[int, str]]:
        async with session_factory() as session:
            return await SqlAlchemyReservationRepository(session).list_reserved(reserved_on, time_block)

    return _rows


@pytest.fixture
def history_events(session_factory: async_sessionmaker[AsyncSession]) -> Callable[[], Awaitable[list[HistoryEvent]]]:
    async def _events() -> list[HistoryEvent]:
        async with session_factory() as session:
            return await SqlAlchemyHistoryRepository(session).list_events()

    return _events
