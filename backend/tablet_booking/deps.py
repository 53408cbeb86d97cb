from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import async_session
from .domain.services import BookingPolicy


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def get_booking_policy() -> BookingPolicy:
    settings = get_settings()
    return BookingPolicy(time_blocks=settings.time_blocks, weekdays_only=settings.weekdays_only)
