from datetime import date

import pytest
from tablet_booking.config import DEFAULT_TIME_BLOCKS
from tablet_booking.domain.services import NO_DATA
from tablet_booking.infrastructure.repositories import SqlAlchemyReservationRepository
from tablet_booking.usecases import stats as uc

MONDAY = date(2025, 3, 10)
TUESDAY = date(2025, 3, 11)
BLOCK_1, BLOCK_2, BLOCK_3 = DEFAULT_TIME_BLOCKS[:3]


async def _stats(session_factory, policy, month: int = 3, year: int = 2025) -> uc.MonthlyStats:
    async with session_factory() as session:
        return await uc.monthly_stats(
            SqlAlchemyReservationRepository(session),
            policy=policy,
            month=month,
            year=year,
        )


@pytest.mark.asyncio
async def test_empty_month_returns_no_data_sentinel(session_factory, policy) -> None:
    stats = await _stats(session_factory, policy)
    assert stats == uc.MonthlyStats(total=0, top_device=NO_DATA, top_date=NO_DATA, top_block=NO_DATA)


@pytest.mark.asyncio
async def test_rollups_break_ties_deterministically(reserve, session_factory, policy) -> None:
    await reserve(device_ids=[2], reserved_on=MONDAY, time_block=BLOCK_2)
    await reserve(device_ids=[2], reserved_on=TUESDAY, time_block=BLOCK_3)
    await reserve(device_ids=[1], reserved_on=MONDAY, time_block=BLOCK_3)
    await reserve(device_ids=[1], reserved_on=TUESDAY, time_block=BLOCK_2)
    # April rows are outside the window.
    await reserve(device_ids=[9, 8, 7], reserved_on=date(2025, 4, 1), time_block=BLOCK_1)

    stats = await _stats(session_factory, policy)

    assert stats.total == 4
    assert stats.top_device == 1
    assert stats.top_date == MONDAY
    assert stats.top_block == BLOCK_2


@pytest.mark.asyncio
async def test_rollups_pick_highest_counts(reserve, session_factory, policy) -> None:
    await reserve(device_ids=[1, 2, 3], reserved_on=TUESDAY, time_block=BLOCK_3)
    await reserve(device_ids=[3], reserved_on=MONDAY, time_block=BLOCK_1)

    stats = await _stats(session_factory, policy)

    assert stats.total == 4
    assert stats.top_device == 3
    assert stats.top_date == TUESDAY
    assert stats.top_block == BLOCK_3


@pytest.mark.asyncio
async def test_returned_reservations_drop_out_of_stats(reserve, give_back, session_factory, policy) -> None:
    await reserve(device_ids=[4], reserved_on=MONDAY, time_block=BLOCK_1)
    await give_back(device_ids=[4], returned_on=MONDAY, today=MONDAY)

    stats = await _stats(session_factory, policy)

    assert stats.total == 0
    assert stats.top_device == NO_DATA


@pytest.mark.asyncio
async def test_december_window_ends_at_new_year(reserve, session_factory, policy) -> None:
    await reserve(device_ids=[1], reserved_on=date(2025, 12, 31), time_block=BLOCK_1)
    await reserve(device_ids=[1], reserved_on=date(2026, 1, 2), time_block=BLOCK_1)

    stats = await _stats(session_factory, policy, month=12, year=2025)

    assert stats.total == 1
    assert stats.top_date == date(2025, 12, 31)
