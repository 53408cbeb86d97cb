from dataclasses import dataclass
from datetime import date

from ..domain.repositories import ReservationRepository
from ..domain.services import NO_DATA, BookingPolicy, pick_top
from ..utils.time import month_bounds


@dataclass(frozen=True)
class MonthlyStats:
    total: int
    top_device: int | str
    top_date: date | str
    top_block: str


async def monthly_stats(
    res_repo: ReservationRepository,
    *,
    policy: BookingPolicy,
    month: int,
    year: int,
) -> MonthlyStats:
    """
    Rollups over the active reservations of one month. Every derived field is
    NO_DATA when the month has no reservations.
    """
    start, end = month_bounds(month, year)
    total = await res_repo.count_in_range(start, end)
    if total == 0:
        return MonthlyStats(total=0, top_device=NO_DATA, top_date=NO_DATA, top_block=NO_DATA)

    by_device = await res_repo.count_grouped("device_id", start, end)
    by_date = await res_repo.count_grouped("reserved_on", start, end)
    by_block = await res_repo.count_grouped("time_block", start, end)

    top_device = pick_top(by_device, tie_key=lambda device_id: device_id)
    top_date = pick_top(by_date, tie_key=lambda day: day)
    top_block = pick_top(by_block, tie_key=lambda block: (policy.block_rank(block), block))
    return MonthlyStats(
        total=total,
        top_device=NO_DATA if top_device is None else top_device,
        top_date=NO_DATA if top_date is None else top_date,
        top_block=NO_DATA if top_block is None else top_block,
    )
