from typing import List

from ..domain.errors import BookingValidationError
from ..domain.repositories import HistoryRepository
from ..models import HistoryEvent
from ..utils.time import month_bounds


async def list_history(
    history_repo: HistoryRepository,
    *,
    month: int | None = None,
    year: int | None = None,
    requester: str | None = None,
) -> List[HistoryEvent]:
    """Newest first. The month filter applies only when both month and year are given."""
    if (month is None) != (year is None):
        raise BookingValidationError("month and year must be given together")
    if month is not None and year is not None:
        start, end = month_bounds(month, year)
        return await history_repo.list_events(start=start, end=end, requester=requester)
    return await history_repo.list_events(requester=requester)
