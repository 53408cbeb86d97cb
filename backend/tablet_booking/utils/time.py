from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from ..config import get_settings


def local_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


def today() -> date:
    """Current calendar date in the configured deployment timezone."""
    return datetime.now(local_zone()).date()


def utc_naive_to_local(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc).astimezone(local_zone())


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """Half-open [first day, first day of next month) range."""
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end
