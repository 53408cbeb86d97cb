from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .domain.services import split_blocks, split_ids
from .models import EventType, HistoryEvent
from .usecases.stats import MonthlyStats
from .utils.time import utc_naive_to_local


class StrictBody(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ReservationCreate(StrictBody):
    device_ids: list[int]
    reserved_on: date
    time_block: str
    requester: str
    course: Optional[str] = None


class ReturnCreate(StrictBody):
    device_ids: list[int]
    returned_on: date
    requester: Optional[str] = None
    course: Optional[str] = None
    notes: Optional[str] = None


class EventRead(BaseModel):
    event_id: int
    event_type: EventType
    device_ids: list[int]
    requester: str
    course: str
    event_date: date
    time_blocks: list[str]
    notes: str
    created_at: datetime

    @field_serializer("created_at")
    def _ser_datetime(self, dt: datetime) -> str:
        return utc_naive_to_local(dt).isoformat()

    @classmethod
    def from_db(cls, *, event: HistoryEvent) -> "EventRead":
        return cls(
            event_id=event.id,
            event_type=event.event_type,
            device_ids=split_ids(event.device_ids),
            requester=event.requester,
            course=event.course,
            event_date=event.event_date,
            time_blocks=split_blocks(event.time_blocks),
            notes=event.notes,
            created_at=event.created_at,
        )


class TransactionResult(BaseModel):
    success: bool = True
    event: EventRead


class ReservedDevice(BaseModel):
    device_id: int
    time_block: str


class AvailabilityRead(BaseModel):
    reserved_on: date
    time_block: Optional[str] = None
    reserved: list[ReservedDevice]


class StatsRead(BaseModel):
    month: int
    year: int
    total: int
    top_device: int | str
    top_date: str
    top_block: str

    @classmethod
    def from_stats(cls, *, stats: MonthlyStats, month: int, year: int) -> "StatsRead":
        top_date = stats.top_date if isinstance(stats.top_date, str) else stats.top_date.isoformat()
        return cls(
            month=month,
            year=year,
            total=stats.total,
            top_device=stats.top_device,
            top_date=top_date,
            top_block=stats.top_block,
        )


class BackgroundUpdate(StrictBody):
    url: str = Field(max_length=2048)


class BackgroundRead(BaseModel):
    url: str
