from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Literal, Protocol, Sequence

from ..models import EventType, HistoryEvent, Reservation

GroupField = Literal["device_id", "reserved_on", "time_block"]


class DeviceRepository(Protocol):
    async def list_ids(self) -> list[int]: ...

    async def existing_ids(self, device_ids: Iterable[int]) -> set[int]: ...


class ReservationRepository(Protocol):
    async def reserved_for_slot(
        self,
        reserved_on: date,
        time_block: str,
        device_ids: Iterable[int] | None = None,
    ) -> list[int]: ...

    async def list_reserved(
        self,
        reserved_on: date,
        time_block: str | None = None,
    ) -> list[tuple[int, str]]: ...

    async def add_batch(
        self,
        *,
        device_ids: Sequence[int],
        reserved_on: date,
        time_block: str,
        requester: str,
        course: str,
    ) -> list[Reservation]: ...

    async def blocks_for_device_for_update(self, device_id: int, reserved_on: date) -> list[str]: ...

    async def delete_for_device(self, device_id: int, reserved_on: date) -> int: ...

    async def count_in_range(self, start: date, end: date) -> int: ...

    async def count_grouped(
        self,
        field: GroupField,
        start: date,
        end: date,
    ) -> list[tuple[Any, int]]: ...


class HistoryRepository(Protocol):
    async def append(
        self,
        *,
        event_type: EventType,
        device_ids: Sequence[int],
        requester: str,
        course: str,
        event_date: date,
        time_blocks: Sequence[str],
        notes: str = "",
    ) -> HistoryEvent: ...

    async def list_events(
        self,
        *,
        start: date | None = None,
        end: date | None = None,
        requester: str | None = None,
    ) -> list[HistoryEvent]: ...


class SettingRepository(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str) -> None: ...
