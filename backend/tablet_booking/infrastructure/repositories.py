from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Sequence, Tuple

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import SlotConflictError, StorageError
from ..domain.repositories import (
    DeviceRepository,
    GroupField,
    HistoryRepository,
    ReservationRepository,
    SettingRepository,
)
from ..domain.services import join_blocks, join_ids
from ..models import Device, EventType, HistoryEvent, Reservation, Setting


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqlAlchemyDeviceRepository(DeviceRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_ids(self) -> List[int]:
        rows = await self.session.scalars(select(Device.id).order_by(Device.id))
        return list(rows.all())

    async def existing_ids(self, device_ids: Iterable[int]) -> set[int]:
        ids = list(device_ids)
        if not ids:
            return set()
        rows = await self.session.scalars(select(Device.id).where(Device.id.in_(ids)))
        return set(rows.all())


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def reserved_for_slot(
        self,
        reserved_on: date,
        time_block: str,
        device_ids: Iterable[int] | None = None,
    ) -> List[int]:
        stmt = select(Reservation.device_id).where(
            Reservation.reserved_on == reserved_on,
            Reservation.time_block == time_block,
        )
        if device_ids is not None:
            stmt = stmt.where(Reservation.device_id.in_(list(device_ids)))
        rows = await self.session.scalars(stmt.order_by(Reservation.device_id))
        return list(rows.all())

    async def list_reserved(
        self,
        reserved_on: date,
        time_block: str | None = None,
    ) -> List[Tuple[int, str]]:
        stmt: Select[Tuple[int, str]] = select(Reservation.device_id, Reservation.time_block).where(
            Reservation.reserved_on == reserved_on
        )
        if time_block is not None:
            stmt = stmt.where(Reservation.time_block == time_block)
        stmt = stmt.order_by(Reservation.device_id, Reservation.time_block)
        rows = await self.session.execute(stmt)
        return [(device_id, block) for device_id, block in rows.all()]

    async def add_batch(
        self,
        *,
        device_ids: Sequence[int],
        reserved_on: date,
        time_block: str,
        requester: str,
        course: str,
    ) -> List[Reservation]:
        now = _utc_now_naive()
        reservations = [
            Reservation(
                device_id=device_id,
                reserved_on=reserved_on,
                time_block=time_block,
                requester=requester,
                course=course,
                created_at=now,
            )
            for device_id in device_ids
        ]
        self.session.add_all(reservations)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # A concurrent writer took one of the slots after our pre-check.
            raise SlotConflictError(
                "one or more devices are already reserved for this block and date",
                device_ids=device_ids,
            ) from exc
        except SQLAlchemyError as exc:
            raise StorageError("failed to store reservations") from exc
        return reservations

    async def blocks_for_device_for_update(self, device_id: int, reserved_on: date) -> List[str]:
        stmt = (
            select(Reservation.time_block)
            .where(Reservation.device_id == device_id, Reservation.reserved_on == reserved_on)
            .with_for_update()
        )
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def delete_for_device(self, device_id: int, reserved_on: date) -> int:
        stmt = delete(Reservation).where(
            Reservation.device_id == device_id,
            Reservation.reserved_on == reserved_on,
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError("failed to release reservations") from exc
        return int(result.rowcount or 0)

    async def count_in_range(self, start: date, end: date) -> int:
        stmt = select(func.count(Reservation.id)).where(
            Reservation.reserved_on >= start,
            Reservation.reserved_on < end,
        )
        return int(await self.session.scalar(stmt) or 0)

    async def count_grouped(
        self,
        field: GroupField,
        start: date,
        end: date,
    ) -> List[Tuple[Any, int]]:
        column = getattr(Reservation, field)
        stmt = (
            select(column, func.count(Reservation.id).label("reservations"))
            .where(Reservation.reserved_on >= start, Reservation.reserved_on < end)
            .group_by(column)
        )
        rows = await self.session.execute(stmt)
        return [(key, int(count)) for key, count in rows.all()]


class SqlAlchemyHistoryRepository(HistoryRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

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
    ) -> HistoryEvent:
        event = HistoryEvent(
            event_type=event_type,
            device_ids=join_ids(device_ids),
            requester=requester,
            course=course,
            event_date=event_date,
            time_blocks=join_blocks(time_blocks),
            notes=notes,
            created_at=_utc_now_naive(),
        )
        self.session.add(event)
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            raise StorageError("failed to append history event") from exc
        return event

    async def list_events(
        self,
        *,
        start: date | None = None,
        end: date | None = None,
        requester: str | None = None,
    ) -> List[HistoryEvent]:
        stmt = select(HistoryEvent)
        if start is not None:
            stmt = stmt.where(HistoryEvent.event_date >= start)
        if end is not None:
            stmt = stmt.where(HistoryEvent.event_date < end)
        if requester:
            stmt = stmt.where(HistoryEvent.requester.icontains(requester, autoescape=True))
        stmt = stmt.order_by(HistoryEvent.created_at.desc(), HistoryEvent.id.desc())
        rows = await self.session.scalars(stmt)
        return list(rows.all())


class SqlAlchemySettingRepository(SettingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, key: str) -> str | None:
        setting = await self.session.get(Setting, key)
        return setting.value if setting is not None else None

    async def put(self, key: str, value: str) -> None:
        await self.session.merge(Setting(key=key, value=value))
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            raise StorageError("failed to store setting") from exc
