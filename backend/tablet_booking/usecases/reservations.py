from datetime import date
from typing import Iterable

from ..domain.errors import BookingValidationError, ReservationNotFoundError, SlotConflictError
from ..domain.repositories import DeviceRepository, HistoryRepository, ReservationRepository
from ..domain.services import BookingPolicy, NO_DATA, order_blocks, validate_reserve, validate_return
from ..models import EventType, HistoryEvent


async def _require_known_devices(device_repo: DeviceRepository, ids: list[int]) -> None:
    known = await device_repo.existing_ids(ids)
    unknown = [i for i in ids if i not in known]
    if unknown:
        raise BookingValidationError(f"unknown device ids: {', '.join(str(i) for i in unknown)}")


async def reserve_devices(
    device_repo: DeviceRepository,
    res_repo: ReservationRepository,
    history_repo: HistoryRepository,
    *,
    policy: BookingPolicy,
    device_ids: Iterable[int],
    reserved_on: date,
    time_block: str,
    requester: str,
    course: str | None = None,
) -> HistoryEvent:
    """
    Reserve every device of the batch for one (date, block), or none of them.
    Must run inside a single transaction: any raised error leaves the caller
    to roll back, which discards rows already flushed by this batch.
    """
    ids = validate_reserve(
        policy,
        device_ids=device_ids,
        reserved_on=reserved_on,
        time_block=time_block,
        requester=requester,
    )
    await _require_known_devices(device_repo, ids)

    taken = await res_repo.reserved_for_slot(reserved_on, time_block, ids)
    if taken:
        raise SlotConflictError(
            "one or more devices are already reserved for this block and date",
            device_ids=taken,
        )

    requester = requester.strip()
    course = (course or "").strip()
    await res_repo.add_batch(
        device_ids=ids,
        reserved_on=reserved_on,
        time_block=time_block,
        requester=requester,
        course=course,
    )
    return await history_repo.append(
        event_type=EventType.RESERVE,
        device_ids=ids,
        requester=requester,
        course=course,
        event_date=reserved_on,
        time_blocks=[time_block],
    )


async def return_devices(
    device_repo: DeviceRepository,
    res_repo: ReservationRepository,
    history_repo: HistoryRepository,
    *,
    policy: BookingPolicy,
    device_ids: Iterable[int],
    returned_on: date,
    today: date,
    requester: str | None = None,
    course: str | None = None,
    notes: str | None = None,
) -> HistoryEvent:
    """Release every block held by each device on `returned_on`."""
    ids = validate_return(device_ids=device_ids, returned_on=returned_on, today=today)
    await _require_known_devices(device_repo, ids)

    released: list[str] = []
    for device_id in ids:
        blocks = await res_repo.blocks_for_device_for_update(device_id, returned_on)
        if not blocks:
            continue
        released.extend(blocks)
        await res_repo.delete_for_device(device_id, returned_on)

    if not released:
        raise ReservationNotFoundError("no active reservations for the selected devices on this date")

    return await history_repo.append(
        event_type=EventType.RETURN,
        device_ids=ids,
        requester=(requester or "").strip() or NO_DATA,
        course=(course or "").strip() or NO_DATA,
        event_date=returned_on,
        time_blocks=order_blocks(policy, released),
        notes=(notes or "").strip(),
    )
