from datetime import date
from typing import Any, Dict, List

from ..domain.errors import BookingValidationError
from ..domain.repositories import DeviceRepository, ReservationRepository
from ..domain.services import BookingPolicy, SlotKey


async def list_reserved(
    res_repo: ReservationRepository,
    *,
    policy: BookingPolicy,
    reserved_on: date,
    time_block: str | None,
) -> List[Dict[str, Any]]:
    time_block = time_block or None
    if time_block is not None and time_block not in policy.time_blocks:
        raise BookingValidationError(f"unknown time block: {time_block}")
    rows = await res_repo.list_reserved(reserved_on, time_block)
    items: List[Dict[str, Any]] = [{"device_id": device_id, "time_block": block} for device_id, block in rows]
    items.sort(key=lambda item: (item["device_id"], policy.block_rank(item["time_block"])))
    return items


async def is_available(res_repo: ReservationRepository, *, slot: SlotKey) -> bool:
    taken = await res_repo.reserved_for_slot(slot.reserved_on, slot.time_block, [slot.device_id])
    return not taken


async def list_devices(device_repo: DeviceRepository) -> List[int]:
    return await device_repo.list_ids()
