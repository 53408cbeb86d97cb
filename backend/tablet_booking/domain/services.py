from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, Sequence

from .errors import BookingValidationError

NO_DATA = "N/A"


@dataclass(frozen=True)
class SlotKey:
    device_id: int
    reserved_on: date
    time_block: str


@dataclass(frozen=True)
class BookingPolicy:
    time_blocks: tuple[str, ...]
    weekdays_only: bool = True

    def block_rank(self, block: str) -> int:
        """Position of `block` in the enumeration; unknown names sort last."""
        try:
            return self.time_blocks.index(block)
        except ValueError:
            return len(self.time_blocks)


def normalize_device_ids(device_ids: Iterable[int]) -> list[int]:
    ids = sorted(set(device_ids))
    if not ids:
        raise BookingValidationError("at least one device is required")
    return ids


def validate_reserve(
    policy: BookingPolicy,
    *,
    device_ids: Iterable[int],
    reserved_on: date | None,
    time_block: str | None,
    requester: str | None,
) -> list[int]:
    """
    Pure validation of a Reserve request. Returns the deduplicated, ascending
    device ids. Raises BookingValidationError on the first broken rule.
    """
    ids = normalize_device_ids(device_ids)
    if reserved_on is None:
        raise BookingValidationError("date is required")
    if not time_block:
        raise BookingValidationError("time block is required")
    if time_block not in policy.time_blocks:
        raise BookingValidationError(f"unknown time block: {time_block}")
    if not requester or not requester.strip():
        raise BookingValidationError("requester is required")
    # Monday=0 .. Friday=4
    if policy.weekdays_only and reserved_on.weekday() > 4:
        raise BookingValidationError("reservations are only allowed Monday to Friday")
    return ids


def validate_return(
    *,
    device_ids: Iterable[int],
    returned_on: date | None,
    today: date,
) -> list[int]:
    ids = normalize_device_ids(device_ids)
    if returned_on is None:
        raise BookingValidationError("date is required")
    if returned_on < today:
        raise BookingValidationError("returns for past days are not allowed")
    return ids


def order_blocks(policy: BookingPolicy, blocks: Iterable[str]) -> list[str]:
    return sorted(set(blocks), key=lambda b: (policy.block_rank(b), b))


def pick_top(counts: Sequence[tuple[Any, int]], *, tie_key: Callable[[Any], Any]) -> Any | None:
    """Key with the highest count; ties go to the smallest `tie_key`."""
    if not counts:
        return None
    key, _ = min(counts, key=lambda kv: (-kv[1], tie_key(kv[0])))
    return key


def join_ids(device_ids: Iterable[int]) -> str:
    return ", ".join(str(i) for i in device_ids)


def split_ids(raw: str) -> list[int]:
    return [int(part) for part in raw.split(",") if part.strip()]


def join_blocks(blocks: Iterable[str]) -> str:
    return ", ".join(blocks)


def split_blocks(raw: str) -> list[str]:
    return [block for block in raw.split(", ") if block]
