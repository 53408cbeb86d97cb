from __future__ import annotations

from typing import Iterable


class DomainError(Exception):
    """Base class for business errors raised by the reservation engine."""


class BookingValidationError(DomainError):
    pass


class SlotConflictError(DomainError):
    def __init__(self, message: str, *, device_ids: Iterable[int] = ()) -> None:
        super().__init__(message)
        self.device_ids = sorted(set(device_ids))


class ReservationNotFoundError(DomainError):
    pass


class StorageError(DomainError):
    pass
