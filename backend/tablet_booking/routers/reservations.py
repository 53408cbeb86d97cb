import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_booking_policy, get_session
from ..domain.errors import BookingValidationError, ReservationNotFoundError, SlotConflictError, StorageError
from ..domain.services import BookingPolicy, split_blocks, split_ids
from ..infrastructure.repositories import (
    SqlAlchemyDeviceRepository,
    SqlAlchemyHistoryRepository,
    SqlAlchemyReservationRepository,
)
from ..models import HistoryEvent
from ..schemas import EventRead, ReservationCreate, ReturnCreate, TransactionResult
from ..usecases import reservations as reservation_usecase
from ..utils.audit_log import AuditAction, emit_audit_log
from ..utils.time import today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["reservations"])


def _audit(action: AuditAction, event: HistoryEvent) -> None:
    try:
        emit_audit_log(
            action=action,
            event_id=event.id,
            event_type=event.event_type,
            device_ids=split_ids(event.device_ids),
            event_date=event.event_date,
            time_blocks=split_blocks(event.time_blocks),
            requester=event.requester,
            course=event.course,
        )
    except RuntimeError:
        logger.exception("audit log failed for history event %s", event.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="failed to write audit log",
        )


@router.post("/reservations", response_model=TransactionResult, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    session: AsyncSession = Depends(get_session),
    policy: BookingPolicy = Depends(get_booking_policy),
) -> TransactionResult:
    device_repo = SqlAlchemyDeviceRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    history_repo = SqlAlchemyHistoryRepository(session)
    try:
        async with session.begin():
            event = await reservation_usecase.reserve_devices(
                device_repo,
                res_repo,
                history_repo,
                policy=policy,
                device_ids=payload.device_ids,
                reserved_on=payload.reserved_on,
                time_block=payload.time_block,
                requester=payload.requester,
                course=payload.course,
            )
            # Inside the transaction: an audit failure rolls the batch back.
            _audit("reservation.created", event)
    except BookingValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except SlotConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(exc), "device_ids": exc.device_ids},
        )
    except (StorageError, SQLAlchemyError):
        logger.exception("reservation failed on storage")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="storage unavailable")

    return TransactionResult(event=EventRead.from_db(event=event))


@router.post("/returns", response_model=TransactionResult)
async def return_devices(
    payload: ReturnCreate,
    session: AsyncSession = Depends(get_session),
    policy: BookingPolicy = Depends(get_booking_policy),
) -> TransactionResult:
    device_repo = SqlAlchemyDeviceRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    history_repo = SqlAlchemyHistoryRepository(session)
    try:
        async with session.begin():
            event = await reservation_usecase.return_devices(
                device_repo,
                res_repo,
                history_repo,
                policy=policy,
                device_ids=payload.device_ids,
                returned_on=payload.returned_on,
                today=today(),
                requester=payload.requester,
                course=payload.course,
                notes=payload.notes,
            )
            _audit("reservation.returned", event)
    except BookingValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ReservationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except (StorageError, SQLAlchemyError):
        logger.exception("return failed on storage")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="storage unavailable")

    return TransactionResult(event=EventRead.from_db(event=event))
