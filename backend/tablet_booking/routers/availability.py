from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_booking_policy, get_session
from ..domain.errors import BookingValidationError
from ..domain.services import BookingPolicy
from ..infrastructure.repositories import SqlAlchemyDeviceRepository, SqlAlchemyReservationRepository
from ..schemas import AvailabilityRead, ReservedDevice
from ..usecases import availability as availability_usecase

router = APIRouter(prefix="", tags=["availability"])


@router.get("/devices", response_model=List[int])
async def list_devices(session: AsyncSession = Depends(get_session)) -> list[int]:
    device_repo = SqlAlchemyDeviceRepository(session)
    return await availability_usecase.list_devices(device_repo)


@router.get("/time-blocks", response_model=List[str])
async def list_time_blocks(policy: BookingPolicy = Depends(get_booking_policy)) -> list[str]:
    return list(policy.time_blocks)


@router.get("/availability", response_model=AvailabilityRead)
async def list_availability(
    reserved_on: date = Query(..., alias="date", description="Calendar day (YYYY-MM-DD)"),
    time_block: Optional[str] = Query(default=None, alias="block"),
    session: AsyncSession = Depends(get_session),
    policy: BookingPolicy = Depends(get_booking_policy),
) -> AvailabilityRead:
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        rows = await availability_usecase.list_reserved(
            res_repo,
            policy=policy,
            reserved_on=reserved_on,
            time_block=time_block,
        )
    except BookingValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return AvailabilityRead(
        reserved_on=reserved_on,
        time_block=time_block or None,
        reserved=[ReservedDevice(**row) for row in rows],
    )
