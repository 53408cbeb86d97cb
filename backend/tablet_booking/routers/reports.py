from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_booking_policy, get_session
from ..domain.errors import BookingValidationError
from ..domain.services import BookingPolicy
from ..infrastructure.repositories import SqlAlchemyHistoryRepository, SqlAlchemyReservationRepository
from ..schemas import EventRead, StatsRead
from ..usecases import export as export_usecase
from ..usecases import history as history_usecase
from ..usecases import stats as stats_usecase

router = APIRouter(prefix="", tags=["reports"])


@router.get("/history", response_model=List[EventRead])
async def list_history(
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = Query(default=None, ge=2000, le=2999),
    requester: Optional[str] = Query(default=None, max_length=255),
    session: AsyncSession = Depends(get_session),
) -> list[EventRead]:
    history_repo = SqlAlchemyHistoryRepository(session)
    try:
        events = await history_usecase.list_history(
            history_repo,
            month=month,
            year=year,
            requester=requester,
        )
    except BookingValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return [EventRead.from_db(event=event) for event in events]


@router.get("/stats", response_model=StatsRead)
async def get_stats(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2999),
    session: AsyncSession = Depends(get_session),
    policy: BookingPolicy = Depends(get_booking_policy),
) -> StatsRead:
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        stats = await stats_usecase.monthly_stats(res_repo, policy=policy, month=month, year=year)
    return StatsRead.from_stats(stats=stats, month=month, year=year)


@router.get("/export/month/{month}/{year}")
async def export_month(
    month: int = Path(..., ge=1, le=12),
    year: int = Path(..., ge=2000, le=2999),
    session: AsyncSession = Depends(get_session),
    policy: BookingPolicy = Depends(get_booking_policy),
) -> Response:
    history_repo = SqlAlchemyHistoryRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    async with session.begin():
        content = await export_usecase.build_month_workbook(
            history_repo,
            res_repo,
            policy=policy,
            month=month,
            year=year,
        )
    filename = export_usecase.export_filename(month, year)
    return Response(
        content=content,
        media_type=export_usecase.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
