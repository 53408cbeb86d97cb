from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session
from ..domain.errors import BookingValidationError
from ..infrastructure.repositories import SqlAlchemySettingRepository
from ..schemas import BackgroundRead, BackgroundUpdate
from ..usecases import settings as settings_usecase

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/background", response_model=BackgroundRead)
async def get_background(session: AsyncSession = Depends(get_session)) -> BackgroundRead:
    setting_repo = SqlAlchemySettingRepository(session)
    return BackgroundRead(url=await settings_usecase.get_background_url(setting_repo))


@router.post("/background", response_model=BackgroundRead)
async def update_background(
    payload: BackgroundUpdate,
    session: AsyncSession = Depends(get_session),
) -> BackgroundRead:
    setting_repo = SqlAlchemySettingRepository(session)
    async with session.begin():
        try:
            url = await settings_usecase.set_background_url(setting_repo, url=payload.url)
        except BookingValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return BackgroundRead(url=url)
