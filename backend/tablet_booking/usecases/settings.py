from ..domain.errors import BookingValidationError
from ..domain.repositories import SettingRepository
from ..models import BACKGROUND_URL_KEY


async def get_background_url(setting_repo: SettingRepository) -> str:
    return await setting_repo.get(BACKGROUND_URL_KEY) or ""


async def set_background_url(setting_repo: SettingRepository, *, url: str) -> str:
    url = url.strip()
    if not url:
        raise BookingValidationError("url is required")
    await setting_repo.put(BACKGROUND_URL_KEY, url)
    return url
