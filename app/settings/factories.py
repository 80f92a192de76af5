from sqlalchemy.ext.asyncio import AsyncSession

from app.settings.repositories import SystemSettingRepository
from app.settings.services import SystemSettingsService


async def build_system_settings_service(db: AsyncSession) -> SystemSettingsService:
    settings_repo = SystemSettingRepository(db=db)
    return SystemSettingsService(settings_repo=settings_repo)
