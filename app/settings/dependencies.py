from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.commons.dependencies import get_db
from app.settings.factories import build_system_settings_service
from app.settings.services import SystemSettingsService


async def get_system_settings_service(
    db: AsyncSession = Depends(get_db),
) -> SystemSettingsService:
    return await build_system_settings_service(db)
