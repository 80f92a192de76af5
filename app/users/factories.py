from sqlalchemy.ext.asyncio import AsyncSession

from app.settings.factories import build_system_settings_service
from app.users.repositories import (
    UserPermissionRepository,
    UserRepository,
    UserSettingsRepository,
)
from app.users.services import UserService


async def build_user_service(db: AsyncSession) -> UserService:
    settings_service = await build_system_settings_service(db)
    return UserService(
        user_repo=UserRepository(db=db),
        permission_repo=UserPermissionRepository(db=db),
        user_settings_repo=UserSettingsRepository(db=db),
        settings_service=settings_service,
    )
