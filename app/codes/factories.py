from sqlalchemy.ext.asyncio import AsyncSession

from app.codes.repositories import AccessCodeRepository, InviteCodeRepository
from app.codes.services import CodeService
from app.settings.factories import build_system_settings_service
from app.users.repositories import UserRepository


async def build_code_service(db: AsyncSession) -> CodeService:
    settings_service = await build_system_settings_service(db)
    return CodeService(
        invite_repo=InviteCodeRepository(db=db),
        access_repo=AccessCodeRepository(db=db),
        user_repo=UserRepository(db=db),
        settings_service=settings_service,
    )
