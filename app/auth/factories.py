from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.services import AuthService
from app.codes.factories import build_code_service
from app.commons.factories import build_reset_token_store
from app.settings.factories import build_system_settings_service
from app.users.factories import build_user_service


async def build_auth_service(db: AsyncSession) -> AuthService:
    return AuthService(
        user_service=await build_user_service(db),
        code_service=await build_code_service(db),
        settings_service=await build_system_settings_service(db),
        store=await build_reset_token_store(),
    )
