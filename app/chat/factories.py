from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.factories import build_catalog_service, build_provider_client
from app.chat.services import ChatPermissionService, ChatRelayService
from app.codes.factories import build_code_service
from app.core.db import sessionmanager
from app.usage.factories import build_usage_service
from app.users.factories import build_user_service


async def build_chat_permission_service(db: AsyncSession) -> ChatPermissionService:
    return ChatPermissionService(
        user_service=await build_user_service(db),
        catalog_service=await build_catalog_service(db),
        code_service=await build_code_service(db),
        usage_service=await build_usage_service(db),
    )


async def build_chat_relay_service(db: AsyncSession) -> ChatRelayService:
    return ChatRelayService(
        catalog_service=await build_catalog_service(db),
        permission_service=await build_chat_permission_service(db),
        provider_client=build_provider_client(),
        db=sessionmanager,
    )
