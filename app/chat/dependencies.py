from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.chat.factories import build_chat_permission_service, build_chat_relay_service
from app.chat.services import ChatPermissionService, ChatRelayService
from app.commons.dependencies import get_db


async def get_chat_permission_service(db: AsyncSession = Depends(get_db)) -> ChatPermissionService:
    return await build_chat_permission_service(db)


async def get_chat_relay_service(db: AsyncSession = Depends(get_db)) -> ChatRelayService:
    return await build_chat_relay_service(db)
