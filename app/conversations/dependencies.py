from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.commons.dependencies import get_db
from app.conversations.factories import build_conversation_service
from app.conversations.services import ConversationService


async def get_conversation_service(db: AsyncSession = Depends(get_db)) -> ConversationService:
    return await build_conversation_service(db)
