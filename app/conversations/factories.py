from sqlalchemy.ext.asyncio import AsyncSession

from app.conversations.repositories import ConversationRepository, MessageRepository
from app.conversations.services import ConversationService


async def build_conversation_service(db: AsyncSession) -> ConversationService:
    return ConversationService(
        conversation_repo=ConversationRepository(db=db),
        message_repo=MessageRepository(db=db),
    )
