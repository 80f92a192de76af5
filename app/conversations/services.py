import logging

from app.conversations.enums import MessageRole
from app.conversations.exceptions import (
    ConversationNotFoundException,
    GuestHistoryNotAllowedException,
    MessageNotFoundException,
)
from app.conversations.models import Conversation, Message
from app.conversations.repositories import ConversationRepository, MessageRepository
from app.conversations.schemas import (
    ConversationCreate,
    ConversationRead,
    ConversationUpdate,
    ConversationWithMessages,
    MessageCreate,
    MessageFilter,
    MessageRead,
    MessageUpdate,
)
from app.users.enums import UserRole
from app.users.models import User

logger = logging.getLogger(__name__)


class ConversationService:
    def __init__(self, conversation_repo: ConversationRepository, message_repo: MessageRepository):
        self.conversation_repo = conversation_repo
        self.message_repo = message_repo

    @staticmethod
    def _ensure_can_store(user: User) -> None:
        if user.role == UserRole.GUEST:
            raise GuestHistoryNotAllowedException("Guests cannot store conversations.")

    async def get_conversation(self, user: User, conversation_id: int) -> Conversation:
        self._ensure_can_store(user)
        # another user's conversation is reported as missing
        conversation = await self.conversation_repo.get_for_user(conversation_id, user.id)
        if not conversation:
            raise ConversationNotFoundException(f"Conversation with id {conversation_id} not found.")
        return conversation

    async def create_conversation(self, user: User, conversation_in: ConversationCreate) -> Conversation:
        self._ensure_can_store(user)
        return await self.conversation_repo.create({"user_id": user.id, **conversation_in.model_dump()})

    async def list_conversations(self, user: User, include_archived: bool = False) -> list[Conversation]:
        self._ensure_can_store(user)
        return await self.conversation_repo.list_for_user(user.id, include_archived=include_archived)

    async def get_conversation_with_messages(
        self, user: User, conversation_id: int, filters: MessageFilter | None = None
    ) -> ConversationWithMessages:
        conversation = await self.get_conversation(user, conversation_id)
        filters = filters or MessageFilter()
        messages = await self.message_repo.list_for_conversation(
            conversation.id, limit=filters.limit, offset=filters.offset, include_deleted=filters.include_deleted
        )
        return ConversationWithMessages(
            **ConversationRead.model_validate(conversation).model_dump(),
            messages=[MessageRead.model_validate(m) for m in messages],
        )

    async def update_conversation(
        self, user: User, conversation_id: int, conversation_in: ConversationUpdate
    ) -> Conversation:
        conversation = await self.get_conversation(user, conversation_id)
        return await self.conversation_repo.update(db_obj=conversation, obj_in=conversation_in)

    async def delete_conversation(self, user: User, conversation_id: int) -> None:
        conversation = await self.get_conversation(user, conversation_id)
        await self.conversation_repo.delete(pk=conversation.id)
        logger.info(f"User {user.id} deleted conversation {conversation_id}")

    # messages

    async def add_message(self, user: User, conversation_id: int, message_in: MessageCreate) -> Message:
        conversation = await self.get_conversation(user, conversation_id)
        message = await self.message_repo.create(
            {"conversation_id": conversation.id, "user_id": user.id, **message_in.model_dump()}
        )
        await self.conversation_repo.touch(conversation.id)
        return message

    async def save_assistant_reply(
        self,
        user: User,
        conversation_id: int,
        content: str,
        model_id: int | None = None,
        provider_id: int | None = None,
        finish_reason: str | None = None,
        token_usage: dict | None = None,
    ) -> Message:
        return await self.add_message(
            user,
            conversation_id,
            MessageCreate(
                role=MessageRole.ASSISTANT,
                content=content,
                model_id=model_id,
                provider_id=provider_id,
                finish_reason=finish_reason,
                token_usage=token_usage,
            ),
        )

    async def list_messages(self, user: User, conversation_id: int, filters: MessageFilter) -> list[Message]:
        conversation = await self.get_conversation(user, conversation_id)
        return await self.message_repo.list_for_conversation(
            conversation.id, limit=filters.limit, offset=filters.offset, include_deleted=filters.include_deleted
        )

    async def _get_message(self, user: User, conversation_id: int, message_id: int) -> Message:
        conversation = await self.get_conversation(user, conversation_id)
        message = await self.message_repo.get_in_conversation(message_id, conversation.id)
        if not message:
            raise MessageNotFoundException(f"Message with id {message_id} not found.")
        return message

    async def update_message(
        self, user: User, conversation_id: int, message_id: int, message_in: MessageUpdate
    ) -> Message:
        message = await self._get_message(user, conversation_id, message_id)
        data = {"content": message_in.content, "is_edited": True}
        if message.raw_content is None:
            data["raw_content"] = message.content
        return await self.message_repo.update(db_obj=message, obj_in=data)

    async def delete_message(self, user: User, conversation_id: int, message_id: int) -> None:
        message = await self._get_message(user, conversation_id, message_id)
        await self.message_repo.update(db_obj=message, obj_in={"is_deleted": True})

    async def search_messages(self, user: User, query: str, limit: int = 50) -> list[Message]:
        self._ensure_can_store(user)
        return await self.message_repo.search(user.id, query, limit=limit)
