from sqlalchemy import select, update

from app.commons.repositories import BaseRepository
from app.commons.utils import utcnow
from app.conversations.models import Conversation, Message


class ConversationRepository(BaseRepository[Conversation]):
    model = Conversation

    async def get_for_user(self, conversation_id: int, user_id: int) -> Conversation | None:
        result = await self.db.execute(select(self.model).filter_by(id=conversation_id, user_id=user_id))
        return result.scalars().first()

    async def list_for_user(self, user_id: int, include_archived: bool = False) -> list[Conversation]:
        stmt = select(self.model).filter_by(user_id=user_id)
        if not include_archived:
            stmt = stmt.filter_by(is_archived=False)
        stmt = stmt.order_by(self.model.is_pinned.desc(), self.model.updated_at.desc(), self.model.id.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def touch(self, conversation_id: int) -> None:
        await self.db.execute(update(self.model).where(self.model.id == conversation_id).values(updated_at=utcnow()))
        await self.db.flush()


class MessageRepository(BaseRepository[Message]):
    model = Message

    async def get_in_conversation(self, message_id: int, conversation_id: int) -> Message | None:
        result = await self.db.execute(select(self.model).filter_by(id=message_id, conversation_id=conversation_id))
        return result.scalars().first()

    async def list_for_conversation(
        self,
        conversation_id: int,
        limit: int | None = None,
        offset: int = 0,
        include_deleted: bool = False,
    ) -> list[Message]:
        stmt = select(self.model).filter_by(conversation_id=conversation_id)
        if not include_deleted:
            stmt = stmt.filter_by(is_deleted=False)
        stmt = stmt.order_by(self.model.created_at, self.model.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def search(self, user_id: int, query: str, limit: int = 50) -> list[Message]:
        stmt = (
            select(self.model)
            .join(Conversation, Conversation.id == self.model.conversation_id)
            .where(
                Conversation.user_id == user_id,
                self.model.is_deleted.is_(False),
                self.model.content.contains(query, autoescape=True),
            )
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
