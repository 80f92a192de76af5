from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from app.conversations.dependencies import get_conversation_service
from app.conversations.enums import MessageRole
from app.conversations.factories import build_conversation_service
from app.conversations.models import Conversation, Message
from app.conversations.repositories import ConversationRepository, MessageRepository
from app.conversations.services import ConversationService
from app.users.models import User


@pytest.fixture
async def conversation(db_session: AsyncSession, regular_user: User) -> Conversation:
    obj = Conversation(user_id=regular_user.id, title="Trip planning")
    db_session.add(obj)
    await db_session.flush()
    await db_session.refresh(obj)
    return obj


@pytest.fixture
async def other_conversation(db_session: AsyncSession, admin_user: User) -> Conversation:
    obj = Conversation(user_id=admin_user.id, title="Admin notes")
    db_session.add(obj)
    await db_session.flush()
    await db_session.refresh(obj)
    return obj


@pytest.fixture
async def message(db_session: AsyncSession, conversation: Conversation, regular_user: User) -> Message:
    obj = Message(
        conversation_id=conversation.id,
        user_id=regular_user.id,
        role=MessageRole.USER,
        content="Where should we go in 100% sunny weather?",
    )
    db_session.add(obj)
    await db_session.flush()
    await db_session.refresh(obj)
    return obj


@pytest.fixture
def conversation_repository(db_session: AsyncSession) -> ConversationRepository:
    return ConversationRepository(db=db_session)


@pytest.fixture
def message_repository(db_session: AsyncSession) -> MessageRepository:
    return MessageRepository(db=db_session)


@pytest.fixture
async def conversation_service(db_session: AsyncSession) -> ConversationService:
    return await build_conversation_service(db_session)


@pytest.fixture
def conversation_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(ConversationService, instance=True)


@pytest.fixture
def override_get_conversation_service(client, conversation_service_mock: MagicMock):
    client.app.dependency_overrides[get_conversation_service] = lambda: conversation_service_mock
    yield
    client.app.dependency_overrides.clear()
