from unittest.mock import AsyncMock

from app.conversations.dependencies import get_conversation_service


async def test_get_conversation_service__delegates_to_factory(db_session_mock, mocker, conversation_service_mock):
    build_mock = mocker.patch(
        "app.conversations.dependencies.build_conversation_service",
        new=AsyncMock(return_value=conversation_service_mock),
    )

    assert await get_conversation_service(db_session_mock) is conversation_service_mock
    build_mock.assert_awaited_once_with(db_session_mock)
