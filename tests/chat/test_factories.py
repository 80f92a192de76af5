from unittest.mock import AsyncMock

from app.chat import factories
from app.chat.services import ChatPermissionService, ChatRelayService


async def test_build_chat_permission_service__composes_services(
    db_session_mock, mocker, user_service_mock, catalog_service_mock, code_service_mock, usage_service_mock
):
    mocker.patch.object(factories, "build_user_service", new=AsyncMock(return_value=user_service_mock))
    mocker.patch.object(factories, "build_catalog_service", new=AsyncMock(return_value=catalog_service_mock))
    mocker.patch.object(factories, "build_code_service", new=AsyncMock(return_value=code_service_mock))
    mocker.patch.object(factories, "build_usage_service", new=AsyncMock(return_value=usage_service_mock))

    service = await factories.build_chat_permission_service(db_session_mock)

    assert isinstance(service, ChatPermissionService)
    assert service.user_service is user_service_mock
    assert service.catalog_service is catalog_service_mock
    assert service.code_service is code_service_mock
    assert service.usage_service is usage_service_mock


async def test_build_chat_relay_service__uses_global_session_manager(
    db_session_mock, mocker, catalog_service_mock, chat_permission_service_mock, provider_client_mock
):
    """Scenario: build the relay service for a request.

    Asserts:
        - accounting uses the application session manager, not the request session
    """
    mocker.patch.object(factories, "build_catalog_service", new=AsyncMock(return_value=catalog_service_mock))
    mocker.patch.object(
        factories, "build_chat_permission_service", new=AsyncMock(return_value=chat_permission_service_mock)
    )
    mocker.patch.object(factories, "build_provider_client", return_value=provider_client_mock)

    service = await factories.build_chat_relay_service(db_session_mock)

    assert isinstance(service, ChatRelayService)
    assert service.permission_service is chat_permission_service_mock
    assert service.provider_client is provider_client_mock
    assert service.db is factories.sessionmanager
