from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.services import CatalogService
from app.chat.dependencies import get_chat_permission_service, get_chat_relay_service
from app.chat.factories import build_chat_permission_service
from app.chat.services import ChatPermissionService, ChatRelayService


@pytest.fixture
async def chat_permission_service(db_session: AsyncSession) -> ChatPermissionService:
    return await build_chat_permission_service(db_session)


@pytest.fixture
def make_chat_relay_service(
    catalog_service: CatalogService, chat_permission_service: ChatPermissionService, db_sessionmanager_real
):
    """Builds a relay service on the test session around the given provider client."""

    def _make(provider_client) -> ChatRelayService:
        return ChatRelayService(
            catalog_service=catalog_service,
            permission_service=chat_permission_service,
            provider_client=provider_client,
            db=db_sessionmanager_real,
        )

    return _make


@pytest.fixture
def chat_permission_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(ChatPermissionService, instance=True)


@pytest.fixture
def chat_relay_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(ChatRelayService, instance=True)


@pytest.fixture
def override_get_chat_permission_service(client, chat_permission_service_mock: MagicMock):
    client.app.dependency_overrides[get_chat_permission_service] = lambda: chat_permission_service_mock
    yield
    client.app.dependency_overrides.clear()


@pytest.fixture
def override_get_chat_relay_service(client, chat_relay_service_mock: MagicMock):
    client.app.dependency_overrides[get_chat_relay_service] = lambda: chat_relay_service_mock
    yield
    client.app.dependency_overrides.clear()
