from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_auth_service
from app.auth.services import AuthService
from app.codes.factories import build_code_service
from app.core.cache import InMemoryStore
from app.settings.factories import build_system_settings_service
from app.users.factories import build_user_service

TEST_JWT_SECRET = "test-secret-that-is-long-enough-0123456789"


@pytest.fixture
def jwt_secret(mocker: MockerFixture) -> str:
    mocker.patch("app.core.security.settings.JWT_SECRET", TEST_JWT_SECRET)
    return TEST_JWT_SECRET


@pytest.fixture
def reset_token_store() -> InMemoryStore:
    return InMemoryStore(max_size=100, default_ttl=60)


@pytest.fixture
async def auth_service(db_session: AsyncSession, reset_token_store: InMemoryStore, jwt_secret: str) -> AuthService:
    return AuthService(
        user_service=await build_user_service(db_session),
        code_service=await build_code_service(db_session),
        settings_service=await build_system_settings_service(db_session),
        store=reset_token_store,
    )


@pytest.fixture
def auth_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(AuthService, instance=True)


@pytest.fixture
def override_get_auth_service(client, auth_service_mock: MagicMock):
    client.app.dependency_overrides[get_auth_service] = lambda: auth_service_mock
    yield
    client.app.dependency_overrides.clear()
