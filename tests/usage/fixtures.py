from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import Model
from app.usage.dashboard import SystemDashboardService
from app.usage.dependencies import get_system_dashboard_service, get_usage_service
from app.usage.factories import build_system_dashboard_service, build_usage_service
from app.usage.models import TokenUsage
from app.usage.repositories import TokenUsageRepository
from app.usage.services import UsageService
from app.users.models import User


@pytest.fixture
async def usage_service(db_session: AsyncSession) -> UsageService:
    return await build_usage_service(db_session)


@pytest.fixture
async def system_dashboard_service(db_session: AsyncSession) -> SystemDashboardService:
    return await build_system_dashboard_service(db_session)


@pytest.fixture
def token_usage_repository(db_session: AsyncSession) -> TokenUsageRepository:
    return TokenUsageRepository(db=db_session)


@pytest.fixture
async def token_usage_rows(db_session: AsyncSession, regular_user: User, admin_user: User, catalog_model: Model):
    """Two rows for alice and one larger row for the admin, all on catalog_model."""
    rows = [
        TokenUsage(
            user_id=regular_user.id,
            model_id=catalog_model.id,
            provider_id=catalog_model.provider_id,
            model_key=catalog_model.model_id,
            prompt_tokens=10,
            completion_tokens=20,
            total_tokens=30,
            cost=Decimal("0.000013"),
        ),
        TokenUsage(
            user_id=regular_user.id,
            model_id=catalog_model.id,
            provider_id=catalog_model.provider_id,
            model_key=catalog_model.model_id,
            prompt_tokens=5,
            completion_tokens=5,
            total_tokens=10,
            cost=Decimal("0.000004"),
        ),
        TokenUsage(
            user_id=admin_user.id,
            model_id=catalog_model.id,
            provider_id=catalog_model.provider_id,
            model_key=catalog_model.model_id,
            prompt_tokens=100,
            completion_tokens=100,
            total_tokens=200,
            cost=Decimal("0.000075"),
        ),
    ]
    db_session.add_all(rows)
    await db_session.flush()
    return rows


@pytest.fixture
def usage_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(UsageService, instance=True)


@pytest.fixture
def override_get_usage_service(client, usage_service_mock: MagicMock):
    client.app.dependency_overrides[get_usage_service] = lambda: usage_service_mock
    yield
    client.app.dependency_overrides.clear()


@pytest.fixture
def system_dashboard_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(SystemDashboardService, instance=True)


@pytest.fixture
def override_get_system_dashboard_service(client, system_dashboard_service_mock: MagicMock):
    client.app.dependency_overrides[get_system_dashboard_service] = lambda: system_dashboard_service_mock
    yield
    client.app.dependency_overrides.clear()
