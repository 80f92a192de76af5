from decimal import Decimal
from unittest.mock import MagicMock

import httpx
import pytest
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.client import ProviderClient
from app.catalog.dependencies import get_catalog_service
from app.catalog.enums import PricingType
from app.catalog.models import Model, Provider
from app.catalog.repositories import ModelRepository, ProviderRepository
from app.catalog.services import CatalogService


@pytest.fixture
async def provider(db_session: AsyncSession) -> Provider:
    obj = Provider(
        name="openai",
        display_name="OpenAI",
        base_url="https://api.example.com/v1",
        api_key="sk-upstream",
        is_enabled=True,
        order=0,
    )
    db_session.add(obj)
    await db_session.flush()
    await db_session.refresh(obj)
    return obj


@pytest.fixture
async def disabled_provider(db_session: AsyncSession) -> Provider:
    obj = Provider(name="offline", display_name="Offline", base_url="https://offline.example.com", is_enabled=False)
    db_session.add(obj)
    await db_session.flush()
    await db_session.refresh(obj)
    return obj


async def _add_model(db_session: AsyncSession, **kwargs) -> Model:
    obj = Model(**kwargs)
    db_session.add(obj)
    await db_session.flush()
    await db_session.refresh(obj)
    return obj


@pytest.fixture
async def catalog_model(db_session: AsyncSession, provider: Provider) -> Model:
    return await _add_model(
        db_session,
        provider_id=provider.id,
        model_id="gpt-4o-mini",
        name="GPT-4o mini",
        order=0,
        temperature=0.5,
        max_tokens=512,
        pricing_type=PricingType.TOKEN,
        input_price=Decimal("0.15"),
        output_price=Decimal("0.6"),
    )


@pytest.fixture
async def second_catalog_model(db_session: AsyncSession, provider: Provider) -> Model:
    return await _add_model(
        db_session,
        provider_id=provider.id,
        model_id="gpt-4o",
        name="GPT-4o",
        order=1,
        pricing_type=PricingType.USAGE,
        usage_price=Decimal("0.01"),
        input_price=Decimal("5"),
        output_price=Decimal("15"),
    )


@pytest.fixture
async def disabled_model(db_session: AsyncSession, provider: Provider) -> Model:
    return await _add_model(
        db_session,
        provider_id=provider.id,
        model_id="retired-model",
        name="Retired",
        order=2,
        is_enabled=False,
    )


@pytest.fixture
async def model_of_disabled_provider(db_session: AsyncSession, disabled_provider: Provider) -> Model:
    return await _add_model(db_session, provider_id=disabled_provider.id, model_id="offline-1", name="Offline 1")


@pytest.fixture
def provider_repository(db_session: AsyncSession) -> ProviderRepository:
    return ProviderRepository(db=db_session)


@pytest.fixture
def model_repository(db_session: AsyncSession) -> ModelRepository:
    return ModelRepository(db=db_session)


@pytest.fixture
def provider_client_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(ProviderClient, instance=True)


@pytest.fixture
def catalog_service(
    provider_repository: ProviderRepository,
    model_repository: ModelRepository,
    provider_client_mock: MagicMock,
) -> CatalogService:
    """Real CatalogService on the test session with a mocked provider client."""
    return CatalogService(
        provider_repo=provider_repository,
        model_repo=model_repository,
        provider_client=provider_client_mock,
    )


@pytest.fixture
def catalog_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(CatalogService, instance=True)


def make_mock_transport_client(handler) -> ProviderClient:
    """ProviderClient whose requests are answered by `handler(request)`."""
    return ProviderClient(timeout=5, transport=httpx.MockTransport(handler))


@pytest.fixture
def override_get_catalog_service(client, catalog_service_mock: MagicMock):
    client.app.dependency_overrides[get_catalog_service] = lambda: catalog_service_mock
    yield
    client.app.dependency_overrides.clear()
