import logging

from app.catalog.client import ProviderClient
from app.catalog.constants import API_KEY_MASK, CONNECTION_TEST_MODEL_PREVIEW
from app.catalog.enums import PricingType
from app.catalog.exceptions import (
    ModelAlreadyExistsException,
    ModelNotFoundException,
    ModelUnavailableException,
    ProviderAlreadyExistsException,
    ProviderNotFoundException,
)
from app.catalog.models import Model, Provider
from app.catalog.repositories import ModelRepository, ProviderRepository
from app.catalog.schemas import (
    BatchModelError,
    ConnectionTestResult,
    ModelBatchCreate,
    ModelBatchResult,
    ModelCreate,
    ModelPricing,
    ModelRead,
    ModelUpdate,
    ProviderCreate,
    ProviderRead,
    ProviderUpdate,
    ProviderWithModels,
    SyncModelsResponse,
)
from app.core.encryption import safe_decrypt, safe_encrypt

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(
        self,
        provider_repo: ProviderRepository,
        model_repo: ModelRepository,
        provider_client: ProviderClient,
    ):
        self.provider_repo = provider_repo
        self.model_repo = model_repo
        self.provider_client = provider_client

    # providers

    async def get_provider(self, provider_id: int) -> Provider:
        provider = await self.provider_repo.get(provider_id)
        if not provider:
            raise ProviderNotFoundException(f"Provider with id {provider_id} not found.")
        return provider

    async def list_providers(self, enabled_only: bool = False) -> list[Provider]:
        return await self.provider_repo.list_ordered(enabled_only=enabled_only)

    async def create_provider(self, provider_in: ProviderCreate) -> Provider:
        if await self.provider_repo.get_by_name(provider_in.name):
            raise ProviderAlreadyExistsException(f"Provider '{provider_in.name}' already exists.")

        data = provider_in.model_dump()
        data["api_key"] = safe_encrypt(provider_in.api_key) if provider_in.api_key else None
        provider = await self.provider_repo.create(data)
        logger.info(f"Created provider {provider.name} (id={provider.id})")
        return provider

    async def update_provider(self, provider_id: int, provider_in: ProviderUpdate) -> Provider:
        provider = await self.get_provider(provider_id)
        data = provider_in.model_dump(exclude_unset=True)

        if "api_key" in data:
            api_key = data.pop("api_key")
            if api_key is not None and api_key != API_KEY_MASK:
                data["api_key"] = safe_encrypt(api_key) if api_key else None

        return await self.provider_repo.update(db_obj=provider, obj_in=data)

    async def delete_provider(self, provider_id: int) -> None:
        await self.get_provider(provider_id)
        await self.provider_repo.delete(pk=provider_id)
        logger.info(f"Deleted provider {provider_id} and its models")

    def get_provider_api_key(self, provider: Provider) -> str | None:
        return safe_decrypt(provider.api_key)

    async def fetch_upstream_models(self, base_url: str, api_key: str | None) -> list[str]:
        return await self.provider_client.list_models(base_url, api_key)

    async def check_connection(
        self, base_url: str, api_key: str | None, model: str | None = None
    ) -> ConnectionTestResult:
        """
        Lists the upstream models to prove the URL and key work. When `model` is given,
        reports whether the upstream serves it.
        """
        upstream_ids = await self.provider_client.list_models(base_url, api_key)
        return ConnectionTestResult(
            model_available=model in upstream_ids if model else None,
            available_models=upstream_ids[:CONNECTION_TEST_MODEL_PREVIEW],
        )

    async def check_provider_connection(self, provider_id: int, model: str | None = None) -> ConnectionTestResult:
        provider = await self.get_provider(provider_id)
        return await self.check_connection(provider.base_url, self.get_provider_api_key(provider), model)

    async def sync_provider_models(self, provider_id: int) -> SyncModelsResponse:
        """
        Lists the provider's upstream models and creates catalog rows for the unknown ones.
        """
        provider = await self.get_provider(provider_id)
        upstream_ids = await self.provider_client.list_models(
            provider.base_url, self.get_provider_api_key(provider)
        )
        known = await self.model_repo.list_model_ids_for_provider(provider_id)

        added, existing = [], []
        for order, model_id in enumerate(upstream_ids):
            if model_id in known:
                existing.append(model_id)
                continue
            await self.model_repo.create(
                ModelCreate(provider_id=provider_id, model_id=model_id, name=model_id, order=order)
            )
            known.add(model_id)
            added.append(model_id)

        logger.info(f"Synced provider {provider.name}: {len(added)} added, {len(existing)} existing")
        return SyncModelsResponse(added=added, existing=existing)

    # models

    async def get_model(self, model_pk: int) -> Model:
        model = await self.model_repo.get(model_pk)
        if not model:
            raise ModelNotFoundException(f"Model with id {model_pk} not found.")
        return model

    async def get_available_model(self, model_pk: int) -> Model:
        """Returns the model only when both it and its provider are enabled."""
        model = await self.get_model(model_pk)
        if not model.is_available:
            raise ModelUnavailableException("Model is not available.")
        return model

    async def list_models(self, provider_id: int | None = None) -> list[Model]:
        return await self.model_repo.list_ordered(provider_id=provider_id)

    async def list_enabled_models(self, ids: list[int] | None = None) -> list[Model]:
        return await self.model_repo.list_enabled(ids=ids)

    async def list_enabled_model_ids(self) -> list[int]:
        return [model.id for model in await self.model_repo.list_enabled()]

    async def create_model(self, model_in: ModelCreate) -> Model:
        await self.get_provider(model_in.provider_id)
        if await self.model_repo.get_by_provider_and_model_id(model_in.provider_id, model_in.model_id):
            raise ModelAlreadyExistsException(
                f"Model '{model_in.model_id}' already exists for provider {model_in.provider_id}."
            )
        return await self.model_repo.create(model_in)

    async def create_models_batch(self, batch_in: ModelBatchCreate) -> ModelBatchResult:
        """
        Creates several models for one provider. Ids the provider already has, or that
        repeat within the batch, are reported as errors instead of failing the batch.
        New models are appended after the provider's current last position.
        """
        await self.get_provider(batch_in.provider_id)
        known = await self.model_repo.list_model_ids_for_provider(batch_in.provider_id)
        next_order = await self.model_repo.get_max_order(batch_in.provider_id) + 1

        created, errors = [], []
        for item in batch_in.models:
            if item.model_id in known:
                errors.append(
                    BatchModelError(model_id=item.model_id, error="Model with this ID already exists for this provider")
                )
                continue
            model = await self.model_repo.create(
                ModelCreate(provider_id=batch_in.provider_id, order=next_order, **item.model_dump())
            )
            known.add(item.model_id)
            created.append(model)
            next_order += 1

        logger.info(f"Batch created {len(created)} models for provider {batch_in.provider_id}, {len(errors)} skipped")
        return ModelBatchResult(
            success_count=len(created),
            fail_count=len(errors),
            total_count=len(batch_in.models),
            models=[ModelRead.model_validate(model) for model in created],
            errors=errors,
        )

    async def update_model(self, model_pk: int, model_in: ModelUpdate) -> Model:
        model = await self.get_model(model_pk)
        return await self.model_repo.update(db_obj=model, obj_in=model_in)

    async def update_model_pricing(self, model_pk: int, pricing_in: ModelPricing) -> Model:
        model = await self.get_model(model_pk)
        data = pricing_in.model_dump()
        if pricing_in.pricing_type == PricingType.TOKEN:
            data["usage_price"] = None
        return await self.model_repo.update(db_obj=model, obj_in=data)

    async def delete_model(self, model_pk: int) -> None:
        await self.get_model(model_pk)
        await self.model_repo.delete(pk=model_pk)

    # presentation

    @staticmethod
    def to_provider_read(provider: Provider) -> ProviderRead:
        return ProviderRead(
            id=provider.id,
            name=provider.name,
            display_name=provider.display_name,
            base_url=provider.base_url,
            has_api_key=bool(provider.api_key),
            api_key=API_KEY_MASK if provider.api_key else None,
            is_enabled=provider.is_enabled,
            order=provider.order,
            icon=provider.icon,
            description=provider.description,
            created_at=provider.created_at,
        )

    def to_provider_with_models(self, provider: Provider, models: list[Model]) -> ProviderWithModels:
        return ProviderWithModels(
            **self.to_provider_read(provider).model_dump(),
            models=[ModelRead.model_validate(model) for model in models],
        )
