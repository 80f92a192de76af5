from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.client import ProviderClient
from app.catalog.repositories import ModelRepository, ProviderRepository
from app.catalog.services import CatalogService


def build_provider_client() -> ProviderClient:
    return ProviderClient()


async def build_catalog_service(db: AsyncSession) -> CatalogService:
    return CatalogService(
        provider_repo=ProviderRepository(db=db),
        model_repo=ModelRepository(db=db),
        provider_client=build_provider_client(),
    )
