from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.auth.dependencies import require_admin
from app.catalog.dependencies import get_catalog_service
from app.catalog.exceptions import (
    ModelAlreadyExistsException,
    ModelNotFoundException,
    ProviderAlreadyExistsException,
    ProviderNotFoundException,
    ProviderRequestException,
    UpstreamStatusException,
    UpstreamTimeoutException,
)
from app.catalog.schemas import (
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
from app.catalog.services import CatalogService
from app.commons.schemas import SuccessResponse

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/providers", response_model=list[ProviderWithModels])
async def list_providers(service: CatalogService = Depends(get_catalog_service)):
    providers = await service.list_providers()
    return [service.to_provider_with_models(provider, provider.models) for provider in providers]


@router.post("/providers", response_model=ProviderRead, status_code=status.HTTP_201_CREATED)
async def create_provider(provider_in: ProviderCreate, service: CatalogService = Depends(get_catalog_service)):
    try:
        provider = await service.create_provider(provider_in)
        return service.to_provider_read(provider)
    except ProviderAlreadyExistsException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/providers/{provider_id}", response_model=ProviderWithModels)
async def get_provider(provider_id: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        provider = await service.get_provider(provider_id)
        return service.to_provider_with_models(provider, provider.models)
    except ProviderNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/providers/{provider_id}", response_model=ProviderRead)
async def update_provider(
    provider_id: int,
    provider_in: ProviderUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        provider = await service.update_provider(provider_id, provider_in)
        return service.to_provider_read(provider)
    except ProviderNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/providers/{provider_id}", response_model=SuccessResponse)
async def delete_provider(provider_id: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        await service.delete_provider(provider_id)
        return SuccessResponse(message="Provider deleted.")
    except ProviderNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/providers/{provider_id}/sync-models", response_model=SyncModelsResponse)
async def sync_provider_models(provider_id: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        return await service.sync_provider_models(provider_id)
    except ProviderNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except UpstreamStatusException as e:
        raise HTTPException(status_code=e.status_code, detail=e.body)
    except ProviderRequestException as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("/providers/{provider_id}/test-connection", response_model=ConnectionTestResult)
async def check_provider_connection(
    provider_id: int,
    model: str | None = Query(default=None),
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.check_provider_connection(provider_id, model)
    except ProviderNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except UpstreamTimeoutException as e:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(e))
    except UpstreamStatusException as e:
        raise HTTPException(status_code=e.status_code, detail=e.body)
    except ProviderRequestException as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get("/models", response_model=list[ModelRead])
async def list_models(
    provider_id: int | None = Query(default=None, alias="providerId"),
    service: CatalogService = Depends(get_catalog_service),
):
    return await service.list_models(provider_id=provider_id)


@router.post("/models", response_model=ModelRead, status_code=status.HTTP_201_CREATED)
async def create_model(model_in: ModelCreate, service: CatalogService = Depends(get_catalog_service)):
    try:
        return await service.create_model(model_in)
    except ProviderNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ModelAlreadyExistsException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/models/batch", response_model=ModelBatchResult, status_code=status.HTTP_201_CREATED)
async def create_models_batch(batch_in: ModelBatchCreate, service: CatalogService = Depends(get_catalog_service)):
    try:
        return await service.create_models_batch(batch_in)
    except ProviderNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/models/{model_pk}", response_model=ModelRead)
async def get_model(model_pk: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        return await service.get_model(model_pk)
    except ModelNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/models/{model_pk}", response_model=ModelRead)
async def update_model(model_pk: int, model_in: ModelUpdate, service: CatalogService = Depends(get_catalog_service)):
    try:
        return await service.update_model(model_pk, model_in)
    except ModelNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/models/{model_pk}/pricing", response_model=ModelRead)
async def update_model_pricing(
    model_pk: int,
    pricing_in: ModelPricing,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.update_model_pricing(model_pk, pricing_in)
    except ModelNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/models/{model_pk}", response_model=SuccessResponse)
async def delete_model(model_pk: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        await service.delete_model(model_pk)
        return SuccessResponse(message="Model deleted.")
    except ModelNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
