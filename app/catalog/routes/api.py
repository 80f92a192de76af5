from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.dependencies import require_admin, require_auth
from app.catalog.dependencies import get_catalog_service
from app.catalog.exceptions import ProviderRequestException, UpstreamStatusException, UpstreamTimeoutException
from app.catalog.schemas import (
    ConnectionTestRequest,
    ConnectionTestResult,
    FetchModelsRequest,
    FetchModelsResponse,
    ModelRead,
    ProviderWithModels,
)
from app.catalog.services import CatalogService
from app.chat.dependencies import get_chat_permission_service
from app.chat.services import ChatPermissionService
from app.users.models import User

router = APIRouter()


@router.get("/providers", response_model=list[ProviderWithModels])
async def list_enabled_providers(
    _: User = Depends(require_auth),
    service: CatalogService = Depends(get_catalog_service),
):
    providers = await service.list_providers(enabled_only=True)
    return [
        service.to_provider_with_models(provider, [model for model in provider.models if model.is_enabled])
        for provider in providers
    ]


@router.get("/models", response_model=list[ModelRead])
async def list_allowed_models(
    user: User = Depends(require_auth),
    service: CatalogService = Depends(get_catalog_service),
    permission_service: ChatPermissionService = Depends(get_chat_permission_service),
):
    allowed_ids = await permission_service.get_allowed_model_ids(user)
    if not allowed_ids:
        return []
    return await service.list_enabled_models(ids=allowed_ids)


@router.post("/fetch-models", response_model=FetchModelsResponse)
async def fetch_models(
    fetch_in: FetchModelsRequest,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        models = await service.fetch_upstream_models(str(fetch_in.base_url).rstrip("/"), fetch_in.api_key)
    except UpstreamStatusException as e:
        raise HTTPException(status_code=e.status_code, detail=e.body)
    except ProviderRequestException as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return FetchModelsResponse(models=models)


@router.post("/test-connection", response_model=ConnectionTestResult)
async def check_connection(
    test_in: ConnectionTestRequest,
    _: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.check_connection(str(test_in.base_url).rstrip("/"), test_in.api_key, test_in.model)
    except UpstreamTimeoutException as e:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(e))
    except UpstreamStatusException as e:
        raise HTTPException(status_code=e.status_code, detail=e.body)
    except ProviderRequestException as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
