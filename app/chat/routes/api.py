from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, StreamingResponse

from app.auth.dependencies import require_auth
from app.catalog.exceptions import (
    ModelNotFoundException,
    ModelUnavailableException,
    ProviderRequestException,
    UpstreamStatusException,
    UpstreamTimeoutException,
)
from app.chat.dependencies import get_chat_permission_service, get_chat_relay_service
from app.chat.exceptions import ChatPermissionDeniedException
from app.chat.schemas import ChatPermissionCheck, ChatRequest
from app.chat.services import ChatPermissionService, ChatRelayService
from app.commons.dependencies import enforce_rate_limit
from app.users.models import User

router = APIRouter()


@router.post("", dependencies=[Depends(enforce_rate_limit)])
async def chat(
    chat_in: ChatRequest,
    user: User = Depends(require_auth),
    service: ChatRelayService = Depends(get_chat_relay_service),
):
    try:
        target = await service.prepare(user, chat_in)
        if not chat_in.stream:
            return await service.complete(target)
        frames = await service.open_stream(target)
    except ChatPermissionDeniedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ModelNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ModelUnavailableException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except UpstreamTimeoutException as e:
        return JSONResponse(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT, content={"detail": str(e), "error": "timeout"}
        )
    except UpstreamStatusException as e:
        raise HTTPException(status_code=e.status_code, detail=e.body)
    except ProviderRequestException as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return StreamingResponse(
        frames,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/permissions", response_model=ChatPermissionCheck)
async def get_chat_permissions(
    model_id: int | None = Query(default=None, alias="modelId"),
    user: User = Depends(require_auth),
    service: ChatPermissionService = Depends(get_chat_permission_service),
):
    return await service.check(user.id, model_id)
