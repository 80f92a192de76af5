from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.auth.dependencies import require_auth
from app.usage.dependencies import get_usage_service
from app.usage.exceptions import UsageReferenceNotFoundException, UsageTrackingException
from app.usage.schemas import (
    TokenUsageRead,
    TokenUsageRecordRequest,
    UsageFilter,
    UsageRecordCreate,
    UsageStats,
)
from app.usage.services import UsageService
from app.users.models import User

router = APIRouter()


@router.get("", response_model=UsageStats | list[TokenUsageRead])
async def get_token_usage(
    action: Literal["stats", "history"] = "stats",
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_auth),
    service: UsageService = Depends(get_usage_service),
):
    if action == "history":
        filters = UsageFilter(start_date=start_date, end_date=end_date, limit=limit, offset=offset)
        return await service.get_user_history(user.id, filters)
    return await service.get_user_stats(user.id, start_date, end_date)


@router.post("", response_model=TokenUsageRead | None, status_code=status.HTTP_201_CREATED)
async def record_token_usage(
    usage_in: TokenUsageRecordRequest,
    user: User = Depends(require_auth),
    service: UsageService = Depends(get_usage_service),
):
    try:
        return await service.record_usage(UsageRecordCreate(user_id=user.id, **usage_in.model_dump()))
    except UsageReferenceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except UsageTrackingException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
