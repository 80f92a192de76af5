from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query

from app.auth.dependencies import require_admin
from app.usage.dashboard import SystemDashboardService
from app.usage.dependencies import get_system_dashboard_service, get_usage_service
from app.usage.schemas import LeaderboardEntry, ModelUsageStats, SystemDashboard, UserLimitStatus
from app.usage.services import UsageService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=list[ModelUsageStats] | list[LeaderboardEntry])
async def get_usage_stats(
    type: Literal["models", "leaderboard"] = "models",
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    limit: int = Query(default=10, ge=1, le=100),
    service: UsageService = Depends(get_usage_service),
):
    if type == "leaderboard":
        return await service.get_leaderboard(start_date, end_date, limit)
    return await service.get_model_stats(start_date, end_date)


@router.get("/token-stats/user-limits", response_model=list[UserLimitStatus])
async def get_user_limit_statuses(service: UsageService = Depends(get_usage_service)):
    return await service.get_user_limit_statuses()


@router.get("/dashboard", response_model=SystemDashboard)
async def get_system_dashboard(service: SystemDashboardService = Depends(get_system_dashboard_service)):
    return await service.get_dashboard()
