from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.commons.dependencies import get_db
from app.usage.dashboard import SystemDashboardService
from app.usage.factories import build_system_dashboard_service, build_usage_service
from app.usage.services import UsageService


async def get_usage_service(db: AsyncSession = Depends(get_db)) -> UsageService:
    return await build_usage_service(db)


async def get_system_dashboard_service(db: AsyncSession = Depends(get_db)) -> SystemDashboardService:
    return await build_system_dashboard_service(db)
