from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.dependencies import get_catalog_service
from app.catalog.services import CatalogService
from app.chat.dependencies import get_chat_permission_service
from app.chat.services import ChatPermissionService
from app.codes.dependencies import get_code_service
from app.codes.services import CodeService
from app.commons.dependencies import get_db
from app.usage.dependencies import get_usage_service
from app.usage.services import UsageService
from app.users.dashboard import UserDashboardPageService
from app.users.factories import build_user_service
from app.users.services import UserService


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return await build_user_service(db)


async def get_user_dashboard_page_service(
    user_service: UserService = Depends(get_user_service),
    usage_service: UsageService = Depends(get_usage_service),
    code_service: CodeService = Depends(get_code_service),
    catalog_service: CatalogService = Depends(get_catalog_service),
    permission_service: ChatPermissionService = Depends(get_chat_permission_service),
) -> UserDashboardPageService:
    return UserDashboardPageService(
        user_service=user_service,
        usage_service=usage_service,
        code_service=code_service,
        catalog_service=catalog_service,
        permission_service=permission_service,
    )
