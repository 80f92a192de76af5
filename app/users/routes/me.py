from fastapi import APIRouter, Depends

from app.auth.dependencies import require_auth
from app.users.dashboard import UserDashboardPageService
from app.users.dependencies import get_user_dashboard_page_service, get_user_service
from app.users.models import User
from app.users.schemas import UserDashboard, UserSettingsRead, UserSettingsUpdate
from app.users.services import UserService

router = APIRouter()


@router.get("/settings", response_model=UserSettingsRead)
async def get_settings(user: User = Depends(require_auth), service: UserService = Depends(get_user_service)):
    return await service.get_settings(user.id)


@router.patch("/settings", response_model=UserSettingsRead)
async def update_settings(
    settings_in: UserSettingsUpdate,
    user: User = Depends(require_auth),
    service: UserService = Depends(get_user_service),
):
    return await service.update_settings(user.id, settings_in)


@router.get("/dashboard", response_model=UserDashboard)
async def get_dashboard(
    user: User = Depends(require_auth),
    page_service: UserDashboardPageService = Depends(get_user_dashboard_page_service),
):
    return await page_service.get_dashboard(user)
