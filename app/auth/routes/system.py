from fastapi import APIRouter, Depends

from app.auth.dependencies import get_auth_service
from app.auth.schemas import AdminExistsResponse
from app.auth.services import AuthService

router = APIRouter()


@router.get("/admin-exists", response_model=AdminExistsResponse)
async def admin_exists(service: AuthService = Depends(get_auth_service)):
    return AdminExistsResponse(admin_exists=await service.admin_exists())
