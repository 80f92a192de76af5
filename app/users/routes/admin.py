from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.auth.dependencies import require_admin
from app.commons.schemas import SuccessResponse
from app.users.dependencies import get_user_service
from app.users.enums import UserRole
from app.users.exceptions import (
    InvalidUserLimitsException,
    InvalidUserUpdateException,
    UserAlreadyExistsException,
    UserNotFoundException,
    UserSelfModificationException,
)
from app.users.models import User
from app.users.schemas import (
    AdminUserCreate,
    AdminUserUpdate,
    PasswordResetByAdmin,
    UserFilter,
    UserLimitsUpdate,
    UserListResponse,
    UserPermissionRead,
    UserRead,
)
from app.users.services import UserService

router = APIRouter()


@router.get("", response_model=UserListResponse)
async def list_users(
    role: UserRole | None = None,
    is_active: bool | None = Query(default=None, alias="isActive"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    _: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    users, total = await service.list_users(UserFilter(role=role, is_active=is_active, limit=limit, offset=offset))
    return UserListResponse(users=users, total=total)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: AdminUserCreate,
    _: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    try:
        return await service.create_account(
            username=user_in.username,
            password=user_in.password,
            role=user_in.role,
            email=user_in.email,
            can_share_access_code=user_in.can_share_access_code,
        )
    except UserAlreadyExistsException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.patch("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    update_in: AdminUserUpdate,
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    try:
        return await service.admin_update_user(admin, user_id, update_in)
    except UserNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (UserSelfModificationException, InvalidUserUpdateException) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    try:
        await service.delete_user(admin, user_id)
        return SuccessResponse(message="User deleted.")
    except UserNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except UserSelfModificationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{user_id}/limits", response_model=UserPermissionRead)
async def get_user_limits(
    user_id: int,
    _: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    try:
        return await service.get_permission(user_id)
    except UserNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{user_id}/limits", response_model=UserPermissionRead)
async def update_user_limits(
    user_id: int,
    limits_in: UserLimitsUpdate,
    _: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    try:
        return await service.update_limits(user_id, limits_in)
    except UserNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidUserLimitsException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{user_id}/reset-password", response_model=SuccessResponse)
async def reset_user_password(
    user_id: int,
    password_in: PasswordResetByAdmin,
    _: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    try:
        await service.set_password(user_id, password_in.new_password)
        return SuccessResponse(message="Password has been reset.")
    except UserNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
