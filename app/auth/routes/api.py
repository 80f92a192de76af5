from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.dependencies import get_auth_service, require_auth
from app.auth.exceptions import (
    AuthenticationException,
    IdentityVerificationException,
    InactiveUserException,
    InvalidResetTokenException,
    RegistrationException,
)
from app.auth.schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    PermissionsResponse,
    RecoverUsernameRequest,
    RecoverUsernameResponse,
    RegisterRequest,
    ResetPasswordRequest,
)
from app.auth.services import AuthService
from app.chat.dependencies import get_chat_permission_service
from app.chat.services import ChatPermissionService
from app.commons.dependencies import enforce_rate_limit
from app.commons.schemas import SuccessResponse
from app.users.enums import UserAction
from app.users.exceptions import UserAlreadyExistsException, UserNotFoundException
from app.users.models import User
from app.users.permissions import has_action_permission
from app.users.schemas import UserRead

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(register_in: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    try:
        return await service.register(register_in)
    except RegistrationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UserAlreadyExistsException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/login", response_model=AuthResponse)
async def login(login_in: LoginRequest, service: AuthService = Depends(get_auth_service)):
    try:
        return await service.login(login_in)
    except AuthenticationException as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except InactiveUserException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/me", response_model=UserRead)
async def me(user: User = Depends(require_auth)):
    return user


@router.get("/permissions", response_model=PermissionsResponse)
async def permissions(
    user: User = Depends(require_auth),
    permission_service: ChatPermissionService = Depends(get_chat_permission_service),
):
    return PermissionsResponse(
        can_chat=has_action_permission(user, UserAction.CHAT),
        can_create_invite=has_action_permission(user, UserAction.CREATE_INVITE),
        can_create_access=has_action_permission(user, UserAction.CREATE_ACCESS),
        can_access_admin=has_action_permission(user, UserAction.ADMIN_PANEL),
        allowed_models=await permission_service.get_allowed_model_ids(user),
    )


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(request_in: ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)):
    try:
        return await service.forgot_password(request_in)
    except UserNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except IdentityVerificationException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/reset-password", response_model=SuccessResponse)
async def reset_password(reset_in: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    try:
        await service.reset_password(reset_in)
        return SuccessResponse(message="Password has been reset.")
    except (InvalidResetTokenException, UserNotFoundException) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/recover-username", response_model=RecoverUsernameResponse)
async def recover_username(request_in: RecoverUsernameRequest, service: AuthService = Depends(get_auth_service)):
    try:
        return await service.recover_username(request_in.email)
    except UserNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
