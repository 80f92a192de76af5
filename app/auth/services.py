import logging

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
    RecoverUsernameResponse,
    RegisterRequest,
    ResetPasswordRequest,
)
from app.codes.exceptions import InvalidCodeException
from app.codes.services import CodeService
from app.core.cache import KeyValueStore
from app.core.config import settings
from app.core.security import (
    InvalidTokenError,
    create_access_token,
    decode_access_token,
    generate_reset_token,
    verify_password,
)
from app.settings.enums import SystemSettingKey
from app.settings.services import SystemSettingsService
from app.users.enums import UserRole
from app.users.exceptions import UserNotFoundException
from app.users.models import User
from app.users.schemas import UserRead
from app.users.services import UserService

logger = logging.getLogger(__name__)

RESET_TOKEN_KEY = "password_reset:{token}"


class AuthService:
    def __init__(
        self,
        user_service: UserService,
        code_service: CodeService,
        settings_service: SystemSettingsService,
        store: KeyValueStore,
    ):
        self.user_service = user_service
        self.code_service = code_service
        self.settings_service = settings_service
        self.store = store

    async def register(self, register_in: RegisterRequest) -> AuthResponse:
        """
        Creates an account from an invite code (USER, or ADMIN for the bootstrap code)
        or an access code (GUEST hosted by the code's creator). The code is consumed
        in the same transaction as the account creation.
        """
        if register_in.invite_code:
            user = await self._register_with_invite(register_in)
        else:
            user = await self._register_with_access_code(register_in)
        return self._auth_response(user)

    async def _register_with_invite(self, register_in: RegisterRequest) -> User:
        try:
            invite_code = await self.code_service.get_valid_invite_code(register_in.invite_code)
        except InvalidCodeException as e:
            raise RegistrationException(str(e)) from e

        role = UserRole.USER if invite_code else UserRole.ADMIN
        user = await self.user_service.create_account(
            username=register_in.username,
            password=register_in.password,
            role=role,
            email=register_in.email,
        )
        await self.code_service.consume_invite_code(invite_code, user.id)
        return user

    async def _register_with_access_code(self, register_in: RegisterRequest) -> User:
        if not await self.settings_service.get_bool(SystemSettingKey.ENABLE_GUEST_REGISTRATION, True):
            raise RegistrationException("Guest registration is disabled.")

        try:
            access_code = await self.code_service.get_valid_access_code(register_in.access_code)
        except InvalidCodeException as e:
            raise RegistrationException(str(e)) from e

        user = await self.user_service.create_account(
            username=register_in.username,
            password=register_in.password,
            role=UserRole.GUEST,
            email=register_in.email,
            host_user_id=access_code.created_by,
            access_code_id=access_code.id,
        )
        await self.code_service.consume_access_code(access_code)
        return user

    async def login(self, login_in: LoginRequest) -> AuthResponse:
        user = await self.user_service.user_repo.get_by_username(login_in.username)
        if not user:
            raise AuthenticationException("Invalid username or password.")

        if user.password_hash:
            if not login_in.password or not verify_password(login_in.password, user.password_hash):
                raise AuthenticationException("Invalid username or password.")
        elif user.role != UserRole.GUEST:
            raise AuthenticationException("Invalid username or password.")

        if not user.is_active:
            raise InactiveUserException("Account is disabled.")

        logger.info(f"User {user.id} logged in")
        return self._auth_response(user)

    async def get_user_from_token(self, token: str) -> User:
        try:
            user_id = decode_access_token(token)
        except InvalidTokenError as e:
            raise AuthenticationException(str(e)) from e

        try:
            user = await self.user_service.get_user(user_id)
        except UserNotFoundException as e:
            raise AuthenticationException("User no longer exists.") from e

        if not user.is_active:
            raise InactiveUserException("Account is disabled.")
        return user

    async def admin_exists(self) -> bool:
        return await self.user_service.user_repo.admin_exists()

    async def forgot_password(self, request_in: ForgotPasswordRequest) -> ForgotPasswordResponse:
        user = await self.user_service.user_repo.get_by_username(request_in.username)
        if not user:
            raise UserNotFoundException("User does not exist.")

        if request_in.verification_type == "password":
            if not user.password_hash:
                raise IdentityVerificationException("This account has no password, verify by email instead.")
            verified = bool(request_in.password) and verify_password(request_in.password, user.password_hash)
        else:
            if not user.email:
                raise IdentityVerificationException("This account has no email, verify by password instead.")
            verified = bool(request_in.email) and user.email.lower() == request_in.email.lower()

        if not verified:
            raise IdentityVerificationException("Identity could not be verified.")

        reset_token = generate_reset_token()
        await self.store.set(
            RESET_TOKEN_KEY.format(token=reset_token), user.id, ttl=settings.PASSWORD_RESET_TTL_SECONDS
        )
        logger.info(f"Issued password reset token for user {user.id}")
        return ForgotPasswordResponse(reset_token=reset_token)

    async def reset_password(self, reset_in: ResetPasswordRequest) -> None:
        key = RESET_TOKEN_KEY.format(token=reset_in.token)
        user_id = await self.store.get(key)
        if user_id is None:
            raise InvalidResetTokenException("Invalid or expired reset token.")

        await self.user_service.set_password(user_id, reset_in.new_password)
        await self.store.delete(key)
        logger.info(f"Password reset for user {user_id}")

    async def recover_username(self, email: str) -> RecoverUsernameResponse:
        user = await self.user_service.user_repo.get_by_email(email)
        if not user:
            raise UserNotFoundException("No user is associated with this email.")
        return RecoverUsernameResponse(username=user.username)

    @staticmethod
    def _auth_response(user: User) -> AuthResponse:
        return AuthResponse(user=UserRead.model_validate(user), token=create_access_token(user.id))
