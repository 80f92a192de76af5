import logging
from datetime import datetime, timedelta

from app.codes.enums import CodeType
from app.codes.exceptions import (
    CodeNotFoundException,
    CodePermissionDeniedException,
    CodeQuotaExceededException,
    InvalidCodeException,
)
from app.codes.models import AccessCode, InviteCode
from app.codes.repositories import AccessCodeRepository, InviteCodeRepository
from app.codes.schemas import (
    AccessCodeCreate,
    CodeCreateRequest,
    CodeValidation,
    InviteCodeCreate,
    UserCodes,
)
from app.codes.utils import generate_code, is_admin_invite_code, is_valid_code_format
from app.commons.utils import format_id_list, parse_id_list, utcnow
from app.settings.enums import SystemSettingKey
from app.settings.services import SystemSettingsService
from app.users.enums import UserAction, UserRole
from app.users.models import User
from app.users.permissions import has_action_permission
from app.users.repositories import UserRepository

logger = logging.getLogger(__name__)


class CodeService:
    def __init__(
        self,
        invite_repo: InviteCodeRepository,
        access_repo: AccessCodeRepository,
        user_repo: UserRepository,
        settings_service: SystemSettingsService,
    ):
        self.invite_repo = invite_repo
        self.access_repo = access_repo
        self.user_repo = user_repo
        self.settings_service = settings_service

    # validation

    async def validate_invite_code(self, code: str) -> CodeValidation:
        if is_admin_invite_code(code):
            if await self.user_repo.admin_exists():
                return CodeValidation(valid=False, error="Admin invite code has already been used.")
            return CodeValidation(valid=True, is_admin_code=True)
        if not is_valid_code_format(code):
            return CodeValidation(valid=False, error="Invalid code format.")

        invite_code = await self.invite_repo.get_by_code(code)
        error = self._invite_code_error(invite_code)
        return CodeValidation(valid=error is None, error=error)

    async def validate_access_code(self, code: str) -> CodeValidation:
        if not is_valid_code_format(code):
            return CodeValidation(valid=False, error="Invalid code format.")
        access_code = await self.access_repo.get_by_code(code)
        error = self._access_code_error(access_code)
        if error:
            return CodeValidation(valid=False, error=error)
        return CodeValidation(valid=True, allowed_model_ids=parse_id_list(access_code.allowed_model_ids))

    async def validate(self, code_type: CodeType, code: str) -> CodeValidation:
        if code_type == CodeType.INVITE:
            return await self.validate_invite_code(code)
        return await self.validate_access_code(code)

    async def get_valid_invite_code(self, code: str) -> InviteCode | None:
        """
        Returns the invite code row to consume, or None for the admin bootstrap code.
        Raises InvalidCodeException when the code cannot be used.
        """
        validation = await self.validate_invite_code(code)
        if not validation.valid:
            raise InvalidCodeException(validation.error)
        if validation.is_admin_code:
            return None
        return await self.invite_repo.get_by_code(code)

    async def get_valid_access_code(self, code: str) -> AccessCode:
        access_code = await self.access_repo.get_by_code(code)
        error = self._access_code_error(access_code)
        if error:
            raise InvalidCodeException(error)
        return access_code

    @staticmethod
    def _invite_code_error(invite_code: InviteCode | None) -> str | None:
        if not invite_code:
            return "Invite code does not exist."
        if invite_code.is_used and invite_code.current_uses >= invite_code.max_uses:
            return "Invite code has been used up."
        if invite_code.expires_at and invite_code.expires_at < utcnow():
            return "Invite code has expired."
        return None

    @staticmethod
    def _access_code_error(access_code: AccessCode | None) -> str | None:
        if not access_code:
            return "Access code does not exist."
        if not access_code.is_active:
            return "Access code is disabled."
        if not access_code.creator or not access_code.creator.is_active:
            return "Access code creator is disabled."
        if access_code.expires_at and access_code.expires_at < utcnow():
            return "Access code has expired."
        if access_code.max_uses and access_code.current_uses >= access_code.max_uses:
            return "Access code has reached its usage limit."
        return None

    # consumption

    async def consume_invite_code(self, invite_code: InviteCode | None, user_id: int) -> None:
        if invite_code is None:
            return
        await self.invite_repo.mark_used(invite_code, user_id)
        logger.info(f"Invite code {invite_code.id} consumed by user {user_id}")

    async def consume_access_code(self, access_code: AccessCode) -> None:
        await self.access_repo.increment_uses(access_code)

    async def get_access_code(self, code_id: int) -> AccessCode:
        access_code = await self.access_repo.get(code_id)
        if not access_code:
            raise CodeNotFoundException(f"Access code with id {code_id} not found.")
        return access_code

    async def get_invite_code(self, code_id: int) -> InviteCode:
        invite_code = await self.invite_repo.get(code_id)
        if not invite_code:
            raise CodeNotFoundException(f"Invite code with id {code_id} not found.")
        return invite_code

    # creation

    async def create_code(self, creator: User, code_in: CodeCreateRequest) -> InviteCode | AccessCode:
        expires_at = self._resolve_expiry(code_in)
        if code_in.type == CodeType.INVITE:
            return await self.create_invite_code(creator, max_uses=code_in.max_uses, expires_at=expires_at)
        return await self.create_access_code(
            creator,
            allowed_model_ids=code_in.allowed_model_ids,
            max_uses=code_in.max_uses,
            expires_at=expires_at,
        )

    async def create_invite_code(
        self, creator: User, max_uses: int | None = None, expires_at: datetime | None = None
    ) -> InviteCode:
        if not has_action_permission(creator, UserAction.CREATE_INVITE):
            raise CodePermissionDeniedException("No permission to create invite codes.")

        if creator.role != UserRole.ADMIN:
            limit = await self.settings_service.get_int(SystemSettingKey.USER_MAX_INVITE_CODES, 1)
            if await self.invite_repo.count_by_creator(creator.id) >= limit:
                raise CodeQuotaExceededException(f"You can create at most {limit} invite codes.")

        if max_uses is None:
            max_uses = await self.settings_service.get_int(SystemSettingKey.INVITE_CODE_MAX_USES, 1)

        invite_code = await self.invite_repo.create(
            InviteCodeCreate(code=generate_code(), created_by=creator.id, max_uses=max_uses, expires_at=expires_at)
        )
        logger.info(f"User {creator.id} created invite code {invite_code.id}")
        return invite_code

    async def create_access_code(
        self,
        creator: User,
        allowed_model_ids: list[int] | str | None = None,
        max_uses: int | None = None,
        expires_at: datetime | None = None,
    ) -> AccessCode:
        if not has_action_permission(creator, UserAction.CREATE_ACCESS):
            raise CodePermissionDeniedException("No permission to create access codes.")

        limit = await self.settings_service.get_int(SystemSettingKey.USER_MAX_ACCESS_CODES, 10)
        if creator.role != UserRole.ADMIN and await self.access_repo.count_by_creator(creator.id) >= limit:
            raise CodeQuotaExceededException(f"You can create at most {limit} access codes.")

        max_users = await self.settings_service.get_int(SystemSettingKey.ACCESS_CODE_MAX_USERS, 10)
        requested = max_uses or max_users
        if requested > max_users:
            raise CodeQuotaExceededException(f"An access code can serve at most {max_users} users.")

        access_code = await self.access_repo.create(
            AccessCodeCreate(
                code=generate_code(),
                created_by=creator.id,
                allowed_model_ids=format_id_list(parse_id_list(allowed_model_ids)),
                max_uses=requested,
                expires_at=expires_at,
            )
        )
        logger.info(f"User {creator.id} created access code {access_code.id}")
        return access_code

    @staticmethod
    def _resolve_expiry(code_in: CodeCreateRequest) -> datetime | None:
        if code_in.expires_at:
            return code_in.expires_at.replace(tzinfo=None)
        if code_in.expires_in:
            return utcnow() + timedelta(hours=code_in.expires_in)
        return None

    # management

    async def list_user_codes(self, user_id: int) -> UserCodes:
        return UserCodes(
            invite_codes=await self.invite_repo.list_by_creator(user_id),
            access_codes=await self.access_repo.list_by_creator(user_id),
        )

    async def list_all_codes(self) -> UserCodes:
        return UserCodes(
            invite_codes=await self.invite_repo.list_all(),
            access_codes=await self.access_repo.list_all(),
        )

    async def set_access_code_active(self, code_id: int, actor: User, is_active: bool) -> AccessCode:
        access_code = await self.get_access_code(code_id)
        self._ensure_can_manage(access_code.created_by, actor)
        return await self.access_repo.update(db_obj=access_code, obj_in={"is_active": is_active})

    async def delete_code(self, code_type: CodeType, code_id: int, actor: User) -> None:
        if code_type == CodeType.INVITE:
            code = await self.get_invite_code(code_id)
            self._ensure_can_manage(code.created_by, actor)
            await self.invite_repo.delete(pk=code_id)
        else:
            code = await self.get_access_code(code_id)
            self._ensure_can_manage(code.created_by, actor)
            await self.access_repo.delete(pk=code_id)
        logger.info(f"User {actor.id} deleted {code_type} code {code_id}")

    @staticmethod
    def _ensure_can_manage(created_by: int, actor: User) -> None:
        if actor.role != UserRole.ADMIN and created_by != actor.id:
            raise CodePermissionDeniedException("You can only manage codes you created.")
