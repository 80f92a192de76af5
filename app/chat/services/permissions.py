import logging

from app.catalog.services import CatalogService
from app.chat.schemas import ChatPermissionCheck
from app.codes.exceptions import CodeNotFoundException
from app.codes.services import CodeService
from app.commons.utils import parse_id_list
from app.usage.services import UsageService
from app.users.enums import LimitType, UserRole
from app.users.models import User
from app.users.services import UserService

logger = logging.getLogger(__name__)


class ChatPermissionService:
    """
    Decides, before a request is relayed, whether a user may chat with a model.
    The check is not predictive: a request that will overshoot the limit is still
    allowed as long as the limit has not been reached yet.
    """

    def __init__(
        self,
        user_service: UserService,
        catalog_service: CatalogService,
        code_service: CodeService,
        usage_service: UsageService,
    ):
        self.user_service = user_service
        self.catalog_service = catalog_service
        self.code_service = code_service
        self.usage_service = usage_service

    async def check(self, user_id: int, model_id: int | None = None) -> ChatPermissionCheck:
        try:
            return await self._check(user_id, model_id)
        except Exception as e:
            logger.error(f"Permission check failed for user {user_id}: {e}", exc_info=True)
            return ChatPermissionCheck(can_chat=False, can_save_to_database=False, error="Permission check failed")

    async def _check(self, user_id: int, model_id: int | None) -> ChatPermissionCheck:
        user = await self.user_service.user_repo.get(user_id)
        if not user:
            return ChatPermissionCheck(can_chat=False, can_save_to_database=False, error="User not found")

        can_save = user.role != UserRole.GUEST
        if not user.is_active:
            return ChatPermissionCheck(can_chat=False, can_save_to_database=can_save, error="User is disabled")

        allowed_models = await self.get_allowed_model_ids(user)
        if model_id is not None and model_id not in allowed_models:
            return self._deny(can_save, allowed_models, "No permission to use this model")

        if user.role != UserRole.ADMIN:
            error = await self._limit_error(user)
            if error:
                return self._deny(can_save, allowed_models, error)

        return ChatPermissionCheck(can_chat=True, can_save_to_database=can_save, allowed_models=allowed_models)

    async def _limit_error(self, user: User) -> str | None:
        permission = await self.user_service.permission_repo.get_by_user_id(user.id)
        if permission is None or permission.limit_type == LimitType.NONE:
            return None

        await self.user_service.reset_usage_if_period_elapsed(permission)

        if self.user_service.is_token_limit_reached(permission):
            return "Token limit exceeded"

        if permission.limit_type == LimitType.COST:
            cost_used = await self.usage_service.get_cost_since(user.id, permission.last_reset_at)
            if self.user_service.is_cost_limit_reached(permission, cost_used):
                return "Cost limit exceeded"
        return None

    async def get_allowed_model_ids(self, user: User) -> list[int]:
        """
        Enabled models of enabled providers, narrowed by the user's allow-list.
        Guests inherit their access code's list and lose everything when their host is disabled.
        """
        enabled = await self.catalog_service.list_enabled_model_ids()
        if user.role == UserRole.ADMIN:
            return enabled

        if user.role == UserRole.GUEST:
            host = user.host_user
            if host is None or not host.is_active:
                return []
            allow_list = await self._access_code_allow_list(user)
        else:
            permission = await self.user_service.get_permission(user.id)
            allow_list = parse_id_list(permission.allowed_model_ids)

        if allow_list is None:
            return enabled
        enabled_ids = set(enabled)
        return [model_id for model_id in allow_list if model_id in enabled_ids]

    async def _access_code_allow_list(self, user: User) -> list[int] | None:
        if user.access_code_id is None:
            return None
        try:
            access_code = await self.code_service.get_access_code(user.access_code_id)
        except CodeNotFoundException:
            # a deleted code revokes the guest's models
            return []
        return parse_id_list(access_code.allowed_model_ids)

    @staticmethod
    def _deny(can_save: bool, allowed_models: list[int], error: str) -> ChatPermissionCheck:
        return ChatPermissionCheck(
            can_chat=False, can_save_to_database=can_save, allowed_models=allowed_models, error=error
        )
