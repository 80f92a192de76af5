import logging
from datetime import datetime
from decimal import Decimal

from app.commons.utils import format_id_list, utcnow
from app.core.security import get_password_hash
from app.settings.enums import SystemSettingKey
from app.settings.services import SystemSettingsService
from app.users.enums import LimitType, UserAdminAction, UserRole
from app.users.exceptions import (
    InvalidUserLimitsException,
    InvalidUserUpdateException,
    UserAlreadyExistsException,
    UserNotFoundException,
    UserSelfModificationException,
)
from app.users.models import User, UserPermission, UserSettings
from app.users.periods import is_period_elapsed
from app.users.repositories import (
    UserPermissionRepository,
    UserRepository,
    UserSettingsRepository,
)
from app.users.schemas import (
    AdminUserUpdate,
    UserCreate,
    UserFilter,
    UserLimitsUpdate,
    UserSettingsUpdate,
)

logger = logging.getLogger(__name__)


class UserService:
    def __init__(
        self,
        user_repo: UserRepository,
        permission_repo: UserPermissionRepository,
        user_settings_repo: UserSettingsRepository,
        settings_service: SystemSettingsService,
    ):
        self.user_repo = user_repo
        self.permission_repo = permission_repo
        self.user_settings_repo = user_settings_repo
        self.settings_service = settings_service

    async def get_user(self, user_id: int) -> User:
        user = await self.user_repo.get(user_id)
        if not user:
            raise UserNotFoundException(f"User with id {user_id} not found.")
        return user

    async def list_users(self, filters: UserFilter) -> tuple[list[User], int]:
        return await self.user_repo.list_filtered(
            role=filters.role,
            is_active=filters.is_active,
            limit=filters.limit,
            offset=filters.offset,
        )

    async def create_account(
        self,
        username: str,
        password: str | None,
        role: UserRole,
        email: str | None = None,
        host_user_id: int | None = None,
        access_code_id: int | None = None,
        can_share_access_code: bool = False,
    ) -> User:
        """
        Creates a user together with its settings row and, for non-admins, its permission row.
        """
        if await self.user_repo.get_by_username_or_email(username, email):
            raise UserAlreadyExistsException("Username or email is already registered.")

        user = await self.user_repo.create(
            UserCreate(
                username=username,
                email=email,
                password_hash=get_password_hash(password) if password else None,
                role=role,
                can_share_access_code=can_share_access_code or role == UserRole.ADMIN,
                host_user_id=host_user_id,
                access_code_id=access_code_id,
            )
        )

        default_model_id = await self.settings_service.get_value(SystemSettingKey.SYSTEM_DEFAULT_MODEL_ID)
        await self.user_settings_repo.create({"user_id": user.id, "default_model_id": default_model_id})

        if role != UserRole.ADMIN:
            await self.permission_repo.create(await self._default_permission_data(user.id))

        await self.user_repo.db.refresh(user)
        logger.info(f"Created {role} account '{username}' (id={user.id})")
        return user

    async def _default_permission_data(self, user_id: int) -> dict:
        limit_type = await self.settings_service.get_value(SystemSettingKey.DEFAULT_LIMIT_TYPE, LimitType.NONE)
        try:
            limit_type = LimitType(limit_type)
        except ValueError:
            logger.warning(f"Unknown default limit type {limit_type!r}; falling back to none.")
            limit_type = LimitType.NONE

        data = {"user_id": user_id, "limit_type": limit_type, "last_reset_at": utcnow()}
        if limit_type == LimitType.TOKEN:
            data["token_limit"] = await self.settings_service.get_int(
                SystemSettingKey.DEFAULT_USER_TOKEN_LIMIT, 100000
            )
        return data

    async def admin_update_user(self, actor: User, user_id: int, update_in: AdminUserUpdate) -> User:
        user = await self.get_user(user_id)

        if update_in.action == UserAdminAction.UPDATE_STATUS:
            if update_in.is_active is None:
                raise InvalidUserUpdateException("isActive is required for updateStatus.")
            if user.id == actor.id and not update_in.is_active:
                raise UserSelfModificationException("You cannot disable your own account.")
            return await self.user_repo.update(db_obj=user, obj_in={"is_active": update_in.is_active})

        if update_in.action == UserAdminAction.UPDATE_ACCESS_CODE_PERMISSION:
            if update_in.can_share_access_code is None:
                raise InvalidUserUpdateException("canShareAccessCode is required for updateAccessCodePermission.")
            return await self.user_repo.update(
                db_obj=user, obj_in={"can_share_access_code": update_in.can_share_access_code}
            )

        permission = await self.get_permission(user.id)
        await self.permission_repo.update(
            db_obj=permission, obj_in={"allowed_model_ids": format_id_list(update_in.allowed_model_ids)}
        )
        await self.user_repo.db.refresh(user)
        return user

    async def delete_user(self, actor: User, user_id: int) -> None:
        if actor.id == user_id:
            raise UserSelfModificationException("You cannot delete your own account.")
        await self.get_user(user_id)
        # usage, conversations, codes and hosted guests go with the user (ON DELETE CASCADE)
        await self.user_repo.delete(pk=user_id)
        logger.info(f"Admin {actor.id} deleted user {user_id}")

    async def set_password(self, user_id: int, new_password: str) -> None:
        user = await self.get_user(user_id)
        await self.user_repo.update(db_obj=user, obj_in={"password_hash": get_password_hash(new_password)})

    # limits

    async def get_permission(self, user_id: int) -> UserPermission:
        """Returns the user's permission row, creating an unlimited one if it is missing."""
        permission = await self.permission_repo.get_by_user_id(user_id)
        if permission is None:
            await self.get_user(user_id)
            permission = await self.permission_repo.create(
                {"user_id": user_id, "limit_type": LimitType.NONE, "last_reset_at": utcnow()}
            )
        return permission

    async def update_limits(self, user_id: int, limits_in: UserLimitsUpdate) -> UserPermission:
        permission = await self.get_permission(user_id)
        data = {"limit_type": limits_in.limit_type, "limit_period": limits_in.limit_period}

        if limits_in.limit_type == LimitType.TOKEN:
            if limits_in.token_limit is None:
                raise InvalidUserLimitsException("tokenLimit is required for token limits.")
            data.update(token_limit=limits_in.token_limit, cost_limit=None)
        elif limits_in.limit_type == LimitType.COST:
            if limits_in.cost_limit is None:
                raise InvalidUserLimitsException("costLimit is required for cost limits.")
            data.update(cost_limit=limits_in.cost_limit, token_limit=None)
        else:
            data.update(token_limit=None, cost_limit=None)

        if limits_in.reset_usage:
            data.update(token_used=0, last_reset_at=utcnow())

        logger.info(f"Updating limits for user {user_id}: {data}")
        return await self.permission_repo.update(db_obj=permission, obj_in=data)

    async def reset_usage_if_period_elapsed(
        self, permission: UserPermission | None, now: datetime | None = None
    ) -> bool:
        """
        Zeroes the running counter when the limit period rolled over since the last reset.
        Resets are lazy: they only happen when a permission check or a usage record runs.
        """
        if permission is None or permission.limit_type == LimitType.NONE:
            return False

        now = now or utcnow()
        if not is_period_elapsed(permission.last_reset_at, permission.limit_period, now):
            return False

        await self.permission_repo.update(db_obj=permission, obj_in={"token_used": 0, "last_reset_at": now})
        logger.info(f"Reset {permission.limit_period} usage for user {permission.user_id}")
        return True

    @staticmethod
    def is_token_limit_reached(permission: UserPermission) -> bool:
        return (
            permission.limit_type == LimitType.TOKEN
            and permission.token_limit is not None
            and permission.token_used >= permission.token_limit
        )

    @staticmethod
    def is_cost_limit_reached(permission: UserPermission, cost_used: Decimal) -> bool:
        return (
            permission.limit_type == LimitType.COST
            and permission.cost_limit is not None
            and cost_used >= Decimal(str(permission.cost_limit))
        )

    async def list_limited_users(self) -> list[UserPermission]:
        return await self.permission_repo.list_with_limits()

    # settings

    async def get_settings(self, user_id: int) -> UserSettings:
        user_settings = await self.user_settings_repo.get_by_user_id(user_id)
        if user_settings is None:
            await self.get_user(user_id)
            user_settings = await self.user_settings_repo.create({"user_id": user_id})
        return user_settings

    async def update_settings(self, user_id: int, settings_in: UserSettingsUpdate) -> UserSettings:
        user_settings = await self.get_settings(user_id)
        return await self.user_settings_repo.update(db_obj=user_settings, obj_in=settings_in)

    async def set_last_used_model(self, user_id: int, model_id: int) -> None:
        if not await self.settings_service.get_bool(SystemSettingKey.ENABLE_LAST_USED_MODEL, True):
            return
        user_settings = await self.get_settings(user_id)
        if user_settings.last_used_model_id != model_id:
            await self.user_settings_repo.update(db_obj=user_settings, obj_in={"last_used_model_id": model_id})
