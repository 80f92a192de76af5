from app.catalog.services import CatalogService
from app.chat.services import ChatPermissionService
from app.codes.services import CodeService
from app.usage.services import UsageService
from app.users.enums import UserAction, UserRole
from app.users.models import User
from app.users.permissions import has_action_permission
from app.users.schemas import UserDashboard, UserPermissionRead, UserRead, UserSettingsRead
from app.users.services import UserService


class UserDashboardPageService:
    def __init__(
        self,
        user_service: UserService,
        usage_service: UsageService,
        code_service: CodeService,
        catalog_service: CatalogService,
        permission_service: ChatPermissionService,
    ):
        self.user_service = user_service
        self.usage_service = usage_service
        self.code_service = code_service
        self.catalog_service = catalog_service
        self.permission_service = permission_service

    async def get_dashboard(self, user: User) -> UserDashboard:
        permission = None
        if user.role != UserRole.ADMIN:
            permission = UserPermissionRead.model_validate(await self.user_service.get_permission(user.id))

        host_token_stats = None
        if user.role == UserRole.GUEST and user.host_user_id:
            host_token_stats = await self.usage_service.get_user_stats(user.host_user_id)

        codes = None
        if has_action_permission(user, UserAction.CREATE_INVITE):
            codes = await self.code_service.list_user_codes(user.id)

        allowed_ids = await self.permission_service.get_allowed_model_ids(user)
        allowed_models = await self.catalog_service.list_enabled_models(ids=allowed_ids) if allowed_ids else []

        return UserDashboard(
            user=UserRead.model_validate(user),
            permission=permission,
            settings=UserSettingsRead.model_validate(await self.user_service.get_settings(user.id)),
            token_stats=await self.usage_service.get_user_stats(user.id),
            host_token_stats=host_token_stats,
            codes=codes,
            allowed_models=allowed_models,
        )
