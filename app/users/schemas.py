from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.catalog.schemas import ModelRead
from app.codes.schemas import UserCodes
from app.commons.schemas import ApiSchema
from app.commons.utils import parse_id_list
from app.usage.schemas import UsageStats
from app.users.enums import LimitPeriod, LimitType, Theme, UserAdminAction, UserRole

USERNAME_PATTERN = r"^[a-zA-Z0-9_一-龥]+$"


class UserCreate(BaseModel):
    username: str
    email: str | None = None
    password_hash: str | None = None
    role: UserRole = UserRole.USER
    is_active: bool = True
    can_share_access_code: bool = False
    host_user_id: int | None = None
    access_code_id: int | None = None


class UserRead(ApiSchema):
    id: int
    username: str
    email: str | None = None
    role: UserRole
    is_active: bool
    can_share_access_code: bool
    host_user_id: int | None = None
    created_at: datetime


class UserPermissionRead(ApiSchema):
    user_id: int
    limit_type: LimitType
    limit_period: LimitPeriod
    token_limit: int | None = None
    cost_limit: Decimal | None = None
    token_used: int
    last_reset_at: datetime | None = None
    allowed_model_ids: list[int] | None = None

    @field_validator("allowed_model_ids", mode="before")
    @classmethod
    def split_allowed_model_ids(cls, v):
        return parse_id_list(v)


class UserSettingsRead(ApiSchema):
    default_model_id: int | None = None
    last_used_model_id: int | None = None
    theme: Theme
    language: str
    enable_markdown: bool
    enable_latex: bool
    enable_code_highlight: bool
    message_page_size: int


class UserSettingsUpdate(ApiSchema):
    default_model_id: int | None = None
    theme: Theme | None = None
    language: str | None = Field(default=None, min_length=2, max_length=16)
    enable_markdown: bool | None = None
    enable_latex: bool | None = None
    enable_code_highlight: bool | None = None
    message_page_size: int | None = Field(default=None, ge=10, le=200)


class AdminUserCreate(ApiSchema):
    username: str = Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr | None = None
    password: str = Field(min_length=8, max_length=100)
    role: UserRole = UserRole.USER
    can_share_access_code: bool = False


class AdminUserUpdate(ApiSchema):
    action: UserAdminAction
    is_active: bool | None = None
    can_share_access_code: bool | None = None
    allowed_model_ids: list[int] | None = None

    @field_validator("allowed_model_ids", mode="before")
    @classmethod
    def split_allowed_model_ids(cls, v):
        return parse_id_list(v)


class UserFilter(BaseModel):
    role: UserRole | None = None
    is_active: bool | None = None
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class UserListResponse(ApiSchema):
    users: list[UserRead]
    total: int


class UserLimitsUpdate(ApiSchema):
    limit_type: LimitType
    limit_period: LimitPeriod = LimitPeriod.MONTHLY
    token_limit: int | None = Field(default=None, ge=0)
    cost_limit: Decimal | None = Field(default=None, ge=0)
    reset_usage: bool = False


class PasswordResetByAdmin(ApiSchema):
    new_password: str = Field(min_length=6, max_length=100)


class UserDashboard(ApiSchema):
    user: UserRead
    permission: UserPermissionRead | None = None
    settings: UserSettingsRead
    token_stats: UsageStats
    host_token_stats: UsageStats | None = None
    codes: UserCodes | None = None
    allowed_models: list[ModelRead]
