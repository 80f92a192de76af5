from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.commons.schemas import ApiSchema
from app.users.enums import LimitPeriod, LimitType, UserRole


class UsageCounts(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    is_estimated: bool = False


class UsageRecordCreate(BaseModel):
    user_id: int
    conversation_id: int | None = None
    message_id: int | None = None
    provider_id: int | None = None
    model_id: int | None = None
    model_key: str | None = None
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None
    input_text: str | None = None
    output_text: str | None = None
    is_estimated: bool = False


class TokenUsageRecordRequest(ApiSchema):
    conversation_id: int | None = None
    message_id: int | None = None
    provider_id: int
    model_id: int
    prompt_tokens: int | None = Field(default=None, ge=0)
    completion_tokens: int | None = Field(default=None, ge=0)
    total_tokens: int | None = Field(default=None, ge=0)
    input_text: str | None = None
    output_text: str | None = None


class TokenUsageRead(ApiSchema):
    id: int
    user_id: int
    conversation_id: int | None = None
    message_id: int | None = None
    provider_id: int | None = None
    model_id: int | None = None
    model_key: str | None = None
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    is_estimated: bool
    cost: Decimal
    created_at: datetime


class UsageTotals(ApiSchema):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    total_cost: Decimal = Decimal(0)
    message_count: int = 0


class UsageStats(UsageTotals):
    conversation_count: int = 0
    today_tokens: int = 0
    today_cost: Decimal = Decimal(0)


class LeaderboardEntry(ApiSchema):
    user_id: int
    username: str
    role: UserRole
    total_tokens: int
    total_cost: Decimal
    message_count: int


class ModelUsageStats(ApiSchema):
    model_id: int | None = None
    model_key: str | None = None
    provider_id: int | None = None
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    total_cost: Decimal
    message_count: int


class UserLimitStatus(ApiSchema):
    user_id: int
    username: str
    role: UserRole
    limit_type: LimitType
    limit_period: LimitPeriod
    token_limit: int | None = None
    token_used: int
    cost_limit: Decimal | None = None
    cost_used: Decimal
    last_reset_at: datetime | None = None


class UsageFilter(BaseModel):
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class UserCountStats(ApiSchema):
    total: int = 0
    admin: int = 0
    user: int = 0
    guest: int = 0
    active: int = 0
    inactive: int = 0


class SystemTokenStats(ApiSchema):
    total_tokens: int = 0
    total_cost: Decimal = Decimal(0)
    today_tokens: int = 0
    today_cost: Decimal = Decimal(0)


class CodeUsageStats(ApiSchema):
    total_invite_codes: int = 0
    used_invite_codes: int = 0
    total_access_codes: int = 0
    active_access_codes: int = 0


class CatalogUsageStats(ApiSchema):
    total_models: int = 0
    active_models: int = 0
    total_providers: int = 0
    active_providers: int = 0


class SystemStats(ApiSchema):
    user_count: UserCountStats
    token_usage: SystemTokenStats
    code_usage: CodeUsageStats
    model_usage: CatalogUsageStats


class SystemDashboard(ApiSchema):
    total_users: int
    active_users: int
    total_tokens: int
    total_cost: Decimal
    today_tokens: int
    today_cost: Decimal
    detailed: SystemStats
