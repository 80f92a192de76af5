from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.codes.enums import CodeType
from app.commons.schemas import ApiSchema
from app.commons.utils import parse_id_list


class InviteCodeCreate(BaseModel):
    code: str
    created_by: int
    max_uses: int = 1
    expires_at: datetime | None = None


class AccessCodeCreate(BaseModel):
    code: str
    created_by: int
    allowed_model_ids: str | None = None
    max_uses: int | None = None
    expires_at: datetime | None = None


class CodeCreateRequest(ApiSchema):
    type: CodeType
    max_uses: int | None = Field(default=None, ge=1, le=100)
    # hours until expiry; ignored when expires_at is given
    expires_in: int | None = Field(default=None, ge=1)
    expires_at: datetime | None = None
    allowed_model_ids: list[int] | None = None

    @field_validator("allowed_model_ids", mode="before")
    @classmethod
    def split_allowed_model_ids(cls, v):
        return parse_id_list(v)


class AccessCodeToggle(ApiSchema):
    is_active: bool


class InviteCodeRead(ApiSchema):
    id: int
    code: str
    created_by: int
    max_uses: int
    current_uses: int
    is_used: bool
    used_by: int | None = None
    used_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None


class AccessCodeRead(ApiSchema):
    id: int
    code: str
    created_by: int
    allowed_model_ids: list[int] | None = None
    max_uses: int | None = None
    current_uses: int
    is_active: bool
    expires_at: datetime | None = None
    created_at: datetime | None = None

    @field_validator("allowed_model_ids", mode="before")
    @classmethod
    def split_allowed_model_ids(cls, v):
        return parse_id_list(v)


class UserCodes(ApiSchema):
    invite_codes: list[InviteCodeRead]
    access_codes: list[AccessCodeRead]


class CodeValidation(ApiSchema):
    valid: bool
    error: str | None = None
    is_admin_code: bool = False
    allowed_model_ids: list[int] | None = None
