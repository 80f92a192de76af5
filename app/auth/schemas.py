from typing import Literal

from pydantic import AliasChoices, EmailStr, Field, model_validator

from app.commons.schemas import ApiSchema
from app.users.schemas import USERNAME_PATTERN, UserRead


class RegisterRequest(ApiSchema):
    username: str = Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=8, max_length=100)
    invite_code: str | None = None
    access_code: str | None = None

    @model_validator(mode="after")
    def check_codes(self) -> "RegisterRequest":
        if not self.invite_code and not self.access_code:
            raise ValueError("Either an invite code or an access code is required.")
        if self.invite_code and not self.password:
            raise ValueError("Password is required for invite code registration.")
        return self


class LoginRequest(ApiSchema):
    username: str = Field(min_length=1)
    password: str | None = None


class AuthResponse(ApiSchema):
    user: UserRead
    token: str


class PermissionsResponse(ApiSchema):
    can_chat: bool
    can_create_invite: bool
    can_create_access: bool
    can_access_admin: bool
    allowed_models: list[int]


class AdminExistsResponse(ApiSchema):
    admin_exists: bool


class ForgotPasswordRequest(ApiSchema):
    username: str = Field(min_length=1)
    verification_type: Literal["password", "email"] = "password"
    password: str | None = None
    email: EmailStr | None = None


class ForgotPasswordResponse(ApiSchema):
    success: bool = True
    reset_token: str
    message: str = "Identity verified, please set a new password."


class ResetPasswordRequest(ApiSchema):
    token: str = Field(min_length=1, validation_alias=AliasChoices("token", "resetToken"))
    new_password: str = Field(min_length=6, max_length=100)


class RecoverUsernameRequest(ApiSchema):
    email: EmailStr


class RecoverUsernameResponse(ApiSchema):
    success: bool = True
    username: str
