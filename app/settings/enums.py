from enum import StrEnum


class SettingType(StrEnum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"


class SystemSettingKey(StrEnum):
    USER_MAX_INVITE_CODES = "user_max_invite_codes"
    USER_MAX_ACCESS_CODES = "user_max_access_codes"
    ACCESS_CODE_MAX_USERS = "access_code_max_users"
    INVITE_CODE_MAX_USES = "invite_code_max_uses"
    ENABLE_GUEST_REGISTRATION = "enable_guest_registration"
    DEFAULT_USER_TOKEN_LIMIT = "default_user_token_limit"
    DEFAULT_LIMIT_TYPE = "default_limit_type"
    ENABLE_TOKEN_TRACKING = "enable_token_tracking"
    TITLE_GENERATION_MODEL_ID = "title_generation_model_id"
    SYSTEM_DEFAULT_MODEL_ID = "system_default_model_id"
    ENABLE_LAST_USED_MODEL = "enable_last_used_model"
