from app.settings.enums import SettingType, SystemSettingKey

# key -> (default value, type, description)
DEFAULT_SYSTEM_SETTINGS: dict[SystemSettingKey, tuple[object, SettingType, str]] = {
    SystemSettingKey.USER_MAX_INVITE_CODES: (1, SettingType.NUMBER, "Invite codes a regular user may create"),
    SystemSettingKey.USER_MAX_ACCESS_CODES: (10, SettingType.NUMBER, "Access codes a user may create"),
    SystemSettingKey.ACCESS_CODE_MAX_USERS: (10, SettingType.NUMBER, "Maximum guests per access code"),
    SystemSettingKey.INVITE_CODE_MAX_USES: (1, SettingType.NUMBER, "Default uses per invite code"),
    SystemSettingKey.ENABLE_GUEST_REGISTRATION: (True, SettingType.BOOLEAN, "Allow registration with access codes"),
    SystemSettingKey.DEFAULT_USER_TOKEN_LIMIT: (100000, SettingType.NUMBER, "Token limit given to new users"),
    SystemSettingKey.DEFAULT_LIMIT_TYPE: ("token", SettingType.STRING, "Limit type given to new users"),
    SystemSettingKey.ENABLE_TOKEN_TRACKING: (True, SettingType.BOOLEAN, "Record token usage"),
    SystemSettingKey.TITLE_GENERATION_MODEL_ID: (None, SettingType.NUMBER, "Model used to title conversations"),
    SystemSettingKey.SYSTEM_DEFAULT_MODEL_ID: (None, SettingType.NUMBER, "Model preselected for new users"),
    SystemSettingKey.ENABLE_LAST_USED_MODEL: (True, SettingType.BOOLEAN, "Remember each user's last used model"),
}
