from enum import StrEnum


class UserRole(StrEnum):
    ADMIN = "ADMIN"
    USER = "USER"
    GUEST = "GUEST"


class LimitType(StrEnum):
    NONE = "none"
    TOKEN = "token"
    COST = "cost"


class LimitPeriod(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class UserAdminAction(StrEnum):
    UPDATE_STATUS = "updateStatus"
    UPDATE_ACCESS_CODE_PERMISSION = "updateAccessCodePermission"
    UPDATE_PERMISSIONS = "updatePermissions"


class UserAction(StrEnum):
    CHAT = "chat"
    CREATE_INVITE = "create_invite"
    CREATE_ACCESS = "create_access"
    ADMIN_PANEL = "admin_panel"
