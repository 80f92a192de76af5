from app.users.enums import UserAction, UserRole
from app.users.models import User


def has_action_permission(user: User | None, action: UserAction) -> bool:
    """Role based checks for actions that do not depend on limits or models."""
    if user is None or not user.is_active:
        return False

    if action == UserAction.CHAT:
        return True
    if action == UserAction.CREATE_INVITE:
        return user.role in (UserRole.ADMIN, UserRole.USER)
    if action == UserAction.CREATE_ACCESS:
        return user.role == UserRole.ADMIN or (user.role == UserRole.USER and user.can_share_access_code)
    if action == UserAction.ADMIN_PANEL:
        return user.role == UserRole.ADMIN
    return False
