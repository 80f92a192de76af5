class UserException(Exception):
    """Base exception for users application."""


class UserNotFoundException(UserException):
    """Raised when a user is not found."""


class UserAlreadyExistsException(UserException):
    """Raised when the username or email is already taken."""


class UserSelfModificationException(UserException):
    """Raised when an admin tries to disable or delete their own account."""


class InvalidUserLimitsException(UserException):
    """Raised when a limit configuration is inconsistent."""


class InvalidUserUpdateException(UserException):
    """Raised when an admin update is missing the field its action needs."""
