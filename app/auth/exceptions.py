class AuthException(Exception):
    """Base exception for authentication and registration."""


class AuthenticationException(AuthException):
    """Raised when credentials or a bearer token cannot be verified."""


class InactiveUserException(AuthException):
    """Raised when a disabled account tries to authenticate."""


class RegistrationException(AuthException):
    """Raised when a registration request cannot be honoured."""


class IdentityVerificationException(AuthException):
    """Raised when a password recovery request does not match the account."""


class InvalidResetTokenException(AuthException):
    """Raised when a password reset token is unknown or expired."""
