class UsageException(Exception):
    """Base exception for usage application."""


class UsageTrackingException(UsageException):
    """Raised when a usage record cannot be stored."""


class UsageReferenceNotFoundException(UsageException):
    """Raised when a usage record points at a provider, model, conversation or message that does not exist."""
