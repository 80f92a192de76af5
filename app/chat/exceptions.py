class ChatException(Exception):
    """Base exception for chat application."""


class ChatPermissionDeniedException(ChatException):
    """Raised when the permission gate refuses a chat request."""
