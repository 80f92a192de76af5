class ConversationsException(Exception):
    """Base exception for conversations application."""


class ConversationNotFoundException(ConversationsException):
    pass


class MessageNotFoundException(ConversationsException):
    pass


class GuestHistoryNotAllowedException(ConversationsException):
    """Guests chat without persisted history."""
