class CodesException(Exception):
    """Base exception for codes application."""


class CodeNotFoundException(CodesException):
    """Raised when an invite or access code is not found."""


class InvalidCodeException(CodesException):
    """Raised when a code is missing, exhausted, expired or disabled."""


class CodePermissionDeniedException(CodesException):
    """Raised when the user may not create or manage the code."""


class CodeQuotaExceededException(CodesException):
    """Raised when the user already owns the maximum number of codes or asks for too many uses."""
