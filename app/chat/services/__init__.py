from .permissions import ChatPermissionService
from .relay import ChatRelayService

__all__ = [
    "ChatPermissionService",
    "ChatRelayService",
]
