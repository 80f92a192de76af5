import logging

from app.core.cache import KeyValueStore

logger = logging.getLogger(__name__)


class RateLimitExceededException(Exception):
    """Raised when a client exceeds the allowed number of requests in the current window."""


class RateLimiter:
    """Fixed-window request counter backed by a KeyValueStore."""

    def __init__(self, store: KeyValueStore, max_requests: int, window_seconds: int):
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    async def hit(self, client_key: str, scope: str = "global") -> int:
        key = f"ratelimit:{scope}:{client_key}"
        count = await self.store.incr(key)
        if count == 1:
            await self.store.expire(key, self.window_seconds)

        if count > self.max_requests:
            logger.warning(f"Rate limit exceeded for {key} ({count}/{self.max_requests})")
            raise RateLimitExceededException(
                f"Too many requests. Limit is {self.max_requests} per {self.window_seconds} seconds."
            )
        return count
