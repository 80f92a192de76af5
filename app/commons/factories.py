from async_lru import alru_cache

from app.core.cache import InMemoryStore
from app.core.config import settings
from app.core.rate_limit import RateLimiter


def _build_store() -> InMemoryStore:
    return InMemoryStore(
        max_size=settings.CACHE_MAX_SIZE,
        default_ttl=settings.CACHE_DEFAULT_TTL_SECONDS,
    )


# Separate stores so that a burst of rate-limit keys cannot evict pending reset tokens.
@alru_cache
async def build_reset_token_store() -> InMemoryStore:
    return _build_store()


@alru_cache
async def build_rate_limit_store() -> InMemoryStore:
    return _build_store()


async def build_rate_limiter() -> RateLimiter:
    return RateLimiter(
        store=await build_rate_limit_store(),
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )
