from typing import AsyncIterator

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.commons.factories import build_rate_limiter
from app.core.db import sessionmanager
from app.core.rate_limit import RateLimitExceededException


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency that provides a transactional database session.
    """
    async with sessionmanager.session() as session:
        yield session


async def enforce_rate_limit(request: Request) -> None:
    """Counts the request against the caller's window, keyed by remote address and route."""
    limiter = await build_rate_limiter()
    client_key = request.client.host if request.client else "anonymous"
    try:
        await limiter.hit(client_key, scope=request.url.path)
    except RateLimitExceededException as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e))
