from collections.abc import AsyncGenerator, AsyncIterator, Generator
from contextlib import asynccontextmanager
from unittest.mock import create_autospec

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.commons.dependencies import get_db
from app.commons.factories import build_rate_limit_store, build_reset_token_store
from app.core.db import Base, DatabaseSessionManager
from app.main import app

pytest_plugins = [
    "tests.users.fixtures",
    "tests.settings.fixtures",
    "tests.catalog.fixtures",
    "tests.codes.fixtures",
    "tests.auth.fixtures",
    "tests.usage.fixtures",
    "tests.conversations.fixtures",
    "tests.chat.fixtures",
]


@pytest.fixture(scope="session")
async def engine() -> AsyncGenerator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    await engine.dispose()


@pytest.fixture(scope="session", autouse=True)
async def setup_db(engine: AsyncEngine) -> AsyncGenerator[None]:
    """
    Create database tables before tests run, and drop them after.
    """
    # Import all models here so SQLAlchemy registers them with Base.metadata
    from app.catalog import models as catalog_models  # noqa
    from app.codes import models as codes_models  # noqa
    from app.conversations import models as conversations_models  # noqa
    from app.settings import models as settings_models  # noqa
    from app.usage import models as usage_models  # noqa
    from app.users import models as users_models  # noqa

    async with engine.begin() as conn:
        await conn.execute(text("PRAGMA foreign_keys=ON"))
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="session")
def sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Async sessionmaker bound to the in-memory test engine."""
    return async_sessionmaker(engine, autocommit=False, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db_session(
    sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Provides a transactional session for each test function, rolling back at the end."""

    async with sessionmaker() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest.fixture(scope="function")
def db_session_mock() -> AsyncSession:
    """Lightweight AsyncSession mock for wiring/unit tests (deps/factories)."""
    return create_autospec(AsyncSession, instance=True)


@pytest.fixture(scope="function")
def db_sessionmanager_real(db_session: AsyncSession, mocker) -> DatabaseSessionManager:
    """DatabaseSessionManager mock whose .session() yields the test's real session without committing."""

    db = mocker.create_autospec(DatabaseSessionManager, instance=True)

    @asynccontextmanager
    async def _session() -> AsyncIterator[AsyncSession]:
        yield db_session

    db.session = _session  # type: ignore[method-assign]
    return db


@pytest.fixture(autouse=True)
async def _clear_key_value_stores():
    build_reset_token_store.cache_clear()
    build_rate_limit_store.cache_clear()
    yield
    build_reset_token_store.cache_clear()
    build_rate_limit_store.cache_clear()


@pytest.fixture(scope="function")
def client(db_session_mock: AsyncSession) -> Generator[TestClient]:
    """
    Provides a TestClient with the database dependency overridden.
    """

    # lifespan validates configuration and seeds the database; requests do not need it
    @asynccontextmanager
    async def mock_lifespan(_app):  # noqa: ANN001
        yield

    app.router.lifespan_context = mock_lifespan

    async def get_db_override() -> AsyncGenerator[AsyncSession]:
        yield db_session_mock

    app.dependency_overrides[get_db] = get_db_override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
