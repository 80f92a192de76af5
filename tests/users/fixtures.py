from datetime import datetime
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException, status
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, require_admin, require_auth, require_user
from app.commons.utils import utcnow
from app.core.security import get_password_hash
from app.users.dashboard import UserDashboardPageService
from app.users.dependencies import get_user_dashboard_page_service, get_user_service
from app.users.enums import LimitPeriod, LimitType, UserRole
from app.users.models import User, UserPermission, UserSettings
from app.users.repositories import UserPermissionRepository, UserRepository, UserSettingsRepository
from app.users.services import UserService

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt is slow on purpose, hash the shared test password once."""
    return get_password_hash(TEST_PASSWORD)


async def _add_user(db_session: AsyncSession, **kwargs) -> User:
    user = User(**kwargs)
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def admin_user(db_session: AsyncSession, password_hash: str) -> User:
    return await _add_user(
        db_session,
        username="admin",
        email="admin@example.com",
        password_hash=password_hash,
        role=UserRole.ADMIN,
        can_share_access_code=True,
    )


@pytest.fixture
async def regular_user(db_session: AsyncSession, password_hash: str) -> User:
    return await _add_user(
        db_session,
        username="alice",
        email="alice@example.com",
        password_hash=password_hash,
        role=UserRole.USER,
    )


@pytest.fixture
async def regular_user_permission(db_session: AsyncSession, regular_user: User) -> UserPermission:
    permission = UserPermission(
        user_id=regular_user.id,
        limit_type=LimitType.TOKEN,
        limit_period=LimitPeriod.MONTHLY,
        token_limit=1000,
        token_used=0,
        last_reset_at=utcnow(),
    )
    db_session.add(permission)
    await db_session.flush()
    await db_session.refresh(permission)
    return permission


@pytest.fixture
async def guest_user(db_session: AsyncSession, regular_user: User) -> User:
    return await _add_user(
        db_session,
        username="guest1",
        role=UserRole.GUEST,
        host_user_id=regular_user.id,
    )


@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db=db_session)


@pytest.fixture
def user_permission_repository(db_session: AsyncSession) -> UserPermissionRepository:
    return UserPermissionRepository(db=db_session)


@pytest.fixture
def user_settings_repository(db_session: AsyncSession) -> UserSettingsRepository:
    return UserSettingsRepository(db=db_session)


@pytest.fixture
def user_repository_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(UserRepository, instance=True)


@pytest.fixture
def user_permission_repository_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(UserPermissionRepository, instance=True)


@pytest.fixture
def user_settings_repository_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(UserSettingsRepository, instance=True)


@pytest.fixture
def user_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(UserService, instance=True)


@pytest.fixture
def user_dashboard_page_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(UserDashboardPageService, instance=True)


def make_user_stub(user_id: int, role: UserRole, **kwargs) -> User:
    """Transient user for route tests, never added to a session."""
    defaults = {
        "id": user_id,
        "username": f"{role.lower()}{user_id}",
        "email": None,
        "role": role,
        "is_active": True,
        "can_share_access_code": role == UserRole.ADMIN,
        "host_user_id": None,
        "access_code_id": None,
        "created_at": datetime(2024, 1, 1),
    }
    defaults.update(kwargs)
    return User(**defaults)


@pytest.fixture
def admin_stub() -> User:
    return make_user_stub(1, UserRole.ADMIN)


@pytest.fixture
def user_stub() -> User:
    return make_user_stub(2, UserRole.USER)


@pytest.fixture
def guest_stub() -> User:
    return make_user_stub(3, UserRole.GUEST, host_user_id=2)


def _authenticate(client, user: User) -> None:
    for dependency in (get_current_user, require_auth):
        client.app.dependency_overrides[dependency] = lambda: user

    async def _require_user():
        if user.role == UserRole.GUEST:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Registered user access required.")
        return user

    async def _require_admin():
        if user.role != UserRole.ADMIN:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required.")
        return user

    client.app.dependency_overrides[require_user] = _require_user
    client.app.dependency_overrides[require_admin] = _require_admin


@pytest.fixture
def as_admin(client, admin_stub: User) -> User:
    _authenticate(client, admin_stub)
    return admin_stub


@pytest.fixture
def as_user(client, user_stub: User) -> User:
    _authenticate(client, user_stub)
    return user_stub


@pytest.fixture
def as_guest(client, guest_stub: User) -> User:
    _authenticate(client, guest_stub)
    return guest_stub


@pytest.fixture
def override_get_user_service(client, user_service_mock: MagicMock):
    client.app.dependency_overrides[get_user_service] = lambda: user_service_mock
    yield
    client.app.dependency_overrides.clear()


@pytest.fixture
def override_get_user_dashboard_page_service(client, user_dashboard_page_service_mock: MagicMock):
    client.app.dependency_overrides[get_user_dashboard_page_service] = lambda: user_dashboard_page_service_mock
    yield
    client.app.dependency_overrides.clear()
