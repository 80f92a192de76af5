from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from app.codes.dependencies import get_code_service
from app.codes.models import AccessCode, InviteCode
from app.codes.services import CodeService
from app.commons.utils import utcnow
from app.users.models import User


@pytest.fixture
async def invite_code(db_session: AsyncSession, admin_user: User) -> InviteCode:
    obj = InviteCode(code="fimai_0123456789ABCDEF", created_by=admin_user.id, max_uses=1)
    db_session.add(obj)
    await db_session.flush()
    await db_session.refresh(obj)
    return obj


@pytest.fixture
async def expired_invite_code(db_session: AsyncSession, admin_user: User) -> InviteCode:
    obj = InviteCode(
        code="fimai_EEEEEEEEEEEEEEEE",
        created_by=admin_user.id,
        max_uses=5,
        expires_at=utcnow() - timedelta(hours=1),
    )
    db_session.add(obj)
    await db_session.flush()
    await db_session.refresh(obj)
    return obj


@pytest.fixture
async def access_code(db_session: AsyncSession, regular_user: User) -> AccessCode:
    obj = AccessCode(code="fimai_AAAAAAAAAAAAAAAA", created_by=regular_user.id, max_uses=2)
    db_session.add(obj)
    await db_session.flush()
    await db_session.refresh(obj)
    return obj


@pytest.fixture
def code_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(CodeService, instance=True)


@pytest.fixture
def override_get_code_service(client, code_service_mock: MagicMock):
    client.app.dependency_overrides[get_code_service] = lambda: code_service_mock
    yield
    client.app.dependency_overrides.clear()
