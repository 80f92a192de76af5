from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from app.auth import dependencies
from app.auth.exceptions import AuthenticationException, InactiveUserException
from app.users.enums import UserRole
from tests.users.fixtures import make_user_stub


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


async def test_get_auth_service__delegates_to_factory(db_session_mock, mocker, auth_service_mock):
    build_mock = mocker.patch(
        "app.auth.dependencies.build_auth_service",
        new=AsyncMock(return_value=auth_service_mock),
    )

    service = await dependencies.get_auth_service(db_session_mock)

    assert service is auth_service_mock
    build_mock.assert_awaited_once_with(db_session_mock)


async def test_get_current_user__missing_credentials_is_401(auth_service_mock):
    with pytest.raises(HTTPException) as exc_info:
        await dependencies.get_current_user(None, auth_service_mock)

    assert exc_info.value.status_code == 401
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
    auth_service_mock.get_user_from_token.assert_not_called()


async def test_get_current_user__invalid_token_is_401(auth_service_mock):
    auth_service_mock.get_user_from_token = AsyncMock(side_effect=AuthenticationException("Invalid or expired token"))

    with pytest.raises(HTTPException) as exc_info:
        await dependencies.get_current_user(_bearer("bad"), auth_service_mock)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Invalid or expired token"


async def test_get_current_user__disabled_account_is_403(auth_service_mock):
    auth_service_mock.get_user_from_token = AsyncMock(side_effect=InactiveUserException("Account is disabled."))

    with pytest.raises(HTTPException) as exc_info:
        await dependencies.get_current_user(_bearer("token"), auth_service_mock)

    assert exc_info.value.status_code == 403


async def test_get_current_user__returns_user(auth_service_mock):
    user = make_user_stub(2, UserRole.USER)
    auth_service_mock.get_user_from_token = AsyncMock(return_value=user)

    assert await dependencies.get_current_user(_bearer("token"), auth_service_mock) is user
    auth_service_mock.get_user_from_token.assert_awaited_once_with("token")


@pytest.mark.parametrize(
    "role, allowed",
    [
        (UserRole.ADMIN, True),
        (UserRole.USER, True),
        (UserRole.GUEST, False),
    ],
)
async def test_require_user__rejects_guests(role: UserRole, allowed: bool):
    user = make_user_stub(1, role)
    if allowed:
        assert await dependencies.require_user(user) is user
    else:
        with pytest.raises(HTTPException) as exc_info:
            await dependencies.require_user(user)
        assert exc_info.value.status_code == 403


async def test_require_admin__rejects_non_admins():
    with pytest.raises(HTTPException) as exc_info:
        await dependencies.require_admin(make_user_stub(2, UserRole.USER))

    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "Admin access required."
