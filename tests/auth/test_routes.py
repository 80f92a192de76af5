from unittest.mock import AsyncMock

import pytest

from app.auth.exceptions import (
    AuthenticationException,
    IdentityVerificationException,
    InactiveUserException,
    InvalidResetTokenException,
    RegistrationException,
)
from app.auth.schemas import AuthResponse, ForgotPasswordResponse, RecoverUsernameResponse
from app.users.enums import UserRole
from app.users.exceptions import UserAlreadyExistsException, UserNotFoundException
from app.users.schemas import UserRead
from tests.users.fixtures import make_user_stub


def make_auth_response(role: UserRole = UserRole.USER) -> AuthResponse:
    return AuthResponse(user=UserRead.model_validate(make_user_stub(5, role)), token="jwt-token")


@pytest.mark.usefixtures("override_get_auth_service")
class TestAuthRoutes:
    def test_register__returns_201_with_token(self, client, auth_service_mock):
        """POST /api/auth/register with an invite code.

        Asserts:
            - HTTP 201 with user and token
            - the body reaches the service with snake_case fields
        """
        auth_service_mock.register = AsyncMock(return_value=make_auth_response())

        response = client.post(
            "/api/auth/register",
            json={"username": "bob", "password": "bob-password", "inviteCode": "fimai_0123456789ABCDEF"},
        )

        assert response.status_code == 201
        assert response.json()["token"] == "jwt-token"
        assert response.json()["user"]["role"] == "USER"
        register_in = auth_service_mock.register.call_args.args[0]
        assert register_in.invite_code == "fimai_0123456789ABCDEF"

    def test_register__without_code_is_400(self, client, auth_service_mock):
        response = client.post("/api/auth/register", json={"username": "bob", "password": "bob-password"})

        assert response.status_code == 400
        auth_service_mock.register.assert_not_called()

    def test_register__invite_without_password_is_400(self, client, auth_service_mock):
        response = client.post("/api/auth/register", json={"username": "bob", "inviteCode": "fimai_0123456789ABCDEF"})

        assert response.status_code == 400
        auth_service_mock.register.assert_not_called()

    def test_register__registration_error_is_400(self, client, auth_service_mock):
        auth_service_mock.register = AsyncMock(side_effect=RegistrationException("Guest registration is disabled."))

        response = client.post("/api/auth/register", json={"username": "bob", "accessCode": "fimai_AAAAAAAAAAAAAAAA"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Guest registration is disabled."

    def test_register__duplicate_is_409(self, client, auth_service_mock):
        auth_service_mock.register = AsyncMock(side_effect=UserAlreadyExistsException("Taken"))

        response = client.post("/api/auth/register", json={"username": "bob", "accessCode": "fimai_AAAAAAAAAAAAAAAA"})

        assert response.status_code == 409

    def test_login__bad_credentials_is_401(self, client, auth_service_mock):
        auth_service_mock.login = AsyncMock(side_effect=AuthenticationException("Invalid username or password."))

        response = client.post("/api/auth/login", json={"username": "bob", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password."

    def test_login__disabled_is_403(self, client, auth_service_mock):
        auth_service_mock.login = AsyncMock(side_effect=InactiveUserException("Account is disabled."))

        response = client.post("/api/auth/login", json={"username": "bob", "password": "bob-password"})

        assert response.status_code == 403

    def test_login__success(self, client, auth_service_mock):
        auth_service_mock.login = AsyncMock(return_value=make_auth_response(UserRole.GUEST))

        response = client.post("/api/auth/login", json={"username": "guest5"})

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "GUEST"

    def test_me__requires_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required."

    def test_me__returns_current_user(self, client, as_user):
        response = client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["id"] == as_user.id
        assert response.json()["canShareAccessCode"] is False

    def test_forgot_password__unknown_user_is_404(self, client, auth_service_mock):
        auth_service_mock.forgot_password = AsyncMock(side_effect=UserNotFoundException("User does not exist."))

        response = client.post("/api/auth/forgot-password", json={"username": "ghost", "password": "x"})

        assert response.status_code == 404

    def test_forgot_password__unverified_is_400(self, client, auth_service_mock):
        auth_service_mock.forgot_password = AsyncMock(
            side_effect=IdentityVerificationException("Identity could not be verified.")
        )

        response = client.post("/api/auth/forgot-password", json={"username": "bob", "password": "x"})

        assert response.status_code == 400

    def test_forgot_password__returns_reset_token(self, client, auth_service_mock):
        auth_service_mock.forgot_password = AsyncMock(return_value=ForgotPasswordResponse(reset_token="abc"))

        response = client.post(
            "/api/auth/forgot-password",
            json={"username": "bob", "verificationType": "email", "email": "bob@example.com"},
        )

        assert response.status_code == 200
        assert response.json()["resetToken"] == "abc"

    def test_reset_password__accepts_reset_token_alias(self, client, auth_service_mock):
        auth_service_mock.reset_password = AsyncMock(return_value=None)

        response = client.post("/api/auth/reset-password", json={"resetToken": "abc", "newPassword": "new-password"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert auth_service_mock.reset_password.call_args.args[0].token == "abc"

    def test_reset_password__invalid_token_is_400(self, client, auth_service_mock):
        auth_service_mock.reset_password = AsyncMock(
            side_effect=InvalidResetTokenException("Invalid or expired reset token.")
        )

        response = client.post("/api/auth/reset-password", json={"token": "abc", "newPassword": "new-password"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired reset token."

    def test_recover_username(self, client, auth_service_mock):
        auth_service_mock.recover_username = AsyncMock(return_value=RecoverUsernameResponse(username="bob"))

        response = client.post("/api/auth/recover-username", json={"email": "bob@example.com"})

        assert response.status_code == 200
        assert response.json()["username"] == "bob"

    def test_login__rate_limited_after_max_requests(self, client, auth_service_mock, mocker):
        """Scenario: exceed the per-route request window.

        Asserts:
            - requests beyond the maximum get 429
        """
        mocker.patch("app.commons.factories.settings.RATE_LIMIT_MAX_REQUESTS", 2)
        auth_service_mock.login = AsyncMock(side_effect=AuthenticationException("Invalid username or password."))

        statuses = [
            client.post("/api/auth/login", json={"username": "bob", "password": "nope"}).status_code for _ in range(3)
        ]

        assert statuses == [401, 401, 429]


@pytest.mark.usefixtures("override_get_chat_permission_service")
class TestPermissionRoutes:
    def test_permissions__guest(self, client, as_guest, chat_permission_service_mock):
        """GET /api/auth/permissions for a guest.

        Asserts:
            - guests may chat but not create codes or reach the admin panel
            - allowed models come from the chat permission service
        """
        chat_permission_service_mock.get_allowed_model_ids = AsyncMock(return_value=[1, 3])

        response = client.get("/api/auth/permissions")

        assert response.status_code == 200
        assert response.json() == {
            "canChat": True,
            "canCreateInvite": False,
            "canCreateAccess": False,
            "canAccessAdmin": False,
            "allowedModels": [1, 3],
        }


@pytest.mark.usefixtures("override_get_auth_service")
class TestSystemRoutes:
    def test_admin_exists(self, client, auth_service_mock):
        auth_service_mock.admin_exists = AsyncMock(return_value=False)

        response = client.get("/api/system/admin-exists")

        assert response.status_code == 200
        assert response.json() == {"adminExists": False}
