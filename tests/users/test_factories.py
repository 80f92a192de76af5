from unittest.mock import AsyncMock

from app.users.factories import build_user_service
from app.users.services import UserService


async def test_build_user_service__wires_repositories_and_settings(db_session_mock, mocker, system_settings_service_mock):
    """Scenario: build_user_service is called with a DB session.

    Asserts:
        - returns a UserService
        - every repository is bound to the same session
        - the system settings service comes from its factory
    """
    build_settings_mock = mocker.patch(
        "app.users.factories.build_system_settings_service",
        new=AsyncMock(return_value=system_settings_service_mock),
    )

    service = await build_user_service(db_session_mock)

    assert isinstance(service, UserService)
    assert service.user_repo.db is db_session_mock
    assert service.permission_repo.db is db_session_mock
    assert service.user_settings_repo.db is db_session_mock
    assert service.settings_service is system_settings_service_mock
    build_settings_mock.assert_awaited_once_with(db_session_mock)
