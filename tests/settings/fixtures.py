from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from app.settings.dependencies import get_system_settings_service
from app.settings.enums import SettingType, SystemSettingKey
from app.settings.models import SystemSetting
from app.settings.repositories import SystemSettingRepository
from app.settings.services import SystemSettingsService


@pytest.fixture
async def guest_registration_disabled(db_session: AsyncSession) -> SystemSetting:
    setting = SystemSetting(
        key=SystemSettingKey.ENABLE_GUEST_REGISTRATION,
        value="false",
        type=SettingType.BOOLEAN,
    )
    db_session.add(setting)
    await db_session.flush()
    return setting


@pytest.fixture
async def token_tracking_disabled(db_session: AsyncSession) -> SystemSetting:
    setting = SystemSetting(
        key=SystemSettingKey.ENABLE_TOKEN_TRACKING,
        value="false",
        type=SettingType.BOOLEAN,
    )
    db_session.add(setting)
    await db_session.flush()
    return setting


@pytest.fixture
def system_settings_repository(db_session: AsyncSession) -> SystemSettingRepository:
    return SystemSettingRepository(db=db_session)


@pytest.fixture
def system_settings_service(system_settings_repository: SystemSettingRepository) -> SystemSettingsService:
    return SystemSettingsService(settings_repo=system_settings_repository)


@pytest.fixture
def system_settings_service_mock(mocker: MockerFixture) -> MagicMock:
    return mocker.create_autospec(SystemSettingsService, instance=True)


@pytest.fixture
def override_get_system_settings_service(client, system_settings_service_mock: MagicMock):
    client.app.dependency_overrides[get_system_settings_service] = lambda: system_settings_service_mock
    yield
    client.app.dependency_overrides.clear()
