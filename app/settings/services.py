import json
import logging
from typing import Any

from app.settings.constants import DEFAULT_SYSTEM_SETTINGS
from app.settings.enums import SettingType, SystemSettingKey
from app.settings.exceptions import InvalidSettingValueException, SystemSettingNotFoundException
from app.settings.models import SystemSetting
from app.settings.repositories import SystemSettingRepository
from app.settings.schemas import SystemSettingCreate, SystemSettingRead, SystemSettingUpsert

logger = logging.getLogger(__name__)


def serialize_value(value: Any, setting_type: SettingType) -> str | None:
    if value is None:
        return None
    if setting_type == SettingType.JSON:
        return json.dumps(value)
    if setting_type == SettingType.BOOLEAN:
        if isinstance(value, str):
            value = value.strip().lower() in ("true", "1", "yes")
        return "true" if value else "false"
    if setting_type == SettingType.NUMBER:
        try:
            float(value)
        except (TypeError, ValueError):
            raise InvalidSettingValueException(f"Value {value!r} is not a number.")
    return str(value)


def parse_value(raw: str | None, setting_type: SettingType) -> Any:
    if raw is None:
        return None
    try:
        if setting_type == SettingType.NUMBER:
            number = float(raw)
            return int(number) if number.is_integer() else number
        if setting_type == SettingType.BOOLEAN:
            return raw.strip().lower() in ("true", "1", "yes")
        if setting_type == SettingType.JSON:
            return json.loads(raw)
    except ValueError as e:
        raise InvalidSettingValueException(f"Stored value {raw!r} is not a valid {setting_type}.") from e
    return raw


class SystemSettingsService:
    def __init__(self, settings_repo: SystemSettingRepository):
        self.settings_repo = settings_repo

    async def get_value(self, key: SystemSettingKey | str, default: Any = None) -> Any:
        """
        Reads a typed setting value. Falls back to the built-in default when the key
        was never stored, then to `default`.
        """
        setting = await self.settings_repo.get_by_key(key)
        if setting is not None:
            return parse_value(setting.value, setting.type)

        if key in DEFAULT_SYSTEM_SETTINGS:
            builtin, _, _ = DEFAULT_SYSTEM_SETTINGS[SystemSettingKey(key)]
            return builtin if builtin is not None else default
        return default

    async def get_int(self, key: SystemSettingKey, default: int) -> int:
        value = await self.get_value(key, default)
        try:
            return int(value) if value is not None else default
        except (TypeError, ValueError):
            logger.warning(f"System setting {key} is not an integer ({value!r}); using {default}.")
            return default

    async def get_bool(self, key: SystemSettingKey, default: bool) -> bool:
        value = await self.get_value(key, default)
        return bool(value) if value is not None else default

    async def list_settings(self) -> list[SystemSettingRead]:
        return [self._to_read(setting) for setting in await self.settings_repo.list_all()]

    async def get_setting(self, key: str) -> SystemSettingRead:
        setting = await self.settings_repo.get_by_key(key)
        if not setting:
            raise SystemSettingNotFoundException(f"System setting '{key}' not found.")
        return self._to_read(setting)

    async def upsert_setting(self, setting_in: SystemSettingUpsert) -> SystemSettingRead:
        raw = serialize_value(setting_in.value, setting_in.type)
        existing = await self.settings_repo.get_by_key(setting_in.key)
        if existing:
            updated = await self.settings_repo.update(
                db_obj=existing,
                obj_in={
                    "value": raw,
                    "type": setting_in.type,
                    "description": setting_in.description or existing.description,
                },
            )
            return self._to_read(updated)

        created = await self.settings_repo.create(
            SystemSettingCreate(
                key=setting_in.key,
                value=raw,
                type=setting_in.type,
                description=setting_in.description,
            )
        )
        return self._to_read(created)

    async def update_values(self, values: dict[str, Any]) -> list[SystemSettingRead]:
        updated = []
        for key, value in values.items():
            setting = await self.settings_repo.get_by_key(key)
            if not setting:
                raise SystemSettingNotFoundException(f"System setting '{key}' not found.")
            setting = await self.settings_repo.update(
                db_obj=setting, obj_in={"value": serialize_value(value, setting.type)}
            )
            updated.append(self._to_read(setting))
        return updated

    async def initialize_defaults(self) -> int:
        """Stores every built-in setting that is missing. Returns how many were created."""
        created = 0
        for key, (value, setting_type, description) in DEFAULT_SYSTEM_SETTINGS.items():
            if await self.settings_repo.get_by_key(key):
                continue
            await self.settings_repo.create(
                SystemSettingCreate(
                    key=key,
                    value=serialize_value(value, setting_type),
                    type=setting_type,
                    description=description,
                )
            )
            created += 1
        return created

    @staticmethod
    def _to_read(setting: SystemSetting) -> SystemSettingRead:
        return SystemSettingRead(
            key=setting.key,
            value=parse_value(setting.value, setting.type),
            type=setting.type,
            description=setting.description,
            updated_at=setting.updated_at,
        )
