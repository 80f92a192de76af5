from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.commons.schemas import ApiSchema
from app.settings.enums import SettingType


class SystemSettingCreate(BaseModel):
    key: str
    value: str | None
    type: SettingType
    description: str | None = None


class SystemSettingUpsert(ApiSchema):
    key: str = Field(min_length=1, max_length=100)
    value: Any = None
    type: SettingType = SettingType.STRING
    description: str | None = None


class SystemSettingsBulkUpdate(ApiSchema):
    values: dict[str, Any]


class SystemSettingRead(ApiSchema):
    key: str
    value: Any = None
    type: SettingType
    description: str | None = None
    updated_at: datetime | None = None
