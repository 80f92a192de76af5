from sqlalchemy import Column, DateTime, Enum, Integer, String, Text
from sqlalchemy.sql import func

from app.commons.utils import utcnow
from app.core.db import Base
from app.settings.enums import SettingType


class SystemSetting(Base):
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True)
    key = Column(String, nullable=False, unique=True)
    value = Column(Text, nullable=True)
    type = Column(Enum(SettingType), nullable=False, default=SettingType.STRING)
    description = Column(String, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)
