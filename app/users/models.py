from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.commons.utils import utcnow
from app.core.db import Base
from app.users.enums import LimitPeriod, LimitType, Theme, UserRole


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String, nullable=True, unique=True)
    password_hash = Column(String, nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.USER)
    is_active = Column(Boolean, nullable=False, default=True, server_default="1")
    can_share_access_code = Column(Boolean, nullable=False, default=False, server_default="0")
    host_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    # access code the guest registered with
    access_code_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    host_user = relationship("User", remote_side=[id], foreign_keys=[host_user_id], lazy="selectin")
    permission = relationship(
        "UserPermission", back_populates="user", cascade="all, delete-orphan", uselist=False, lazy="selectin"
    )
    settings = relationship(
        "UserSettings", back_populates="user", cascade="all, delete-orphan", uselist=False, lazy="selectin"
    )


class UserPermission(Base):
    __tablename__ = "user_permissions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    limit_type = Column(Enum(LimitType), nullable=False, default=LimitType.NONE)
    limit_period = Column(Enum(LimitPeriod), nullable=False, default=LimitPeriod.MONTHLY)
    token_limit = Column(Integer, nullable=True)
    cost_limit = Column(Numeric(12, 6), nullable=True)
    token_used = Column(Integer, nullable=False, default=0, server_default="0")
    last_reset_at = Column(DateTime, nullable=True)
    # comma separated model ids, null means every enabled model
    allowed_model_ids = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    user = relationship("User", back_populates="permission")


class UserSettings(Base):
    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    default_model_id = Column(Integer, ForeignKey("models.id", ondelete="SET NULL"), nullable=True)
    last_used_model_id = Column(Integer, ForeignKey("models.id", ondelete="SET NULL"), nullable=True)
    theme = Column(Enum(Theme), nullable=False, default=Theme.LIGHT)
    language = Column(String(16), nullable=False, default="zh-CN")
    enable_markdown = Column(Boolean, nullable=False, default=True, server_default="1")
    enable_latex = Column(Boolean, nullable=False, default=True, server_default="1")
    enable_code_highlight = Column(Boolean, nullable=False, default=True, server_default="1")
    message_page_size = Column(Integer, nullable=False, default=50)
    updated_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    user = relationship("User", back_populates="settings")
