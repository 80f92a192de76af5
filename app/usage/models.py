from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.commons.utils import utcnow
from app.core.db import Base


class TokenUsage(Base):
    __tablename__ = "token_usage"
    __table_args__ = (
        CheckConstraint("total_tokens = prompt_tokens + completion_tokens", name="ck_token_usage_total"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id", ondelete="SET NULL"), nullable=True)
    message_id = Column(Integer, ForeignKey("messages.id", ondelete="SET NULL"), nullable=True)
    provider_id = Column(Integer, ForeignKey("providers.id", ondelete="SET NULL"), nullable=True)
    model_id = Column(Integer, ForeignKey("models.id", ondelete="SET NULL"), nullable=True)
    # upstream model name, kept for pricing and reporting after the catalog row is gone
    model_key = Column(String, nullable=True)

    prompt_tokens = Column(Integer, nullable=False, default=0)
    completion_tokens = Column(Integer, nullable=False, default=0)
    total_tokens = Column(Integer, nullable=False, default=0)
    is_estimated = Column(Boolean, nullable=False, default=False)
    input_chars = Column(Integer, nullable=True)
    output_chars = Column(Integer, nullable=True)
    cost = Column(Numeric(12, 6), nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow, server_default=func.now(), nullable=False, index=True)

    provider = relationship("Provider", lazy="selectin")
    model = relationship("Model", lazy="selectin")
