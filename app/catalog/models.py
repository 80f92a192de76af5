from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.catalog.enums import PricingType
from app.commons.utils import utcnow
from app.core.db import Base


class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    display_name = Column(String, nullable=False)
    base_url = Column(String, nullable=False)
    # encrypted at rest, see app.core.encryption
    api_key = Column(Text, nullable=True)
    is_enabled = Column(Boolean, nullable=False, default=True, server_default="1")
    order = Column(Integer, nullable=False, default=0)
    icon = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    models = relationship(
        "Model",
        back_populates="provider",
        cascade="all, delete-orphan",
        order_by="Model.order",
        lazy="selectin",
    )


class Model(Base):
    __tablename__ = "models"

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False)
    model_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_enabled = Column(Boolean, nullable=False, default=True, server_default="1")
    order = Column(Integer, nullable=False, default=0)
    group = Column(String, nullable=True)

    max_tokens = Column(Integer, nullable=True)
    temperature = Column(Float, nullable=True)
    top_p = Column(Float, nullable=True)
    frequency_penalty = Column(Float, nullable=True)
    presence_penalty = Column(Float, nullable=True)

    pricing_type = Column(Enum(PricingType), nullable=False, default=PricingType.TOKEN)
    # prices per million tokens
    input_price = Column(Numeric(12, 6), nullable=False, default=2.0)
    output_price = Column(Numeric(12, 6), nullable=False, default=8.0)
    # flat price per request when pricing_type is usage
    usage_price = Column(Numeric(12, 6), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    provider = relationship("Provider", back_populates="models", lazy="joined")

    __table_args__ = (UniqueConstraint("provider_id", "model_id", name="_provider_model_uc"),)

    @property
    def is_available(self) -> bool:
        return bool(self.is_enabled and self.provider and self.provider.is_enabled)
