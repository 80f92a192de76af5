from datetime import datetime
from decimal import Decimal

from pydantic import Field, HttpUrl, field_validator, model_validator

from app.catalog.constants import DEFAULT_INPUT_PRICE, DEFAULT_OUTPUT_PRICE
from app.catalog.enums import PricingType
from app.commons.schemas import ApiSchema


class ProviderCreate(ApiSchema):
    name: str = Field(min_length=1, max_length=50)
    display_name: str = Field(min_length=1, max_length=100)
    base_url: HttpUrl
    api_key: str | None = None
    is_enabled: bool = True
    order: int = 0
    icon: str | None = None
    description: str | None = None

    @field_validator("base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: HttpUrl) -> str:
        return str(v).rstrip("/")


class ProviderUpdate(ApiSchema):
    display_name: str | None = Field(default=None, min_length=1, max_length=100)
    base_url: HttpUrl | None = None
    # API_KEY_MASK keeps the stored key, an empty string clears it
    api_key: str | None = None
    is_enabled: bool | None = None
    order: int | None = None
    icon: str | None = None
    description: str | None = None

    @field_validator("base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: HttpUrl | None) -> str | None:
        return str(v).rstrip("/") if v is not None else None


class ModelPricing(ApiSchema):
    pricing_type: PricingType = PricingType.TOKEN
    input_price: Decimal = Field(default=DEFAULT_INPUT_PRICE, ge=0)
    output_price: Decimal = Field(default=DEFAULT_OUTPUT_PRICE, ge=0)
    usage_price: Decimal | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def require_usage_price(self):
        if self.pricing_type == PricingType.USAGE and self.usage_price is None:
            raise ValueError("usage_price is required when pricing_type is 'usage'")
        return self


class ModelCreate(ModelPricing):
    provider_id: int
    model_id: str = Field(min_length=1, max_length=200)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    is_enabled: bool = True
    order: int = 0
    group: str | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0, le=2)
    top_p: float | None = Field(default=None, ge=0, le=1)
    frequency_penalty: float | None = Field(default=None, ge=-2, le=2)
    presence_penalty: float | None = Field(default=None, ge=-2, le=2)


class ModelUpdate(ApiSchema):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    is_enabled: bool | None = None
    order: int | None = None
    group: str | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0, le=2)
    top_p: float | None = Field(default=None, ge=0, le=1)
    frequency_penalty: float | None = Field(default=None, ge=-2, le=2)
    presence_penalty: float | None = Field(default=None, ge=-2, le=2)


class ModelRead(ApiSchema):
    id: int
    provider_id: int
    model_id: str
    name: str
    description: str | None = None
    is_enabled: bool
    order: int
    group: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    pricing_type: PricingType
    input_price: Decimal
    output_price: Decimal
    usage_price: Decimal | None = None


class ProviderRead(ApiSchema):
    id: int
    name: str
    display_name: str
    base_url: str
    has_api_key: bool = False
    api_key: str | None = None
    is_enabled: bool
    order: int
    icon: str | None = None
    description: str | None = None
    created_at: datetime | None = None


class ProviderWithModels(ProviderRead):
    models: list[ModelRead] = []


class FetchModelsRequest(ApiSchema):
    base_url: HttpUrl
    api_key: str | None = None


class FetchModelsResponse(ApiSchema):
    models: list[str]


class SyncModelsResponse(ApiSchema):
    added: list[str]
    existing: list[str]


class BatchModelItem(ApiSchema):
    model_id: str = Field(min_length=1, max_length=200)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    group: str | None = None
    is_enabled: bool = True


class ModelBatchCreate(ApiSchema):
    provider_id: int
    models: list[BatchModelItem] = Field(min_length=1)


class BatchModelError(ApiSchema):
    model_id: str
    error: str


class ModelBatchResult(ApiSchema):
    success_count: int
    fail_count: int
    total_count: int
    models: list[ModelRead]
    errors: list[BatchModelError] = []


class ConnectionTestRequest(ApiSchema):
    base_url: HttpUrl
    api_key: str | None = None
    model: str | None = None


class ConnectionTestResult(ApiSchema):
    success: bool = True
    message: str = "API connection successful"
    model_available: bool | None = None
    available_models: list[str]
