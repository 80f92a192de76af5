import logging
from decimal import Decimal

from app.catalog.enums import PricingType
from app.catalog.models import Model

logger = logging.getLogger(__name__)

PER_MILLION = Decimal(1_000_000)

# USD per million tokens: (input, output)
FALLBACK_PRICES: dict[str, tuple[Decimal, Decimal]] = {
    "gpt-4o-mini": (Decimal("0.15"), Decimal("0.6")),
    "gpt-4o": (Decimal("5"), Decimal("15")),
    "gpt-4-turbo": (Decimal("10"), Decimal("30")),
    "gpt-3.5-turbo": (Decimal("1"), Decimal("2")),
    "claude-3-5-sonnet-20241022": (Decimal("3"), Decimal("15")),
    "claude-3-5-haiku-20241022": (Decimal("0.25"), Decimal("1.25")),
    "claude-3-opus-20240229": (Decimal("15"), Decimal("75")),
}
DEFAULT_PRICES = (Decimal("2"), Decimal("8"))


def _to_decimal(value, default: Decimal) -> Decimal:
    if value is None:
        return default
    return value if isinstance(value, Decimal) else Decimal(str(value))


def calculate_cost(
    model: Model | None,
    model_key: str | None,
    prompt_tokens: int,
    completion_tokens: int,
) -> Decimal:
    """
    Prices a request. Flat "usage" pricing ignores token counts; token pricing is
    linear in prompt and completion tokens. Without a catalog row the well-known
    price table is used, keyed by the upstream model id.
    """
    if model is not None:
        if model.pricing_type == PricingType.USAGE:
            return _to_decimal(model.usage_price, Decimal(0))
        input_price = _to_decimal(model.input_price, DEFAULT_PRICES[0])
        output_price = _to_decimal(model.output_price, DEFAULT_PRICES[1])
    else:
        input_price, output_price = FALLBACK_PRICES.get(model_key or "", DEFAULT_PRICES)
        logger.debug(f"No catalog pricing for {model_key!r}; using ${input_price}/${output_price} per million")

    return (Decimal(prompt_tokens) * input_price + Decimal(completion_tokens) * output_price) / PER_MILLION
