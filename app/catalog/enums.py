from enum import StrEnum


class PricingType(StrEnum):
    TOKEN = "token"
    USAGE = "usage"
