from decimal import Decimal

API_KEY_MASK = "********"

# upstream ids echoed back by a connection test
CONNECTION_TEST_MODEL_PREVIEW = 10

DEFAULT_INPUT_PRICE = Decimal("2.0")
DEFAULT_OUTPUT_PRICE = Decimal("8.0")
