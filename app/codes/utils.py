import re
import secrets

CODE_PREFIX = "fimai_"
ADMIN_INVITE_CODE = "fimai_ADMIN_MASTER_KEY"

_CODE_PATTERN = re.compile(r"^fimai_[A-F0-9]{16}$")


def generate_code() -> str:
    """`fimai_` followed by 16 uppercase hex characters (64 random bits)."""
    return f"{CODE_PREFIX}{secrets.token_hex(8).upper()}"


def is_valid_code_format(code: str) -> bool:
    return bool(_CODE_PATTERN.match(code))


def is_admin_invite_code(code: str) -> bool:
    return code == ADMIN_INVITE_CODE
