import base64
import hashlib
import logging

from cryptography.fernet import Fernet, InvalidToken

from app.core.config import settings

logger = logging.getLogger(__name__)

# Every Fernet token starts with the version byte 0x80, "gAAAAA" once base64 encoded.
FERNET_TOKEN_PREFIX = "gAAAAA"


def build_cipher(key: str | None) -> Fernet | None:
    if not key:
        return None
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def is_encrypted(value: str | None) -> bool:
    return bool(value) and value.startswith(FERNET_TOKEN_PREFIX)


def safe_encrypt(value: str | None, key: str | None = None) -> str | None:
    """
    Encrypts a secret for storage. Without a configured key the value is stored as is.
    """
    if not value:
        return value
    cipher = build_cipher(key if key is not None else settings.ENCRYPTION_KEY)
    if cipher is None:
        return value
    return cipher.encrypt(value.encode("utf-8")).decode("ascii")


def safe_decrypt(value: str | None, key: str | None = None) -> str | None:
    """
    Decrypts a stored secret. Values that are not Fernet tokens are returned unchanged.
    """
    if not value or not is_encrypted(value):
        return value
    cipher = build_cipher(key if key is not None else settings.ENCRYPTION_KEY)
    if cipher is None:
        logger.warning("Encrypted value found but ENCRYPTION_KEY is not configured.")
        return value
    try:
        return cipher.decrypt(value.encode("ascii")).decode("utf-8")
    except InvalidToken:
        logger.warning("Failed to decrypt value with the configured ENCRYPTION_KEY.")
        return value
