"""
Password hashing and access token helpers.
"""

import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(Exception):
    """Raised when an access token cannot be decoded or has expired."""


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int, expires_minutes: int | None = None) -> str:
    """
    Issues a signed JWT whose subject is the user id.

    Args:
        user_id: Primary key of the authenticated user.
        expires_minutes: Overrides JWT_EXPIRES_MINUTES when given.
    """
    if not settings.JWT_SECRET:
        raise InvalidTokenError("JWT_SECRET is not configured.")

    minutes = expires_minutes if expires_minutes is not None else settings.JWT_EXPIRES_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """Returns the user id carried by a valid token."""
    if not settings.JWT_SECRET:
        raise InvalidTokenError("JWT_SECRET is not configured.")

    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(f"Invalid or expired token: {e}") from e

    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise InvalidTokenError("Token subject is missing.")
    return int(subject)


def generate_reset_token() -> str:
    return secrets.token_hex(32)
