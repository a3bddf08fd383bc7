"""Password hashing and bearer token issuance."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from medibook.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_access_token(subject: str) -> str:
    """
    Sign a token for ``subject`` (the user id).
    Uses timezone-aware datetimes so ``exp`` is a true UTC timestamp.
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.jwt_expire_minutes)

    payload: dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["sub", "exp"]},
    )


def get_subject(token: str) -> Optional[str]:
    """Return the user id a token was issued for, or None if it does not verify."""
    try:
        payload = decode_token(token)
    except jwt.PyJWTError as e:
        logger.debug("Rejected bearer token: %s", e)
        return None
    return payload.get("sub")
