"""Password hashing and bearer token helpers."""

import hashlib
import hmac
import os
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from .exceptions import AuthenticationError
from .settings import SecuritySettings, get_settings

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str, salt: str | None = None) -> tuple[str, str]:
    """Return ``(hash, salt)`` using salted SHA-256."""
    salt = salt or os.urandom(16).hex()
    digest = hashlib.sha256((salt + password).encode("utf-8")).hexdigest()
    return digest, salt


def verify_password(password: str, hashed: str, salt: str) -> bool:
    computed, _ = hash_password(password, salt)
    return hmac.compare_digest(computed, hashed)


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    security: SecuritySettings | None = None,
) -> str:
    """Sign a token identifying ``subject`` (a user id)."""
    security = security or get_settings().security
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=security.access_token_expire_minutes)
    )
    claims: dict[str, Any] = {"sub": subject, "exp": expire}
    return jwt.encode(claims, security.secret_key, algorithm=security.jwt_algorithm)


def decode_access_token(token: str, security: SecuritySettings | None = None) -> str:
    """Return the user id carried by ``token``.

    Raises:
        AuthenticationError: The token is malformed, expired or unsigned by us.
    """
    security = security or get_settings().security
    try:
        payload = jwt.decode(
            token, security.secret_key, algorithms=[security.jwt_algorithm]
        )
    except JWTError as e:
        raise AuthenticationError("Token is not valid") from e

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise AuthenticationError("Token is not valid")
    return subject
