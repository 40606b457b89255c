"""JWT helpers for actor identity.

The CRM does not issue credentials for end users; an upstream identity
provider does. This module only decodes Bearer tokens into actor claims and
mints tokens for service accounts and tests.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from src.crm.config import get_settings

logger = logging.getLogger(__name__)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a signed JWT access token.

    The data dict should contain at minimum:
    - sub: actor identifier (str)
    - email: actor email (str)
    """
    settings = get_settings()
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=30))
    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access",
    })
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_actor_claims(token: str) -> dict | None:
    """Decode a Bearer token and return its claims.

    Returns None when the token is invalid, expired, not an access token,
    or lacks the sub/email claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        return None

    if payload.get("type") != "access":
        return None
    if not payload.get("sub") or not payload.get("email"):
        return None
    return payload
