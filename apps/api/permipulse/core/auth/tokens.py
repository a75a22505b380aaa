"""
JWT access token creation and validation.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from jose import ExpiredSignatureError, JWTError, jwt

from permipulse.core.config import settings
from permipulse.core.errors import Unauthenticated

from .interfaces import Identity
from .roles import Role, parse_role

logger = structlog.get_logger()

ACCESS_TOKEN_TYPE = "access"


def create_access_token(
    user_id: int,
    role: Role,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token carrying the user id and role."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.auth.access_token_expire_minutes)
    expire = datetime.now(timezone.utc) + expires_delta
    payload = {
        "sub": str(user_id),
        "role": Role(role).value,
        "exp": expire,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(
        payload,
        settings.auth.secret_key,
        algorithm=settings.auth.algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises:
        Unauthenticated: expired, forged or malformed token
    """
    try:
        return jwt.decode(
            token,
            settings.auth.secret_key,
            algorithms=[settings.auth.algorithm],
        )
    except ExpiredSignatureError as e:
        logger.info("auth.token_expired")
        raise Unauthenticated("Token has expired") from e
    except JWTError as e:
        logger.info("auth.token_invalid", error=str(e))
        raise Unauthenticated("Invalid token") from e


def identity_from_token(token: str | None) -> Identity:
    """
    Turn a bearer token into an Identity.

    Raises:
        Unauthenticated: missing token, bad token, or claims that do not
            describe a user (non-numeric subject, unknown role)
    """
    if not token:
        raise Unauthenticated("Not authenticated")

    payload = decode_access_token(token)

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise Unauthenticated("Invalid token type")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid token subject") from None

    role = parse_role(payload.get("role"))
    if role is None:
        raise Unauthenticated("Invalid token role")

    return Identity(id=user_id, role=role)
