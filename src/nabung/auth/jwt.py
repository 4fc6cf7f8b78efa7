"""HS256 access tokens.

Claims: sub (user UUID), email, is_admin, iat, exp, iss.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from nabung.config import get_settings


def create_access_token(user_id: uuid.UUID, email: str, is_admin: bool = False) -> str:
    """Create a signed access token valid for jwt_access_token_expire_minutes."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "is_admin": is_admin,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "iss": settings.jwt_issuer,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """Decode and validate a token.

    Raises:
        jwt.InvalidTokenError: If the token is malformed, expired, signed with
            another key or issued by someone else.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    try:
        uuid.UUID(payload["sub"])
    except (TypeError, ValueError) as e:
        msg = "Token subject is not a user id"
        raise jwt.InvalidTokenError(msg) from e
    return payload
