"""JWT token creation and verification.

Learn: The token is the whole session. It carries the user id plus the
name/email/role the dashboard needs, so neither the REST dependency nor the
websocket gateway has to look the user up to know who is on the other end.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from plotdesk.config import settings

ROLES = ("admin", "salesperson")


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def create_access_token(
    user_id: str,
    role: str,
    name: str = "",
    email: str = "",
    expires_days: Optional[int] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed access token for a dashboard user."""
    if role not in ROLES:
        raise TokenError(f"Unknown role: {role}")
    now = datetime.now(timezone.utc)
    expires = now + (
        expires_delta
        if expires_delta is not None
        else timedelta(days=expires_days or settings.access_token_expire_days)
    )
    payload = {
        "sub": user_id,
        "name": name,
        "email": email,
        "role": role,
        "exp": expires,
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure (bad signature, malformed, expired,
    or missing the claims a Principal needs).
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("role") not in ROLES:
        raise TokenError("Invalid token: unknown role")
    return payload
