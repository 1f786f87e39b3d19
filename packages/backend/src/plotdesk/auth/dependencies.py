"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user from the request. The websocket gateway
reuses authenticate_token() so both surfaces agree on who is allowed in.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from fastapi import Depends, Header, HTTPException

from plotdesk.auth.jwt import TokenError, verify_token


@dataclass(frozen=True)
class Principal:
    """The authenticated dashboard user behind a request or connection."""

    user_id: str
    role: str
    name: str = ""
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an ``Authorization: Bearer <token>`` value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def extract_credential(
    query_params: Mapping[str, str], headers: Mapping[str, str]
) -> Optional[str]:
    """Find the credential on an upgrade request.

    The query param wins; the header is a fallback for non-browser clients.
    """
    token = query_params.get("token")
    if token:
        return token
    return bearer_token(headers.get("authorization"))


def authenticate_token(token: str) -> Principal:
    """Verify a bearer token and build its Principal. Raises TokenError."""
    payload = verify_token(token)
    return Principal(
        user_id=str(payload["sub"]),
        role=payload["role"],
        name=payload.get("name") or "",
        email=payload.get("email") or "",
    )


async def get_current_user(
    authorization: Optional[str] = Header(None),
) -> Principal:
    """Extract the current user (required — 401 if no auth)."""
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return authenticate_token(token)
    except TokenError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_admin(
    principal: Principal = Depends(get_current_user),
) -> Principal:
    """Only admins get past this dependency."""
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal
