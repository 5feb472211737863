"""Supabase JWT authentication dependencies.

Access tokens are issued by Supabase Auth; this service only verifies
them. The user id is the token's ``sub`` claim.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog
from fastapi import Depends, HTTPException, Request
from jose import JWTError, jwt as jose_jwt

from homematch_shared.config import settings

log = structlog.get_logger(__name__)

JWT_AUDIENCE = "authenticated"


@dataclass
class AuthUser:
    user_id: str
    email: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str | None:
        name = self.metadata.get("display_name") or self.metadata.get("full_name")
        return name if isinstance(name, str) else None


def validate_jwt(token: str) -> dict[str, Any] | None:
    """Validate a Supabase JWT and return its claims.

    With no SUPABASE_JWT_SECRET configured every token is rejected.
    """
    if not settings.supabase_jwt_secret:
        log.error("jwt_secret_missing", hint="Set SUPABASE_JWT_SECRET in .env")
        return None
    try:
        return jose_jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
        )
    except JWTError as exc:
        log.info("jwt_rejected", error=str(exc))
        return None


def bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


async def get_current_user(request: Request) -> AuthUser | None:
    """Extract and validate the user from the bearer token.

    Returns None if no credentials are provided.
    Raises 401 if credentials are invalid.
    """
    token = bearer_token(request)
    if token is None:
        return None

    claims = validate_jwt(token)
    if claims is None or not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = AuthUser(
        user_id=str(claims["sub"]),
        email=claims.get("email"),
        metadata=claims.get("user_metadata") or {},
    )
    request.state.user = user
    return user


async def require_auth(
    user: AuthUser | None = Depends(get_current_user),
) -> AuthUser:
    """Dependency that requires an authenticated user."""
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
