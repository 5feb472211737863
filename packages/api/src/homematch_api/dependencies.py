"""Shared FastAPI dependencies."""

from __future__ import annotations

from homematch_shared.db import get_supabase_client

from homematch_api.middleware.auth import AuthUser, get_current_user, require_auth
from homematch_api.utils.pagination import OffsetParams

__all__ = [
    "AuthUser",
    "OffsetParams",
    "get_current_user",
    "get_supabase_client",
    "require_auth",
]
