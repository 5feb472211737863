"""
db.py — Supabase client singletons, one per key role.

Usage:
    from homematch_shared.db import get_supabase_client

    supabase = get_supabase_client()                    # anon key (RLS applies)
    supabase = get_supabase_client(service_role=True)   # service key (household-wide reads, ETL writes)
"""

from __future__ import annotations

import threading

import structlog
from supabase import Client, create_client

from homematch_shared.config import settings

logger = structlog.get_logger(__name__)

_lock = threading.Lock()
_clients: dict[str, Client] = {}


def _key_for(role: str) -> tuple[str, str]:
    if role == "service_role":
        return settings.supabase_service_key, "SUPABASE_SERVICE_KEY"
    return settings.supabase_anon_key, "SUPABASE_ANON_KEY"


def get_supabase_client(*, service_role: bool = False) -> Client:
    """
    Return the process-wide Supabase client for a role.

    Args:
        service_role: Use the service role key, which bypasses RLS. Routes
                      need it for reads that span a whole household.

    Raises:
        RuntimeError: The key for the requested role is not configured.
    """
    role = "service_role" if service_role else "anon"
    with _lock:
        client = _clients.get(role)
        if client is None:
            key, env_name = _key_for(role)
            if not key:
                raise RuntimeError(f"{env_name} is not set. Set it in .env.")
            client = create_client(settings.supabase_url, key)
            _clients[role] = client
            logger.info("supabase_client_created", role=role)
        return client


def reset_supabase_clients() -> None:
    """Drop cached clients so the next call rebuilds them from settings."""
    with _lock:
        _clients.clear()
