"""Saved property searches, owned by a user and tagged with their household."""

from __future__ import annotations

from typing import Any

import structlog

from homematch_shared.constants import TABLE_SAVED_SEARCHES
from homematch_shared.models import SavedSearch

from homematch_api.errors import NotFoundError, ServiceError, ValidationError
from homematch_api.services.couples_service import get_user_household

log = structlog.get_logger(__name__)

MAX_NAME_LENGTH = 100


def _validate_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Search name is required")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValidationError(f"Search name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


def list_saved_searches(client: Any, user_id: str) -> list[dict[str, Any]]:
    return (
        client.table(TABLE_SAVED_SEARCHES)
        .select("*")
        .eq("user_id", user_id)
        .eq("is_active", True)
        .order("created_at", desc=True)
        .execute()
    ).data or []


def create_saved_search(
    client: Any,
    user_id: str,
    name: str | None,
    filters: dict[str, Any] | None = None,
) -> dict[str, Any]:
    cleaned = _validate_name(name)
    search = SavedSearch(
        user_id=user_id,
        household_id=get_user_household(client, user_id),
        name=cleaned,
        filters=filters or {},
    )
    result = client.table(TABLE_SAVED_SEARCHES).insert(search.to_insert_dict()).execute()
    if not result.data:
        raise ServiceError("Failed to save search")
    log.info("saved_search_created", user_id=user_id, search_id=str(search.id))
    return result.data[0]


def update_saved_search(
    client: Any,
    user_id: str,
    search_id: str,
    *,
    name: str | None = None,
    filters: dict[str, Any] | None = None,
) -> dict[str, Any]:
    updates: dict[str, Any] = {}
    if name is not None:
        updates["name"] = _validate_name(name)
    if filters is not None:
        updates["filters"] = filters
    if not updates:
        raise ValidationError("Nothing to update")

    result = (
        client.table(TABLE_SAVED_SEARCHES)
        .update(updates)
        .eq("id", search_id)
        .eq("user_id", user_id)
        .eq("is_active", True)
        .execute()
    )
    if not result.data:
        raise NotFoundError("Saved search not found")
    return result.data[0]


def delete_saved_search(client: Any, user_id: str, search_id: str) -> None:
    result = (
        client.table(TABLE_SAVED_SEARCHES)
        .update({"is_active": False})
        .eq("id", search_id)
        .eq("user_id", user_id)
        .eq("is_active", True)
        .execute()
    )
    if not result.data:
        raise NotFoundError("Saved search not found")
    log.info("saved_search_deleted", user_id=user_id, search_id=search_id)
