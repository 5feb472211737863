"""Interaction recording, summaries and history listing."""

from __future__ import annotations

from typing import Any

import structlog
from postgrest.exceptions import APIError

from homematch_shared.constants import (
    INTERACTION_TYPES,
    RPC_INTERACTION_SUMMARY,
    TABLE_INTERACTIONS,
)
from homematch_shared.models import Interaction, MutualCheck

from homematch_api.errors import ServiceError, ValidationError
from homematch_api.services import couples_service
from homematch_api.utils.filtering import apply_created_at_cursor
from homematch_api.utils.pagination import next_created_at_cursor

log = structlog.get_logger(__name__)

# Summary bucket -> stored interaction types counted in it
SUMMARY_BUCKETS: dict[str, tuple[str, ...]] = {
    "liked": ("like",),
    "passed": ("dislike", "skip"),
    "viewed": ("view",),
}


def record_interaction(
    client: Any,
    user_id: str,
    property_id: str,
    interaction_type: str,
    score_data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Record the user's interaction with a property.

    A user holds one definitive interaction per property, so any previous
    row is deleted before the new one is inserted.
    """
    if interaction_type not in INTERACTION_TYPES:
        raise ValidationError("Invalid interaction type")

    try:
        (
            client.table(TABLE_INTERACTIONS)
            .delete()
            .eq("user_id", user_id)
            .eq("property_id", property_id)
            .execute()
        )
    except APIError as exc:
        log.warning(
            "previous_interaction_delete_failed",
            user_id=user_id,
            property_id=property_id,
            error=exc.message,
        )

    household_id = couples_service.get_user_household(client, user_id)
    interaction = Interaction(
        user_id=user_id,
        property_id=property_id,
        household_id=household_id,
        interaction_type=interaction_type,
        score_data=score_data,
    )
    result = client.table(TABLE_INTERACTIONS).insert(interaction.to_insert_dict()).execute()
    if not result.data:
        raise ServiceError("Failed to record interaction")

    mutual = (
        couples_service.notify_household_interaction(
            client, household_id, user_id, property_id, interaction_type
        )
        if household_id
        else MutualCheck()
    )
    log.info(
        "interaction_recorded",
        user_id=user_id,
        property_id=property_id,
        interaction_type=interaction_type,
        mutual=mutual.would_be_mutual,
    )
    return {
        "interaction": result.data[0],
        "mutual": {
            "is_mutual": mutual.would_be_mutual,
            "partner_user_id": mutual.partner_user_id,
        },
    }


def get_interaction_summary(client: Any, user_id: str) -> dict[str, int]:
    result = client.rpc(RPC_INTERACTION_SUMMARY, {"p_user_id": user_id}).execute()
    counts: dict[str, int] = {}
    for row in result.data or []:
        counts[row.get("interaction_type")] = int(row.get("count") or 0)
    return {
        bucket: sum(counts.get(t, 0) for t in types)
        for bucket, types in SUMMARY_BUCKETS.items()
    }


def list_interacted_properties(
    client: Any,
    user_id: str,
    interaction_type: str,
    *,
    cursor: str | None = None,
    limit: int = 12,
) -> dict[str, Any]:
    """Properties the user interacted with, newest first, paged by created_at."""
    if interaction_type not in INTERACTION_TYPES:
        raise ValidationError("Invalid type parameter")

    query = (
        client.table(TABLE_INTERACTIONS)
        .select("created_at, property:properties (*)")
        .eq("user_id", user_id)
        .eq("interaction_type", interaction_type)
        .order("created_at", desc=True)
        .limit(limit)
    )
    query = apply_created_at_cursor(query, cursor)
    rows = query.execute().data or []

    items: list[dict[str, Any]] = []
    for row in rows:
        prop = row.get("property")
        if isinstance(prop, list):
            prop = prop[0] if prop else None
        if prop:
            items.append(prop)

    return {"items": items, "next_cursor": next_created_at_cursor(rows, limit)}


def reset_interactions(client: Any, user_id: str) -> dict[str, Any]:
    """Delete all of a user's interactions and invalidate household caches."""
    result = (
        client.table(TABLE_INTERACTIONS)
        .delete()
        .eq("user_id", user_id)
        .execute()
    )
    deleted = result.data or []

    households = {row.get("household_id") for row in deleted if row.get("household_id")}
    current = couples_service.get_user_household(client, user_id)
    if current:
        households.add(current)
    for household_id in households:
        couples_service.clear_household_cache(household_id)

    log.info("interactions_reset", user_id=user_id, count=len(deleted))
    return {"deleted": True, "count": len(deleted)}
