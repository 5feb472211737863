"""
Disputed-property detection and resolution.

A property is disputed when, taking each household member's most recent
decision on it, at least one member liked it and another passed on it
(dislike or skip). Resolved properties are excluded.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from postgrest.exceptions import APIError

from homematch_shared.constants import (
    DECISION_INTERACTIONS,
    NEGATIVE_INTERACTIONS,
    RESOLUTION_TYPES,
    TABLE_INTERACTIONS,
    TABLE_RESOLUTIONS,
    TABLE_USER_PROFILES,
)
from homematch_shared.models import (
    DisputedProperty,
    DisputeParticipant,
    PropertySummary,
    UserProfile,
)
from homematch_shared.time_utils import parse_timestamp

from homematch_api.errors import HouseholdNotFoundError, ValidationError
from homematch_api.services.couples_service import clear_household_cache, get_user_household

log = structlog.get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

INTERACTIONS_SELECT = (
    "id, user_id, property_id, interaction_type, created_at, score_data, "
    "properties (address, price, bedrooms, bathrooms, square_feet, images, listing_status)"
)


def _parse_ts(value: Any) -> datetime:
    return parse_timestamp(value) or _EPOCH


def _participant(member: UserProfile, interaction: dict[str, Any]) -> DisputeParticipant:
    score_data = interaction.get("score_data")
    if not isinstance(score_data, dict):
        score_data = None
    notes = score_data.get("notes") if score_data else None
    return DisputeParticipant(
        user_id=str(member.id),
        user_name=member.label,
        user_email=member.email or "",
        interaction_type=interaction["interaction_type"],
        created_at=interaction["created_at"],
        score_data=score_data,
        notes=notes if isinstance(notes, str) else None,
    )


def find_disputed_properties(
    interactions: list[dict[str, Any]],
    members: list[UserProfile],
    resolved_property_ids: set[str],
) -> list[DisputedProperty]:
    """
    Detect disputes from a household's decision interactions.

    Args:
        interactions: Rows ordered latest first, optionally carrying an
            embedded ``properties`` relation.
        members: Household member profiles.
        resolved_property_ids: Properties the household already resolved.

    Returns:
        Disputes sorted by ``last_updated`` descending.
    """
    by_id = {str(m.id): m for m in members}

    # property_id -> (summary, {user_id: latest interaction}) in first-seen order
    grouped: dict[str, tuple[PropertySummary | None, dict[str, dict[str, Any]]]] = {}
    for row in interactions:
        property_id = row.get("property_id")
        if not property_id or property_id in resolved_property_ids:
            continue
        if property_id not in grouped:
            grouped[property_id] = (PropertySummary.from_embedded(row.get("properties")), {})
        if row.get("interaction_type") not in DECISION_INTERACTIONS:
            continue

        interaction = dict(row)
        if not isinstance(interaction.get("created_at"), str):
            interaction["created_at"] = _EPOCH.isoformat()
        latest = grouped[property_id][1]
        current = latest.get(row["user_id"])
        if current is None or _parse_ts(interaction["created_at"]) > _parse_ts(current["created_at"]):
            latest[row["user_id"]] = interaction

    disputes: list[tuple[datetime, DisputedProperty]] = []
    for property_id, (summary, latest) in grouped.items():
        if len(latest) < 2:
            continue
        types = {i["interaction_type"] for i in latest.values()}
        if "like" not in types or not types & NEGATIVE_INTERACTIONS:
            continue

        first, second = list(latest.values())[:2]
        member1 = by_id.get(first["user_id"])
        member2 = by_id.get(second["user_id"])
        if member1 is None or member2 is None:
            continue

        last_updated = max(_parse_ts(first["created_at"]), _parse_ts(second["created_at"]))
        disputes.append(
            (
                last_updated,
                DisputedProperty(
                    property_id=property_id,
                    property=summary or PropertySummary(),
                    partner1=_participant(member1, first),
                    partner2=_participant(member2, second),
                    status="pending",
                    last_updated=last_updated.isoformat(),
                ),
            )
        )

    disputes.sort(key=lambda d: d[0], reverse=True)
    return [d for _, d in disputes]


def get_disputed_properties(client: Any, user_id: str) -> list[DisputedProperty]:
    household_id = get_user_household(client, user_id)
    if not household_id:
        raise HouseholdNotFoundError()

    members_result = (
        client.table(TABLE_USER_PROFILES)
        .select("id, display_name, email")
        .eq("household_id", household_id)
        .execute()
    )
    members = [UserProfile.from_db_row(r) for r in members_result.data or []]
    if len(members) < 2:
        return []

    resolved: set[str] = set()
    try:
        resolutions = (
            client.table(TABLE_RESOLUTIONS)
            .select("property_id")
            .eq("household_id", household_id)
            .execute()
        )
        resolved = {
            r["property_id"] for r in resolutions.data or [] if isinstance(r.get("property_id"), str)
        }
    except APIError as exc:
        log.error("resolutions_fetch_failed", household_id=household_id, error=exc.message)

    interactions = (
        client.table(TABLE_INTERACTIONS)
        .select(INTERACTIONS_SELECT)
        .eq("household_id", household_id)
        .in_("interaction_type", sorted(DECISION_INTERACTIONS))
        .order("created_at", desc=True)
        .execute()
    )
    return find_disputed_properties(interactions.data or [], members, resolved)


def resolve_dispute(
    client: Any,
    user_id: str,
    property_id: str | None,
    resolution_type: str | None,
) -> dict[str, Any]:
    if not property_id or not resolution_type:
        raise ValidationError("Property ID and resolution type are required")
    if resolution_type not in RESOLUTION_TYPES:
        raise ValidationError("Invalid resolution type")

    household_id = get_user_household(client, user_id)
    if not household_id:
        raise HouseholdNotFoundError()

    now = datetime.now(timezone.utc).isoformat()
    client.table(TABLE_RESOLUTIONS).upsert(
        {
            "household_id": household_id,
            "property_id": property_id,
            "resolution_type": resolution_type,
            "resolved_by": user_id,
            "resolved_at": now,
            "updated_at": now,
        },
        on_conflict="household_id,property_id",
    ).execute()
    clear_household_cache(household_id)

    log.info(
        "dispute_resolved",
        household_id=household_id,
        property_id=property_id,
        resolution_type=resolution_type,
    )
    return {
        "success": True,
        "property_id": property_id,
        "resolution_type": resolution_type,
        "timestamp": now,
    }
