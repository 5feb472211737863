"""Household (couples) service: mutual likes, shared activity and stats."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from typing import Any

import structlog
from postgrest.exceptions import APIError

from homematch_shared.constants import (
    MUTUAL_LIKE_MILESTONES,
    RPC_HOUSEHOLD_ACTIVITY,
    RPC_MUTUAL_LIKES,
    TABLE_INTERACTIONS,
    TABLE_USER_PROFILES,
)
from homematch_shared.models import HouseholdActivity, HouseholdStats, MutualCheck, MutualLike
from homematch_shared.time_utils import parse_timestamp

from homematch_api.utils.cache import (
    HOUSEHOLD_CACHES,
    activity_cache,
    mutual_likes_cache,
    stats_cache,
)

log = structlog.get_logger(__name__)

STREAK_WINDOW = 30


def get_user_household(client: Any, user_id: str) -> str | None:
    result = (
        client.table(TABLE_USER_PROFILES)
        .select("household_id")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return result.data[0].get("household_id") or None


def clear_household_cache(household_id: str) -> None:
    for cache in HOUSEHOLD_CACHES:
        cache.delete_prefix(f"{household_id}:")


# ---------------------------------------------------------------------------
# Mutual likes
# ---------------------------------------------------------------------------


def _to_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value) if value.strip().lstrip("-").isdigit() else 0
    return int(value or 0)


def _mutual_likes_from_rpc(rows: Iterable[dict[str, Any]]) -> list[MutualLike]:
    return [
        MutualLike(
            property_id=row["property_id"],
            liked_by_count=_to_int(row.get("liked_by_count")),
            first_liked_at=row.get("first_liked_at") or "",
            last_liked_at=row.get("last_liked_at") or "",
            user_ids=row.get("user_ids") or [],
        )
        for row in rows
    ]


def aggregate_mutual_likes(likes: Iterable[dict[str, Any]]) -> list[MutualLike]:
    """Group like rows by property and keep those liked by two or more users."""
    grouped: dict[str, dict[str, Any]] = {}
    for like in likes:
        created = like.get("created_at") or ""
        entry = grouped.setdefault(
            like["property_id"],
            {"users": [], "first": created, "last": created},
        )
        if like["user_id"] not in entry["users"]:
            entry["users"].append(like["user_id"])
        entry["first"] = min(entry["first"], created)
        entry["last"] = max(entry["last"], created)

    return [
        MutualLike(
            property_id=property_id,
            liked_by_count=len(entry["users"]),
            first_liked_at=entry["first"],
            last_liked_at=entry["last"],
            user_ids=entry["users"],
        )
        for property_id, entry in grouped.items()
        if len(entry["users"]) >= 2
    ]


def _mutual_likes_fallback(client: Any, household_id: str) -> list[MutualLike]:
    result = (
        client.table(TABLE_INTERACTIONS)
        .select("property_id, user_id, created_at")
        .eq("household_id", household_id)
        .eq("interaction_type", "like")
        .execute()
    )
    return aggregate_mutual_likes(result.data or [])


def get_household_mutual_likes(client: Any, household_id: str) -> list[MutualLike]:
    cache_key = f"{household_id}:mutual_likes"
    cached = mutual_likes_cache.get(cache_key)
    if cached is not None:
        return cached

    try:
        result = client.rpc(RPC_MUTUAL_LIKES, {"p_household_id": household_id}).execute()
        mutual_likes = _mutual_likes_from_rpc(result.data or [])
    except APIError as exc:
        log.warning("mutual_likes_rpc_failed", household_id=household_id, error=exc.message)
        # Uncached so the RPC is retried on the next request
        return _mutual_likes_fallback(client, household_id)

    mutual_likes_cache.set(cache_key, mutual_likes)
    return mutual_likes


def get_mutual_likes(client: Any, user_id: str) -> list[MutualLike]:
    household_id = get_user_household(client, user_id)
    if not household_id:
        return []
    return get_household_mutual_likes(client, household_id)


# ---------------------------------------------------------------------------
# Activity feed
# ---------------------------------------------------------------------------


def _normalize_activity(row: dict[str, Any], mutual_ids: set[str]) -> HouseholdActivity:
    interaction_type = row.get("interaction_type")
    return HouseholdActivity(
        id=row["id"],
        user_id=row["user_id"],
        property_id=row["property_id"],
        interaction_type=interaction_type,
        created_at=row["created_at"],
        user_display_name=row.get("user_display_name") or "Unknown",
        property_address=row.get("property_address") or "",
        property_price=row.get("property_price") or 0,
        property_bedrooms=row.get("property_bedrooms") or 0,
        property_bathrooms=row.get("property_bathrooms") or 0,
        property_images=row.get("property_images") or [],
        is_mutual=interaction_type == "like" and row["property_id"] in mutual_ids,
    )


def get_household_activity(
    client: Any,
    user_id: str,
    limit: int = 20,
    offset: int = 0,
) -> list[HouseholdActivity]:
    household_id = get_user_household(client, user_id)
    if not household_id:
        return []

    cache_key = f"{household_id}:activity:{limit}:{offset}"
    cached = activity_cache.get(cache_key)
    if cached is not None:
        return cached

    result = client.rpc(
        RPC_HOUSEHOLD_ACTIVITY,
        {"p_household_id": household_id, "p_limit": limit, "p_offset": offset},
    ).execute()
    mutual_ids = {m.property_id for m in get_household_mutual_likes(client, household_id)}

    activity = [_normalize_activity(row, mutual_ids) for row in result.data or []]
    activity_cache.set(cache_key, activity)
    return activity


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


def activity_streak_days(timestamps: Iterable[str], now: datetime | None = None) -> int:
    """
    Count consecutive UTC days with activity.

    A streak is alive while the most recent active day is today or
    yesterday; it is counted backwards from that day.
    """
    days: set[date] = {
        parsed.date() for parsed in map(parse_timestamp, timestamps) if parsed is not None
    }
    if not days:
        return 0

    today = (now or datetime.now(timezone.utc)).astimezone(timezone.utc).date()
    latest = max(days)
    if latest not in (today, today - timedelta(days=1)):
        return 0

    streak = 0
    while latest - timedelta(days=streak) in days:
        streak += 1
    return streak


def get_household_stats(client: Any, user_id: str) -> HouseholdStats | None:
    household_id = get_user_household(client, user_id)
    if not household_id:
        return None
    return household_stats(client, household_id)


def household_stats(client: Any, household_id: str) -> HouseholdStats:
    cache_key = f"{household_id}:stats"
    cached = stats_cache.get(cache_key)
    if cached is not None:
        return cached

    mutual_likes = get_household_mutual_likes(client, household_id)

    likes = (
        client.table(TABLE_INTERACTIONS)
        .select("id", count="exact", head=True)
        .eq("household_id", household_id)
        .eq("interaction_type", "like")
        .execute()
    )
    recent = (
        client.table(TABLE_INTERACTIONS)
        .select("created_at")
        .eq("household_id", household_id)
        .order("created_at", desc=True)
        .limit(STREAK_WINDOW)
        .execute()
    )

    stats = HouseholdStats(
        total_mutual_likes=len(mutual_likes),
        total_household_likes=likes.count or 0,
        activity_streak_days=activity_streak_days(r.get("created_at") for r in recent.data or []),
        last_mutual_like_at=max((m.last_liked_at for m in mutual_likes), default=None),
    )
    stats_cache.set(cache_key, stats)
    return stats


# ---------------------------------------------------------------------------
# Mutual-like detection on new interactions
# ---------------------------------------------------------------------------


def household_mutual_check(
    client: Any,
    household_id: str,
    user_id: str,
    property_id: str,
) -> MutualCheck:
    """Whether another member of household_id has already liked the property."""
    result = (
        client.table(TABLE_INTERACTIONS)
        .select("user_id")
        .eq("household_id", household_id)
        .eq("property_id", property_id)
        .eq("interaction_type", "like")
        .neq("user_id", user_id)
        .execute()
    )
    if result.data:
        return MutualCheck(would_be_mutual=True, partner_user_id=result.data[0]["user_id"])
    return MutualCheck()


def check_potential_mutual_like(client: Any, user_id: str, property_id: str) -> MutualCheck:
    household_id = get_user_household(client, user_id)
    if not household_id:
        return MutualCheck()
    return household_mutual_check(client, household_id, user_id, property_id)


def notify_household_interaction(
    client: Any,
    household_id: str,
    user_id: str,
    property_id: str,
    interaction_type: str,
) -> MutualCheck:
    """Invalidate household caches and report a mutual like created by a like."""
    clear_household_cache(household_id)

    if interaction_type != "like":
        return MutualCheck()

    check = household_mutual_check(client, household_id, user_id, property_id)
    if check.would_be_mutual:
        log.info(
            "mutual_like_created",
            household_id=household_id,
            property_id=property_id,
            user_id=user_id,
            partner_user_id=check.partner_user_id,
        )
    return check


def notify_interaction(
    client: Any,
    user_id: str,
    property_id: str,
    interaction_type: str,
) -> MutualCheck:
    household_id = get_user_household(client, user_id)
    if not household_id:
        return MutualCheck()
    return notify_household_interaction(
        client, household_id, user_id, property_id, interaction_type
    )


def mutual_like_milestone(count: int) -> dict[str, Any] | None:
    if count in MUTUAL_LIKE_MILESTONES:
        return {"type": "mutual_likes", "count": count}
    return None
