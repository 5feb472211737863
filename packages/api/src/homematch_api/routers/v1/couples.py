"""Household (couples) endpoints."""

from __future__ import annotations

import time
from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from homematch_shared.constants import TABLE_PROPERTIES, TABLE_USER_PROFILES, InteractionType
from homematch_shared.models import PropertySummary, UserProfile

from homematch_api.dependencies import AuthUser, OffsetParams, get_supabase_client, require_auth
from homematch_api.errors import ServiceError
from homematch_api.responses import wrap_response
from homematch_api.services import couples_service, dispute_service

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/couples", tags=["couples"])

PROPERTY_SUMMARY_COLUMNS = "id, address, price, bedrooms, bathrooms, square_feet, images, listing_status"


class NotifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    property_id: UUID = Field(alias="propertyId")
    interaction_type: InteractionType = Field(alias="interactionType")


class ResolveRequest(BaseModel):
    property_id: str | None = None
    resolution_type: str | None = None


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 2)


def _property_summaries(client: Any, property_ids: list[str]) -> dict[str, PropertySummary]:
    if not property_ids:
        return {}
    rows = (
        client.table(TABLE_PROPERTIES)
        .select(PROPERTY_SUMMARY_COLUMNS)
        .in_("id", property_ids)
        .execute()
    ).data or []
    return {row["id"]: PropertySummary.from_embedded(row) for row in rows}


@router.get("/activity")
async def household_activity(
    page: OffsetParams = Depends(),
    user: AuthUser = Depends(require_auth),
):
    start = time.monotonic()
    client = get_supabase_client(service_role=True)
    try:
        activity = couples_service.get_household_activity(
            client, user.user_id, limit=page.limit, offset=page.offset
        )
    except Exception as exc:
        log.error("household_activity_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch household activity") from exc

    data = {
        "activity": [a.model_dump() for a in activity],
        "performance": {"total_time_ms": _elapsed_ms(start), "count": len(activity)},
    }
    return wrap_response(data, page_size=page.limit, offset=page.offset)


@router.get("/mutual-likes")
async def mutual_likes(
    include_properties: bool = Query(False),
    user: AuthUser = Depends(require_auth),
):
    start = time.monotonic()
    client = get_supabase_client(service_role=True)
    try:
        likes = couples_service.get_mutual_likes(client, user.user_id)
        if include_properties:
            summaries = _property_summaries(client, [m.property_id for m in likes])
            likes = [
                m.model_copy(update={"property": summaries.get(m.property_id)}) for m in likes
            ]
    except Exception as exc:
        log.error("mutual_likes_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch mutual likes") from exc

    data = {
        "mutual_likes": [m.model_dump(exclude_none=not include_properties) for m in likes],
        "performance": {"total_time_ms": _elapsed_ms(start), "count": len(likes)},
    }
    return wrap_response(data, total_count=len(likes))


@router.get("/stats")
async def household_stats(user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        stats = couples_service.get_household_stats(client, user.user_id)
    except Exception as exc:
        log.error("household_stats_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch household stats") from exc

    if stats is None:
        raise HTTPException(status_code=404, detail="No household found")
    return wrap_response({"stats": stats.model_dump()})


@router.get("/check-mutual")
async def check_mutual(
    property_id: str | None = Query(None),
    user: AuthUser = Depends(require_auth),
):
    if not property_id:
        raise HTTPException(status_code=400, detail="Property ID is required")

    client = get_supabase_client(service_role=True)
    try:
        household_id = couples_service.get_user_household(client, user.user_id)
        if not household_id:
            return wrap_response({"is_mutual": False})
        check = couples_service.household_mutual_check(
            client, household_id, user.user_id, property_id
        )
        if not check.would_be_mutual:
            return wrap_response({"is_mutual": False})

        partner_rows = (
            client.table(TABLE_USER_PROFILES)
            .select("id, display_name, email")
            .eq("id", check.partner_user_id)
            .limit(1)
            .execute()
        ).data or []
        partner_name = UserProfile.from_db_row(partner_rows[0]).label if partner_rows else None

        property_rows = (
            client.table(TABLE_PROPERTIES)
            .select("address")
            .eq("id", property_id)
            .limit(1)
            .execute()
        ).data or []
        address = property_rows[0].get("address") if property_rows else None

        stats = couples_service.household_stats(client, household_id)
    except Exception as exc:
        log.error("check_mutual_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to check mutual like") from exc

    return wrap_response(
        {
            "is_mutual": True,
            "partner_name": partner_name,
            "property_address": address,
            "streak": stats.activity_streak_days,
            "milestone": couples_service.mutual_like_milestone(stats.total_mutual_likes),
        }
    )


@router.post("/notify")
async def notify(body: NotifyRequest, user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        check = couples_service.notify_interaction(
            client, user.user_id, str(body.property_id), body.interaction_type
        )
    except Exception as exc:
        log.error("notify_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process notification") from exc

    created = check.would_be_mutual and check.partner_user_id is not None
    return wrap_response(
        {
            "success": True,
            "mutual_like_created": created,
            "notification_sent": created,
            "partner_user_id": check.partner_user_id,
        }
    )


@router.get("/disputed")
async def disputed_properties(user: AuthUser = Depends(require_auth)):
    start = time.monotonic()
    client = get_supabase_client(service_role=True)
    try:
        disputes = dispute_service.get_disputed_properties(client, user.user_id)
    except ServiceError:
        raise
    except Exception as exc:
        log.error("disputed_properties_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch disputed properties") from exc

    data = {
        "disputed_properties": [d.model_dump() for d in disputes],
        "performance": {"total_time_ms": _elapsed_ms(start), "count": len(disputes)},
    }
    return wrap_response(data, total_count=len(disputes))


@router.patch("/disputed")
async def resolve_disputed_property(body: ResolveRequest, user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        resolution = dispute_service.resolve_dispute(
            client, user.user_id, body.property_id, body.resolution_type
        )
    except ServiceError:
        raise
    except Exception as exc:
        log.error("resolve_dispute_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update resolution") from exc
    return wrap_response(resolution)
