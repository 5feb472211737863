"""Property listing endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from homematch_api.dependencies import AuthUser, OffsetParams, get_supabase_client, require_auth
from homematch_api.errors import NotFoundError
from homematch_api.responses import wrap_response
from homematch_api.services import property_service
from homematch_api.utils.filtering import PropertyFilters

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/properties", tags=["properties"])


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


@router.get("")
async def search_properties(
    page: OffsetParams = Depends(),
    price_min: float | None = Query(None, ge=0),
    price_max: float | None = Query(None, ge=0),
    bedrooms_min: int | None = Query(None, ge=0),
    bedrooms_max: int | None = Query(None, ge=0),
    bathrooms_min: float | None = Query(None, ge=0),
    bathrooms_max: float | None = Query(None, ge=0),
    square_feet_min: int | None = Query(None, ge=0),
    square_feet_max: int | None = Query(None, ge=0),
    year_built_min: int | None = Query(None),
    year_built_max: int | None = Query(None),
    property_types: str | None = Query(None, description="Comma-separated property types"),
    neighborhoods: str | None = Query(None, description="Comma-separated neighborhood ids"),
    listing_status: str | None = Query(None, description="Comma-separated listing statuses"),
    user: AuthUser = Depends(require_auth),
):
    filters = PropertyFilters(
        price_min=price_min,
        price_max=price_max,
        bedrooms_min=bedrooms_min,
        bedrooms_max=bedrooms_max,
        bathrooms_min=bathrooms_min,
        bathrooms_max=bathrooms_max,
        square_feet_min=square_feet_min,
        square_feet_max=square_feet_max,
        year_built_min=year_built_min,
        year_built_max=year_built_max,
        property_types=_split(property_types),
        neighborhoods=_split(neighborhoods),
        listing_status=_split(listing_status),
    )
    client = get_supabase_client(service_role=True)
    try:
        data, total = property_service.search_properties(
            client, filters, page_size=page.limit, offset=page.offset
        )
    except Exception as exc:
        log.error("property_search_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch properties") from exc

    links = {"self": "/v1/properties"}
    if total is not None and page.offset + len(data) < total:
        links["next"] = f"/v1/properties?limit={page.limit}&offset={page.offset + page.limit}"
    return wrap_response(
        data, total_count=total, page_size=page.limit, offset=page.offset, links=links
    )


@router.get("/vibes")
async def property_vibes(
    property_ids: str | None = Query(None, description="Comma-separated property ids"),
    page: OffsetParams = Depends(),
    user: AuthUser = Depends(require_auth),
):
    client = get_supabase_client(service_role=True)
    try:
        data = property_service.get_property_vibes(
            client, property_ids=_split(property_ids), limit=page.limit, offset=page.offset
        )
    except Exception as exc:
        log.error("property_vibes_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch property vibes") from exc
    return wrap_response(data, total_count=len(data))


@router.get("/{property_id}")
async def get_property(property_id: str, user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        data = property_service.get_property(client, property_id)
    except Exception as exc:
        log.error(
            "property_fetch_failed",
            property_id=property_id,
            error=str(exc),
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Failed to fetch property") from exc

    if data is None:
        raise NotFoundError("Property not found")
    return wrap_response(data)
