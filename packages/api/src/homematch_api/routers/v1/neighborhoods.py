"""Neighborhood endpoints: vibes and map boundaries."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from homematch_api.dependencies import AuthUser, OffsetParams, get_supabase_client, require_auth
from homematch_api.errors import ServiceError
from homematch_api.responses import wrap_response
from homematch_api.services import neighborhood_service

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/neighborhoods", tags=["neighborhoods"])


@router.get("/vibes")
async def neighborhood_vibes(
    neighborhood_id: str | None = Query(None),
    page: OffsetParams = Depends(),
    user: AuthUser = Depends(require_auth),
):
    client = get_supabase_client(service_role=True)
    try:
        data = neighborhood_service.get_neighborhood_vibes(
            client, neighborhood_id=neighborhood_id, limit=page.limit, offset=page.offset
        )
    except ServiceError:
        raise
    except Exception as exc:
        log.error("neighborhood_vibes_failed", error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch neighborhood vibes") from exc

    return wrap_response(data, total_count=len(data), page_size=page.limit, offset=page.offset)


@router.get("/map")
async def neighborhood_map(
    city: str | None = Query(None),
    state: str | None = Query(None, min_length=2, max_length=2),
    user: AuthUser = Depends(require_auth),
):
    client = get_supabase_client(service_role=True)
    try:
        result = neighborhood_service.get_map_neighborhoods(client, city=city, state=state)
    except Exception as exc:
        log.error("neighborhood_map_failed", city=city, state=state, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch neighborhood boundaries") from exc

    return wrap_response(
        {"neighborhoods": result.items, "debug": result.debug},
        total_count=len(result.items),
    )
