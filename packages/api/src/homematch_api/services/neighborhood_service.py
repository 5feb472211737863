"""Neighborhood vibes and map boundaries."""

from __future__ import annotations

from typing import Any

import structlog
from postgrest.exceptions import APIError

from homematch_shared.boundaries import MeceResult, build_mece_neighborhoods
from homematch_shared.constants import (
    PG_UNDEFINED_TABLE,
    TABLE_NEIGHBORHOOD_VIBES,
    TABLE_NEIGHBORHOODS,
)

from homematch_api.errors import FeatureUnavailableError
from homematch_api.utils.cache import map_cache

log = structlog.get_logger(__name__)


def get_neighborhood_vibes(
    client: Any,
    *,
    neighborhood_id: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[dict[str, Any]]:
    query = (
        client.table(TABLE_NEIGHBORHOOD_VIBES)
        .select("*")
        .order("created_at", desc=True)
    )
    if neighborhood_id:
        query = query.eq("neighborhood_id", neighborhood_id)
    else:
        query = query.range(offset, offset + limit - 1)

    try:
        result = query.execute()
    except APIError as exc:
        if exc.code == PG_UNDEFINED_TABLE:
            log.warning("neighborhood_vibes_table_missing")
            raise FeatureUnavailableError("Neighborhood vibes not initialized") from exc
        raise
    return result.data or []


def get_map_neighborhoods(
    client: Any,
    *,
    city: str | None = None,
    state: str | None = None,
) -> MeceResult:
    """Non-overlapping neighborhood boundaries for the map, cached per area."""
    cache_key = f"map:{(city or '*').lower()}:{(state or '*').upper()}"
    cached = map_cache.get(cache_key)
    if cached is not None:
        return cached

    query = client.table(TABLE_NEIGHBORHOODS).select("id, name, city, state, bounds")
    if city:
        query = query.ilike("city", city)
    if state:
        query = query.eq("state", state.upper())
    rows = query.execute().data or []

    result = build_mece_neighborhoods(rows)
    log.info("map_neighborhoods_built", city=city, state=state, **result.debug)
    map_cache.set(cache_key, result)
    return result
