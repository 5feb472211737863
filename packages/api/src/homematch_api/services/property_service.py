"""Property listing data service."""

from __future__ import annotations

from typing import Any

from homematch_shared.constants import TABLE_PROPERTIES, TABLE_PROPERTY_VIBES

from homematch_api.utils.filtering import PropertyFilters, apply_property_filters


def get_property(client: Any, property_id: str) -> dict[str, Any] | None:
    result = (
        client.table(TABLE_PROPERTIES)
        .select("*, neighborhood:neighborhoods(*)")
        .eq("id", property_id)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


def search_properties(
    client: Any,
    filters: PropertyFilters,
    *,
    page_size: int = 20,
    offset: int = 0,
) -> tuple[list[dict[str, Any]], int | None]:
    query = (
        client.table(TABLE_PROPERTIES)
        .select("*", count="exact")
        .order("created_at", desc=True)
    )
    query = apply_property_filters(query, filters)
    result = query.range(offset, offset + page_size - 1).execute()
    return result.data or [], result.count


def get_property_vibes(
    client: Any,
    *,
    property_ids: list[str] | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[dict[str, Any]]:
    query = client.table(TABLE_PROPERTY_VIBES).select("*").order("created_at", desc=True)
    if property_ids:
        query = query.in_("property_id", property_ids)
    else:
        query = query.range(offset, offset + limit - 1)
    return query.execute().data or []
