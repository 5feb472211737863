"""Supabase filter builders."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any


@dataclass
class PropertyFilters:
    price_min: float | None = None
    price_max: float | None = None
    bedrooms_min: int | None = None
    bedrooms_max: int | None = None
    bathrooms_min: float | None = None
    bathrooms_max: float | None = None
    square_feet_min: int | None = None
    square_feet_max: int | None = None
    year_built_min: int | None = None
    year_built_max: int | None = None
    property_types: list[str] = field(default_factory=list)
    neighborhoods: list[str] = field(default_factory=list)
    listing_status: list[str] = field(default_factory=list)
    active_only: bool = True

    def as_params(self) -> dict[str, Any]:
        """Non-empty filters, for logging and links."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value == []:
                continue
            out[f.name] = ",".join(value) if isinstance(value, list) else value
        return out


# (filter attribute, column, operation)
FILTER_RULES: tuple[tuple[str, str, str], ...] = (
    ("price_min", "price", "gte"),
    ("price_max", "price", "lte"),
    ("bedrooms_min", "bedrooms", "gte"),
    ("bedrooms_max", "bedrooms", "lte"),
    ("bathrooms_min", "bathrooms", "gte"),
    ("bathrooms_max", "bathrooms", "lte"),
    ("square_feet_min", "square_feet", "gte"),
    ("square_feet_max", "square_feet", "lte"),
    ("year_built_min", "year_built", "gte"),
    ("year_built_max", "year_built", "lte"),
    ("property_types", "property_type", "in_"),
    ("neighborhoods", "neighborhood_id", "in_"),
    ("listing_status", "listing_status", "in_"),
)


def apply_property_filters(query: Any, filters: PropertyFilters) -> Any:
    """Apply every set property filter to a Supabase query builder."""
    if filters.active_only:
        query = query.eq("is_active", True)
    for attr, column, operation in FILTER_RULES:
        value = getattr(filters, attr)
        if value is None or (isinstance(value, list) and not value):
            continue
        query = getattr(query, operation)(column, value)
    return query


def apply_created_at_cursor(query: Any, cursor: str | None) -> Any:
    """Keep rows strictly older than the cursor timestamp."""
    if cursor:
        query = query.lt("created_at", cursor)
    return query


def apply_text_search(
    query: Any,
    columns: list[str],
    search_term: str | None,
) -> Any:
    """Case-insensitive substring match on any of the columns."""
    if search_term:
        pattern = f"%{search_term}%"
        query = query.or_(",".join(f"{c}.ilike.{pattern}" for c in columns))
    return query
