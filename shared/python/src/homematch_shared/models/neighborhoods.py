"""
models/neighborhoods.py — Pydantic models for neighborhoods and the
generated vibe tables.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class Neighborhood(BaseModel):
    """Matches the neighborhoods table row."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    city: str
    state: str
    metro_area: str | None = None
    bounds: Any = None              # PostGIS polygon (GeoJSON, array or string)
    median_price: float | None = None
    walk_score: int | None = None
    transit_score: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Neighborhood":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "city": self.city,
            "state": self.state,
            "metro_area": self.metro_area,
            "bounds": self.bounds,
            "median_price": self.median_price,
            "walk_score": self.walk_score,
            "transit_score": self.transit_score,
        }


class NeighborhoodVibe(BaseModel):
    """Matches the neighborhood_vibes table row (generated offline)."""

    id: UUID
    neighborhood_id: UUID
    tagline: str | None = None
    vibe_statement: str | None = None
    neighborhood_themes: list[Any] = Field(default_factory=list)
    local_highlights: list[Any] = Field(default_factory=list)
    suggested_tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "NeighborhoodVibe":
        return cls(**row)


class PropertyVibe(BaseModel):
    """Matches the property_vibes table row (generated offline)."""

    id: UUID
    property_id: UUID
    tagline: str | None = None
    vibe_statement: str | None = None
    primary_vibes: list[Any] = Field(default_factory=list)
    suggested_tags: list[str] = Field(default_factory=list)
    lifestyle_fits: list[Any] = Field(default_factory=list)
    created_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "PropertyVibe":
        return cls(**row)
