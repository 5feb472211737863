"""
models/properties.py — Pydantic models for the properties table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class Property(BaseModel):
    """Matches the properties table row."""

    id: UUID = Field(default_factory=uuid4)
    zpid: str | None = None
    address: str
    city: str
    state: str
    zip_code: str
    price: float = 0
    bedrooms: int = 0
    bathrooms: float = 0
    square_feet: int | None = None
    lot_size: float | None = None
    year_built: int | None = None
    property_type: str | None = None
    listing_status: str = "active"
    images: list[str] = Field(default_factory=list)
    latitude: float | None = None
    longitude: float | None = None
    neighborhood_id: UUID | None = None
    property_hash: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Property":
        data = dict(row)
        if data.get("images") is None:
            data["images"] = []
        return cls(**data)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "zpid": self.zpid,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "price": self.price,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "square_feet": self.square_feet,
            "lot_size": self.lot_size,
            "year_built": self.year_built,
            "property_type": self.property_type,
            "listing_status": self.listing_status,
            "images": self.images,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "neighborhood_id": str(self.neighborhood_id) if self.neighborhood_id else None,
            "property_hash": self.property_hash,
            "is_active": self.is_active,
        }


class PropertySummary(BaseModel):
    """Property fields embedded in household views (disputes, mutual likes)."""

    address: str = "Unknown Address"
    price: float = 0
    bedrooms: int = 0
    bathrooms: float = 0
    square_feet: int | None = None
    images: list[str] = Field(default_factory=list)
    listing_status: str = "unknown"

    @classmethod
    def from_embedded(cls, value: Any) -> "PropertySummary | None":
        """
        Build a summary from a PostgREST embedded relation.

        PostgREST returns to-one embeds either as an object or as a
        single-element list depending on the relationship metadata.
        Fields of the wrong type fall back to their defaults.
        """
        if isinstance(value, list):
            value = value[0] if value else None
        if not isinstance(value, dict):
            return None

        def _num(key: str) -> Any:
            v = value.get(key)
            return v if isinstance(v, (int, float)) and not isinstance(v, bool) else None

        summary = cls()
        if isinstance(value.get("address"), str):
            summary.address = value["address"]
        for key in ("price", "bedrooms", "bathrooms"):
            if _num(key) is not None:
                setattr(summary, key, _num(key))
        summary.square_feet = _num("square_feet")
        images = value.get("images")
        if isinstance(images, list):
            summary.images = [i for i in images if isinstance(i, str)]
        if isinstance(value.get("listing_status"), str):
            summary.listing_status = value["listing_status"]
        return summary
