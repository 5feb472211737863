"""
models/saved_searches.py — Pydantic model for the saved_searches table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class SavedSearch(BaseModel):
    """Matches the saved_searches table row.

    filters holds the property search query parameters as sent to
    GET /v1/properties. Deleting a search only clears is_active.
    """

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    household_id: UUID | None = None
    name: str
    filters: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    created_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "SavedSearch":
        data = dict(row)
        if data.get("filters") is None:
            data["filters"] = {}
        if data.get("is_active") is None:
            data["is_active"] = True
        return cls(**data)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "household_id": str(self.household_id) if self.household_id else None,
            "name": self.name,
            "filters": self.filters,
            "is_active": self.is_active,
        }
