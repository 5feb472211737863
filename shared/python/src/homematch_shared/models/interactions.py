"""
models/interactions.py — Pydantic models for user_property_interactions
and household_property_resolutions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from homematch_shared.constants import InteractionType, ResolutionType


class Interaction(BaseModel):
    """Matches the user_property_interactions table row."""

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    property_id: UUID
    household_id: UUID | None = None
    interaction_type: InteractionType
    score_data: dict[str, Any] | None = None   # opaque ML payload
    created_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Interaction":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "user_id": str(self.user_id),
            "property_id": str(self.property_id),
            "interaction_type": self.interaction_type,
        }
        if self.household_id is not None:
            row["household_id"] = str(self.household_id)
        if self.score_data is not None:
            row["score_data"] = self.score_data
        return row


class PropertyResolution(BaseModel):
    """Matches the household_property_resolutions table row."""

    household_id: UUID
    property_id: UUID
    resolution_type: ResolutionType
    resolved_by: UUID
    resolved_at: datetime
    updated_at: datetime

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "PropertyResolution":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "household_id": str(self.household_id),
            "property_id": str(self.property_id),
            "resolution_type": self.resolution_type,
            "resolved_by": str(self.resolved_by),
            "resolved_at": self.resolved_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
