"""
models/couples.py — Derived household views returned by the couples API.

None of these are tables: they are computed from interactions, profiles
and RPC results, and serialized straight into responses.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from homematch_shared.constants import DisputeStatus, InteractionType, ResolutionType
from homematch_shared.models.properties import PropertySummary


class MutualLike(BaseModel):
    property_id: str
    liked_by_count: int
    first_liked_at: str
    last_liked_at: str
    user_ids: list[str] = Field(default_factory=list)
    property: PropertySummary | None = None


class HouseholdActivity(BaseModel):
    id: str
    user_id: str
    property_id: str
    interaction_type: InteractionType
    created_at: str
    user_display_name: str = "Unknown"
    property_address: str = ""
    property_price: float = 0
    property_bedrooms: int = 0
    property_bathrooms: float = 0
    property_images: list[str] = Field(default_factory=list)
    is_mutual: bool = False


class HouseholdStats(BaseModel):
    total_mutual_likes: int = 0
    total_household_likes: int = 0
    activity_streak_days: int = 0
    last_mutual_like_at: str | None = None


class MutualCheck(BaseModel):
    would_be_mutual: bool = False
    partner_user_id: str | None = None


class DisputeParticipant(BaseModel):
    user_id: str
    user_name: str
    user_email: str
    interaction_type: InteractionType
    created_at: str
    score_data: dict[str, Any] | None = None
    notes: str | None = None


class DisputedProperty(BaseModel):
    property_id: str
    property: PropertySummary
    partner1: DisputeParticipant
    partner2: DisputeParticipant
    status: DisputeStatus = "pending"
    resolution_type: ResolutionType | None = None
    last_updated: str
