"""
homematch_shared.models — Pydantic models matching each database table,
plus the derived household views served by the couples API.

These models are used by:
- packages/pipeline: validate listings before writing to Supabase
- packages/api: serialize query results into API responses

Table models provide:
  .from_db_row(row: dict) -> Model
  .to_insert_dict() -> dict
"""

from homematch_shared.models.couples import (
    DisputedProperty,
    DisputeParticipant,
    HouseholdActivity,
    HouseholdStats,
    MutualCheck,
    MutualLike,
)
from homematch_shared.models.households import Household, HouseholdInvitation, UserProfile
from homematch_shared.models.interactions import Interaction, PropertyResolution
from homematch_shared.models.neighborhoods import Neighborhood, NeighborhoodVibe, PropertyVibe
from homematch_shared.models.properties import Property, PropertySummary
from homematch_shared.models.saved_searches import SavedSearch

__all__ = [
    "UserProfile",
    "Household",
    "HouseholdInvitation",
    "SavedSearch",
    "Property",
    "PropertySummary",
    "Interaction",
    "PropertyResolution",
    "Neighborhood",
    "NeighborhoodVibe",
    "PropertyVibe",
    "MutualLike",
    "HouseholdActivity",
    "HouseholdStats",
    "MutualCheck",
    "DisputeParticipant",
    "DisputedProperty",
]
