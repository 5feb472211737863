"""
constants.py — shared constants used across the pipeline and API.

Interaction types, resolution types, listing vocabularies, table and RPC
names are defined here so they stay in sync between Python packages.
"""

from __future__ import annotations

from typing import Final, Literal

# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------
InteractionType = Literal["like", "dislike", "skip", "view"]

INTERACTION_TYPES: Final[frozenset[str]] = frozenset({"like", "dislike", "skip", "view"})

# Interactions that express a decision about a property (views do not)
DECISION_INTERACTIONS: Final[frozenset[str]] = frozenset({"like", "dislike", "skip"})

# A like set against any of these is a disputed property
NEGATIVE_INTERACTIONS: Final[frozenset[str]] = frozenset({"dislike", "skip"})

# ---------------------------------------------------------------------------
# Disputes
# ---------------------------------------------------------------------------
ResolutionType = Literal[
    "scheduled_viewing",
    "saved_for_later",
    "final_pass",
    "discussion_needed",
]

RESOLUTION_TYPES: Final[frozenset[str]] = frozenset(
    {"scheduled_viewing", "saved_for_later", "final_pass", "discussion_needed"}
)

DisputeStatus = Literal["pending", "discussed", "resolved", "final_pass"]

# Counts at which a mutual-like milestone is reported to the client
MUTUAL_LIKE_MILESTONES: Final[tuple[int, ...]] = (1, 5, 10, 25, 50, 100)

# ---------------------------------------------------------------------------
# Households
# ---------------------------------------------------------------------------
InvitationStatus = Literal["pending", "accepted", "expired", "cancelled"]

INVITATION_TTL_DAYS: Final = 7

# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------
ListingStatus = Literal["active", "pending", "sold"]

PropertyType = Literal[
    "single_family",
    "condo",
    "townhome",
    "multi_family",
    "manufactured",
    "land",
    "other",
]

# Listing-feed home type -> canonical property_type
PROPERTY_TYPE_MAP: Final[dict[str, str]] = {
    "SINGLE_FAMILY": "single_family",
    "CONDO": "condo",
    "TOWNHOUSE": "townhome",
    "APARTMENT": "multi_family",
    "MULTI_FAMILY": "multi_family",
    "MANUFACTURED": "manufactured",
    "LOT": "land",
}

# ---------------------------------------------------------------------------
# Tables / RPCs
# ---------------------------------------------------------------------------
TABLE_USER_PROFILES: Final = "user_profiles"
TABLE_HOUSEHOLDS: Final = "households"
TABLE_INVITATIONS: Final = "household_invitations"
TABLE_SAVED_SEARCHES: Final = "saved_searches"
TABLE_PROPERTIES: Final = "properties"
TABLE_INTERACTIONS: Final = "user_property_interactions"
TABLE_RESOLUTIONS: Final = "household_property_resolutions"
TABLE_NEIGHBORHOODS: Final = "neighborhoods"
TABLE_NEIGHBORHOOD_VIBES: Final = "neighborhood_vibes"
TABLE_PROPERTY_VIBES: Final = "property_vibes"

RPC_MUTUAL_LIKES: Final = "get_household_mutual_likes"
RPC_HOUSEHOLD_ACTIVITY: Final = "get_household_activity_enhanced"
RPC_INTERACTION_SUMMARY: Final = "get_user_interaction_summary"

# Postgres "undefined_table" SQLSTATE
PG_UNDEFINED_TABLE: Final = "42P01"
