"""
models/households.py — Pydantic models for user_profiles, households and
household_invitations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from homematch_shared.constants import InvitationStatus


class UserProfile(BaseModel):
    """Matches the user_profiles table row."""

    id: UUID
    email: str | None = None
    display_name: str | None = None
    household_id: UUID | None = None
    preferences: dict[str, Any] = Field(default_factory=dict)
    onboarding_completed: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "UserProfile":
        data = dict(row)
        if data.get("preferences") is None:
            data["preferences"] = {}
        return cls(**data)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "email": self.email,
            "display_name": self.display_name,
            "household_id": str(self.household_id) if self.household_id else None,
            "preferences": self.preferences,
            "onboarding_completed": self.onboarding_completed,
        }

    @property
    def label(self) -> str:
        """Name shown to other household members."""
        return self.display_name or self.email or "Household member"

    @property
    def avatar_url(self) -> str | None:
        avatar = self.preferences.get("avatar")
        if isinstance(avatar, dict) and avatar.get("type") == "custom":
            value = avatar.get("value")
            return value if isinstance(value, str) else None
        return None


class Household(BaseModel):
    """Matches the households table row."""

    id: UUID = Field(default_factory=uuid4)
    name: str | None = None
    created_by: UUID | None = None
    collaboration_mode: str | None = None
    user_count: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Household":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "created_by": str(self.created_by) if self.created_by else None,
            "user_count": self.user_count,
        }


class HouseholdInvitation(BaseModel):
    """Matches the household_invitations table row.

    The token is the only credential an invitee needs, so it is random
    and single use: accepting flips status to "accepted".
    """

    id: UUID = Field(default_factory=uuid4)
    token: str
    household_id: UUID
    created_by: UUID
    invited_email: str | None = None
    invited_name: str | None = None
    message: str | None = None
    status: InvitationStatus = "pending"
    expires_at: datetime
    accepted_by: UUID | None = None
    accepted_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "HouseholdInvitation":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "token": self.token,
            "household_id": str(self.household_id),
            "created_by": str(self.created_by),
            "invited_email": self.invited_email,
            "invited_name": self.invited_name,
            "message": self.message,
            "status": self.status,
            "expires_at": self.expires_at.isoformat(),
        }

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def can_accept(self, now: datetime) -> bool:
        return self.status == "pending" and not self.is_expired(now)
