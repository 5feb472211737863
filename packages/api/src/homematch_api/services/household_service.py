"""
Household lifecycle: create, join, leave and invitations.

A user belongs to at most one household, recorded on their profile as
``user_profiles.household_id``. Every membership change invalidates the
household's cached couples views.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Any

import structlog
from postgrest.exceptions import APIError

from homematch_shared.constants import (
    INVITATION_TTL_DAYS,
    TABLE_HOUSEHOLDS,
    TABLE_INVITATIONS,
    TABLE_USER_PROFILES,
)
from homematch_shared.models import Household, HouseholdInvitation, UserProfile
from homematch_shared.time_utils import utcnow

from homematch_api.errors import (
    HouseholdNotFoundError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from homematch_api.services.couples_service import clear_household_cache, get_user_household

log = structlog.get_logger(__name__)

MEMBER_COLUMNS = "id, email, display_name, household_id, preferences"
INVITE_HOUSEHOLD_EMBED = "*, household:households(id, name, collaboration_mode)"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _fetch_household(client: Any, household_id: str) -> dict[str, Any] | None:
    result = (
        client.table(TABLE_HOUSEHOLDS)
        .select("*")
        .eq("id", household_id)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


def _set_household(client: Any, user_id: str, household_id: str | None) -> None:
    result = (
        client.table(TABLE_USER_PROFILES)
        .update({"household_id": household_id})
        .eq("id", user_id)
        .execute()
    )
    if not result.data:
        raise ServiceError("Failed to update profile")


def get_household_members(client: Any, household_id: str) -> list[dict[str, Any]]:
    rows = (
        client.table(TABLE_USER_PROFILES)
        .select(MEMBER_COLUMNS)
        .eq("household_id", household_id)
        .execute()
    ).data or []
    members = []
    for row in rows:
        profile = UserProfile.from_db_row(row)
        members.append(
            {
                "id": str(profile.id),
                "display_name": profile.label,
                "email": profile.email,
                "avatar_url": profile.avatar_url,
            }
        )
    return members


def get_household(client: Any, user_id: str) -> dict[str, Any]:
    """The caller's household row and its members."""
    household_id = get_user_household(client, user_id)
    if not household_id:
        raise HouseholdNotFoundError()
    household = _fetch_household(client, household_id)
    if household is None:
        raise HouseholdNotFoundError()
    return {"household": household, "members": get_household_members(client, household_id)}


def create_household(client: Any, user_id: str, name: str | None = None) -> dict[str, Any]:
    """Create a household and make the caller its first member."""
    if get_user_household(client, user_id):
        raise ValidationError("User already belongs to a household")

    household = Household(name=_clean(name), created_by=user_id)
    result = client.table(TABLE_HOUSEHOLDS).insert(household.to_insert_dict()).execute()
    if not result.data:
        raise ServiceError("Failed to create household")
    row = result.data[0]

    try:
        _set_household(client, user_id, row["id"])
    except (APIError, ServiceError):
        # Without the profile link the new household would be unreachable
        client.table(TABLE_HOUSEHOLDS).delete().eq("id", row["id"]).execute()
        raise

    log.info("household_created", household_id=row["id"], user_id=user_id)
    return row


def join_household(client: Any, user_id: str, household_id: str) -> dict[str, Any]:
    """Join an existing household. Joining the current household is a no-op."""
    current = get_user_household(client, user_id)
    if current and current != household_id:
        raise ValidationError(
            "You already belong to a household. Leave it before joining another."
        )

    household = _fetch_household(client, household_id)
    if household is None:
        raise NotFoundError("Household not found")
    if current == household_id:
        return household

    _set_household(client, user_id, household_id)
    clear_household_cache(household_id)
    log.info("household_joined", household_id=household_id, user_id=user_id)
    return household


def leave_household(client: Any, user_id: str) -> str | None:
    """Leave the caller's household. Returns the id left, or None."""
    household_id = get_user_household(client, user_id)
    if not household_id:
        return None

    _set_household(client, user_id, None)
    clear_household_cache(household_id)
    log.info("household_left", household_id=household_id, user_id=user_id)
    return household_id


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------


def create_invitation(
    client: Any,
    user_id: str,
    *,
    invited_email: str | None = None,
    invited_name: str | None = None,
    message: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    household_id = get_user_household(client, user_id)
    if not household_id:
        raise HouseholdNotFoundError("You need to join a household before sending invites")

    email = _clean(invited_email)
    invitation = HouseholdInvitation(
        token=secrets.token_urlsafe(32),
        household_id=household_id,
        created_by=user_id,
        invited_email=email.lower() if email else None,
        invited_name=_clean(invited_name),
        message=_clean(message),
        expires_at=(now or utcnow()) + timedelta(days=INVITATION_TTL_DAYS),
    )
    result = client.table(TABLE_INVITATIONS).insert(invitation.to_insert_dict()).execute()
    if not result.data:
        raise ServiceError("Failed to create invite")

    log.info("household_invitation_created", household_id=household_id, user_id=user_id)
    return result.data[0]


def list_invitations(client: Any, user_id: str) -> list[dict[str, Any]]:
    household_id = get_user_household(client, user_id)
    if not household_id:
        raise HouseholdNotFoundError()
    return (
        client.table(TABLE_INVITATIONS)
        .select("*")
        .eq("household_id", household_id)
        .order("created_at", desc=True)
        .execute()
    ).data or []


def get_invitation(client: Any, token: str, now: datetime | None = None) -> dict[str, Any]:
    """Invitation preview by token, with the inviter's name and acceptability."""
    rows = (
        client.table(TABLE_INVITATIONS)
        .select(INVITE_HOUSEHOLD_EMBED)
        .eq("token", token)
        .limit(1)
        .execute()
    ).data or []
    if not rows:
        raise NotFoundError("Invitation not found")
    row = rows[0]
    invitation = HouseholdInvitation.from_db_row(row)

    inviter_rows = (
        client.table(TABLE_USER_PROFILES)
        .select("id, display_name, email")
        .eq("id", str(invitation.created_by))
        .limit(1)
        .execute()
    ).data or []
    inviter = UserProfile.from_db_row(inviter_rows[0]).label if inviter_rows else "A household member"

    now = now or utcnow()
    return {
        **row,
        "inviter_name": inviter,
        "is_expired": invitation.is_expired(now),
        "can_accept": invitation.can_accept(now),
    }


def accept_invitation(
    client: Any,
    user_id: str,
    token: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Join the invitation's household and mark the invitation accepted."""
    now = now or utcnow()
    invite = get_invitation(client, token, now)
    if not invite["can_accept"]:
        if invite["status"] == "pending":
            (
                client.table(TABLE_INVITATIONS)
                .update({"status": "expired"})
                .eq("id", invite["id"])
                .execute()
            )
        raise ValidationError("Invitation is no longer valid")

    household = join_household(client, user_id, invite["household_id"])
    (
        client.table(TABLE_INVITATIONS)
        .update(
            {
                "status": "accepted",
                "accepted_by": user_id,
                "accepted_at": now.isoformat(),
            }
        )
        .eq("id", invite["id"])
        .execute()
    )
    log.info(
        "household_invitation_accepted",
        household_id=invite["household_id"],
        invitation_id=invite["id"],
        user_id=user_id,
    )
    return {"household": household, "invitation_id": invite["id"]}


def revoke_invitation(client: Any, user_id: str, invitation_id: str) -> dict[str, Any]:
    """Cancel a pending invitation belonging to the caller's household."""
    household_id = get_user_household(client, user_id)
    if not household_id:
        raise HouseholdNotFoundError()

    result = (
        client.table(TABLE_INVITATIONS)
        .update({"status": "cancelled"})
        .eq("id", invitation_id)
        .eq("household_id", household_id)
        .eq("status", "pending")
        .execute()
    )
    if not result.data:
        raise NotFoundError("Invitation not found")
    log.info("household_invitation_revoked", household_id=household_id, invitation_id=invitation_id)
    return result.data[0]
