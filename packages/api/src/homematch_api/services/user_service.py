"""User search and avatar storage."""

from __future__ import annotations

import re
from typing import Any

import structlog
from postgrest.exceptions import APIError

from homematch_shared.config import settings
from homematch_shared.constants import TABLE_USER_PROFILES
from homematch_shared.models import UserProfile

from homematch_api.errors import ServiceError, ValidationError
from homematch_api.utils.filtering import apply_text_search

log = structlog.get_logger(__name__)

MIN_SEARCH_LENGTH = 3
MAX_SEARCH_RESULTS = 10

ALLOWED_AVATAR_TYPES: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}

# Characters with meaning inside a PostgREST or=() filter
_FILTER_CHARS = re.compile(r"[,()*%\\]")


def search_users(
    client: Any,
    query: str | None,
    *,
    exclude_user_id: str | None = None,
    limit: int = MAX_SEARCH_RESULTS,
) -> list[dict[str, Any]]:
    term = _FILTER_CHARS.sub("", (query or "").strip())
    if len(term) < MIN_SEARCH_LENGTH:
        raise ValidationError("Search query must be at least 3 characters")

    builder = client.table(TABLE_USER_PROFILES).select(
        "id, email, display_name, household_id, preferences"
    )
    builder = apply_text_search(builder, ["email", "display_name"], term)
    if exclude_user_id:
        builder = builder.neq("id", exclude_user_id)
    result = builder.limit(limit).execute()

    users = []
    for row in result.data or []:
        profile = UserProfile.from_db_row(row)
        users.append(
            {
                "id": str(profile.id),
                "email": profile.email,
                "display_name": profile.display_name,
                "avatar_url": profile.avatar_url,
                "household_id": str(profile.household_id) if profile.household_id else None,
            }
        )
    return users


# ---------------------------------------------------------------------------
# Avatars
# ---------------------------------------------------------------------------


def _bucket(client: Any) -> Any:
    return client.storage.from_(settings.avatar_bucket)


def _remove_existing(client: Any, user_id: str) -> None:
    existing = _bucket(client).list(user_id) or []
    paths = [f"{user_id}/{f['name']}" for f in existing if f.get("name")]
    if paths:
        _bucket(client).remove(paths)


def _get_preferences(client: Any, user_id: str) -> dict[str, Any]:
    result = (
        client.table(TABLE_USER_PROFILES)
        .select("preferences")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        return {}
    return dict(result.data[0].get("preferences") or {})


def validate_avatar(content_type: str | None, size: int) -> str:
    """Return the file extension for an acceptable avatar upload."""
    ext = ALLOWED_AVATAR_TYPES.get(content_type or "")
    if ext is None:
        raise ValidationError("Invalid file type. Allowed types: PNG, JPEG, WebP")
    if size > settings.avatar_max_bytes:
        raise ValidationError("File size must be less than 2MB")
    return ext


def upload_avatar(
    client: Any,
    user_id: str,
    content_type: str | None,
    data: bytes,
) -> str:
    """Store a custom avatar and point the profile at it. Returns the public URL."""
    ext = validate_avatar(content_type, len(data))
    path = f"{user_id}/avatar.{ext}"

    _remove_existing(client, user_id)
    _bucket(client).upload(
        path,
        data,
        file_options={"content-type": content_type, "upsert": "true"},
    )
    public_url = _bucket(client).get_public_url(path)

    preferences = _get_preferences(client, user_id)
    preferences["avatar"] = {"type": "custom", "value": public_url}
    try:
        (
            client.table(TABLE_USER_PROFILES)
            .update({"preferences": preferences})
            .eq("id", user_id)
            .execute()
        )
    except APIError as exc:
        log.error("avatar_profile_update_failed", user_id=user_id, error=exc.message)
        _bucket(client).remove([path])
        raise ServiceError("Failed to update profile") from exc

    log.info("avatar_uploaded", user_id=user_id, path=path, bytes=len(data))
    return public_url


def delete_avatar(client: Any, user_id: str) -> None:
    _remove_existing(client, user_id)

    preferences = _get_preferences(client, user_id)
    preferences.pop("avatar", None)
    try:
        (
            client.table(TABLE_USER_PROFILES)
            .update({"preferences": preferences})
            .eq("id", user_id)
            .execute()
        )
    except APIError as exc:
        log.error("avatar_profile_update_failed", user_id=user_id, error=exc.message)
        raise ServiceError("Failed to update profile") from exc

    log.info("avatar_deleted", user_id=user_id)
