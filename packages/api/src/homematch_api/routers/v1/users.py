"""User endpoints: search and avatar management."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from homematch_shared.config import settings

from homematch_api.dependencies import AuthUser, get_supabase_client, require_auth
from homematch_api.errors import ServiceError
from homematch_api.responses import wrap_response
from homematch_api.services import user_service

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search")
async def search_users(
    q: str | None = Query(None),
    user: AuthUser = Depends(require_auth),
):
    client = get_supabase_client(service_role=True)
    try:
        users = user_service.search_users(client, q, exclude_user_id=user.user_id)
    except ServiceError:
        raise
    except Exception as exc:
        log.error("user_search_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to search users") from exc
    return wrap_response({"users": users})


@router.post("/avatar")
async def upload_avatar(
    file: UploadFile | None = File(None),
    user: AuthUser = Depends(require_auth),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    # One byte past the limit is enough to reject an oversized upload
    data = await file.read(settings.avatar_max_bytes + 1)
    user_service.validate_avatar(file.content_type, len(data))

    client = get_supabase_client(service_role=True)
    try:
        url = user_service.upload_avatar(client, user.user_id, file.content_type, data)
    except ServiceError:
        raise
    except Exception as exc:
        log.error("avatar_upload_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload avatar") from exc
    return wrap_response({"url": url})


@router.delete("/avatar")
async def delete_avatar(user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        user_service.delete_avatar(client, user.user_id)
    except ServiceError:
        raise
    except Exception as exc:
        log.error("avatar_delete_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete avatar") from exc
    return wrap_response({"deleted": True})
