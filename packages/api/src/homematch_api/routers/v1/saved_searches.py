"""Saved search endpoints."""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from homematch_api.dependencies import AuthUser, get_supabase_client, require_auth
from homematch_api.errors import ServiceError
from homematch_api.responses import wrap_response
from homematch_api.services import saved_search_service

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/saved-searches", tags=["saved-searches"])


class SavedSearchCreate(BaseModel):
    name: str
    filters: dict[str, Any] = Field(default_factory=dict)


class SavedSearchUpdate(BaseModel):
    name: str | None = None
    filters: dict[str, Any] | None = None


@router.get("")
async def list_saved_searches(user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        searches = saved_search_service.list_saved_searches(client, user.user_id)
    except Exception as exc:
        log.error("saved_searches_fetch_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch saved searches") from exc
    return wrap_response(searches, total_count=len(searches))


@router.post("")
async def create_saved_search(body: SavedSearchCreate, user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        search = saved_search_service.create_saved_search(
            client, user.user_id, body.name, body.filters
        )
    except ServiceError:
        raise
    except Exception as exc:
        log.error("saved_search_create_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save search") from exc
    return wrap_response(search)


@router.patch("/{search_id}")
async def update_saved_search(
    search_id: UUID,
    body: SavedSearchUpdate,
    user: AuthUser = Depends(require_auth),
):
    client = get_supabase_client(service_role=True)
    try:
        search = saved_search_service.update_saved_search(
            client, user.user_id, str(search_id), name=body.name, filters=body.filters
        )
    except ServiceError:
        raise
    except Exception as exc:
        log.error("saved_search_update_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update saved search") from exc
    return wrap_response(search)


@router.delete("/{search_id}")
async def delete_saved_search(search_id: UUID, user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        saved_search_service.delete_saved_search(client, user.user_id, str(search_id))
    except ServiceError:
        raise
    except Exception as exc:
        log.error("saved_search_delete_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete saved search") from exc
    return wrap_response({"deleted": True})
