"""Interaction endpoints: record, summarize, list and reset."""

from __future__ import annotations

from typing import Any, Literal
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from homematch_shared.constants import InteractionType

from homematch_api.dependencies import AuthUser, get_supabase_client, require_auth
from homematch_api.errors import ServiceError
from homematch_api.responses import wrap_response
from homematch_api.services import interaction_service
from homematch_api.utils.pagination import clamp_limit

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/interactions", tags=["interactions"])

DEFAULT_PAGE_SIZE = 12


class InteractionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    property_id: UUID = Field(alias="propertyId")
    type: InteractionType
    score_data: dict[str, Any] | None = Field(default=None, alias="scoreData")


@router.post("")
async def create_interaction(body: InteractionRequest, user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        result = interaction_service.record_interaction(
            client,
            user.user_id,
            str(body.property_id),
            body.type,
            score_data=body.score_data,
        )
    except ServiceError:
        raise
    except Exception as exc:
        log.error("record_interaction_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process interaction") from exc
    return wrap_response(result)


@router.get("")
async def list_interactions(
    type: Literal["summary", "like", "dislike", "skip", "view"] | None = Query(None),
    cursor: str | None = Query(None, description="created_at of the last item of the previous page"),
    limit: int | None = Query(None),
    user: AuthUser = Depends(require_auth),
):
    if type is None:
        raise HTTPException(status_code=400, detail="Missing type query parameter")

    client = get_supabase_client(service_role=True)
    if type == "summary":
        try:
            summary = interaction_service.get_interaction_summary(client, user.user_id)
        except Exception as exc:
            log.error("interaction_summary_failed", user_id=user.user_id, error=str(exc), exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to fetch summary") from exc
        return wrap_response(summary)

    page_size = clamp_limit(limit, default=DEFAULT_PAGE_SIZE)
    try:
        page = interaction_service.list_interacted_properties(
            client, user.user_id, type, cursor=cursor, limit=page_size
        )
    except Exception as exc:
        log.error("interaction_list_failed", user_id=user.user_id, type=type, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch {type} properties") from exc

    return wrap_response(page, page_size=page_size, cursor=page["next_cursor"])


@router.delete("")
async def reset_interactions(user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        result = interaction_service.reset_interactions(client, user.user_id)
    except Exception as exc:
        log.error("reset_interactions_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to reset interactions") from exc
    return wrap_response(result)
