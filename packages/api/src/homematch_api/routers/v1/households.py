"""Household membership and invitation endpoints."""

from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from homematch_api.dependencies import AuthUser, get_supabase_client, require_auth
from homematch_api.errors import ServiceError
from homematch_api.responses import wrap_response
from homematch_api.services import household_service

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/households", tags=["households"])


class CreateHouseholdRequest(BaseModel):
    name: str | None = Field(default=None, max_length=100)


class JoinHouseholdRequest(BaseModel):
    household_id: UUID


class InvitationRequest(BaseModel):
    invited_email: str | None = Field(default=None, max_length=320)
    invited_name: str | None = Field(default=None, max_length=100)
    message: str | None = Field(default=None, max_length=500)


@router.get("")
async def get_household(user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        data = household_service.get_household(client, user.user_id)
    except ServiceError:
        raise
    except Exception as exc:
        log.error("household_fetch_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch household") from exc
    return wrap_response(data)


@router.post("")
async def create_household(
    body: CreateHouseholdRequest | None = None,
    user: AuthUser = Depends(require_auth),
):
    client = get_supabase_client(service_role=True)
    try:
        household = household_service.create_household(
            client, user.user_id, body.name if body else None
        )
    except ServiceError:
        raise
    except Exception as exc:
        log.error("household_create_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create household") from exc
    return wrap_response({"household": household})


@router.post("/join")
async def join_household(body: JoinHouseholdRequest, user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        household = household_service.join_household(
            client, user.user_id, str(body.household_id)
        )
    except ServiceError:
        raise
    except Exception as exc:
        log.error("household_join_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to join household") from exc
    return wrap_response({"household": household})


@router.post("/leave")
async def leave_household(user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        left = household_service.leave_household(client, user.user_id)
    except ServiceError:
        raise
    except Exception as exc:
        log.error("household_leave_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to leave household") from exc
    return wrap_response({"left": left is not None, "household_id": left})


@router.get("/invitations")
async def list_invitations(user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        invitations = household_service.list_invitations(client, user.user_id)
    except ServiceError:
        raise
    except Exception as exc:
        log.error("invitations_fetch_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load invites") from exc
    return wrap_response({"invitations": invitations}, total_count=len(invitations))


@router.post("/invitations")
async def create_invitation(body: InvitationRequest, user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        invitation = household_service.create_invitation(
            client,
            user.user_id,
            invited_email=body.invited_email,
            invited_name=body.invited_name,
            message=body.message,
        )
    except ServiceError:
        raise
    except Exception as exc:
        log.error("invitation_create_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create invite") from exc
    return wrap_response({"invitation": invitation})


# Public: the token itself is the credential
@router.get("/invitations/{token}")
async def get_invitation(token: str):
    client = get_supabase_client(service_role=True)
    try:
        invitation = household_service.get_invitation(client, token)
    except ServiceError:
        raise
    except Exception as exc:
        log.error("invitation_fetch_failed", error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load invite") from exc
    return wrap_response({"invitation": invitation})


@router.post("/invitations/{token}/accept")
async def accept_invitation(token: str, user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        result = household_service.accept_invitation(client, user.user_id, token)
    except ServiceError:
        raise
    except Exception as exc:
        log.error("invitation_accept_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to accept invite") from exc
    return wrap_response(result)


@router.delete("/invitations/{invitation_id}")
async def revoke_invitation(invitation_id: UUID, user: AuthUser = Depends(require_auth)):
    client = get_supabase_client(service_role=True)
    try:
        invitation = household_service.revoke_invitation(
            client, user.user_id, str(invitation_id)
        )
    except ServiceError:
        raise
    except Exception as exc:
        log.error("invitation_revoke_failed", user_id=user.user_id, error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to revoke invite") from exc
    return wrap_response({"invitation": invitation})
