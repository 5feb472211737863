"""Map helper endpoints."""

from __future__ import annotations

import httpx
import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from homematch_api.responses import wrap_response
from homematch_api.services import places_service

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/maps", tags=["maps"])


class LatLng(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class AutocompleteRequest(BaseModel):
    input: str = Field(min_length=1, max_length=100)
    location: LatLng | None = None
    radius: int | None = Field(default=None, ge=1, le=50000)
    types: list[str] | None = None
    strictbounds: bool = False


@router.post("/places/autocomplete")
async def places_autocomplete(body: AutocompleteRequest):
    try:
        predictions = await places_service.autocomplete(
            body.input,
            location=(body.location.lat, body.location.lng) if body.location else None,
            radius=body.radius,
            types=body.types,
            strictbounds=body.strictbounds,
        )
    except (httpx.HTTPError, ValueError) as exc:
        log.error("places_autocomplete_error", error=str(exc), exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from exc
    return wrap_response({"predictions": predictions})
