"""Google Places Autocomplete proxy.

The server-side key never leaves this process; clients only see the
normalized predictions.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from homematch_shared.config import settings

from homematch_api.errors import FeatureUnavailableError, ValidationError

log = structlog.get_logger(__name__)

TIMEOUT = httpx.Timeout(10.0)


def _build_params(
    input: str,
    *,
    location: tuple[float, float] | None = None,
    radius: int | None = None,
    types: list[str] | None = None,
    strictbounds: bool = False,
) -> dict[str, str]:
    params = {"input": input, "key": settings.google_maps_server_api_key}
    if location is not None:
        params["location"] = f"{location[0]},{location[1]}"
    if radius:
        params["radius"] = str(radius)
    if types:
        params["types"] = "|".join(types)
    if strictbounds:
        params["strictbounds"] = "true"
    return params


def normalize_prediction(raw: Any) -> dict[str, Any] | None:
    if not isinstance(raw, dict):
        return None
    description = raw.get("description")
    place_id = raw.get("place_id")
    types = raw.get("types")
    if not isinstance(description, str) or not isinstance(place_id, str) or not isinstance(types, list):
        return None
    formatting = raw.get("structured_formatting") or {}
    return {
        "description": description,
        "place_id": place_id,
        "types": types,
        "matched_substrings": raw.get("matched_substrings") or [],
        "structured_formatting": {
            "main_text": formatting.get("main_text") or description,
            "secondary_text": formatting.get("secondary_text"),
        },
    }


async def autocomplete(
    input: str,
    *,
    location: tuple[float, float] | None = None,
    radius: int | None = None,
    types: list[str] | None = None,
    strictbounds: bool = False,
) -> list[dict[str, Any]]:
    if not settings.google_maps_server_api_key:
        raise FeatureUnavailableError("Places service unavailable")

    params = _build_params(
        input, location=location, radius=radius, types=types, strictbounds=strictbounds
    )
    url = f"{settings.google_places_base_url}/autocomplete/json"
    async with httpx.AsyncClient(timeout=TIMEOUT) as client:
        response = await client.get(url, params=params)
    data = response.json()

    status = data.get("status") if isinstance(data, dict) else None
    if status == "ZERO_RESULTS":
        return []
    if status != "OK":
        log.warning("places_autocomplete_failed", status=status)
        raise ValidationError("Places autocomplete failed", details={"status": status})

    predictions = [normalize_prediction(p) for p in data.get("predictions") or []]
    return [p for p in predictions if p is not None]
