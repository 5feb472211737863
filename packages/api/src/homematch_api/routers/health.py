"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from homematch_shared import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": __version__}


@router.get("/ready")
async def ready() -> dict:
    return {"status": "ready"}
