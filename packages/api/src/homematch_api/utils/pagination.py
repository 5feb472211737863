"""Offset and created_at-cursor pagination helpers."""

from __future__ import annotations

from typing import Any

from fastapi import Query

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def clamp_limit(value: int | None, default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
    """Clamp a client-supplied limit into 1..maximum."""
    if value is None:
        return default
    return max(1, min(value, maximum))


def clamp_offset(value: int | None) -> int:
    if value is None:
        return 0
    return max(0, value)


class OffsetParams:
    """Dependency for limit/offset query params.

    Out-of-range values are clamped rather than rejected.
    """

    def __init__(
        self,
        limit: int | None = Query(None, description="Number of results (1-100)"),
        offset: int | None = Query(None, description="Number of results to skip"),
    ) -> None:
        self.limit = clamp_limit(limit)
        self.offset = clamp_offset(offset)


def next_created_at_cursor(items: list[dict[str, Any]], limit: int) -> str | None:
    """Return the created_at of the last row when a full page was returned."""
    if len(items) < limit or not items:
        return None
    value = items[-1].get("created_at")
    return str(value) if value is not None else None
