"""
time_utils.py — Timestamp parsing helpers.

PostgREST returns timestamptz columns as ISO-8601 strings, with either a
numeric offset or a trailing "Z". Everything here works in UTC.

Usage:
    from homematch_shared.time_utils import parse_timestamp, utcnow

    parse_timestamp("2024-06-01T10:00:00Z")   # datetime(2024, 6, 1, 10, tzinfo=UTC)
    parse_timestamp("not a date")             # None
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO timestamp into an aware UTC datetime, or None.

    Naive values are taken to be UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
