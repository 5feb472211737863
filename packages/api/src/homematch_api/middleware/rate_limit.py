"""Tiered in-memory rate limiting middleware.

Clients are identified by the ``sub`` of a valid bearer token, otherwise
by the peer address of the connection. Forged or expired tokens fall back
to the address; the 401 itself comes from the route dependencies.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from homematch_shared.config import settings

from homematch_api.middleware.auth import bearer_token, validate_jwt
from homematch_api.responses import error_response

# Limits: (requests_per_period, period_seconds, block_seconds)
TIER_LIMITS: dict[str, tuple[int, int, int]] = {
    "strict": (10, 60, 300),      # 10/min, 5 min block
    "standard": (30, 60, 120),    # 30/min, 2 min block
    "relaxed": (100, 60, 60),     # 100/min, 1 min block
}

# Path prefixes that always use the strict tier
STRICT_PREFIXES: tuple[str, ...] = (
    "/v1/users/search",
    "/v1/users/avatar",
    "/v1/maps/",
    "/v1/households/invitations/",
)

EXEMPT_PATHS: frozenset[str] = frozenset({"/health", "/ready"})


@dataclass
class RateBucket:
    count: int = 0
    period_start: float = 0.0
    blocked_until: float = 0.0


def resolve_tier(method: str, path: str) -> str:
    if path.startswith(STRICT_PREFIXES):
        return "strict"
    if method in ("GET", "HEAD", "OPTIONS"):
        return "relaxed"
    return "standard"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app):
        super().__init__(app)
        self._buckets: dict[str, RateBucket] = {}
        self._lock = threading.Lock()

    def _get_key(self, request: Request) -> str:
        token = bearer_token(request)
        claims = validate_jwt(token) if token else None
        if claims and claims.get("sub"):
            return f"user:{claims['sub']}"
        # Forwarding headers are client-controlled, so only the socket peer counts
        client = request.client
        return f"ip:{client.host if client else 'unknown'}"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not settings.rate_limit_enabled or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        tier = resolve_tier(request.method, request.url.path)
        max_requests, period_secs, block_secs = TIER_LIMITS[tier]
        key = f"{tier}:{self._get_key(request)}"
        now = time.monotonic()

        with self._lock:
            bucket = self._buckets.setdefault(key, RateBucket(period_start=now))

            if bucket.blocked_until > now:
                return self._too_many(max_requests, int(bucket.blocked_until - now) + 1)

            # Reset period if expired
            if now - bucket.period_start >= period_secs:
                bucket.count = 0
                bucket.period_start = now

            if bucket.count >= max_requests:
                bucket.blocked_until = now + block_secs
                return self._too_many(max_requests, block_secs)

            bucket.count += 1
            remaining = max_requests - bucket.count

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response

    @staticmethod
    def _too_many(limit: int, retry_after: int) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content=error_response(
                "RATE_LIMIT_EXCEEDED",
                "Too many requests. Please try again later.",
            ),
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
            },
        )
