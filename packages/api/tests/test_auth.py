"""Tests for authentication and rate limiting middleware."""

from __future__ import annotations

import time
from unittest.mock import patch

from fastapi.testclient import TestClient
from jose import jwt as jose_jwt

from homematch_shared.config import settings

from homematch_api.middleware.rate_limit import TIER_LIMITS, resolve_tier
from tests.conftest import make_supabase, make_token


def test_missing_token_returns_401(client):
    response = client.get("/v1/couples/stats")
    assert response.status_code == 401
    assert response.json()["error"] == {"code": "UNAUTHORIZED", "message": "Unauthorized"}


def test_invalid_token_returns_401(client):
    response = client.get(
        "/v1/couples/stats",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid or expired token"


def test_expired_token_returns_401(client, user_id):
    token = make_token(user_id, exp=1)
    response = client.get("/v1/couples/stats", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_wrong_audience_returns_401(client, user_id):
    token = make_token(user_id, aud="anon")
    response = client.get("/v1/couples/stats", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_valid_token_reaches_route(client, auth_headers, members):
    mock = make_supabase({"user_profiles": members})
    with patch("homematch_api.routers.v1.couples.get_supabase_client", return_value=mock):
        response = client.get("/v1/couples/stats", headers=auth_headers)
    assert response.status_code == 200
    assert "X-Response-Time" in response.headers


def test_tier_resolution():
    assert resolve_tier("GET", "/v1/users/search") == "strict"
    assert resolve_tier("POST", "/v1/maps/places/autocomplete") == "strict"
    assert resolve_tier("GET", "/v1/households/invitations/tok-abc") == "strict"
    assert resolve_tier("GET", "/v1/couples/activity") == "relaxed"
    assert resolve_tier("POST", "/v1/interactions") == "standard"
    assert TIER_LIMITS["strict"][0] < TIER_LIMITS["standard"][0] < TIER_LIMITS["relaxed"][0]


def test_strict_tier_returns_429(client, auth_headers):
    mock = make_supabase({"user_profiles": []})
    limit = TIER_LIMITS["strict"][0]
    with patch("homematch_api.routers.v1.users.get_supabase_client", return_value=mock):
        statuses = [
            client.get("/v1/users/search?q=alex", headers=auth_headers).status_code
            for _ in range(limit + 1)
        ]
    assert statuses[:limit] == [200] * limit
    assert statuses[-1] == 429


def test_rate_limit_body_and_headers(client, auth_headers):
    mock = make_supabase()
    limit = TIER_LIMITS["strict"][0]
    with patch("homematch_api.routers.v1.users.get_supabase_client", return_value=mock):
        for _ in range(limit):
            client.get("/v1/users/search?q=alex", headers=auth_headers)
        response = client.get("/v1/users/search?q=alex", headers=auth_headers)
    assert response.status_code == 429
    assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
    assert "Retry-After" in response.headers


def test_health_is_exempt_from_rate_limit(client):
    for _ in range(TIER_LIMITS["relaxed"][0] + 5):
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_ready(client):
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/v1/nope")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_unsupported_method_returns_405(client, auth_headers):
    response = client.put("/v1/couples/stats", headers=auth_headers)
    assert response.status_code == 405
    assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"


def test_request_id_is_generated(client):
    response = client.get("/health")
    assert len(response.headers["X-Request-ID"]) == 36
    assert response.headers["X-Response-Time"].endswith("ms")


def test_request_id_is_propagated(client):
    response = client.get("/health", headers={"X-Request-ID": "trace-abc-123"})
    assert response.headers["X-Request-ID"] == "trace-abc-123"


def test_unhandled_error_uses_error_envelope(app):
    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    response = TestClient(app, raise_server_exceptions=False).get("/boom")
    assert response.status_code == 500
    assert response.json()["error"] == {
        "code": "INTERNAL_ERROR",
        "message": "Internal server error",
    }


def test_missing_jwt_secret_rejects_every_token(client, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "supabase_jwt_secret", "")
    response = client.get("/v1/couples/stats", headers=auth_headers)
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid or expired token"


def test_token_signed_with_other_secret_is_rejected(client, user_id):
    token = jose_jwt.encode(
        {"sub": user_id, "aud": "authenticated", "exp": int(time.time()) + 60},
        "super-secret-jwt-token-with-at-least-32-characters-long",
        algorithm="HS256",
    )
    response = client.get("/v1/couples/stats", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_rotating_forwarded_for_shares_one_bucket(client, monkeypatch):
    monkeypatch.setattr(settings, "google_maps_server_api_key", "")
    limit = TIER_LIMITS["strict"][0]
    statuses = [
        client.post(
            "/v1/maps/places/autocomplete",
            json={"input": "Mission"},
            headers={"X-Forwarded-For": f"203.0.113.{i}"},
        ).status_code
        for i in range(limit + 1)
    ]
    assert 429 not in statuses[:limit]
    assert statuses[-1] == 429


def test_forged_tokens_do_not_get_fresh_buckets(client, monkeypatch):
    monkeypatch.setattr(settings, "google_maps_server_api_key", "")
    limit = TIER_LIMITS["strict"][0]
    statuses = []
    for i in range(limit + 1):
        forged = jose_jwt.encode({"sub": f"user-{i}", "aud": "authenticated"}, "guess", algorithm="HS256")
        statuses.append(
            client.post(
                "/v1/maps/places/autocomplete",
                json={"input": "Mission"},
                headers={"Authorization": f"Bearer {forged}"},
            ).status_code
        )
    assert statuses[-1] == 429
