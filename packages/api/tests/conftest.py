"""Shared test fixtures for homematch-api."""

from __future__ import annotations

import time
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from jose import jwt as jose_jwt

from homematch_shared.config import settings

TEST_JWT_SECRET = "test-jwt-secret-for-homematch-api-tests-only"
settings.supabase_jwt_secret = TEST_JWT_SECRET

CHAIN_METHODS = (
    "select", "eq", "neq", "gt", "gte", "lt", "lte", "ilike", "or_", "in_",
    "contains", "order", "limit", "range", "insert", "upsert", "update", "delete",
)


def make_chain(data=None, count=0, error: Exception | None = None):
    """Create a chainable mock that returns given data on execute().

    When error is given, execute() raises it instead.
    """
    chain = MagicMock()
    if error is not None:
        chain.execute.side_effect = error
    else:
        chain.execute.return_value = MagicMock(data=data if data is not None else [], count=count)
    for method in CHAIN_METHODS:
        getattr(chain, method).return_value = chain
    return chain


def _result(outcome):
    if hasattr(outcome, "__next__"):
        outcome = next(outcome)
    if isinstance(outcome, Exception):
        return make_chain(error=outcome)
    if isinstance(outcome, tuple):
        return make_chain(*outcome)
    return make_chain(outcome)


def in_order(*outcomes):
    """Results for successive calls to the same table."""
    return iter(outcomes)


def make_supabase(table_data=None, rpc_data=None):
    """Create a mock Supabase client.

    table_data: optional dict mapping table name -> result, where a result
    is a list of rows, a (rows, count) tuple or an Exception raised on
    execute(). An iterator of such results (see in_order) is consumed one per
    table() call. Unmapped tables return empty results.
    rpc_data: same shape, keyed by RPC function name.

    Every chain handed out is recorded in client.chains[name] so tests can
    assert on the filters that were applied.
    """
    client = MagicMock()
    td = table_data or {}
    rd = rpc_data or {}
    client.chains = {}

    def _table(name):
        chain = _result(td.get(name, []))
        client.chains.setdefault(name, []).append(chain)
        return chain

    def _rpc(name, params=None):
        chain = _result(rd.get(name, []))
        client.chains.setdefault(f"rpc:{name}", []).append(chain)
        return chain

    client.table.side_effect = _table
    client.rpc.side_effect = _rpc

    bucket = MagicMock()
    bucket.list.return_value = []
    bucket.get_public_url.return_value = "https://cdn.example.com/avatars/avatar.png"
    client.storage.from_.return_value = bucket
    client.bucket = bucket
    return client


def make_token(user_id: str | None = None, *, email: str = "member@example.com", **claims) -> str:
    payload = {
        "sub": user_id or str(uuid4()),
        "email": email,
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
        "user_metadata": {"display_name": "Test Member"},
        **claims,
    }
    return jose_jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


@pytest.fixture(autouse=True)
def _clear_caches():
    """Clear all in-memory caches between tests."""
    from homematch_api.utils.cache import clear_all_caches
    yield
    clear_all_caches()


@pytest.fixture()
def app():
    from homematch_api.app import create_app
    return create_app()


@pytest.fixture()
def client(app):
    """HTTP test client."""
    return TestClient(app)


@pytest.fixture()
def user_id() -> str:
    return str(uuid4())


@pytest.fixture()
def partner_id() -> str:
    return str(uuid4())


@pytest.fixture()
def household_id() -> str:
    return str(uuid4())


@pytest.fixture()
def auth_headers(user_id) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture()
def members(user_id, partner_id, household_id) -> list[dict]:
    """Two household members; the caller first so household lookups resolve."""
    return [
        {"id": user_id, "household_id": household_id, "display_name": "Alex", "email": "alex@example.com"},
        {"id": partner_id, "household_id": household_id, "display_name": None, "email": "sam@example.com"},
    ]
