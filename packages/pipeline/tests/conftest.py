"""
tests/conftest.py — Shared pytest fixtures for the pipeline test suite.

Provides:
  search_item()            — factory for Zillow search items
  rapidapi_key             — patches settings.rapidapi_key
  mock_supabase_client()   — MagicMock of the Supabase client
  mock_http                — respx router for faking HTTP responses
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import respx

from homematch_shared.config import settings

ZILLOW_HOST = "zillow.test"
SEARCH_URL = f"https://{ZILLOW_HOST}/propertyExtendedSearch"


@pytest.fixture
def search_item() -> Callable[..., dict[str, Any]]:
    """Build a propertyExtendedSearch item; keyword args override fields."""

    def _make(zpid: int | str = 1001, **overrides: Any) -> dict[str, Any]:
        item = {
            "zpid": zpid,
            "address": f"{zpid} Grand Ave",
            "city": "Oakland",
            "state": "CA",
            "zipcode": "94610",
            "price": 850000,
            "bedrooms": 3,
            "bathrooms": 2,
            "livingArea": 1650,
            "lotAreaValue": 4200.5,
            "yearBuilt": 1924,
            "propertyType": "SINGLE_FAMILY",
            "statusType": "FOR_SALE",
            "latitude": 37.81,
            "longitude": -122.25,
            "imgSrc": f"https://photos.example.com/{zpid}.jpg",
        }
        item.update(overrides)
        return item

    return _make


@pytest.fixture
def rapidapi_key():
    with patch.object(settings, "rapidapi_key", "test-rapidapi-key"):
        yield "test-rapidapi-key"


@pytest.fixture
def mock_supabase_client() -> MagicMock:
    """
    A MagicMock that simulates the supabase.Client interface.

    .table().upsert().execute() succeeds by default.
    """
    client = MagicMock()
    client.table.return_value.upsert.return_value.execute.return_value = MagicMock(data=[], count=0)
    return client


@pytest.fixture
def mock_supabase(mock_supabase_client: MagicMock):
    """Patch the loader's client factory; yields the mock client."""
    with patch(
        "homematch_pipeline.loaders.supabase_loader.get_supabase_client",
        return_value=mock_supabase_client,
    ):
        yield mock_supabase_client


@pytest.fixture
def mock_http():
    """
    Activate the respx mock router for all httpx requests.

    Usage in tests:
        def test_something(mock_http):
            mock_http.get(SEARCH_URL).mock(return_value=httpx.Response(200, json={...}))
    """
    with respx.mock(assert_all_called=False) as router:
        yield router
