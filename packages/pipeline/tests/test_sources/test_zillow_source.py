"""
tests/test_sources/test_zillow_source.py — Unit tests for ZillowSource.

HTTP is mocked with respx; delays are zeroed so paging runs instantly.
"""

from __future__ import annotations

import httpx
import polars as pl
import pytest

from homematch_pipeline.sources.zillow import (
    MAX_RATE_LIMIT_WAITS,
    ZillowSource,
    extract_results,
    has_another_page,
)

HOST = "zillow.test"
SEARCH_URL = f"https://{HOST}/propertyExtendedSearch"


def _source(**kwargs) -> ZillowSource:
    return ZillowSource(api_key="k", host=HOST, delay_s=0, **kwargs)


# ---------------------------------------------------------------------------
# Response shape helpers
# ---------------------------------------------------------------------------

class TestResponseShapes:
    def test_extract_results_variants(self):
        assert extract_results({"props": [1]}) == [1]
        assert extract_results({"results": [2]}) == [2]
        assert extract_results({"data": {"results": [3]}}) == [3]
        assert extract_results({"data": None}) == []
        assert extract_results([1, 2]) == []

    def test_has_next_page_flag_wins(self):
        assert has_another_page({"hasNextPage": False, "totalPages": 9}, 1, 20, 20) is False
        assert has_another_page({"hasNextPage": True}, 5, 20, 0) is True

    def test_total_pages(self):
        assert has_another_page({"totalPages": 3}, 2, 20, 20) is True
        assert has_another_page({"pagination": {"totalPages": 2}}, 2, 20, 20) is False

    def test_total_count(self):
        assert has_another_page({"totalCount": 41}, 2, 20, 20) is True
        assert has_another_page({"totalCount": 40}, 2, 20, 20) is False

    def test_short_page_fallback(self):
        assert has_another_page({}, 1, 20, 20) is True
        assert has_another_page({}, 1, 20, 7) is False


def test_missing_api_key_raises():
    with pytest.raises(ValueError, match="RAPIDAPI_KEY"):
        ZillowSource(api_key="")


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------

class TestFetchLocation:
    @pytest.mark.asyncio
    async def test_sends_search_params_and_headers(self, mock_http, search_item):
        route = mock_http.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json={"props": [search_item()], "hasNextPage": False})
        )
        fetch = await _source().fetch_location("Oakland, CA")

        assert fetch.pages_fetched == 1
        request = route.calls[0].request
        assert request.url.params["location"] == "Oakland, CA"
        assert request.url.params["status_type"] == "ForSale"
        assert request.url.params["page"] == "1"
        assert request.url.params["pageSize"] == "20"
        assert request.headers["X-RapidAPI-Key"] == "k"
        assert request.headers["X-RapidAPI-Host"] == HOST

    @pytest.mark.asyncio
    async def test_stops_at_max_pages(self, mock_http, search_item):
        route = mock_http.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json={"props": [search_item()], "hasNextPage": True})
        )
        fetch = await _source(max_pages=2).fetch_location("Oakland, CA")

        assert route.call_count == 2
        assert [c.request.url.params["page"] for c in route.calls] == ["1", "2"]
        assert len(fetch.items) == 2

    @pytest.mark.asyncio
    async def test_max_pages_override(self, mock_http, search_item):
        route = mock_http.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json={"props": [search_item()], "hasNextPage": True})
        )
        await _source(max_pages=5).fetch_location("Oakland, CA", max_pages=1)
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_rate_limit_retries_same_page(self, mock_http, search_item):
        route = mock_http.get(SEARCH_URL).mock(
            side_effect=[
                httpx.Response(429),
                httpx.Response(200, json={"results": [search_item()], "hasNextPage": False}),
            ]
        )
        fetch = await _source().fetch_location("Oakland, CA")

        assert route.call_count == 2
        assert [c.request.url.params["page"] for c in route.calls] == ["1", "1"]
        assert fetch.rate_limit_waits == 1
        assert fetch.errors == []
        assert len(fetch.items) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_is_bounded(self, mock_http):
        route = mock_http.get(SEARCH_URL).mock(return_value=httpx.Response(429))
        fetch = await _source().fetch_location("Oakland, CA")

        assert route.call_count == MAX_RATE_LIMIT_WAITS + 1
        assert fetch.errors == ["Rate limited on Oakland, CA page 1"]

    @pytest.mark.asyncio
    async def test_http_error_recorded_and_paging_stops(self, mock_http, search_item):
        route = mock_http.get(SEARCH_URL).mock(
            side_effect=[
                httpx.Response(200, json={"props": [search_item()], "hasNextPage": True}),
                httpx.Response(503, text="upstream unavailable"),
            ]
        )
        fetch = await _source(max_pages=5).fetch_location("Oakland, CA")

        assert route.call_count == 2
        assert len(fetch.items) == 1
        assert fetch.errors == ["HTTP 503 for Oakland, CA page 2: upstream unavailable"]

    @pytest.mark.asyncio
    async def test_invalid_json_recorded(self, mock_http):
        mock_http.get(SEARCH_URL).mock(return_value=httpx.Response(200, text="<html>"))
        fetch = await _source().fetch_location("Oakland, CA")
        assert len(fetch.errors) == 1
        assert fetch.items == []


# ---------------------------------------------------------------------------
# extract() / run()
# ---------------------------------------------------------------------------

class TestExtractTransform:
    @pytest.mark.asyncio
    async def test_run_returns_normalized_frame(self, mock_http, search_item):
        items = [search_item(1), search_item(2), {"zpid": 3, "city": "Oakland"}]
        mock_http.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json={"props": items, "hasNextPage": False})
        )
        source = _source()
        df = await source.run(location="Oakland, CA")

        assert isinstance(df, pl.DataFrame)
        assert df["zpid"].to_list() == ["1", "2"]
        assert set(df["property_type"].to_list()) == {"single_family"}
        # The unmapped item still counts as seen
        assert len(source.fetches["Oakland, CA"].items) == 3

    @pytest.mark.asyncio
    async def test_get_metadata(self):
        meta = await _source().get_metadata()
        assert meta["source_name"] == "Zillow"
        assert meta["host"] == HOST
