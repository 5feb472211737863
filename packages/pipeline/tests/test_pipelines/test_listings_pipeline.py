"""
tests/test_pipelines/test_listings_pipeline.py — Listing ingestion end to end
with HTTP mocked by respx and Supabase by MagicMock.
"""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from homematch_shared.config import settings
from homematch_pipeline.loaders.supabase_loader import LoadResult, SupabaseLoader
from homematch_pipeline.pipelines.listings import (
    DEFAULT_LOCATIONS,
    IngestSummary,
    LocationSummary,
    resolve_locations,
    run,
)
from homematch_pipeline.sources.zillow import ZillowSource

HOST = "zillow.test"
SEARCH_URL = f"https://{HOST}/propertyExtendedSearch"


def _source() -> ZillowSource:
    return ZillowSource(api_key="k", host=HOST, delay_s=0)


def _respond_by_location(pages: dict[str, httpx.Response]):
    def _handler(request: httpx.Request) -> httpx.Response:
        return pages[request.url.params["location"]]

    return _handler


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------

def test_resolve_locations_prefers_explicit():
    assert resolve_locations([" Oakland, CA ", ""]) == ["Oakland, CA"]


def test_resolve_locations_from_settings():
    with patch.object(settings, "zillow_locations", "Napa, CA; Sonoma, CA;"):
        assert resolve_locations(None) == ["Napa, CA", "Sonoma, CA"]


def test_resolve_locations_default():
    with patch.object(settings, "zillow_locations", ""):
        assert resolve_locations(()) == DEFAULT_LOCATIONS


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class TestSupabaseLoader:
    @pytest.mark.asyncio
    async def test_batches_and_conflict_columns(self, mock_supabase, search_item):
        import polars as pl

        df = pl.DataFrame({"zpid": ["1", "2", "3"], "price": [1.0, None, 3.0]})
        result = await SupabaseLoader(batch_size=2).upsert("properties", df, conflict_columns=["zpid"])

        assert result.records_loaded == 3
        assert result.batches_total == 2
        upsert = mock_supabase.table.return_value.upsert
        first_batch = upsert.call_args_list[0].args[0]
        assert first_batch == [{"zpid": "1", "price": 1.0}, {"zpid": "2"}]
        assert upsert.call_args_list[0].kwargs == {"on_conflict": "zpid"}

    @pytest.mark.asyncio
    async def test_failed_batch_is_counted(self, mock_supabase):
        import polars as pl

        mock_supabase.table.return_value.upsert.return_value.execute.side_effect = [
            RuntimeError("duplicate key"),
            None,
        ]
        df = pl.DataFrame({"zpid": ["1", "2", "3"]})
        result = await SupabaseLoader(batch_size=2).upsert("properties", df, conflict_columns=["zpid"])

        assert result.records_loaded == 1
        assert result.records_failed == 2
        assert result.status == "partial_failure"
        assert result.errors == ["Batch 1/2: duplicate key"]

    @pytest.mark.asyncio
    async def test_empty_frame_is_noop(self, mock_supabase):
        import polars as pl

        result = await SupabaseLoader().upsert("properties", pl.DataFrame(), conflict_columns=["zpid"])
        assert result.status == "success"
        mock_supabase.table.assert_not_called()


# ---------------------------------------------------------------------------
# run()
# ---------------------------------------------------------------------------

class TestListingsRun:
    @pytest.mark.asyncio
    async def test_dry_run_counts_without_writing(self, mock_http, mock_supabase, search_item):
        items = [search_item(1), search_item(2, price=-1), {"zpid": 3}]
        mock_http.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json={"props": items, "hasNextPage": False})
        )
        summary = await run(["Oakland, CA"], dry_run=True, source=_source())

        assert summary.dry_run is True
        assert summary.totals == {"attempted": 3, "transformed": 1, "loaded": 0, "skipped": 2}
        mock_supabase.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_loads_each_location(self, mock_http, mock_supabase, search_item):
        mock_http.get(SEARCH_URL).mock(
            side_effect=_respond_by_location({
                "Oakland, CA": httpx.Response(200, json={"props": [search_item(1), search_item(2)], "hasNextPage": False}),
                "Berkeley, CA": httpx.Response(200, json={"results": [search_item(3)], "hasNextPage": False}),
            })
        )
        summary = await run(["Oakland, CA", "Berkeley, CA"], source=_source())

        assert [loc.loaded for loc in summary.locations] == [2, 1]
        assert summary.totals["loaded"] == 3
        upsert = mock_supabase.table.return_value.upsert
        assert upsert.call_count == 2
        rows = upsert.call_args_list[0].args[0]
        assert {r["zpid"] for r in rows} == {"1", "2"}
        assert all(r["is_active"] is True for r in rows)
        mock_supabase.table.assert_called_with("properties")

    @pytest.mark.asyncio
    async def test_http_errors_stay_with_their_location(self, mock_http, mock_supabase, search_item):
        mock_http.get(SEARCH_URL).mock(
            side_effect=_respond_by_location({
                "Oakland, CA": httpx.Response(500, text="boom"),
                "Berkeley, CA": httpx.Response(200, json={"props": [search_item(3)], "hasNextPage": False}),
            })
        )
        summary = await run(["Oakland, CA", "Berkeley, CA"], source=_source())

        oakland, berkeley = summary.locations
        assert oakland.errors == ["HTTP 500 for Oakland, CA page 1: boom"]
        assert oakland.loaded == 0
        assert berkeley.loaded == 1
        assert summary.error_count == 1

    @pytest.mark.asyncio
    async def test_upsert_errors_reported(self, mock_http, search_item):
        mock_http.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json={"props": [search_item(1)], "hasNextPage": False})
        )

        class FailingLoader:
            async def upsert(self, table, df, conflict_columns):
                return LoadResult(table=table, records_failed=len(df), errors=["Batch 1/1: timeout"])

        summary = await run(["Oakland, CA"], source=_source(), loader=FailingLoader())
        assert summary.locations[0].loaded == 0
        assert summary.locations[0].errors == ["Batch 1/1: timeout"]

    @pytest.mark.asyncio
    async def test_unexpected_source_failure_is_isolated(self, search_item):
        class BrokenSource:
            async def run(self, **kwargs):
                raise RuntimeError("schema drift")

        summary = await run(["Oakland, CA"], dry_run=True, source=BrokenSource())
        assert summary.locations[0].errors == ["schema drift"]


def test_summary_to_dict():
    summary = IngestSummary(
        locations=[
            LocationSummary("Oakland, CA", attempted=5, transformed=4, loaded=4, skipped=1),
            LocationSummary("Berkeley, CA", attempted=2, transformed=2, loaded=0, errors=["x"]),
        ]
    )
    data = summary.to_dict()
    assert data["totals"] == {"attempted": 7, "transformed": 6, "loaded": 4, "skipped": 1}
    assert data["locations"][1]["errors"] == ["x"]
