"""
sources/zillow.py — Zillow listing search through RapidAPI.

Endpoint:
  GET https://{host}/propertyExtendedSearch
      ?location=Oakland, CA&status_type=ForSale&page=1&pageSize=20
  Headers: X-RapidAPI-Key, X-RapidAPI-Host

Response shape varies by RapidAPI plan; listings sit under one of
  props | results | data.results
and paging is signalled by hasNextPage, totalPages,
pagination.totalPages or totalCount (checked in that order).

Usage:
    source = ZillowSource(max_pages=1)
    df = await source.run(location="Berkeley, CA")
    source.fetches["Berkeley, CA"].errors   # per-location HTTP problems
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from typing import Any

import httpx
import polars as pl

from homematch_shared.config import settings
from homematch_pipeline.sources.base import BaseSource
from homematch_pipeline.transforms.normalize import items_to_frame, normalize_listings
from homematch_pipeline.utils.retry import with_retry

DEFAULT_PAGE_SIZE = 20
DEFAULT_MAX_PAGES = 2
DEFAULT_DELAY_S = 1.25
MAX_RATE_LIMIT_WAITS = 3


class ZillowAPIError(Exception):
    """Non-2xx answer from the search endpoint."""


class RateLimited(ZillowAPIError):
    pass


@dataclass
class SearchPage:
    items: list[dict[str, Any]]
    has_next_page: bool


@dataclass
class LocationFetch:
    """Raw items and paging outcome for one location."""

    location: str
    items: list[Any] = field(default_factory=list)
    pages_fetched: int = 0
    rate_limit_waits: int = 0
    errors: list[str] = field(default_factory=list)


def extract_results(data: Any) -> list[Any]:
    if not isinstance(data, dict):
        return []
    for candidate in (data.get("props"), data.get("results"), (data.get("data") or {}).get("results")):
        if isinstance(candidate, list):
            return candidate
    return []


def has_another_page(data: dict[str, Any], page: int, page_size: int, returned: int) -> bool:
    if isinstance(data.get("hasNextPage"), bool):
        return data["hasNextPage"]

    total_pages = data.get("totalPages") or (data.get("pagination") or {}).get("totalPages")
    if not total_pages and data.get("totalCount"):
        total_pages = math.ceil(data["totalCount"] / page_size)
    if isinstance(total_pages, (int, float)) and total_pages > 0:
        return page < total_pages

    return returned >= page_size


class ZillowSource(BaseSource):
    """Pages Zillow's property search for each requested location."""

    name = "Zillow"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        host: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        delay_s: float = DEFAULT_DELAY_S,
        timeout: float = 30.0,
    ) -> None:
        super().__init__()
        self._api_key = api_key if api_key is not None else settings.rapidapi_key
        if not self._api_key:
            raise ValueError("RAPIDAPI_KEY is not configured")
        self._host = host or settings.zillow_rapidapi_host
        self._page_size = page_size
        self._max_pages = max_pages
        self._delay_s = delay_s
        self._timeout = timeout
        self.fetches: dict[str, LocationFetch] = {}

    @property
    def search_url(self) -> str:
        return f"https://{self._host}/propertyExtendedSearch"

    def _headers(self) -> dict[str, str]:
        return {"X-RapidAPI-Key": self._api_key, "X-RapidAPI-Host": self._host}

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    @with_retry(max_attempts=3, base_delay=1.0, retry_on=(httpx.TransportError,))
    async def _get(self, client: httpx.AsyncClient, params: dict[str, str]) -> httpx.Response:
        return await client.get(self.search_url, params=params)

    async def fetch_page(self, client: httpx.AsyncClient, location: str, page: int) -> SearchPage:
        params = {
            "location": location,
            "status_type": "ForSale",
            "page": str(page),
            "pageSize": str(self._page_size),
        }
        response = await self._get(client, params)

        if response.status_code == 429:
            raise RateLimited(f"Rate limited on {location} page {page}")
        if response.is_error:
            raise ZillowAPIError(
                f"HTTP {response.status_code} for {location} page {page}: {response.text[:200]}"
            )

        data = response.json()
        items = extract_results(data)
        has_next = has_another_page(data, page, self._page_size, len(items)) if isinstance(data, dict) else False
        return SearchPage(items=items, has_next_page=has_next)

    async def fetch_location(self, location: str, *, max_pages: int | None = None) -> LocationFetch:
        """
        Page through one location.

        A 429 waits twice the page delay and retries the same page, at most
        MAX_RATE_LIMIT_WAITS times. Any other failure is recorded and ends
        paging for this location.
        """
        limit = max_pages or self._max_pages
        fetch = LocationFetch(location=location)
        fetch_log = self._log.bind(location=location)

        page = 1
        has_more = True
        async with httpx.AsyncClient(timeout=self._timeout, headers=self._headers()) as client:
            while has_more and page <= limit:
                try:
                    result = await self.fetch_page(client, location, page)
                except RateLimited as exc:
                    if fetch.rate_limit_waits >= MAX_RATE_LIMIT_WAITS:
                        fetch.errors.append(str(exc))
                        fetch_log.error("rate_limit_exhausted", page=page)
                        break
                    fetch.rate_limit_waits += 1
                    fetch_log.warning("rate_limited", page=page, wait_s=self._delay_s * 2)
                    await asyncio.sleep(self._delay_s * 2)
                    continue
                except (ZillowAPIError, httpx.HTTPError, ValueError) as exc:
                    fetch.errors.append(str(exc))
                    fetch_log.error("page_fetch_failed", page=page, error=str(exc))
                    break

                fetch.items.extend(result.items)
                fetch.pages_fetched += 1
                fetch_log.debug("page_fetched", page=page, items=len(result.items))

                has_more = result.has_next_page
                page += 1
                if has_more and page <= limit:
                    await asyncio.sleep(self._delay_s)

        return fetch

    # ------------------------------------------------------------------
    # BaseSource interface
    # ------------------------------------------------------------------

    async def extract(self, *, location: str, max_pages: int | None = None, **kwargs: Any) -> pl.DataFrame:
        """
        Fetch one location and map its items.

        The item count before mapping, and any paging errors, are kept in
        self.fetches[location].
        """
        fetch = await self.fetch_location(location, max_pages=max_pages)
        self.fetches[location] = fetch
        return items_to_frame(fetch.items)

    def transform(self, raw: pl.DataFrame) -> pl.DataFrame:
        return normalize_listings(raw)

    async def get_metadata(self) -> dict[str, Any]:
        return {
            "source_name": self.name,
            "host": self._host,
            "page_size": self._page_size,
            "max_pages": self._max_pages,
            "description": "Zillow for-sale listings via RapidAPI propertyExtendedSearch",
        }
