"""
pipelines/listings.py — Zillow listing ingestion into the properties table.

For each location: page the search endpoint, map and validate the items,
upsert the survivors on zpid. One location failing never stops the rest;
its problems land in that location's summary.

Usage:
    from homematch_pipeline.pipelines.listings import run
    summary = await run(["Oakland, CA", "Berkeley, CA"], max_pages=1)
    summary = await run(dry_run=True)   # locations from settings, no writes
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

from homematch_shared.config import settings
from homematch_pipeline.loaders.supabase_loader import SupabaseLoader
from homematch_pipeline.sources.zillow import ZillowSource
from homematch_pipeline.utils.logging import get_logger

log = get_logger(__name__, pipeline="listings")

TABLE = "properties"
CONFLICT_COLUMNS = ["zpid"]

DEFAULT_LOCATIONS: list[str] = [
    "San Francisco, CA",
    "Oakland, CA",
    "Berkeley, CA",
    "Alameda, CA",
    "San Mateo, CA",
    "Palo Alto, CA",
    "Mountain View, CA",
    "San Jose, CA",
    "Walnut Creek, CA",
    "Fremont, CA",
]


@dataclass
class LocationSummary:
    location: str
    attempted: int = 0
    transformed: int = 0
    loaded: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class IngestSummary:
    dry_run: bool = False
    locations: list[LocationSummary] = field(default_factory=list)

    @property
    def totals(self) -> dict[str, int]:
        return {
            key: sum(getattr(loc, key) for loc in self.locations)
            for key in ("attempted", "transformed", "loaded", "skipped")
        }

    @property
    def error_count(self) -> int:
        return sum(len(loc.errors) for loc in self.locations)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "totals": self.totals,
            "locations": [asdict(loc) for loc in self.locations],
        }


def resolve_locations(locations: Iterable[str] | None) -> list[str]:
    """Explicit locations, else ZILLOW_LOCATIONS, else the default Bay Area list."""
    explicit = [loc.strip() for loc in locations or [] if loc and loc.strip()]
    return explicit or settings.zillow_locations_list or list(DEFAULT_LOCATIONS)


async def _ingest_location(
    source: ZillowSource,
    loader: SupabaseLoader | None,
    location: str,
    max_pages: int | None,
) -> LocationSummary:
    summary = LocationSummary(location=location)

    df = await source.run(location=location, max_pages=max_pages)
    fetch = source.fetches[location]

    summary.attempted = len(fetch.items)
    summary.transformed = len(df)
    summary.skipped = summary.attempted - summary.transformed
    summary.errors.extend(fetch.errors)

    if df.is_empty():
        return summary

    if loader is None:
        log.info("dry_run_skip", location=location, rows=len(df))
        return summary

    result = await loader.upsert(TABLE, df, conflict_columns=CONFLICT_COLUMNS)
    summary.loaded = result.records_loaded
    summary.errors.extend(result.errors)
    return summary


async def run(
    locations: Iterable[str] | None = None,
    *,
    dry_run: bool = False,
    max_pages: int | None = None,
    source: ZillowSource | None = None,
    loader: SupabaseLoader | None = None,
) -> IngestSummary:
    """
    Ingest listings for each location.

    Args:
        locations: "City, ST" strings; see resolve_locations() for defaults.
        dry_run:   Fetch and transform but write nothing.
        max_pages: Pages per location (default: the source's setting).
        source:    Pre-built source, mainly for tests.
        loader:    Pre-built loader; ignored on dry runs.

    Returns:
        IngestSummary with totals and per-location counts.
    """
    targets = resolve_locations(locations)
    log.info("listings_pipeline_start", n_locations=len(targets), dry_run=dry_run, max_pages=max_pages)

    source = source or ZillowSource()
    if dry_run:
        loader = None
    elif loader is None:
        loader = SupabaseLoader()

    summary = IngestSummary(dry_run=dry_run)
    for location in targets:
        try:
            loc_summary = await _ingest_location(source, loader, location, max_pages)
        except Exception as exc:
            log.error("location_failed", location=location, error=str(exc), exc_info=True)
            loc_summary = LocationSummary(location=location, errors=[str(exc)])
        summary.locations.append(loc_summary)

    log.info(
        "listings_pipeline_complete",
        **summary.totals,
        errors=summary.error_count,
    )
    return summary
