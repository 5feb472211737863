"""
transforms/normalize.py — Zillow search items -> properties rows.

Two stages:
  map_search_item()   — per item, in Python: pick fields out of the loosely
                        typed search payload, map enums, collect images.
                        Items without a zpid or a full address are skipped.
  normalize_listings() — per frame, in polars: drop rows with bad numbers,
                        cap bedroom/bathroom counts, null out impossible
                        coordinates, hash and deduplicate.

Usage:
    raw = items_to_frame(payload["props"])
    df = normalize_listings(raw)
"""

from __future__ import annotations

import hashlib
import math
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

import polars as pl

from homematch_shared.constants import PROPERTY_TYPE_MAP

MAX_ROOMS = 20

RAW_SCHEMA: dict[str, Any] = {
    "zpid": pl.String,
    "address": pl.String,
    "city": pl.String,
    "state": pl.String,
    "zip_code": pl.String,
    "price": pl.Float64,
    "bedrooms": pl.Float64,
    "bathrooms": pl.Float64,
    "square_feet": pl.Float64,
    "lot_size": pl.Float64,
    "year_built": pl.Float64,
    "property_type": pl.String,
    "listing_status": pl.String,
    "images": pl.List(pl.String),
    "latitude": pl.Float64,
    "longitude": pl.Float64,
}

OUTPUT_COLUMNS: list[str] = [
    "zpid",
    "address",
    "city",
    "state",
    "zip_code",
    "price",
    "bedrooms",
    "bathrooms",
    "square_feet",
    "lot_size",
    "year_built",
    "property_type",
    "listing_status",
    "images",
    "latitude",
    "longitude",
    "property_hash",
    "is_active",
    "updated_at",
]


# ---------------------------------------------------------------------------
# Item-level helpers
# ---------------------------------------------------------------------------


def to_float(value: Any) -> float | None:
    """Parse a number from the feed; None for anything unparseable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.replace(",", "").strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) or math.isinf(number) else number


def normalize_status(status: str | None) -> str:
    s = (status or "").lower()
    if "sale" in s:
        return "active"
    if "sold" in s:
        return "sold"
    if "pending" in s:
        return "pending"
    return "active"


def map_property_type(home_type: str | None) -> str:
    return PROPERTY_TYPE_MAP.get((home_type or "").upper(), "other")


def extract_images(item: dict[str, Any]) -> list[str]:
    images = item.get("images")
    if isinstance(images, list) and images:
        return [i for i in images if isinstance(i, str)]
    img_src = item.get("imgSrc")
    if isinstance(img_src, str) and img_src:
        return [img_src]
    return []


def _hash_number(value: float | None) -> str:
    if value is None:
        return "0"
    return str(int(value)) if float(value).is_integer() else str(value)


def property_hash(address: str, bedrooms: float | None, bathrooms: float | None, price: float | None) -> str:
    """md5 of "address-bedrooms-bathrooms-price", used to spot relisted homes."""
    key = f"{address}-{_hash_number(bedrooms)}-{_hash_number(bathrooms)}-{_hash_number(price)}"
    return hashlib.md5(key.encode("utf-8")).hexdigest()


def _required_number(item: dict[str, Any], key: str) -> float | None:
    # Absent means 0; present but garbage means invalid (None)
    value = item.get(key)
    return 0.0 if value is None else to_float(value)


def map_search_item(item: Any) -> dict[str, Any] | None:
    """Map one search result to a raw row, or None when it can't be stored."""
    if not isinstance(item, dict) or not item.get("zpid"):
        return None

    address = item.get("address") or item.get("streetAddress") or ""
    city = item.get("city") or ""
    state = item.get("state") or ""
    zipcode = item.get("zipcode")
    zip_code = str(zipcode) if zipcode else ""
    if not all(isinstance(v, str) and v.strip() for v in (address, city, state, zip_code)):
        return None

    return {
        "zpid": str(item["zpid"]),
        "address": address,
        "city": city,
        "state": state,
        "zip_code": zip_code,
        "price": _required_number(item, "price"),
        "bedrooms": _required_number(item, "bedrooms"),
        "bathrooms": _required_number(item, "bathrooms"),
        "square_feet": to_float(item.get("livingArea")),
        "lot_size": to_float(item.get("lotAreaValue")),
        "year_built": to_float(item.get("yearBuilt")),
        "property_type": map_property_type(item.get("propertyType") or item.get("homeType")),
        "listing_status": normalize_status(item.get("statusType") or item.get("brokerStatus")),
        "images": extract_images(item),
        "latitude": to_float(item.get("latitude")),
        "longitude": to_float(item.get("longitude")),
    }


def items_to_frame(items: Iterable[Any]) -> pl.DataFrame:
    """Map search items into a frame with RAW_SCHEMA, dropping unusable ones."""
    rows = [row for row in (map_search_item(i) for i in items) if row is not None]
    return pl.DataFrame(rows, schema=RAW_SCHEMA)


# ---------------------------------------------------------------------------
# Frame-level normalization
# ---------------------------------------------------------------------------


def _non_negative_or_null(col: str) -> pl.Expr:
    return pl.when(pl.col(col) >= 0).then(pl.col(col)).otherwise(None).alias(col)


def normalize_listings(raw: pl.DataFrame, *, now: datetime | None = None) -> pl.DataFrame:
    """
    Validate and clean a RAW_SCHEMA frame into properties-table rows.

    Rows with a missing or negative price, bedroom or bathroom count are
    dropped. Later rows win when a zpid repeats.
    """
    if raw.is_empty():
        return pl.DataFrame(schema=_output_schema())

    updated_at = (now or datetime.now(timezone.utc)).isoformat()

    df = raw.with_columns(
        pl.col("address").str.strip_chars(),
        pl.col("city").str.strip_chars(),
        pl.col("state").str.strip_chars(),
        pl.col("zip_code").str.strip_chars(),
    ).filter(
        pl.col("price").is_not_null()
        & (pl.col("price") >= 0)
        & pl.col("bedrooms").is_not_null()
        & (pl.col("bedrooms") >= 0)
        & pl.col("bathrooms").is_not_null()
        & (pl.col("bathrooms") >= 0)
    )

    valid_coords = pl.col("latitude").is_between(-90, 90) & pl.col("longitude").is_between(-180, 180)

    df = df.with_columns(
        pl.min_horizontal(pl.col("bedrooms"), pl.lit(MAX_ROOMS)).round(0).cast(pl.Int64).alias("bedrooms"),
        pl.min_horizontal(pl.col("bathrooms"), pl.lit(MAX_ROOMS)).alias("bathrooms"),
        _non_negative_or_null("square_feet"),
        _non_negative_or_null("lot_size"),
        _non_negative_or_null("year_built"),
        pl.when(valid_coords).then(pl.col("latitude")).otherwise(None).alias("latitude"),
        pl.when(valid_coords).then(pl.col("longitude")).otherwise(None).alias("longitude"),
    ).with_columns(
        pl.col("square_feet").round(0).cast(pl.Int64),
        pl.col("year_built").round(0).cast(pl.Int64),
        pl.struct(["address", "bedrooms", "bathrooms", "price"])
        .map_elements(
            lambda r: property_hash(r["address"], r["bedrooms"], r["bathrooms"], r["price"]),
            return_dtype=pl.String,
        )
        .alias("property_hash"),
        pl.lit(True).alias("is_active"),
        pl.lit(updated_at).alias("updated_at"),
    )

    df = df.unique(subset=["zpid"], keep="last", maintain_order=True)
    return df.select(OUTPUT_COLUMNS)


def _output_schema() -> dict[str, Any]:
    schema = {col: RAW_SCHEMA[col] for col in OUTPUT_COLUMNS if col in RAW_SCHEMA}
    schema.update(
        bedrooms=pl.Int64,
        square_feet=pl.Int64,
        year_built=pl.Int64,
        property_hash=pl.String,
        is_active=pl.Boolean,
        updated_at=pl.String,
    )
    return {col: schema[col] for col in OUTPUT_COLUMNS}
