"""
geo.py — Coordinate parsing and validation helpers.

PostGIS columns reach us through PostgREST in several shapes depending on
how the row was written: GeoJSON objects, bare coordinate arrays, or a
polygon string ("POLYGON((-122.4 37.7, ...))" or "lng lat, lng lat, ...").
These helpers normalize all of them to GeoJSON-ordered tuples.

Conventions:
  Point  = (lng, lat)
  Ring   = list[Point], always closed (first == last)
  Polygon = list[Ring]   (exterior first, then holes)

Usage:
    from homematch_shared.geo import parse_point, parse_polygon

    parse_point({"type": "Point", "coordinates": [-122.41, 37.77]})  # (-122.41, 37.77)
    parse_polygon({"type": "Polygon", "coordinates": [[...]]})      # [[ring]]
"""

from __future__ import annotations

import math
import re
from typing import Any

import structlog

log = structlog.get_logger(__name__)

Point = tuple[float, float]
Ring = list[Point]
Polygon = list[Ring]

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


def is_valid_latitude(lat: Any) -> bool:
    return _is_number(lat) and -90 <= lat <= 90


def is_valid_longitude(lng: Any) -> bool:
    return _is_number(lng) and -180 <= lng <= 180


# ---------------------------------------------------------------------------
# Points
# ---------------------------------------------------------------------------


def parse_point(geometry: Any) -> Point | None:
    """
    Parse a PostGIS point into a (lng, lat) tuple.

    Accepts a GeoJSON Point, a {"lat", "lng"} dict or a [lng, lat] pair.
    Returns None for anything else.
    """
    if geometry is None:
        return None

    if isinstance(geometry, dict):
        if geometry.get("type") == "Point":
            coords = geometry.get("coordinates")
            if isinstance(coords, (list, tuple)) and len(coords) == 2:
                lng, lat = coords
                if is_valid_longitude(lng) and is_valid_latitude(lat):
                    return (float(lng), float(lat))
        lat, lng = geometry.get("lat"), geometry.get("lng")
        if is_valid_longitude(lng) and is_valid_latitude(lat):
            return (float(lng), float(lat))

    if isinstance(geometry, (list, tuple)) and len(geometry) == 2:
        lng, lat = geometry
        if is_valid_longitude(lng) and is_valid_latitude(lat):
            return (float(lng), float(lat))

    log.debug("unparseable_point", geometry_type=type(geometry).__name__)
    return None


# ---------------------------------------------------------------------------
# Polygons
# ---------------------------------------------------------------------------


def close_ring(ring: Ring) -> Ring | None:
    """Append the first point when the ring is open. None for < 3 points."""
    if len(ring) < 3:
        return None
    if ring[0] != ring[-1]:
        ring = [*ring, ring[0]]
    return ring


def _parse_ring(coords: Any) -> Ring | None:
    if not isinstance(coords, (list, tuple)) or len(coords) < 3:
        return None
    ring: Ring = []
    for pair in coords:
        if not isinstance(pair, (list, tuple)) or len(pair) < 2:
            return None
        lng, lat = pair[0], pair[1]
        if not is_valid_longitude(lng) or not is_valid_latitude(lat):
            return None
        ring.append((float(lng), float(lat)))
    return close_ring(ring)


def _parse_polygon_coords(coords: Any) -> Polygon | None:
    if not isinstance(coords, (list, tuple)) or not coords:
        return None

    # A bare ring: [[lng, lat], ...]
    first = coords[0]
    if isinstance(first, (list, tuple)) and first and _is_number(first[0]):
        ring = _parse_ring(coords)
        return [ring] if ring else None

    rings = [r for r in (_parse_ring(c) for c in coords) if r]
    return rings or None


def _parse_multipolygon_coords(coords: Any) -> list[Polygon] | None:
    if not isinstance(coords, (list, tuple)) or not coords:
        return None
    polygons = [p for p in (_parse_polygon_coords(c) for c in coords) if p]
    return polygons or None


def _parse_polygon_string(value: str) -> Polygon | None:
    numbers = [float(m) for m in _NUMBER_RE.findall(value)]
    if len(numbers) < 6:
        return None

    ring: Ring = []
    for i in range(0, len(numbers) - 1, 2):
        lng, lat = numbers[i], numbers[i + 1]
        if is_valid_longitude(lng) and is_valid_latitude(lat):
            ring.append((lng, lat))

    closed = close_ring(ring)
    return [closed] if closed else None


def parse_polygon(geometry: Any) -> list[Polygon] | None:
    """
    Parse PostGIS polygon geometry into a list of polygons.

    Supports GeoJSON Polygon / MultiPolygon objects, raw polygon or
    multipolygon coordinate arrays, and polygon strings. Invalid rings
    are dropped; returns None when nothing usable remains.
    """
    if not geometry:
        return None

    if isinstance(geometry, str):
        polygon = _parse_polygon_string(geometry)
        return [polygon] if polygon else None

    if isinstance(geometry, (list, tuple)):
        polygon = _parse_polygon_coords(geometry)
        if polygon:
            return [polygon]
        return _parse_multipolygon_coords(geometry)

    if isinstance(geometry, dict):
        geo_type = geometry.get("type")
        coords = geometry.get("coordinates")
        if geo_type == "Polygon" and coords:
            polygon = _parse_polygon_coords(coords)
            return [polygon] if polygon else None
        if geo_type == "MultiPolygon" and coords:
            return _parse_multipolygon_coords(coords)

    return None
