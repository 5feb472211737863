"""
boundaries.py — MECE neighborhood boundaries for the map view.

Neighborhood polygons imported from different sources overlap: a city-wide
"Downtown" polygon can swallow several smaller districts. The map needs
mutually-exclusive, collectively-exhaustive (MECE) regions, so each point
of the map belongs to at most one neighborhood.

Algorithm:
  1. Parse every row's bounds (see geo.parse_polygon) and simplify rings
     that have too many vertices for the client to draw.
  2. Sort by area ascending (ties by name): smaller neighborhoods are more
     specific, so they claim contested area first.
  3. Subtract the already-claimed area from each neighborhood in turn.
     Neighborhoods left with nothing are dropped and counted as
     overlap_removed; the rest are unioned into the claimed area.

Usage:
    from homematch_shared.boundaries import build_mece_neighborhoods

    result = build_mece_neighborhoods(rows)
    result.items   # [{"id", "name", "city", "state", "bounds": {MultiPolygon}}]
    result.debug   # {"total": 40, "parsed": 38, "overlap_removed": 3}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import shapely
import structlog
from shapely.geometry import LineString, MultiPolygon
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry.base import BaseGeometry

from homematch_shared.geo import Polygon, Ring, parse_polygon

log = structlog.get_logger(__name__)

MAX_RING_POINTS = 900
BASE_TOLERANCE = 0.0001
MAX_TOLERANCE = 0.01
TOLERANCE_STEP = 1.5


@dataclass
class MeceResult:
    items: list[dict[str, Any]] = field(default_factory=list)
    debug: dict[str, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Ring simplification
# ---------------------------------------------------------------------------


def simplify_ring(ring: Ring, tolerance: float) -> Ring:
    """Douglas–Peucker simplification of a single ring, preserving closure."""
    if len(ring) < 4:
        return ring
    closed = ring[0] == ring[-1]
    points = ring[:-1] if closed else ring
    simplified = [
        (float(x), float(y))
        for x, y in LineString(points).simplify(tolerance, preserve_topology=False).coords
    ]
    if len(simplified) < 3:
        return ring
    return [*simplified, simplified[0]] if closed else simplified


def simplify_ring_adaptive(ring: Ring) -> Ring:
    """Raise the tolerance until the ring fits MAX_RING_POINTS or the cap is hit."""
    if len(ring) <= MAX_RING_POINTS:
        return ring

    tolerance = BASE_TOLERANCE
    simplified = simplify_ring(ring, tolerance)
    while len(simplified) > MAX_RING_POINTS and tolerance < MAX_TOLERANCE:
        tolerance *= TOLERANCE_STEP
        simplified = simplify_ring(ring, tolerance)

    return simplified if len(simplified) >= 4 else ring


def simplify_polygons(polygons: list[Polygon]) -> list[Polygon]:
    result: list[Polygon] = []
    for rings in polygons:
        kept = [r for r in (simplify_ring_adaptive(ring) for ring in rings) if len(r) >= 4]
        if kept:
            result.append(kept)
    return result


# ---------------------------------------------------------------------------
# shapely conversion
# ---------------------------------------------------------------------------


def to_geometry(polygons: list[Polygon]) -> BaseGeometry:
    """Build a valid shapely geometry from parsed polygons."""
    shapes = [ShapelyPolygon(rings[0], rings[1:]) for rings in polygons]
    geometry = MultiPolygon(shapes) if len(shapes) > 1 else shapes[0]
    if not geometry.is_valid:
        geometry = shapely.make_valid(geometry)
    return geometry


def _polygon_parts(geometry: BaseGeometry) -> list[ShapelyPolygon]:
    if geometry.is_empty:
        return []
    if isinstance(geometry, ShapelyPolygon):
        return [geometry] if geometry.area > 0 else []
    parts: list[ShapelyPolygon] = []
    for geom in getattr(geometry, "geoms", []):
        parts.extend(_polygon_parts(geom))
    return parts


def to_geojson_multipolygon(geometry: BaseGeometry) -> dict[str, Any]:
    coordinates = []
    for polygon in _polygon_parts(geometry):
        rings = [polygon.exterior, *polygon.interiors]
        coordinates.append([[[x, y] for x, y in ring.coords] for ring in rings])
    return {"type": "MultiPolygon", "coordinates": coordinates}


# ---------------------------------------------------------------------------
# MECE construction
# ---------------------------------------------------------------------------


def build_mece_neighborhoods(rows: list[dict[str, Any]]) -> MeceResult:
    """
    Deduplicate overlapping neighborhood polygons.

    Args:
        rows: Neighborhood rows with id, name, city, state and bounds.

    Returns:
        MeceResult with one GeoJSON MultiPolygon per surviving neighborhood.
    """
    candidates: list[tuple[dict[str, Any], BaseGeometry]] = []
    for row in rows:
        polygons = parse_polygon(row.get("bounds"))
        if not polygons:
            continue
        polygons = simplify_polygons(polygons)
        if not polygons:
            continue
        geometry = to_geometry(polygons)
        if geometry.is_empty or geometry.area <= 0:
            continue
        candidates.append((row, geometry))

    candidates.sort(key=lambda c: (c[1].area, c[0].get("name") or ""))

    occupied: BaseGeometry | None = None
    overlap_removed = 0
    items: list[dict[str, Any]] = []

    for row, geometry in candidates:
        if occupied is not None:
            exclusive = geometry.difference(occupied)
            if not _polygon_parts(exclusive):
                overlap_removed += 1
                continue
            geometry = exclusive
        occupied = geometry if occupied is None else occupied.union(geometry)

        items.append(
            {
                "id": row.get("id"),
                "name": row.get("name"),
                "city": row.get("city"),
                "state": row.get("state"),
                "bounds": to_geojson_multipolygon(geometry),
            }
        )

    debug = {
        "total": len(rows),
        "parsed": len(candidates),
        "overlap_removed": overlap_removed,
    }
    log.debug("mece_neighborhoods_built", **debug)
    return MeceResult(items=items, debug=debug)
