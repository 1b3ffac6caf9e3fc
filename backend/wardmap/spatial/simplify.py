"""
Boundary Simplifier
===================
Two reduction passes per ring:

1. **Douglas-Peucker** through Shapely (``LineString.simplify``) with a
   tolerance in degrees.
2. **Hard cap** — a ring still longer than ``max_points`` is
   stride-decimated down to ``max_points // 2`` vertices.

Closure is preserved by both passes: DP keeps the endpoints of the
line, and decimation re-appends the original last vertex whenever the
stride skips it.  On any failure the caller gets the original boundary
back unchanged.

``decimate_ring`` is the cheaper stride-only reduction used by the
ingestion pipeline, where the tolerance is a fraction of ring length.
"""

from __future__ import annotations

import copy
import logging
import math
from typing import Any, Mapping

from shapely.errors import GEOSException
from shapely.geometry import LineString

from wardmap.spatial.geometry import Ring, close_ring

logger = logging.getLogger(__name__)

# Rings at or below this length are already minimal (3 vertices + closure).
MIN_RING_POINTS = 4
DEFAULT_MAX_POINTS = 100


def _douglas_peucker(ring: Ring, tolerance: float) -> list[list[float]]:
    if tolerance <= 0:
        return [list(c) for c in ring]
    line = LineString([(c[0], c[1]) for c in ring])
    reduced = [list(c) for c in line.simplify(tolerance, preserve_topology=False).coords]
    # A ring that collapses below a triangle keeps its original shape.
    if len(reduced) < MIN_RING_POINTS:
        return [list(c) for c in ring]
    return reduced


def _stride_decimate(coords: list[list[float]], step: int) -> list[list[float]]:
    reduced = [c for i, c in enumerate(coords) if i % step == 0]
    if (len(coords) - 1) % step != 0:
        reduced.append(coords[-1])
    return reduced


def simplify_ring(
    ring: Ring,
    tolerance: float,
    max_points: int = DEFAULT_MAX_POINTS,
) -> list[list[float]]:
    """Reduce one closed ring.  Raises on malformed coordinates."""
    if len(ring) <= MIN_RING_POINTS:
        return [list(c) for c in ring]

    coords = _douglas_peucker(ring, tolerance)

    if len(coords) > max_points:
        target = max(MIN_RING_POINTS, max_points // 2)
        step = math.ceil(len(coords) / target)
        decimated = close_ring(_stride_decimate(coords, step))
        # Too few vertices left for a ring; keep the Douglas-Peucker output.
        if len(decimated) >= MIN_RING_POINTS:
            coords = decimated

    return close_ring(coords)


def _map_rings(geometry: Mapping[str, Any], fn) -> dict[str, Any]:
    gtype = geometry.get("type")
    coords = geometry.get("coordinates")
    if gtype == "Polygon":
        new_coords = [fn(ring) for ring in coords]
    elif gtype == "MultiPolygon":
        new_coords = [[fn(ring) for ring in polygon] for polygon in coords]
    else:
        return copy.deepcopy(dict(geometry))
    return {**geometry, "coordinates": new_coords}


def simplify(
    boundary: Mapping[str, Any] | None,
    tolerance: float,
    max_points: int = DEFAULT_MAX_POINTS,
) -> Mapping[str, Any] | None:
    """
    Simplify every ring of a Polygon / MultiPolygon geometry.

    Never raises: a failure is logged and the input is returned as-is.
    The input mapping is not mutated.
    """
    if not boundary or not boundary.get("coordinates"):
        return boundary
    try:
        return _map_rings(boundary, lambda ring: simplify_ring(ring, tolerance, max_points))
    except (
        GEOSException, ValueError, TypeError, IndexError, KeyError, AttributeError,
    ) as exc:
        logger.warning("Failed to simplify %s boundary: %s", boundary.get("type"), exc)
        return boundary


def simplify_collection(
    collection: Mapping[str, Any],
    tolerance: float,
    max_points: int = DEFAULT_MAX_POINTS,
) -> dict[str, Any]:
    """Apply ``simplify`` to the geometry of every feature."""
    features = [
        {**feature, "geometry": simplify(feature.get("geometry"), tolerance, max_points)}
        for feature in collection.get("features") or []
    ]
    return {**collection, "features": features}


# ── Ingestion-side decimation ────────────────────────────────────
def decimate_ring(ring: Ring, fraction: float) -> list[list[float]]:
    """
    Keep every ``step``-th vertex where ``step = floor(len * fraction)``
    (at least 1), re-appending the last vertex if it was skipped.  A
    result shorter than a closed triangle falls back to the input.
    """
    coords = [list(c) for c in ring]
    if not coords or fraction <= 0:
        return coords
    step = max(1, math.floor(len(coords) * fraction))
    reduced = _stride_decimate(coords, step)
    if len(reduced) < MIN_RING_POINTS:
        return coords
    return reduced


def decimate_boundary(geometry: Mapping[str, Any] | None, fraction: float) -> Mapping[str, Any] | None:
    """
    Coarse reduction applied before storage.  Only the outer ring of a
    Polygon is decimated; holes are dropped and other types pass
    through untouched.
    """
    if not geometry or geometry.get("type") != "Polygon" or fraction <= 0:
        return geometry
    coords = geometry.get("coordinates") or []
    if not coords:
        return geometry
    return {**geometry, "coordinates": [decimate_ring(coords[0], fraction)]}
