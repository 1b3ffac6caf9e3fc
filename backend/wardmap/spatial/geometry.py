"""
Geometry Primitives
===================
Planar helpers over GeoJSON longitude/latitude rings.

Coordinates follow GeoJSON ordering: every vertex is ``[longitude,
latitude]``.  Points passed in by callers are ``GeoPoint`` instances
(``latitude`` / ``longitude`` attributes), matching what map widgets
report.

Only outer rings are considered; holes are never subtracted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Sequence

from shapely.geometry import Polygon, box

EARTH_RADIUS_KM = 6371.0

Ring = Sequence[Sequence[float]]


# ── Points & bounds ──────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A WGS84 location."""

    latitude: float
    longitude: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> GeoPoint:
        return cls(latitude=float(data["latitude"]), longitude=float(data["longitude"]))


@dataclass(frozen=True, slots=True)
class ViewportBounds:
    """A rectangle in longitude/latitude, given by its NE and SW corners."""

    north_east: GeoPoint
    south_west: GeoPoint

    @classmethod
    def from_region(
        cls,
        latitude: float,
        longitude: float,
        latitude_delta: float,
        longitude_delta: float,
    ) -> ViewportBounds:
        """Bounds of a map region described by its centre and span."""
        return cls(
            north_east=GeoPoint(
                latitude=latitude + latitude_delta / 2,
                longitude=longitude + longitude_delta / 2,
            ),
            south_west=GeoPoint(
                latitude=latitude - latitude_delta / 2,
                longitude=longitude - longitude_delta / 2,
            ),
        )

    @property
    def west(self) -> float:
        return self.south_west.longitude

    @property
    def south(self) -> float:
        return self.south_west.latitude

    @property
    def east(self) -> float:
        return self.north_east.longitude

    @property
    def north(self) -> float:
        return self.north_east.latitude

    def expanded(self, margin: float) -> ViewportBounds:
        """Grow the rectangle by ``margin`` degrees on every side."""
        return ViewportBounds(
            north_east=GeoPoint(self.north + margin, self.east + margin),
            south_west=GeoPoint(self.south - margin, self.west - margin),
        )

    def contains_point(self, longitude: float, latitude: float) -> bool:
        return self.west <= longitude <= self.east and self.south <= latitude <= self.north

    def to_shapely(self) -> Polygon:
        """Return a Shapely box for use with spatial queries."""
        return box(self.west, self.south, self.east, self.north)

    def to_wkt(self) -> str:
        """WKT polygon string for PostGIS ST_GeomFromText."""
        return self.to_shapely().wkt

    def as_dict(self) -> dict[str, float]:
        return {
            "west": self.west,
            "south": self.south,
            "east": self.east,
            "north": self.north,
        }


# ── Ring helpers ─────────────────────────────────────────────────
def is_closed(ring: Ring) -> bool:
    """True when the ring's first and last vertices coincide."""
    return len(ring) > 0 and list(ring[0]) == list(ring[-1])


def close_ring(ring: Ring) -> list[list[float]]:
    """Return a copy of ``ring`` with the first vertex appended if needed."""
    coords = [list(c) for c in ring]
    if coords and not is_closed(coords):
        coords.append(list(coords[0]))
    return coords


def outer_rings(geometry: Mapping[str, Any] | None) -> Iterator[Ring]:
    """
    Yield the outer ring of a Polygon, or of every member of a
    MultiPolygon.  Other geometry types yield nothing.
    """
    if not geometry:
        return
    coords = geometry.get("coordinates")
    if not coords:
        return
    gtype = geometry.get("type")
    if gtype == "Polygon":
        yield coords[0]
    elif gtype == "MultiPolygon":
        for polygon in coords:
            if polygon:
                yield polygon[0]


def primary_ring(geometry: Mapping[str, Any] | None) -> Ring:
    """First outer ring of a geometry, or an empty list."""
    return next(outer_rings(geometry), [])


# ── Predicates ───────────────────────────────────────────────────
def point_in_polygon(point: GeoPoint, ring: Ring) -> bool:
    """
    Ray-casting containment test of ``point`` against a single ring.

    Each edge (i, j = i - 1, wrapping) that straddles the point's
    latitude toggles the result when the point lies west of the edge's
    crossing longitude.  Horizontal edges never straddle, so the
    division below is never by zero.  Points exactly on a vertex or
    edge get a deterministic but unspecified answer.
    """
    lat, lng = point.latitude, point.longitude
    inside = False
    n = len(ring)
    j = n - 1

    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]

        if (yi > lat) != (yj > lat):
            crossing = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lng < crossing:
                inside = not inside
        j = i

    return inside


def find_containing_feature(
    point: GeoPoint | None,
    collection: Mapping[str, Any] | None,
) -> dict[str, Any] | None:
    """
    Return the first feature (in collection order) whose outer ring
    contains ``point``.  Overlapping polygons resolve to the earliest.
    """
    if point is None or not collection:
        return None

    for feature in collection.get("features") or []:
        for ring in outer_rings(feature.get("geometry")):
            if point_in_polygon(point, ring):
                return feature
    return None


def point_in_bounds(point: GeoPoint | None, bounds: ViewportBounds | None) -> bool:
    """Inclusive rectangle test.  Missing input counts as inside."""
    if bounds is None or point is None:
        return True
    return bounds.contains_point(point.longitude, point.latitude)


def haversine_distance(p1: GeoPoint, p2: GeoPoint) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(p2.latitude - p1.latitude)
    d_lon = math.radians(p2.longitude - p1.longitude)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(p1.latitude))
        * math.cos(math.radians(p2.latitude))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c
