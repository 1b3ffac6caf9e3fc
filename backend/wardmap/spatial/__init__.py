"""Spatial subpackage — geometry primitives, simplification and viewport filtering."""

from wardmap.spatial.filter import (
    DegradationPolicy,
    filter_by_bounds,
    should_render_feature,
    zoom_level_for_delta,
)
from wardmap.spatial.geometry import (
    GeoPoint,
    ViewportBounds,
    find_containing_feature,
    haversine_distance,
    point_in_bounds,
    point_in_polygon,
)
from wardmap.spatial.ratelimit import RateLimiter
from wardmap.spatial.simplify import decimate_boundary, simplify, simplify_collection

__all__ = [
    "DegradationPolicy",
    "filter_by_bounds",
    "should_render_feature",
    "zoom_level_for_delta",
    "GeoPoint",
    "ViewportBounds",
    "find_containing_feature",
    "haversine_distance",
    "point_in_bounds",
    "point_in_polygon",
    "RateLimiter",
    "decimate_boundary",
    "simplify",
    "simplify_collection",
]
