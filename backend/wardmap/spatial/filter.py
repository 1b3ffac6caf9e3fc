"""
Viewport Filtering
==================
Narrows a ward feature collection to what a map viewport can show.

The intersection test is approximate: a feature is kept when any vertex
of its primary ring falls inside the (slightly expanded) viewport.  A
ward that completely surrounds the viewport without a vertex inside it
is therefore dropped.  This is a known limitation and is left as-is.

The performance shortcuts (stride-skipping large collections, capping
output) are grouped in ``DegradationPolicy`` so they can be tuned per
device or disabled entirely.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from wardmap.spatial.geometry import ViewportBounds, primary_ring


# ── Degradation policy ───────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class DegradationPolicy:
    """
    Performance shortcuts applied by ``filter_by_bounds``.

    margin : float
        Degrees added to each side of the viewport before testing.
    stride_threshold : int | None
        Collections larger than this are stride-skipped before the
        bounds test.  ``None`` disables skipping.
    stride : int
        Keep every ``stride``-th feature when skipping.
    max_features : int | None
        Output cap after filtering.  ``None`` disables the cap.
    initial_limit : int | None
        Cap applied when no viewport is known yet.
    """

    margin: float = 0.01
    stride_threshold: int | None = 50
    stride: int = 2
    max_features: int | None = 100
    initial_limit: int | None = 50

    @classmethod
    def disabled(cls) -> DegradationPolicy:
        return cls(margin=0.0, stride_threshold=None, max_features=None, initial_limit=None)

    @classmethod
    def from_settings(cls, settings) -> DegradationPolicy:
        return cls(
            margin=settings.viewport_margin,
            stride_threshold=settings.stride_threshold,
            max_features=settings.max_render_features,
            initial_limit=settings.initial_feature_limit,
        )


DEFAULT_POLICY = DegradationPolicy()


def _feature_in_bounds(feature: Mapping[str, Any], bounds: ViewportBounds) -> bool:
    ring = primary_ring(feature.get("geometry"))
    return any(bounds.contains_point(c[0], c[1]) for c in ring)


def filter_by_bounds(
    collection: Mapping[str, Any] | None,
    viewport: ViewportBounds | None,
    policy: DegradationPolicy = DEFAULT_POLICY,
) -> Mapping[str, Any] | None:
    """
    Features of ``collection`` with at least one primary-ring vertex in
    the expanded viewport, in input order, capped by the policy.
    """
    if viewport is None or not collection or collection.get("features") is None:
        return collection

    features = list(collection["features"])
    if policy.stride_threshold is not None and len(features) > policy.stride_threshold:
        features = features[:: policy.stride]

    expanded = viewport.expanded(policy.margin)
    kept = [f for f in features if _feature_in_bounds(f, expanded)]

    if policy.max_features is not None:
        kept = kept[: policy.max_features]

    return {**collection, "features": kept}


def initial_features(
    collection: Mapping[str, Any] | None,
    policy: DegradationPolicy = DEFAULT_POLICY,
) -> Mapping[str, Any] | None:
    """Working set shown before the first viewport is reported."""
    if not collection or policy.initial_limit is None:
        return collection
    return {**collection, "features": list(collection.get("features") or [])[: policy.initial_limit]}


# ── Zoom heuristics ──────────────────────────────────────────────
def zoom_level_for_delta(longitude_delta: float) -> int:
    """Approximate web-map zoom level for a region's longitude span."""
    if longitude_delta <= 0:
        return 20
    zoom = round(math.log2(360 / longitude_delta))
    return max(1, min(20, zoom))


def should_render_feature(feature: Mapping[str, Any], zoom_level: int = 10) -> bool:
    """
    Display budget: below zoom 8 only rings under 50 vertices render,
    below zoom 12 only rings under 100, everything renders above.
    """
    geometry = feature.get("geometry") or {}
    if not geometry.get("coordinates"):
        return False

    vertex_count = len(primary_ring(geometry))
    if zoom_level < 8:
        return vertex_count < 50
    if zoom_level < 12:
        return vertex_count < 100
    return True


def renderable_features(
    collection: Mapping[str, Any] | None,
    zoom_level: int,
    max_polygons: int | None = None,
) -> list[dict[str, Any]]:
    """Features passing ``should_render_feature``, capped to ``max_polygons``."""
    if not collection:
        return []
    features = [f for f in collection.get("features") or [] if should_render_feature(f, zoom_level)]
    if max_polygons is not None:
        features = features[:max_polygons]
    return features
