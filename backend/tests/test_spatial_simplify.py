"""
Tests for wardmap.spatial.simplify — Douglas-Peucker reduction, the
hard vertex cap and ingestion-side decimation.
"""
from __future__ import annotations

import copy
import logging

from wardmap.spatial.geometry import is_closed
from wardmap.spatial.simplify import (
    decimate_boundary,
    decimate_ring,
    simplify,
    simplify_collection,
    simplify_ring,
)
from tests.conftest import circle_ring, make_collection, make_feature, polygon, square_ring


def _dense_square(per_side: int) -> list[list[float]]:
    """Unit square with ``per_side`` collinear vertices along each edge."""
    corners = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
    ring = []
    for k in range(4):
        (x0, y0), (x1, y1) = corners[k], corners[(k + 1) % 4]
        for i in range(per_side):
            t = i / per_side
            ring.append([x0 + (x1 - x0) * t, y0 + (y1 - y0) * t])
    ring.append(list(ring[0]))
    return ring


# ═══════════════════════════════════════════════════════════════════
# simplify_ring
# ═══════════════════════════════════════════════════════════════════
class TestSimplifyRing:
    def test_small_ring_unchanged(self):
        ring = [[0, 0], [1, 0], [0, 1], [0, 0]]
        assert simplify_ring(ring, 0.5) == ring

    def test_collinear_vertices_removed(self):
        result = simplify_ring(_dense_square(10), 0.001)
        assert len(result) == 5
        assert is_closed(result)

    def test_collapse_keeps_original(self):
        # A sliver narrower than the tolerance would collapse to a line.
        ring = [[0, 0], [1, 0], [1, 0.0001], [0.5, 0.0002], [0, 0.0001], [0, 0]]
        assert simplify_ring(ring, 0.01) == ring

    def test_hard_cap(self):
        ring = circle_ring(28.0, -26.0, 0.1, 400)
        result = simplify_ring(ring, 0.0, max_points=100)
        assert len(result) <= 51
        assert is_closed(result)
        assert result[0] == ring[0]

    def test_hard_cap_never_leaves_a_degenerate_ring(self):
        ring = square_ring(0, 0)
        assert simplify_ring(ring, 0.0, max_points=4) == ring

    def test_hard_cap_small_budget(self):
        result = simplify_ring(circle_ring(0.0, 0.0, 1.0, 9), 0.0, max_points=5)
        assert len(result) == 4
        assert is_closed(result)

    def test_below_cap_untouched_by_decimation(self):
        ring = circle_ring(0.0, 0.0, 1.0, 60)
        assert len(simplify_ring(ring, 0.0, max_points=100)) == 61

    def test_closure_preserved_on_open_input(self):
        ring = circle_ring(0.0, 0.0, 1.0, 300)[:-1]
        result = simplify_ring(ring, 0.0, max_points=100)
        assert is_closed(result)


# ═══════════════════════════════════════════════════════════════════
# simplify
# ═══════════════════════════════════════════════════════════════════
class TestSimplify:
    def test_polygon_all_rings(self):
        geometry = {"type": "Polygon", "coordinates": [_dense_square(10), _dense_square(5)]}
        result = simplify(geometry, 0.001)
        assert [len(r) for r in result["coordinates"]] == [5, 5]

    def test_multipolygon(self):
        geometry = {"type": "MultiPolygon", "coordinates": [[_dense_square(10)], [_dense_square(4)]]}
        result = simplify(geometry, 0.001)
        assert all(len(p[0]) == 5 for p in result["coordinates"])

    def test_input_not_mutated(self):
        geometry = polygon(_dense_square(10))
        snapshot = copy.deepcopy(geometry)
        simplify(geometry, 0.001)
        assert geometry == snapshot

    def test_deterministic(self):
        geometry = polygon(circle_ring(0.0, 0.0, 1.0, 250))
        assert simplify(geometry, 0.005) == simplify(geometry, 0.005)

    def test_failure_returns_original(self, caplog):
        geometry = {"type": "Polygon", "coordinates": [[None] * 6]}
        with caplog.at_level(logging.WARNING, logger="wardmap.spatial.simplify"):
            assert simplify(geometry, 0.001) is geometry
        assert "Failed to simplify" in caplog.text

    def test_mapping_vertices_return_original(self):
        geometry = {"type": "Polygon", "coordinates": [[{"lon": 0, "lat": 0}] * 6]}
        assert simplify(geometry, 0.001) is geometry

    def test_non_list_rings_return_original(self):
        geometry = {"type": "MultiPolygon", "coordinates": [5]}
        assert simplify(geometry, 0.001) is geometry

    def test_none_and_empty(self):
        assert simplify(None, 0.001) is None
        empty = {"type": "Polygon", "coordinates": []}
        assert simplify(empty, 0.001) is empty

    def test_other_types_pass_through(self):
        point = {"type": "Point", "coordinates": [1.0, 2.0]}
        assert simplify(point, 0.001) == point


class TestSimplifyCollection:
    def test_every_feature(self):
        collection = make_collection(
            make_feature(polygon(_dense_square(10)), id="A"),
            make_feature(polygon(_dense_square(20)), id="B"),
        )
        result = simplify_collection(collection, 0.001)
        assert [len(f["geometry"]["coordinates"][0]) for f in result["features"]] == [5, 5]
        assert [f["properties"]["id"] for f in result["features"]] == ["A", "B"]
        assert len(collection["features"][0]["geometry"]["coordinates"][0]) == 41


# ═══════════════════════════════════════════════════════════════════
# decimate_ring / decimate_boundary
# ═══════════════════════════════════════════════════════════════════
class TestDecimate:
    def test_step_from_fraction(self):
        ring = circle_ring(0.0, 0.0, 1.0, 1000)  # 1001 vertices
        result = decimate_ring(ring, 0.01)  # step 10
        assert len(result) == 101
        assert result[-1] == ring[-1]

    def test_small_fraction_keeps_everything(self):
        ring = circle_ring(0.0, 0.0, 1.0, 100)
        assert decimate_ring(ring, 0.001) == ring

    def test_too_coarse_falls_back(self):
        ring = square_ring(0, 0)
        assert decimate_ring(ring, 0.9) == ring

    def test_boundary_polygon_outer_ring_only(self):
        outer = circle_ring(0.0, 0.0, 1.0, 1000)
        hole = square_ring(-0.1, -0.1, 0.2)
        result = decimate_boundary({"type": "Polygon", "coordinates": [outer, hole]}, 0.01)
        assert len(result["coordinates"]) == 1
        assert len(result["coordinates"][0]) == 101

    def test_boundary_multipolygon_passes_through(self):
        geometry = {"type": "MultiPolygon", "coordinates": [[circle_ring(0.0, 0.0, 1.0, 1000)]]}
        assert decimate_boundary(geometry, 0.01) is geometry

    def test_boundary_none(self):
        assert decimate_boundary(None, 0.01) is None
