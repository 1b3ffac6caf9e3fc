"""
Shared fixtures for the Wardmap test suite.

This conftest provides:
- GeoJSON builders (square rings, features, collections)
- A scripted ``Fetcher`` for boundary store tests
- Mock ORM rows for repository / router tests
"""
from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from wardmap.client.transport import FetchResult
from wardmap.config import Settings

# ---------------------------------------------------------------------------
# GeoJSON builders
# ---------------------------------------------------------------------------
SAMPLE_WARD_UUID = uuid.UUID("aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee")
API_BASE = "http://wards.test"
FALLBACK_URL = "http://static.test/wards.geojson"
BOUNDARIES_URL = API_BASE + "/api/wards/boundaries/simplified"


def square_ring(west: float, south: float, size: float = 1.0) -> list[list[float]]:
    """Closed counter-clockwise square, GeoJSON ``[lon, lat]`` order."""
    return [
        [west, south],
        [west + size, south],
        [west + size, south + size],
        [west, south + size],
        [west, south],
    ]


def circle_ring(lon: float, lat: float, radius: float, points: int) -> list[list[float]]:
    """Closed ring of ``points`` distinct vertices on a circle."""
    ring = [
        [
            lon + radius * math.cos(2 * math.pi * i / points),
            lat + radius * math.sin(2 * math.pi * i / points),
        ]
        for i in range(points)
    ]
    ring.append(list(ring[0]))
    return ring


def polygon(ring: list[list[float]]) -> dict:
    return {"type": "Polygon", "coordinates": [ring]}


def make_feature(geometry: dict | None, **properties) -> dict:
    return {"type": "Feature", "properties": properties, "geometry": geometry}


def make_collection(*features: dict) -> dict:
    return {"type": "FeatureCollection", "features": list(features)}


def grid_collection(count: int, size: float = 0.5) -> dict:
    """``count`` adjacent squares along the equator, ids ``W0..W{n-1}``."""
    return make_collection(*(
        make_feature(polygon(square_ring(i * size, 0.0, size)), id=f"W{i}", name=f"Ward {i}")
        for i in range(count)
    ))


def api_envelope(collection: dict) -> dict:
    return {"success": True, "data": {"geojson": collection}, "message": None}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------
class ScriptedFetcher:
    """``Fetcher`` returning canned results per URL and recording calls."""

    def __init__(self, responses: dict[str, FetchResult] | None = None):
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, dict | None]] = []

    async def fetch_json(self, url, params=None):
        self.calls.append((url, params))
        return self.responses.get(url, FetchResult(ok=False, error="connection refused"))

    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


class FakeClock:
    """Settable wall clock in seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_ward_row(
    *,
    id: uuid.UUID | None = None,
    ward_id: str = "79800001",
    name: str = "Ward 1",
    municipality_id: str | None = "JHB",
    geojson: dict | None = None,
    properties: dict | None = None,
) -> MagicMock:
    """Return a mock that behaves like a Ward ORM object."""
    ward = MagicMock()
    ward.id = id or SAMPLE_WARD_UUID
    ward.ward_id = ward_id
    ward.name = name
    ward.municipality_id = municipality_id
    ward.geojson = geojson if geojson is not None else polygon(square_ring(28.0, -26.2, 0.1))
    ward.properties = properties if properties is not None else {"WARD_ID": ward_id}
    ward.created_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return ward


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        api_base_url=API_BASE,
        fallback_geojson_url=FALLBACK_URL,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
