"""
Boundary Store
==============
Owns the client's working set of ward boundaries.

Load cycle::

    CHECK_CACHE ── hit ──────────────────────────────────────────▶ READY
        │ miss
    FETCH_PRIMARY ── ok ──▶ SIMPLIFY ▶ PRUNE ▶ PERSIST ──────────▶ READY
        │ fail
    FETCH_FALLBACK ── ok ─▶ SIMPLIFY ▶ PRUNE ▶ PERSIST ──────────▶ READY
        │ fail
        ▼
      ERROR

* A cache entry younger than ``cache_expiry_hours`` is authoritative:
  neither source is contacted.  Expired or unreadable entries are
  purged and treated as a miss.
* The primary source is the ward API's simplified-boundaries endpoint.
  Any failure there is transient and falls through to the fallback.
* The fallback is a long-lived public GeoJSON file.  If it fails too,
  the cycle ends in ``ERROR`` and ``BoundaryLoadError`` is raised;
  ``refresh()`` is the retry action.
* Cache writes never fail a load: the data is still usable in memory.

Concurrency
-----------
Each cycle is one coroutine doing its I/O sequentially.  Cycles are
numbered; a cycle that completes after a newer one started drops its
result instead of overwriting the newer state.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from wardmap.client.persistence import KeyValueStorage
from wardmap.client.transport import Fetcher
from wardmap.config import Settings, get_settings
from wardmap.errors import (
    BoundaryLoadError,
    CacheCorruption,
    TransientFetchFailure,
)
from wardmap.spatial.filter import DegradationPolicy, filter_by_bounds, initial_features
from wardmap.spatial.geometry import ViewportBounds
from wardmap.spatial.properties import minimal_properties
from wardmap.spatial.simplify import simplify_collection

logger = logging.getLogger(__name__)

BOUNDARIES_PATH = "/api/wards/boundaries/simplified"


class DataSource(str, Enum):
    CACHE = "cache"
    PRIMARY = "primary"
    FALLBACK = "fallback"


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


# ── Cache entry ──────────────────────────────────────────────────
@dataclass
class CacheEntry:
    """A cached feature collection and its write time (epoch ms)."""

    data: dict[str, Any]
    timestamp: float

    def age_hours(self, now_ms: float) -> float:
        return (now_ms - self.timestamp) / (1000 * 60 * 60)

    def to_json(self) -> str:
        return json.dumps({"data": self.data, "timestamp": self.timestamp}, separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: str) -> CacheEntry:
        try:
            payload = json.loads(raw)
            data = payload["data"]
            timestamp = float(payload["timestamp"])
        except (ValueError, KeyError, TypeError) as exc:
            raise CacheCorruption(f"Unreadable boundary cache entry: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("features"), list):
            raise CacheCorruption("Cached boundary entry has no feature list")
        return cls(data=data, timestamp=timestamp)


def prune_properties(collection: Mapping[str, Any]) -> dict[str, Any]:
    """Drop everything but id / name / municipality from each feature."""
    return {
        **collection,
        "features": [
            {
                "type": "Feature",
                "properties": minimal_properties(feature.get("properties")),
                "geometry": feature.get("geometry"),
            }
            for feature in collection.get("features") or []
        ],
    }


def _require_collection(body: Any, url: str) -> dict[str, Any]:
    if not isinstance(body, dict) or not isinstance(body.get("features"), list):
        raise TransientFetchFailure(url, "response is not a GeoJSON FeatureCollection")
    return body


# ── Store ────────────────────────────────────────────────────────
class BoundaryStore:
    """
    Cached, simplified ward boundaries for one client session.

    Parameters
    ----------
    fetcher : Fetcher
        Raw GET primitive used for both the API and the fallback file.
    storage : KeyValueStorage
        Named-blob persistence for the cache entry.
    settings : Settings
        Source URLs, expiry and tolerance defaults.
    tolerance : float
        Overrides the platform simplification tolerance.
    policy : DegradationPolicy
        Viewport filtering shortcuts.
    clock : callable
        Wall-clock seconds; injectable for expiry tests.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        storage: KeyValueStorage,
        settings: Settings | None = None,
        *,
        tolerance: float | None = None,
        policy: DegradationPolicy | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.fetcher = fetcher
        self.storage = storage
        self.settings = settings or get_settings()
        self.tolerance = tolerance if tolerance is not None else self.settings.effective_tolerance
        self.policy = policy or DegradationPolicy.from_settings(self.settings)
        self._clock = clock

        self.municipality_id: str | None = None
        self.collection: dict[str, Any] | None = None
        self.data_source: DataSource | None = None
        self.state = LoadState.IDLE
        self.error: str | None = None
        self._generation = 0

    # ── Public surface ────────────────────────────────────────

    @property
    def total_features(self) -> int:
        """Unfiltered feature count of the working set."""
        if not self.collection:
            return 0
        return len(self.collection.get("features") or [])

    @property
    def cache_key(self) -> str:
        if self.municipality_id is None:
            return self.settings.cache_key
        scope = re.sub(r"[^A-Za-z0-9_.-]", "_", self.municipality_id)
        return f"{self.settings.cache_key}.{scope}"

    async def get_boundaries(self, municipality_id: str | None = None) -> dict[str, Any]:
        """Working collection, loading it first if needed."""
        if self.collection is None or municipality_id != self.municipality_id:
            self.municipality_id = municipality_id
            return await self.load()
        return self.collection

    async def load(self) -> dict[str, Any]:
        """Run one load cycle (cache → primary → fallback)."""
        self._generation += 1
        generation = self._generation
        self.state = LoadState.LOADING
        self.error = None

        cached = await self._read_cache()
        if cached is not None:
            return self._commit(generation, cached, DataSource.CACHE)

        try:
            raw = await self._fetch_primary()
            source = DataSource.PRIMARY
        except TransientFetchFailure as primary_exc:
            logger.info("Ward API not available, falling back to static file: %s", primary_exc)
            try:
                raw = await self._fetch_fallback()
                source = DataSource.FALLBACK
            except TransientFetchFailure as fallback_exc:
                message = f"Failed to load ward boundaries: {fallback_exc}"
                if generation == self._generation:
                    self.state = LoadState.ERROR
                    self.error = message
                logger.error(message)
                raise BoundaryLoadError(message) from fallback_exc

        prepared = prune_properties(
            simplify_collection(raw, self.tolerance, self.settings.max_ring_points)
        )
        if generation == self._generation:
            await self._write_cache(prepared)
        return self._commit(generation, prepared, source)

    async def refresh(self) -> dict[str, Any]:
        """Purge the cache entry and reload from the sources."""
        await self._purge_cache()
        return await self.load()

    def visible_features(self, viewport: ViewportBounds | None = None) -> dict[str, Any] | None:
        """
        Working set narrowed to ``viewport``.  Without a viewport only
        the policy's initial slice is returned.
        """
        if self.collection is None:
            return None
        if viewport is None:
            return initial_features(self.collection, self.policy)
        return filter_by_bounds(self.collection, viewport, self.policy)

    # ── Cycle internals ───────────────────────────────────────

    def _commit(self, generation: int, data: dict[str, Any], source: DataSource) -> dict[str, Any]:
        if generation != self._generation:
            logger.info("Discarding superseded boundary load (source=%s)", source.value)
            return data
        self.collection = data
        self.data_source = source
        self.state = LoadState.READY
        logger.info(
            "Loaded %d ward boundaries (source=%s)", self.total_features, source.value
        )
        return data

    async def _read_cache(self) -> dict[str, Any] | None:
        key = self.cache_key
        try:
            raw = await self.storage.get_item(key)
            if not raw:
                return None
            entry = CacheEntry.from_json(raw)
        except (CacheCorruption, OSError, ValueError) as exc:
            logger.warning("Failed to load cached boundaries: %s", exc)
            await self._purge_cache()
            return None

        if entry.age_hours(self._clock() * 1000) > self.settings.cache_expiry_hours:
            logger.info("Boundary cache expired; purging %s", key)
            await self._purge_cache()
            return None
        return entry.data

    async def _write_cache(self, data: dict[str, Any]) -> None:
        entry = CacheEntry(data=data, timestamp=self._clock() * 1000)
        try:
            await self.storage.set_item(self.cache_key, entry.to_json())
        except Exception as exc:
            # PersistenceFailure or anything else the storage raises.
            logger.warning("Failed to cache boundaries: %s", exc)

    async def _purge_cache(self) -> None:
        try:
            await self.storage.remove_item(self.cache_key)
        except Exception as exc:
            logger.warning("Failed to purge boundary cache: %s", exc)

    async def _fetch_primary(self) -> dict[str, Any]:
        url = self.settings.api_base_url.rstrip("/") + BOUNDARIES_PATH
        params = {"municipality_id": self.municipality_id} if self.municipality_id else None
        result = await self.fetcher.fetch_json(url, params=params)
        if not result.ok:
            raise TransientFetchFailure(url, result.error or "API not available")
        try:
            body = result.body["data"]["geojson"]
        except (KeyError, TypeError) as exc:
            raise TransientFetchFailure(url, "unexpected response envelope") from exc
        return _require_collection(body, url)

    async def _fetch_fallback(self) -> dict[str, Any]:
        url = self.settings.fallback_geojson_url
        result = await self.fetcher.fetch_json(url)
        if not result.ok:
            raise TransientFetchFailure(url, result.error or f"HTTP {result.status}")
        return _require_collection(result.body, url)
