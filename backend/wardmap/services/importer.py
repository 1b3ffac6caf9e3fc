"""
Ward Import Pipeline
====================
Turns an externally hosted GeoJSON FeatureCollection into stored ward
records.

- **WardRecordStreamer**: generator that normalises features one at a
  time (identifier / name through the property synonym lists, coarse
  stride decimation of the outer ring).  Features without an
  identifier or with an unusable boundary are logged and skipped,
  never fatal.

- **import_wards**: upserts the streamed records in fixed-size batches.
  Repeated identifiers collapse to the last occurrence.
  A failing batch aborts the import with ``ImportBatchError``; batches
  already written stay committed.

- **import_from_url**: fetch + parse + ``import_wards``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generator, Iterable, Mapping

import httpx
from shapely.errors import GEOSException
from shapely.geometry import shape
from sqlalchemy.exc import SQLAlchemyError

from wardmap.config import get_settings
from wardmap.errors import ImportBatchError, MalformedInput
from wardmap.services.ward_store import WardRecord, WardRepository
from wardmap.spatial.geometry import is_closed
from wardmap.spatial.properties import ward_id_of, ward_name_of
from wardmap.spatial.simplify import MIN_RING_POINTS, decimate_boundary

logger = logging.getLogger(__name__)
settings = get_settings()

FetchGeoJSON = Callable[[str], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class ImportResult:
    imported_count: int
    total_features: int


# ═══════════════════════════════════════════════════════════════════
# Geometry validation
# ═══════════════════════════════════════════════════════════════════

BOUNDARY_TYPES = ("Polygon", "MultiPolygon")


def _check_ring(ring: Any) -> None:
    if len(ring) < MIN_RING_POINTS:
        raise MalformedInput(f"ring has {len(ring)} positions, need at least {MIN_RING_POINTS}")
    for position in ring:
        if len(position) < 2 or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in position[:2]
        ):
            raise MalformedInput(f"invalid position {position!r}")
    if not is_closed(ring):
        raise MalformedInput("ring is not closed")


def check_boundary(geometry: Any) -> None:
    """
    Raise ``MalformedInput`` unless ``geometry`` is a Polygon or
    MultiPolygon that PostGIS will accept: every ring closed, with at
    least four ``[lon, lat]`` positions.
    """
    gtype = geometry.get("type") if isinstance(geometry, Mapping) else type(geometry).__name__
    if gtype not in BOUNDARY_TYPES:
        raise MalformedInput(f"unsupported geometry type {gtype!r}")

    coords = geometry.get("coordinates")
    polygons = [coords] if gtype == "Polygon" else coords
    if not polygons:
        raise MalformedInput("geometry has no coordinates")
    for rings in polygons:
        if not rings:
            raise MalformedInput("polygon has no rings")
        for ring in rings:
            _check_ring(ring)

    shape(geometry)


# ═══════════════════════════════════════════════════════════════════
# WardRecordStreamer (generator pattern)
# ═══════════════════════════════════════════════════════════════════

class WardRecordStreamer:
    """
    Yields ``WardRecord``s from raw GeoJSON features.

    Parameters
    ----------
    municipality_id : str | None
        Stamped on every record.
    tolerance : float
        Decimation step as a fraction of outer-ring length.
    """

    def __init__(self, municipality_id: str | None = None, tolerance: float | None = None):
        self.municipality_id = municipality_id
        self.tolerance = settings.import_tolerance if tolerance is None else tolerance
        self.skipped = 0

    def to_record(self, feature: Mapping[str, Any]) -> WardRecord | None:
        raw_properties = feature.get("properties")
        properties = dict(raw_properties) if isinstance(raw_properties, Mapping) else {}
        ward_id = ward_id_of(properties)
        if ward_id is None:
            logger.warning("Skipping feature without ward ID: %s", properties)
            self.skipped += 1
            return None

        geometry = feature.get("geometry")
        try:
            # Wards without a boundary are stored; broken boundaries are not.
            if geometry is not None:
                check_boundary(geometry)
            geojson = decimate_boundary(geometry, self.tolerance)
        except (
            MalformedInput, GEOSException, TypeError, ValueError,
            IndexError, KeyError, AttributeError,
        ) as exc:
            logger.warning("Skipping ward %s with unusable geometry: %s", ward_id, exc)
            self.skipped += 1
            return None

        return WardRecord(
            ward_id=ward_id,
            name=ward_name_of(properties),
            municipality_id=self.municipality_id,
            geojson=geojson,
            properties=properties,
        )

    def stream(self, features: Iterable[Mapping[str, Any]]) -> Generator[WardRecord, None, None]:
        for feature in features:
            if not isinstance(feature, Mapping):
                logger.warning("Skipping non-object feature: %r", feature)
                self.skipped += 1
                continue
            record = self.to_record(feature)
            if record is not None:
                yield record


# ═══════════════════════════════════════════════════════════════════
# Batched upsert
# ═══════════════════════════════════════════════════════════════════

async def import_wards(
    repository: WardRepository,
    features: list[Mapping[str, Any]],
    *,
    municipality_id: str | None = None,
    tolerance: float | None = None,
    batch_size: int | None = None,
) -> ImportResult:
    """
    Normalise ``features`` and upsert them ``batch_size`` at a time.

    Raises
    ------
    MalformedInput
        No feature carried a resolvable identifier.
    ImportBatchError
        A batch failed; ``imported_count`` tells how many made it.
    """
    batch_size = batch_size or settings.import_batch_size
    streamer = WardRecordStreamer(municipality_id=municipality_id, tolerance=tolerance)
    # One row per ward_id: a later feature overwrites an earlier one, and a
    # single INSERT ... ON CONFLICT may not touch the same row twice.
    by_ward_id: dict[str, WardRecord] = {}
    for record in streamer.stream(features):
        if record.ward_id in by_ward_id:
            logger.warning("Duplicate ward ID %s; keeping the later feature", record.ward_id)
        by_ward_id[record.ward_id] = record
    records = list(by_ward_id.values())

    if not records:
        raise MalformedInput("No valid wards found in GeoJSON")

    imported = 0
    for batch_index, start in enumerate(range(0, len(records), batch_size)):
        batch = records[start:start + batch_size]
        try:
            imported += await repository.upsert_batch(batch)
        except SQLAlchemyError as exc:
            logger.error("Batch %d insert error: %s", batch_index, exc)
            raise ImportBatchError(batch_index, imported, str(exc)) from exc

    logger.info(
        "Imported %d wards from %d features (%d skipped)",
        imported, len(features), streamer.skipped,
    )
    return ImportResult(imported_count=imported, total_features=len(features))


# ═══════════════════════════════════════════════════════════════════
# Fetch + import
# ═══════════════════════════════════════════════════════════════════

async def fetch_geojson(url: str) -> Any:
    """GET ``url`` and decode it as JSON."""
    async with httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True) as client:
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            raise MalformedInput(f"Failed to fetch GeoJSON data: {exc}") from exc
        except ValueError as exc:
            raise MalformedInput("GeoJSON response is not valid JSON") from exc


async def import_from_url(
    url: str,
    repository: WardRepository,
    *,
    municipality_id: str | None = None,
    tolerance: float | None = None,
    batch_size: int | None = None,
    fetch: FetchGeoJSON = fetch_geojson,
) -> ImportResult:
    """Import every ward of the FeatureCollection hosted at ``url``."""
    logger.info("Importing wards from %s (municipality=%s)", url, municipality_id)
    data = await fetch(url)

    features = data.get("features") if isinstance(data, dict) else None
    if not isinstance(features, list):
        raise MalformedInput("Invalid GeoJSON format")

    return await import_wards(
        repository,
        features,
        municipality_id=municipality_id,
        tolerance=tolerance,
        batch_size=batch_size,
    )
