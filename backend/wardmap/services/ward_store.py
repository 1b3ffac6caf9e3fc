"""
Ward Repository
===============
PostGIS-backed query surface for stored wards.

- **Reads**: list / get by identifier / boundary rows for map
  rendering, optionally narrowed with ``ST_Intersects`` against a
  viewport envelope, and a server-side ``ST_Contains`` point lookup.

- **Writes**: ``upsert_batch`` issues one ``INSERT ... ON CONFLICT
  (ward_id) DO UPDATE`` per batch and commits it, so each batch is
  durable on its own.

- **suppress_sql_logging**: Context manager that temporarily sets the
  ``sqlalchemy.engine`` logger to WARNING during bulk upserts so a
  large import does not flood the terminal with echoed SQL.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from geoalchemy2.functions import (
    ST_Contains,
    ST_GeomFromGeoJSON,
    ST_Intersects,
    ST_MakeEnvelope,
    ST_MakePoint,
    ST_SetSRID,
)
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import defer

from wardmap.models.ward import WGS84, Ward
from wardmap.spatial.geometry import GeoPoint, ViewportBounds

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
# Log Suppression
# ═══════════════════════════════════════════════════════════════════

@contextmanager
def suppress_sql_logging():
    """
    Temporarily raise ``sqlalchemy.engine`` log level to WARNING
    during bulk upserts.  Restores the original level on exit.
    """
    sa_logger = logging.getLogger("sqlalchemy.engine")
    original_level = sa_logger.level
    sa_logger.setLevel(logging.WARNING)
    try:
        yield
    finally:
        sa_logger.setLevel(original_level)


# ═══════════════════════════════════════════════════════════════════
# Records
# ═══════════════════════════════════════════════════════════════════

@dataclass
class WardRecord:
    """A normalised ward ready for upsert."""

    ward_id: str
    name: str
    municipality_id: str | None
    geojson: dict[str, Any] | None
    properties: dict[str, Any] = field(default_factory=dict)

    def to_row(self) -> dict[str, Any]:
        geom = None
        if self.geojson:
            geom = ST_SetSRID(ST_GeomFromGeoJSON(json.dumps(self.geojson)), WGS84)
        return {
            "id": uuid.uuid4(),
            "ward_id": self.ward_id,
            "name": self.name,
            "municipality_id": self.municipality_id,
            "geojson": self.geojson,
            "geom": geom,
            "properties": self.properties,
        }


def to_feature_collection(rows: Iterable[Any]) -> dict[str, Any]:
    """Boundary rows → GeoJSON FeatureCollection for map rendering."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"ward_id": row.ward_id, "name": row.name},
                "geometry": row.geojson,
            }
            for row in rows
        ],
    }


# ═══════════════════════════════════════════════════════════════════
# Repository
# ═══════════════════════════════════════════════════════════════════

class WardRepository:
    """
    Executes ward queries against PostGIS.
    All methods are async and use the injected AsyncSession.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Reads ─────────────────────────────────────────────────

    async def list_wards(
        self,
        municipality_id: str | None = None,
        include_geojson: bool = False,
    ) -> Sequence[Ward]:
        """Wards ordered by name, optionally for one municipality."""
        stmt = select(Ward).options(defer(Ward.geom, raiseload=True))
        if not include_geojson:
            stmt = stmt.options(defer(Ward.geojson, raiseload=True))
        if municipality_id:
            stmt = stmt.where(Ward.municipality_id == municipality_id)
        stmt = stmt.order_by(Ward.name)

        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_ward(self, ward_id: str, include_geojson: bool = False) -> Ward | None:
        stmt = (
            select(Ward)
            .options(defer(Ward.geom, raiseload=True))
            .where(Ward.ward_id == ward_id)
        )
        if not include_geojson:
            stmt = stmt.options(defer(Ward.geojson, raiseload=True))

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def boundaries(
        self,
        municipality_id: str | None = None,
        bounds: ViewportBounds | None = None,
    ) -> Sequence[Any]:
        """
        ``(ward_id, name, geojson)`` rows for map rendering.

        When ``bounds`` is given, only wards whose geometry intersects
        the envelope are returned (GIST-indexed).
        """
        stmt = select(Ward.ward_id, Ward.name, Ward.geojson)
        if municipality_id:
            stmt = stmt.where(Ward.municipality_id == municipality_id)
        if bounds is not None:
            envelope = ST_MakeEnvelope(
                bounds.west, bounds.south,
                bounds.east, bounds.north,
                WGS84,
            )
            stmt = stmt.where(ST_Intersects(Ward.geom, envelope))
        stmt = stmt.order_by(Ward.name)

        result = await self.session.execute(stmt)
        return result.all()

    async def ward_at_point(self, point: GeoPoint) -> Ward | None:
        """First ward (by name) whose geometry contains ``point``."""
        location = ST_SetSRID(ST_MakePoint(point.longitude, point.latitude), WGS84)
        stmt = (
            select(Ward)
            .options(defer(Ward.geom, raiseload=True), defer(Ward.geojson, raiseload=True))
            .where(ST_Contains(Ward.geom, location))
            .order_by(Ward.name)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # ── Writes ────────────────────────────────────────────────

    async def upsert_batch(self, records: Sequence[WardRecord]) -> int:
        """
        Insert or overwrite ``records`` keyed by ``ward_id`` and commit.

        On failure the batch is rolled back and the error re-raised;
        previously committed batches are unaffected.
        """
        if not records:
            return 0

        stmt = pg_insert(Ward).values([r.to_row() for r in records])
        stmt = stmt.on_conflict_do_update(
            index_elements=[Ward.ward_id],
            set_={
                "name": stmt.excluded.name,
                "municipality_id": stmt.excluded.municipality_id,
                "geojson": stmt.excluded.geojson,
                "geom": stmt.excluded.geom,
                "properties": stmt.excluded.properties,
            },
        )

        with suppress_sql_logging():
            try:
                await self.session.execute(stmt)
                await self.session.commit()
            except SQLAlchemyError:
                await self.session.rollback()
                raise

        logger.debug("Upserted %d wards", len(records))
        return len(records)
