"""
SQLAlchemy ORM model for ward boundaries.

``geojson`` holds the (already decimated) boundary exactly as clients
receive it.  ``geom`` is the same shape as a PostGIS geometry in WGS84
(SRID 4326), kept for indexed viewport and point lookups.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from geoalchemy2 import Geometry
from sqlalchemy import DateTime, Index, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from wardmap.models.database import Base

WGS84 = 4326


# ── Wards (spatial) ──────────────────────────────────────────────
class Ward(Base):
    __tablename__ = "wards"
    __table_args__ = (
        Index("idx_wards_geom_gist", "geom", postgresql_using="gist"),
        Index("idx_wards_municipality_id", "municipality_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    ward_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    municipality_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    geojson: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    geom = mapped_column(
        Geometry(geometry_type="GEOMETRY", srid=WGS84, spatial_index=False),
        nullable=True,
    )
    properties: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
