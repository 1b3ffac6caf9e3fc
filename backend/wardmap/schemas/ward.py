"""
Pydantic schemas for API request/response serialization.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════
# Envelope
# ═══════════════════════════════════════════════════════════════════
class ApiResponse(BaseModel, Generic[T]):
    """``{"success": ..., "data": ..., "message": ...}`` wrapper."""

    success: bool = True
    data: T | None = None
    message: str | None = None


# ═══════════════════════════════════════════════════════════════════
# Ward schemas
# ═══════════════════════════════════════════════════════════════════
class WardSummary(BaseModel):
    """Normalised ward identity resolved from a feature's properties."""

    id: str | None = None
    name: str | None = None
    municipality: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)


class WardOut(BaseModel):
    """A stored ward record."""

    id: uuid.UUID
    ward_id: str
    name: str
    municipality_id: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    geojson: dict[str, Any] | None = Field(
        default=None,
        description="Boundary geometry; only present when requested",
    )

    model_config = {"from_attributes": True}


class WardListData(BaseModel):
    wards: list[WardOut]
    count: int


class WardData(BaseModel):
    ward: WardOut


class WardAtPointData(BaseModel):
    ward: WardSummary


class BoundariesData(BaseModel):
    geojson: dict[str, Any] = Field(description="GeoJSON FeatureCollection")


# ═══════════════════════════════════════════════════════════════════
# Import
# ═══════════════════════════════════════════════════════════════════
class ImportRequest(BaseModel):
    """Bulk import of a GeoJSON feature collection from a URL."""

    geojson_url: str
    municipality_id: str | None = None
    simplify_tolerance: float = Field(
        default=0.001,
        ge=0.0,
        le=1.0,
        description="Stride decimation step as a fraction of ring length",
    )

    @field_validator("geojson_url")
    @classmethod
    def url_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("GeoJSON URL is required")
        if not v.startswith(("http://", "https://")):
            raise ValueError("GeoJSON URL must be http(s)")
        return v


class ImportResultOut(BaseModel):
    imported_count: int
    total_features: int
