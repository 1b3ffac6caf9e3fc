"""
Ward Endpoints
==============
Ward listing, boundary delivery for map clients, point lookup and the
bulk GeoJSON import.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from wardmap.config import get_settings
from wardmap.errors import ImportBatchError, MalformedInput
from wardmap.models.database import get_db
from wardmap.models.ward import Ward
from wardmap.schemas.ward import (
    ApiResponse,
    BoundariesData,
    ImportRequest,
    ImportResultOut,
    WardAtPointData,
    WardData,
    WardListData,
    WardOut,
    WardSummary,
)
from wardmap.services.importer import import_from_url
from wardmap.services.ward_store import WardRepository, to_feature_collection
from wardmap.spatial.geometry import GeoPoint, ViewportBounds

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/wards", tags=["Wards"])
settings = get_settings()


def ward_out(ward: Ward, include_geojson: bool = False) -> WardOut:
    """Build the response model without touching deferred columns."""
    return WardOut(
        id=ward.id,
        ward_id=ward.ward_id,
        name=ward.name,
        municipality_id=ward.municipality_id,
        properties=ward.properties or {},
        created_at=ward.created_at,
        geojson=ward.geojson if include_geojson else None,
    )


def parse_bounds(raw: str | None) -> ViewportBounds | None:
    """``"west,south,east,north"`` → ViewportBounds."""
    if raw is None:
        return None
    try:
        west, south, east, north = (float(part) for part in raw.split(","))
    except ValueError:
        raise HTTPException(400, "bounds must be 'west,south,east,north'")
    if west > east or south > north:
        raise HTTPException(400, "bounds corners are inverted")
    return ViewportBounds(
        north_east=GeoPoint(latitude=north, longitude=east),
        south_west=GeoPoint(latitude=south, longitude=west),
    )


# ── List wards ────────────────────────────────────────────────────
@router.get("", response_model=ApiResponse[WardListData])
async def list_wards(
    response: Response,
    municipality_id: str | None = None,
    simplified: bool = True,
    db: AsyncSession = Depends(get_db),
):
    """All wards ordered by name; boundaries only when ``simplified=false``."""
    response.headers["Cache-Control"] = "public, max-age=3600"

    include_geojson = not simplified
    wards = await WardRepository(db).list_wards(
        municipality_id=municipality_id,
        include_geojson=include_geojson,
    )
    items = [ward_out(w, include_geojson) for w in wards]
    return ApiResponse[WardListData](data=WardListData(wards=items, count=len(items)))


# ── Simplified boundaries for map rendering ───────────────────────
@router.get("/boundaries/simplified", response_model=ApiResponse[BoundariesData])
async def simplified_boundaries(
    response: Response,
    municipality_id: str | None = None,
    bounds: str | None = Query(default=None, description="west,south,east,north"),
    db: AsyncSession = Depends(get_db),
):
    """
    Stored (pre-decimated) boundaries as a FeatureCollection.

    With ``bounds`` only wards intersecting the envelope are returned,
    using the GIST index on ``wards.geom``.
    """
    viewport = parse_bounds(bounds)
    response.headers["Cache-Control"] = "public, max-age=7200"

    rows = await WardRepository(db).boundaries(
        municipality_id=municipality_id,
        bounds=viewport,
    )
    return ApiResponse[BoundariesData](data=BoundariesData(geojson=to_feature_collection(rows)))


# ── Point lookup ──────────────────────────────────────────────────
@router.get("/at", response_model=ApiResponse[WardAtPointData])
async def ward_at_point(
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    db: AsyncSession = Depends(get_db),
):
    """Ward containing the given location (PostGIS ST_Contains)."""
    ward = await WardRepository(db).ward_at_point(
        GeoPoint(latitude=latitude, longitude=longitude)
    )
    if ward is None:
        raise HTTPException(404, "No ward contains this location")

    summary = WardSummary(
        id=ward.ward_id,
        name=ward.name,
        municipality=ward.municipality_id,
        properties=ward.properties or {},
    )
    return ApiResponse[WardAtPointData](data=WardAtPointData(ward=summary))


# ── Single ward ───────────────────────────────────────────────────
@router.get("/{ward_id}", response_model=ApiResponse[WardData])
async def get_ward(
    ward_id: str,
    include_geojson: bool = False,
    db: AsyncSession = Depends(get_db),
):
    ward = await WardRepository(db).get_ward(ward_id, include_geojson=include_geojson)
    if ward is None:
        raise HTTPException(404, "Ward not found")
    return ApiResponse[WardData](data=WardData(ward=ward_out(ward, include_geojson)))


# ── Bulk import ───────────────────────────────────────────────────
@router.post("/import", response_model=ApiResponse[ImportResultOut])
async def import_wards(
    req: ImportRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Import a GeoJSON FeatureCollection from ``geojson_url``.

    Features without an identifier are skipped.  Wards are upserted in
    batches; a failed batch stops the import and earlier batches stay.
    """
    try:
        result = await import_from_url(
            req.geojson_url,
            WardRepository(db),
            municipality_id=req.municipality_id,
            tolerance=req.simplify_tolerance,
            batch_size=settings.import_batch_size,
        )
    except MalformedInput as exc:
        raise HTTPException(400, str(exc))
    except ImportBatchError as exc:
        raise HTTPException(400, str(exc))

    return ApiResponse[ImportResultOut](
        data=ImportResultOut(
            imported_count=result.imported_count,
            total_features=result.total_features,
        ),
        message=f"Successfully imported {result.imported_count} wards",
    )
