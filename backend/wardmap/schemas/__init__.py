"""Schemas subpackage — Pydantic request/response models."""

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

__all__ = [
    "ApiResponse",
    "BoundariesData",
    "ImportRequest",
    "ImportResultOut",
    "WardAtPointData",
    "WardData",
    "WardListData",
    "WardOut",
    "WardSummary",
]
