"""
Tests for wardmap.schemas — envelope and request validation.
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from wardmap.schemas.ward import (
    ApiResponse,
    ImportRequest,
    ImportResultOut,
    WardOut,
)
from tests.conftest import SAMPLE_WARD_UUID, make_ward_row


class TestApiResponse:
    def test_defaults(self):
        resp = ApiResponse[ImportResultOut](data=ImportResultOut(imported_count=1, total_features=1))
        assert resp.model_dump() == {
            "success": True,
            "data": {"imported_count": 1, "total_features": 1},
            "message": None,
        }

    def test_error_envelope(self):
        resp = ApiResponse[ImportResultOut](success=False, message="failed")
        assert resp.data is None


class TestImportRequest:
    def test_defaults(self):
        req = ImportRequest(geojson_url="  https://x.test/w.geojson ")
        assert req.geojson_url == "https://x.test/w.geojson"
        assert req.simplify_tolerance == 0.001
        assert req.municipality_id is None

    @pytest.mark.parametrize("url", ["", "   ", "file:///etc/passwd"])
    def test_invalid_url(self, url):
        with pytest.raises(ValidationError):
            ImportRequest(geojson_url=url)

    @pytest.mark.parametrize("tolerance", [-0.1, 1.5])
    def test_tolerance_range(self, tolerance):
        with pytest.raises(ValidationError):
            ImportRequest(geojson_url="https://x.test/w.geojson", simplify_tolerance=tolerance)


class TestWardOut:
    def test_from_attributes(self):
        out = WardOut.model_validate(make_ward_row(ward_id="9"))
        assert out.id == SAMPLE_WARD_UUID
        assert out.ward_id == "9"
        assert out.geojson["type"] == "Polygon"
