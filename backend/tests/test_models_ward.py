"""
Tests for wardmap.models.ward — table layout and indexes.
"""
from __future__ import annotations

from wardmap.models.database import Base
from wardmap.models.ward import WGS84, Ward


class TestWardModel:
    def test_registered(self):
        assert "wards" in Base.metadata.tables

    def test_columns(self):
        columns = Ward.__table__.columns
        assert set(columns.keys()) == {
            "id", "ward_id", "name", "municipality_id",
            "geojson", "geom", "properties", "created_at",
        }
        assert columns["ward_id"].unique
        assert not columns["name"].nullable
        assert columns["municipality_id"].nullable

    def test_geometry_srid(self):
        assert Ward.__table__.columns["geom"].type.srid == WGS84 == 4326

    def test_indexes(self):
        indexes = {ix.name: ix for ix in Ward.__table__.indexes}
        assert set(indexes) == {"idx_wards_geom_gist", "idx_wards_municipality_id"}
        assert indexes["idx_wards_geom_gist"].dialect_options["postgresql"]["using"] == "gist"
