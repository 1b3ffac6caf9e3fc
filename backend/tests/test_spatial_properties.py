"""
Tests for wardmap.spatial.properties — property-key synonym lookup.
"""
from __future__ import annotations

from wardmap.spatial.properties import (
    first_present,
    minimal_properties,
    municipality_of,
    ward_id_of,
    ward_name_of,
)


class TestWardIdOf:
    def test_order_of_precedence(self):
        assert ward_id_of({"ward_id": "c", "WARD_ID": "b", "id": "a"}) == "a"
        assert ward_id_of({"ward_id": "c", "WARD_ID": "b"}) == "b"
        assert ward_id_of({"ward_id": "c"}) == "c"

    def test_numeric_id_stringified(self):
        assert ward_id_of({"WARD_ID": 79800001}) == "79800001"

    def test_zero_is_a_valid_id(self):
        assert ward_id_of({"id": 0}) == "0"

    def test_empty_values_skipped(self):
        assert ward_id_of({"id": "", "WARD_ID": None, "ward_id": "x"}) == "x"

    def test_missing(self):
        assert ward_id_of({"name": "Ward"}) is None
        assert ward_id_of(None) is None


class TestWardNameOf:
    def test_synonyms(self):
        assert ward_name_of({"WARD_NAME": "Soweto", "id": 1}) == "Soweto"
        assert ward_name_of({"name": "A", "WARD_NAME": "B"}) == "A"

    def test_fallback_to_identifier(self):
        assert ward_name_of({"WARD_ID": "42"}) == "Ward 42"

    def test_nothing_known(self):
        assert ward_name_of({}) is None


class TestMunicipalityOf:
    def test_synonyms(self):
        assert municipality_of({"MUNICIPALITY": "JHB"}) == "JHB"
        assert municipality_of({"municipality_id": "CPT"}) == "CPT"
        assert municipality_of({"municipality": "A", "MUNICIPALITY": "B"}) == "A"

    def test_missing(self):
        assert municipality_of({}) is None


class TestMinimalProperties:
    def test_prunes_to_three_keys(self):
        props = {"WARD_ID": "7", "WARD_NAME": "Seven", "MUNICIPALITY": "ETH", "AREA": 12.5}
        assert minimal_properties(props) == {"id": "7", "name": "Seven", "municipality": "ETH"}

    def test_first_present_generic(self):
        assert first_present({"b": 2}, ("a", "b")) == 2
        assert first_present({}, ("a",)) is None
