"""
Tests for Pydantic model validation.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from territory_geo.models import (
    Action,
    AssignmentMethod,
    AssignmentResult,
    IssueKind,
    LocationRecord,
    ValidationFinding,
)


class TestLocationRecord:
    def test_empty(self):
        record = LocationRecord()
        assert not record.has_coordinates
        assert record.sub_area is None
        assert record.address_text is None

    def test_record_id_coerced(self):
        assert LocationRecord(record_id=42).record_id == "42"

    def test_blank_strings_become_none(self):
        record = LocationRecord(address="  ", city="", name="Spring Classic")
        assert record.address is None
        assert record.city is None
        assert record.name == "Spring Classic"

    def test_partial_coordinates(self):
        assert not LocationRecord(latitude=37.7).has_coordinates
        assert LocationRecord(latitude=37.7, longitude=-122.4).has_coordinates

    def test_sub_area_joins_county_and_city(self):
        record = LocationRecord(county="Fresno", city="Clovis")
        assert record.sub_area == "Fresno, Clovis"

    def test_address_text(self):
        record = LocationRecord(address="1 Main St", city="Boise", subdivision="ID")
        assert record.address_text == "1 Main St, Boise, ID"

    def test_extra_fields_allowed(self):
        record = LocationRecord.model_validate({"name": "X", "meet_id": 7})
        assert record.name == "X"

    def test_non_numeric_latitude_rejected(self):
        with pytest.raises(ValidationError):
            LocationRecord(latitude="north")


class TestAssignmentResult:
    def test_defaults(self):
        result = AssignmentResult()
        assert result.territory is None
        assert result.confidence == 0.0
        assert not result.assigned

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            AssignmentResult(territory="Ohio", confidence=1.5)
        with pytest.raises(ValidationError):
            AssignmentResult(territory="Ohio", confidence=-0.1)

    def test_method_serializes_as_string(self):
        result = AssignmentResult(territory="Ohio", method=AssignmentMethod.ADDRESS, confidence=0.8)
        assert result.model_dump(mode="json")["method"] == "address"


class TestValidationFinding:
    def test_classification_is_first_issue(self):
        finding = ValidationFinding(
            is_valid=False,
            issues=[IssueKind.BOUNDARY_VIOLATION, IssueKind.PLACEHOLDER_COORDINATE],
            action=Action.REVIEW,
        )
        assert finding.classification == IssueKind.BOUNDARY_VIOLATION

    def test_clean(self):
        finding = ValidationFinding(is_valid=True)
        assert finding.classification is None
        assert finding.action == Action.NONE
