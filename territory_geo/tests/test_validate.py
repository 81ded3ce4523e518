"""
Tests for the contamination validator.
"""

from __future__ import annotations

import pytest

from territory_geo.catalog import CALIFORNIA_NORTH, CALIFORNIA_SOUTH, HAWAII_INTERNATIONAL
from territory_geo.errors import InvalidCoordinate
from territory_geo.models import Action, IssueKind, LocationRecord
from territory_geo.validate import (
    ContaminationValidator,
    check_dataset,
    find_placeholder,
    international_keyword,
    is_us_country,
    validate,
)


class TestBoundary:
    def test_correct_assignment_is_clean(self):
        finding = validate(CALIFORNIA_NORTH, 37.77, -122.42)
        assert finding.is_valid
        assert finding.issues == []
        assert finding.action == Action.NONE
        assert finding.classification is None

    def test_wrong_territory(self):
        finding = validate("Texas-Oklahoma", 37.77, -122.42)
        assert not finding.is_valid
        assert finding.issues == [IssueKind.BOUNDARY_VIOLATION]
        assert finding.classification == IssueKind.BOUNDARY_VIOLATION
        assert finding.action == Action.CORRECT
        assert finding.stored_territory == "Texas-Oklahoma"
        assert finding.recomputed_territory == CALIFORNIA_NORTH
        assert finding.recomputed_subdivision == "California"
        assert finding.stored_distance_km > 1000

    def test_no_stored_territory(self):
        finding = validate(None, 38.5, -98.0)
        assert finding.issues == [IssueKind.BOUNDARY_VIOLATION]
        assert finding.recomputed_territory == "Missouri Valley"

    def test_county_keeps_split_consistent(self):
        finding = validate(CALIFORNIA_SOUTH, 36.74, -120.2, {"county": "Fresno"})
        assert finding.is_valid
        assert finding.issues == []

    def test_county_with_unlisted_city(self):
        finding = validate(CALIFORNIA_SOUTH, 36.21, -119.09, {"county": "Tulare", "city": "Lindsay"})
        assert finding.is_valid
        assert finding.issues == []
        assert finding.action == Action.NONE

    def test_accepts_location_record(self):
        record = LocationRecord(city="Fresno")
        assert validate(CALIFORNIA_SOUTH, 36.74, -120.2, record).is_valid


class TestMissingSignal:
    def test_no_coordinates(self):
        finding = validate("Florida", None, None)
        assert finding.issues == [IssueKind.MISSING_SIGNAL]
        assert not finding.is_valid
        assert finding.action == Action.REVIEW

    def test_outside_all_boxes(self):
        finding = validate("Florida", 51.5, -0.12)
        assert finding.issues == [IssueKind.MISSING_SIGNAL]
        assert finding.recomputed_territory is None

    def test_invalid_coordinates_raise(self):
        with pytest.raises(InvalidCoordinate):
            validate("Florida", 100.0, 0.0)


class TestPlaceholder:
    def test_placeholder_with_agreeing_territory(self):
        finding = validate("Missouri Valley", 39.78, -100.45)
        assert finding.is_valid
        assert finding.issues == [IssueKind.PLACEHOLDER_COORDINATE]
        assert finding.placeholder_name == "US Geographic Center (Kansas)"
        assert finding.action == Action.REVIEW

    def test_placeholder_with_wrong_territory(self):
        finding = validate("Florida", 39.78, -100.45)
        assert IssueKind.PLACEHOLDER_COORDINATE in finding.issues
        assert IssueKind.BOUNDARY_VIOLATION in finding.issues
        # Do not auto-correct onto a placeholder
        assert finding.action == Action.REVIEW

    def test_orange_county_default(self):
        finding = validate(CALIFORNIA_SOUTH, 33.66, -117.87)
        assert finding.is_valid
        assert finding.issues == [IssueKind.PLACEHOLDER_COORDINATE]

    def test_tolerance(self):
        assert find_placeholder(39.82, -100.41, tolerance=0.05) is not None
        assert find_placeholder(39.90, -100.45, tolerance=0.05) is None
        assert find_placeholder(39.90, -100.45, tolerance=0.2) is not None

    def test_validator_tolerance_override(self):
        strict = ContaminationValidator(tolerance=0.001)
        assert strict.validate("Missouri Valley", 39.79, -100.45).issues == []


class TestInternational:
    def test_foreign_country_on_domestic_territory(self):
        finding = validate("Texas-Oklahoma", 32.78, -96.8, {"country": "Canada"})
        assert IssueKind.LIKELY_INTERNATIONAL in finding.issues
        assert finding.action == Action.REMOVE

    def test_keyword_in_name(self):
        finding = validate("Florida", 25.76, -80.19, {"name": "Pan Am Championships"})
        assert finding.issues == [IssueKind.LIKELY_INTERNATIONAL]
        assert finding.action == Action.REMOVE

    def test_international_territory_is_not_removed(self):
        finding = validate(HAWAII_INTERNATIONAL, None, None, {"name": "World Championships"})
        assert IssueKind.LIKELY_INTERNATIONAL in finding.issues
        assert finding.action == Action.REVIEW

    def test_us_country_is_domestic(self):
        finding = validate("Texas-Oklahoma", 32.78, -96.8, {"country": "USA"})
        assert finding.issues == []

    def test_keyword_whole_word(self):
        assert international_keyword("Worldwide Gym Open") is None
        assert international_keyword("Brio Classic") is None
        assert international_keyword("Tokyo Invitational") == "Tokyo"
        assert international_keyword(None, "Sydney") == "Sydney"

    @pytest.mark.parametrize("country", [None, "", "US", "usa", "United States", "U.S.A.",
                                         "United States of America"])
    def test_us_country_names(self, country):
        assert is_us_country(country)

    @pytest.mark.parametrize("country", ["Canada", "Mexico", "Japan"])
    def test_foreign_country_names(self, country):
        assert not is_us_country(country)


class TestCheckDataset:
    def test_summary(self):
        records = [
            {"record_id": 1, "territory": CALIFORNIA_NORTH, "latitude": 37.77, "longitude": -122.42},
            {"record_id": 2, "territory": "Florida", "latitude": 37.77, "longitude": -122.42},
            {"record_id": 3, "territory": "Florida", "latitude": 200.0, "longitude": 0.0},
            {"record_id": 4, "territory": "Florida"},
        ]
        report = check_dataset(records)
        assert report.total == 4
        assert report.valid == 1
        assert report.contaminated == 1
        assert report.unverifiable == 1
        assert report.invalid_input == 1
        assert report.contamination_rate == pytest.approx(0.3333)
        assert report.by_action == {"none": 1, "correct": 1, "review": 1}
        assert report.by_issue == {"boundary_violation": 1, "missing_signal": 1}

        ids = [e.record_id for e in report.entries]
        assert ids == ["2", "3", "4"]
        invalid = report.entries[1]
        assert invalid.finding is None
        assert "200" in invalid.error

    def test_empty(self):
        report = check_dataset([])
        assert report.total == 0
        assert report.contamination_rate == 0.0
