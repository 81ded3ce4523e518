"""
Tests for free-text subdivision extraction.
"""

from __future__ import annotations

import pytest

from territory_geo.catalog import CALIFORNIA_NORTH, CALIFORNIA_SOUTH
from territory_geo.coordinates import BASIS_DEFAULT, BASIS_SUB_AREA
from territory_geo.text import extract_subdivision, resolve_text


class TestFullNames:
    def test_full_name(self):
        assert extract_subdivision("Portland, Oregon") == "Oregon"

    def test_case_insensitive(self):
        assert extract_subdivision("austin, TEXAS") == "Texas"

    def test_longer_name_wins(self):
        assert extract_subdivision("Charleston, West Virginia") == "West Virginia"
        assert extract_subdivision("Fargo, North Dakota 58102") == "North Dakota"

    def test_whole_word_only(self):
        assert extract_subdivision("Little Rock, Arkansas") == "Arkansas"

    def test_dc_alias(self):
        assert extract_subdivision("1600 Pennsylvania Ave NW, Washington, DC 20500") == "District of Columbia"

    def test_street_named_after_state(self):
        assert extract_subdivision("500 Texas St, Fort Worth") is None
        assert extract_subdivision("500 Texas St., Fort Worth") is None

    def test_street_name_then_real_state(self):
        assert extract_subdivision("1200 Georgia Ave, Atlanta, GA 30303") == "Georgia"
        assert extract_subdivision("10 Indiana Ave, Chicago, IL") == "Illinois"


class TestAbbreviations:
    def test_after_comma(self):
        assert extract_subdivision("Boise, ID 83702") == "Idaho"

    def test_directional_in_street_is_not_nebraska(self):
        assert extract_subdivision("5224 NE 42nd Ave, Portland, Oregon, 97218") == "Oregon"
        assert extract_subdivision("123 NE 4th Street, Portland, OR") == "Oregon"

    def test_nebraska_after_comma(self):
        assert extract_subdivision("456 Main St, Lincoln, NE") == "Nebraska"

    def test_nebraska_before_postal_code(self):
        assert extract_subdivision("789 South St, Omaha NE 68127") == "Nebraska"

    def test_lowercase_abbreviation_ignored(self):
        assert extract_subdivision("meet in or around town") is None

    @pytest.mark.parametrize("text", [
        "Toronto, Ontario, Canada",
        "Toronto, ON, Canada",
        "CANADA",
        "Vancouver, BC",
    ])
    def test_country_noise(self, text):
        assert extract_subdivision(text) is None


class TestEmptyInput:
    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_unresolved(self, text):
        assert extract_subdivision(text) is None
        assert resolve_text(text) is None


class TestResolveText:
    def test_unsplit(self):
        placement = resolve_text("Portland, Oregon")
        assert placement.territory == "Pacific Northwest"
        assert placement.subdivision == "Oregon"

    def test_california_city_in_same_string(self):
        placement = resolve_text("Los Angeles, California")
        assert placement.territory == CALIFORNIA_SOUTH
        assert placement.basis == BASIS_SUB_AREA

    def test_california_abbreviation_with_city(self):
        assert resolve_text("Sacramento, CA").territory == CALIFORNIA_NORTH

    def test_explicit_sub_area(self):
        assert resolve_text("123 Main St, CA 93721", sub_area="Fresno").territory == CALIFORNIA_SOUTH

    def test_california_without_city_defaults_north(self):
        placement = resolve_text("Somewhere, California")
        assert placement.territory == CALIFORNIA_NORTH
        assert placement.basis == BASIS_DEFAULT
