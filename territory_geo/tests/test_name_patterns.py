"""
Tests for the name-pattern resolver.
"""

from __future__ import annotations

import pytest

from territory_geo.catalog import CALIFORNIA_NORTH, CALIFORNIA_SOUTH
from territory_geo.name_patterns import KIND_REGION, KIND_SUBDIVISION, match_name


class TestRegionalPatterns:
    @pytest.mark.parametrize("name,territory", [
        ("SoCal Open", CALIFORNIA_SOUTH),
        ("So Cal Summer Classic", CALIFORNIA_SOUTH),
        ("Southern California Championships", CALIFORNIA_SOUTH),
        ("NorCal Open", CALIFORNIA_NORTH),
        ("Bay Area Classic", CALIFORNIA_NORTH),
        ("PNW Championships", "Pacific Northwest"),
        ("New England Open", "New England"),
        ("Rocky Mountain Open", "Mountain North"),
        ("Dakotas Cup", "Minnesota-Dakotas"),
        ("Carolinas Classic", "Carolina"),
        ("DMV Open", "DMV"),
        ("Deep South Throwdown", "Southern"),
    ])
    def test_region(self, name, territory):
        match = match_name(name)
        assert match.kind == KIND_REGION
        assert match.territory == territory
        assert match.subdivision is None

    def test_region_checked_before_subdivision(self):
        # "California" alone would default north; the nickname decides
        match = match_name("SoCal California Games")
        assert match.kind == KIND_REGION
        assert match.territory == CALIFORNIA_SOUTH

    def test_nickname_inside_word_ignored(self):
        assert match_name("Picasso Calendar Open") is None


class TestSubdivisionPatterns:
    def test_full_name(self):
        match = match_name("Texas State Open")
        assert match.kind == KIND_SUBDIVISION
        assert match.territory == "Texas-Oklahoma"
        assert match.subdivision == "Texas"

    def test_spacing_tolerated(self):
        assert match_name("New  York Open").subdivision == "New York"

    def test_not_fooled_by_substring(self):
        assert match_name("Arkansas Open").territory == "Southern"

    def test_unambiguous_abbreviation(self):
        assert match_name("TX Summer Open").territory == "Texas-Oklahoma"

    @pytest.mark.parametrize("name", ["IN House Meet", "OK Corral Classic", "ME Strong Open"])
    def test_ambiguous_abbreviation_ignored(self, name):
        assert match_name(name) is None

    def test_california_without_region_uses_default(self):
        match = match_name("California Cup")
        assert match.territory == CALIFORNIA_NORTH
        assert match.used_default

    def test_california_city_in_name(self):
        match = match_name("Fresno California Classic")
        assert match.territory == CALIFORNIA_SOUTH
        assert not match.used_default


class TestNoMatch:
    @pytest.mark.parametrize("name", [None, "", "   ", "Spring Classic"])
    def test_none(self, name):
        assert match_name(name) is None
