"""
Tests for the static boundary table.
"""

from __future__ import annotations

import pytest

from territory_geo.catalog import (
    CALIFORNIA_NORTH,
    CALIFORNIA_SOUTH,
    HAWAII_INTERNATIONAL,
    BoundingBox,
    Catalog,
    PartitionRule,
    Subdivision,
    Territory,
    followed_by_street_suffix,
    get_catalog,
)


@pytest.fixture(scope="module")
def catalog():
    return get_catalog()


class TestBuiltinCatalog:
    def test_sizes(self, catalog):
        assert len(catalog.subdivisions) == 51
        assert len(catalog.territories) == 26

    def test_every_subdivision_has_a_territory(self, catalog):
        for s in catalog.subdivisions:
            assert catalog.territories_for(s.name), s.name

    def test_california_is_the_only_split(self, catalog):
        split = [s.name for s in catalog.subdivisions if catalog.is_split(s.name)]
        assert split == ["California"]
        assert catalog.territories_for("California") == [CALIFORNIA_NORTH, CALIFORNIA_SOUTH]

    def test_multi_member_territory(self, catalog):
        assert catalog.territories_for("Kansas") == ["Missouri Valley"]
        assert catalog.territory("DMV").members == (
            "Delaware", "Maryland", "Virginia", "District of Columbia",
        )

    def test_hawaii_accepts_international(self, catalog):
        assert catalog.territory(HAWAII_INTERNATIONAL).accepts_international
        assert not catalog.territory("Florida").accepts_international

    def test_abbreviation_lookup(self, catalog):
        assert catalog.subdivision_for_abbreviation("OR") == "Oregon"
        assert catalog.subdivision_for_abbreviation("dc") == "District of Columbia"
        assert catalog.subdivision_for_abbreviation("ZZ") is None

    def test_dc_aliases(self, catalog):
        dc = catalog.subdivision("District of Columbia")
        assert "Washington DC" in dc.full_names
        assert "Washington, D.C." in dc.full_names

    def test_territory_centroid(self, catalog):
        lat, lng = catalog.territory_centroid("Florida")
        assert 24 < lat < 31
        assert -88 < lng < -80
        assert catalog.territory_centroid("Atlantis") is None

    def test_singleton(self):
        assert get_catalog() is get_catalog()


class TestBoundingBox:
    def test_edges_are_inclusive(self):
        box = BoundingBox(0.0, 1.0, 0.0, 1.0)
        assert box.contains(0.0, 0.0)
        assert box.contains(1.0, 1.0)
        assert not box.contains(1.0001, 0.5)

    def test_centroid(self):
        assert BoundingBox(0.0, 2.0, -4.0, 0.0).centroid == (1.0, -2.0)


class TestPartitionRule:
    @pytest.fixture(scope="class")
    def rule(self):
        return get_catalog().partition_for("California")

    def test_latitude_threshold(self, rule):
        assert rule.by_latitude(35.5) == CALIFORNIA_NORTH
        assert rule.by_latitude(35.5 + 1e-9) == CALIFORNIA_NORTH
        assert rule.by_latitude(35.5 - 1e-9) == CALIFORNIA_SOUTH

    def test_default_is_northern(self, rule):
        assert rule.default == CALIFORNIA_NORTH

    def test_county_exact(self, rule):
        assert rule.by_sub_area("Los Angeles County") == ("los angeles", CALIFORNIA_SOUTH)
        assert rule.by_sub_area("Alameda") == ("alameda", CALIFORNIA_NORTH)

    def test_bare_county_alongside_unlisted_city(self, rule):
        assert rule.by_sub_area("Tulare, Lindsay") == ("tulare", CALIFORNIA_SOUTH)
        assert rule.by_sub_area("Lindsay, Tulare") == ("tulare", CALIFORNIA_SOUTH)

    def test_city_in_text(self, rule):
        assert rule.by_sub_area("123 Main St, Fresno, CA") == ("fresno", CALIFORNIA_SOUTH)
        assert rule.by_sub_area("Oakland, California") == ("oakland", CALIFORNIA_NORTH)

    def test_longest_name_first(self, rule):
        assert rule.by_sub_area("West Hollywood, CA") == ("west hollywood", CALIFORNIA_SOUTH)

    def test_street_name_is_not_a_city(self, rule):
        assert rule.by_sub_area("1 Sacramento St, Fresno") == ("fresno", CALIFORNIA_SOUTH)

    def test_no_match(self, rule):
        assert rule.by_sub_area("Nowhere Springs") is None
        assert rule.by_sub_area("") is None
        assert rule.by_sub_area(None) is None

    def test_every_sub_area_maps_to_one_side(self, rule):
        sides = set(rule.counties.values()) | set(rule.cities.values())
        assert sides == {CALIFORNIA_NORTH, CALIFORNIA_SOUTH}


class TestCatalogInvariants:
    def _sub(self, name):
        return Subdivision(name, (name[:2].upper(),), BoundingBox(0, 1, 0, 1))

    def test_orphan_subdivision_rejected(self):
        with pytest.raises(ValueError, match="belongs to no territory"):
            Catalog([self._sub("Alpha")], [])

    def test_unknown_member_rejected(self):
        with pytest.raises(ValueError, match="unknown subdivision"):
            Catalog([self._sub("Alpha")], [Territory("T", ("Alpha", "Beta"))])

    def test_split_without_rule_rejected(self):
        with pytest.raises(ValueError, match="without a partition rule"):
            Catalog(
                [self._sub("Alpha")],
                [Territory("North", ("Alpha",)), Territory("South", ("Alpha",))],
            )

    def test_rule_pointing_elsewhere_rejected(self):
        rule = PartitionRule("Alpha", "North", "South", 0.5, counties={"x": "Elsewhere"})
        with pytest.raises(ValueError, match="points outside"):
            Catalog(
                [self._sub("Alpha")],
                [Territory("North", ("Alpha",)), Territory("South", ("Alpha",))],
                [rule],
            )


class TestStreetSuffix:
    @pytest.mark.parametrize("text", ["Georgia St", "Georgia St.", "Georgia Avenue", "Georgia blvd"])
    def test_suffix_detected(self, text):
        assert followed_by_street_suffix(text, len("Georgia"))

    @pytest.mark.parametrize("text", ["Georgia", "Georgia, USA", "Georgia Stadium", "Georgia 30303"])
    def test_no_suffix(self, text):
        assert not followed_by_street_suffix(text, len("Georgia"))
