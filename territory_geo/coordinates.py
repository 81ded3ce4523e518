"""
Coordinate resolver: (lat, lng) -> subdivision -> territory.

Strategy:
  1. Reject non-numeric, non-finite or out-of-range input (InvalidCoordinate)
  2. Collect every subdivision whose bounding box contains the point
  3. Several candidates (neighbouring boxes overlap) -> nearest box centroid,
     first candidate in catalog order on an exact tie
  4. Map the subdivision to its territory; split subdivisions go through
     their partition rule (sub-area text, then latitude, then default)

Bounding boxes are an approximation of real borders. Points near a border
can land in the neighbour; the validator exists to catch the results.
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Optional

from territory_geo.catalog import Catalog, get_catalog
from territory_geo.errors import InvalidCoordinate

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

# How a split subdivision was placed
BASIS_UNSPLIT = "unsplit"
BASIS_SUB_AREA = "sub_area"
BASIS_LATITUDE = "latitude"
BASIS_DEFAULT = "default"


@dataclass(frozen=True)
class Placement:
    territory: str
    subdivision: str
    basis: str = BASIS_UNSPLIT
    # County/city that decided a split subdivision, if any
    sub_area: Optional[str] = None

    @property
    def used_default(self) -> bool:
        return self.basis == BASIS_DEFAULT


def check_coordinate(lat: object, lng: object) -> tuple[float, float]:
    """Return (lat, lng) as floats or raise InvalidCoordinate."""
    for value in (lat, lng):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidCoordinate(lat, lng, "not a number")
    flat, flng = float(lat), float(lng)
    if not (math.isfinite(flat) and math.isfinite(flng)):
        raise InvalidCoordinate(lat, lng, "not finite")
    if not -90.0 <= flat <= 90.0:
        raise InvalidCoordinate(lat, lng, "latitude outside [-90, 90]")
    if not -180.0 <= flng <= 180.0:
        raise InvalidCoordinate(lat, lng, "longitude outside [-180, 180]")
    return flat, flng


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in km between two WGS84 points."""
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def place_subdivision(
    subdivision: str,
    sub_area: Optional[str] = None,
    lat: Optional[float] = None,
    catalog: Optional[Catalog] = None,
) -> Optional[Placement]:
    """
    Map a subdivision name to its territory.
    Shared by the coordinate and text resolvers so both split the same way.
    """
    catalog = catalog or get_catalog()
    territories = catalog.territories_for(subdivision)
    if not territories:
        return None

    rule = catalog.partition_for(subdivision)
    if rule is None:
        return Placement(territories[0], subdivision, BASIS_UNSPLIT)

    matched = rule.by_sub_area(sub_area)
    if matched is not None:
        name, territory = matched
        return Placement(territory, subdivision, BASIS_SUB_AREA, sub_area=name)
    if lat is not None:
        return Placement(rule.by_latitude(lat), subdivision, BASIS_LATITUDE)
    return Placement(rule.default, subdivision, BASIS_DEFAULT)


class CoordinateResolver:
    """Resolve points against the catalog's bounding boxes."""

    def __init__(self, catalog: Optional[Catalog] = None):
        self.catalog = catalog or get_catalog()

    def candidates(self, lat: float, lng: float) -> list[str]:
        return [s.name for s in self.catalog.subdivisions if s.bbox.contains(lat, lng)]

    def subdivision_at(self, lat: object, lng: object) -> Optional[str]:
        flat, flng = check_coordinate(lat, lng)
        hits = [s for s in self.catalog.subdivisions if s.bbox.contains(flat, flng)]
        if not hits:
            return None
        if len(hits) == 1:
            return hits[0].name

        # min() keeps the first of equal distances, which is the tie rule
        best = min(hits, key=lambda s: math.dist((flat, flng), s.bbox.centroid))
        logger.debug(
            "(%s, %s) in %d boxes %s, nearest centroid %s",
            flat, flng, len(hits), [s.name for s in hits], best.name,
        )
        return best.name

    def resolve(
        self,
        lat: object,
        lng: object,
        sub_area: Optional[str] = None,
    ) -> Optional[Placement]:
        """Placement for a point, or None when no box contains it."""
        subdivision = self.subdivision_at(lat, lng)
        if subdivision is None:
            return None
        return place_subdivision(subdivision, sub_area, float(lat), self.catalog)
