"""
Exception types raised by the resolution core.

Only malformed input is exceptional. A record that no resolver can place,
a coordinate outside every known subdivision, or a stored assignment that
disagrees with its coordinates are all normal results.
"""

from __future__ import annotations


class TerritoryGeoError(Exception):
    """Base class for errors raised by territory_geo."""


class InvalidCoordinate(TerritoryGeoError, ValueError):
    """Latitude/longitude is non-numeric, non-finite or out of range."""

    def __init__(self, latitude: object, longitude: object, reason: str):
        self.latitude = latitude
        self.longitude = longitude
        self.reason = reason
        super().__init__(f"Invalid coordinate ({latitude!r}, {longitude!r}): {reason}")


class GeometryError(TerritoryGeoError):
    """Territory geometry is malformed or its parts cannot be merged into one polygon."""

    def __init__(self, message: str, territory: str | None = None):
        self.territory = territory
        if territory:
            message = f"{territory}: {message}"
        super().__init__(message)
