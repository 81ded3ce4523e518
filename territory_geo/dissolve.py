"""
Territory dissolver: merge per-subdivision polygon parts into one
exterior-only polygon.

  - Input is GeoJSON, either a bare geometry or a Feature
  - A Polygon (or one-part MultiPolygon) is already dissolved: no-op
  - Parts are unioned pairwise in order; the running result must end up
    as a single Polygon or the territory is left unchanged
  - Holes are dropped. Rendering only needs the outline
"""

from __future__ import annotations

import logging
import numbers
from typing import Any, Mapping, Optional

from shapely.errors import GEOSException
from shapely.geometry import Polygon, mapping, shape
from shapely.validation import explain_validity

from territory_geo.errors import GeometryError
from territory_geo.models import DissolveResult

logger = logging.getLogger(__name__)

NOTHING_TO_DO = "nothing to do"


def _split_feature(obj: Mapping[str, Any]) -> tuple[Mapping[str, Any], Optional[dict]]:
    if obj.get("type") == "Feature":
        geometry = obj.get("geometry")
        if not isinstance(geometry, Mapping):
            raise GeometryError("Feature has no geometry")
        return geometry, dict(obj.get("properties") or {})
    return obj, None


def _check_ring(ring: Any, where: str, territory: Optional[str]) -> None:
    if not isinstance(ring, (list, tuple)) or len(ring) < 4:
        raise GeometryError(f"{where}: ring needs at least 4 positions", territory)
    for position in ring:
        if (
            not isinstance(position, (list, tuple))
            or len(position) < 2
            or not all(isinstance(c, numbers.Real) and not isinstance(c, bool) for c in position[:2])
        ):
            raise GeometryError(f"{where}: bad position {position!r}", territory)
    if list(ring[0][:2]) != list(ring[-1][:2]):
        raise GeometryError(f"{where}: ring is not closed", territory)


def _parts(geometry: Mapping[str, Any], territory: Optional[str]) -> list[Polygon]:
    coordinates = geometry.get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or not coordinates:
        raise GeometryError("MultiPolygon has no parts", territory)

    parts: list[Polygon] = []
    for i, rings in enumerate(coordinates):
        if not isinstance(rings, (list, tuple)) or not rings:
            raise GeometryError(f"part {i}: no rings", territory)
        for j, ring in enumerate(rings):
            _check_ring(ring, f"part {i} ring {j}", territory)
        polygon = shape({"type": "Polygon", "coordinates": rings})
        if not polygon.is_valid:
            raise GeometryError(f"part {i}: {explain_validity(polygon)}", territory)
        parts.append(polygon)
    return parts


def _as_lists(value: Any) -> Any:
    """shapely.mapping() returns tuples; GeoJSON consumers expect arrays."""
    if isinstance(value, (list, tuple)):
        return [_as_lists(v) for v in value]
    return value


def dissolve(geometry: Mapping[str, Any], territory: Optional[str] = None) -> DissolveResult:
    """
    Dissolve a territory's geometry. Raises GeometryError for malformed
    parts or parts that do not join into one polygon.
    """
    if not isinstance(geometry, Mapping):
        raise GeometryError("geometry must be a GeoJSON object", territory)
    geom, properties = _split_feature(geometry)
    kind = geom.get("type")

    if kind == "Polygon" or (kind == "MultiPolygon" and len(geom.get("coordinates") or ()) == 1):
        return DissolveResult(
            territory=territory,
            changed=False,
            parts_in=1,
            message=NOTHING_TO_DO,
            geometry=dict(geometry),
        )
    if kind != "MultiPolygon":
        raise GeometryError(f"cannot dissolve geometry of type {kind!r}", territory)

    parts = _parts(geom, territory)
    try:
        merged = parts[0].union(parts[1])
        for part in parts[2:]:
            merged = merged.union(part)
    except GEOSException as e:
        raise GeometryError(f"union failed: {e}", territory) from e

    if merged.geom_type != "Polygon":
        pieces = len(getattr(merged, "geoms", ()))
        raise GeometryError(
            f"{len(parts)} parts do not form one connected polygon ({pieces} pieces after union)",
            territory,
        )

    outline = Polygon(merged.exterior.coords)
    before = sum(p.length for p in parts)
    after = outline.length
    out_geometry: dict[str, Any] = {
        "type": "Polygon",
        "coordinates": _as_lists(mapping(outline)["coordinates"]),
    }
    if properties is not None:
        properties.update({"dissolved": True, "parts_dissolved": len(parts)})
        out_geometry = {"type": "Feature", "properties": properties, "geometry": out_geometry}

    logger.info(
        "Dissolved %s: %d parts, perimeter %.3f -> %.3f",
        territory or "geometry", len(parts), before, after,
    )
    return DissolveResult(
        territory=territory,
        changed=True,
        parts_in=len(parts),
        message=f"dissolved {len(parts)} parts into 1 polygon",
        geometry=out_geometry,
        perimeter_before=before,
        perimeter_after=after,
    )


def dissolve_all(
    geometries: Mapping[str, Mapping[str, Any]],
) -> tuple[dict[str, DissolveResult], dict[str, str]]:
    """
    Dissolve each territory on its own. A failure is recorded for that
    territory and the rest still run.
    Returns (results, failures) keyed by territory name.
    """
    results: dict[str, DissolveResult] = {}
    failures: dict[str, str] = {}
    for territory, geometry in geometries.items():
        try:
            results[territory] = dissolve(geometry, territory)
        except GeometryError as e:
            logger.warning("Dissolve failed for %s: %s", territory, e)
            failures[territory] = str(e)
    logger.info("Dissolve run: %d ok, %d failed", len(results), len(failures))
    return results, failures
