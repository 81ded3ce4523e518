"""
Contamination validator: re-derive a record's territory from its
coordinates and compare it with the stored assignment.

Checks, all independent of each other:
  - boundary: recomputed territory differs from the stored one
  - placeholder: coordinates sit on a geocoder default (US centre points etc.)
  - international: name/city carries an international-event keyword, or the
    country is not the US

Disagreement is the point of this module, so it never raises for it. Only
malformed coordinates raise (InvalidCoordinate).
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from territory_geo.catalog import Catalog, get_catalog
from territory_geo.config import get_settings
from territory_geo.coordinates import CoordinateResolver, check_coordinate, haversine_km
from territory_geo.errors import InvalidCoordinate
from territory_geo.models import (
    Action,
    ContaminationReport,
    DatasetEntry,
    IssueKind,
    LocationRecord,
    ValidationFinding,
)

logger = logging.getLogger(__name__)


# ── Reference data ────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlaceholderCoordinate:
    lat: float
    lng: float
    name: str


# Points geocoders return when they only matched "USA" or a county
PLACEHOLDER_COORDINATES: tuple[PlaceholderCoordinate, ...] = (
    PlaceholderCoordinate(39.78, -100.45, "US Geographic Center (Kansas)"),
    PlaceholderCoordinate(39.83, -98.58, "US Geographic Center (alternate)"),
    PlaceholderCoordinate(33.66, -117.87, "Orange County CA Default"),
    PlaceholderCoordinate(37.09, -95.71, "US Center Point"),
    PlaceholderCoordinate(39.50, -98.35, "Lebanon KS (Geographic Center)"),
)

INTERNATIONAL_KEYWORDS: tuple[str, ...] = (
    "world", "olympic", "pan am", "panamerican", "international",
    "commonwealth", "asian games", "european", "continental",
    "ihf", "iwf", "rio", "tokyo", "beijing", "athens", "sydney",
)

_INTERNATIONAL_RE = re.compile(
    r"(?<![A-Za-z])(?:" + "|".join(re.escape(k) for k in INTERNATIONAL_KEYWORDS) + r")(?![A-Za-z])",
    re.IGNORECASE,
)

US_COUNTRY_NAMES = frozenset({
    "us", "usa", "u.s.", "u.s.a.", "united states", "united states of america",
})

# Higher wins when several checks fire
_ACTION_RANK = {Action.NONE: 0, Action.CORRECT: 1, Action.REVIEW: 2, Action.REMOVE: 3}


def find_placeholder(
    lat: float,
    lng: float,
    tolerance: Optional[float] = None,
) -> Optional[PlaceholderCoordinate]:
    if tolerance is None:
        tolerance = get_settings().validation.placeholder_tolerance
    for placeholder in PLACEHOLDER_COORDINATES:
        if abs(lat - placeholder.lat) < tolerance and abs(lng - placeholder.lng) < tolerance:
            return placeholder
    return None


def international_keyword(*texts: Optional[str]) -> Optional[str]:
    """First international-event keyword found in any of texts."""
    for text in texts:
        if not text:
            continue
        m = _INTERNATIONAL_RE.search(text)
        if m:
            return m.group(0)
    return None


def is_us_country(country: Optional[str]) -> bool:
    """Blank counts as US: most records carry no country at all."""
    if not country or not country.strip():
        return True
    return re.sub(r"\s+", " ", country).strip().lower() in US_COUNTRY_NAMES


def _meta(metadata: Union[Mapping[str, Any], LocationRecord, None], key: str) -> Optional[str]:
    if metadata is None:
        return None
    if isinstance(metadata, LocationRecord):
        value = getattr(metadata, key, None)
    else:
        value = metadata.get(key)
    return str(value) if value not in (None, "") else None


# ── Validator ─────────────────────────────────────────────────────────

class ContaminationValidator:
    def __init__(self, catalog: Optional[Catalog] = None, tolerance: Optional[float] = None):
        self.catalog = catalog or get_catalog()
        self.resolver = CoordinateResolver(self.catalog)
        self.tolerance = tolerance

    def validate(
        self,
        stored_territory: Optional[str],
        lat: Optional[float],
        lng: Optional[float],
        metadata: Union[Mapping[str, Any], LocationRecord, None] = None,
    ) -> ValidationFinding:
        issues: list[IssueKind] = []
        reasons: list[str] = []
        action = Action.NONE

        def escalate(to: Action) -> None:
            nonlocal action
            if _ACTION_RANK[to] > _ACTION_RANK[action]:
                action = to

        name = _meta(metadata, "name")
        city = _meta(metadata, "city")
        county = _meta(metadata, "county")
        country = _meta(metadata, "country")
        sub_area = ", ".join(p for p in (county, city) if p) or None

        placement = None
        placeholder = None
        distance = None
        if lat is None or lng is None:
            issues.append(IssueKind.MISSING_SIGNAL)
            reasons.append("No coordinates to check the assignment against")
        else:
            lat, lng = check_coordinate(lat, lng)
            placement = self.resolver.resolve(lat, lng, sub_area)
            if placement is None:
                issues.append(IssueKind.MISSING_SIGNAL)
                reasons.append(f"({lat}, {lng}) is outside every known subdivision")
            elif placement.territory != stored_territory:
                issues.append(IssueKind.BOUNDARY_VIOLATION)
                reasons.append(
                    f"Stored {stored_territory or 'no territory'} but ({lat}, {lng}) "
                    f"is in {placement.subdivision} -> {placement.territory}"
                )
                escalate(Action.CORRECT)

            placeholder = find_placeholder(lat, lng, self.tolerance)
            if placeholder is not None:
                issues.append(IssueKind.PLACEHOLDER_COORDINATE)
                reasons.append(f"Coordinates match placeholder '{placeholder.name}'")
                escalate(Action.REVIEW)

            if stored_territory:
                centre = self.catalog.territory_centroid(stored_territory)
                if centre is not None:
                    distance = round(haversine_km(lat, lng, *centre), 1)

        keyword = international_keyword(name, city)
        foreign = not is_us_country(country)
        if keyword or foreign:
            issues.append(IssueKind.LIKELY_INTERNATIONAL)
            reasons.append(
                f"International keyword '{keyword}'" if keyword else f"Country '{country}' is not the US"
            )
            stored = self.catalog.territory(stored_territory) if stored_territory else None
            if stored is not None and not stored.accepts_international:
                reasons.append(f"Domestic territory {stored_territory} should not hold this record")
                escalate(Action.REMOVE)
            else:
                escalate(Action.REVIEW)

        if issues == [IssueKind.MISSING_SIGNAL] and stored_territory:
            escalate(Action.REVIEW)

        is_valid = placement is not None and placement.territory == stored_territory
        finding = ValidationFinding(
            is_valid=is_valid,
            stored_territory=stored_territory,
            recomputed_territory=placement.territory if placement else None,
            recomputed_subdivision=placement.subdivision if placement else None,
            issues=issues,
            action=action,
            placeholder_name=placeholder.name if placeholder else None,
            stored_distance_km=distance,
            reasons=reasons,
        )
        if issues:
            logger.debug("Finding for %s at (%s, %s): %s", stored_territory, lat, lng, issues)
        return finding

    def validate_record(self, record: LocationRecord) -> ValidationFinding:
        return self.validate(record.territory, record.latitude, record.longitude, record)

    def check_dataset(self, records: Iterable[Union[LocationRecord, dict]]) -> ContaminationReport:
        """
        Validate every record and summarize. A record with malformed
        coordinates is reported as invalid input and the batch continues.
        """
        report = ContaminationReport()
        by_issue: Counter = Counter()
        by_action: Counter = Counter()

        for raw in records:
            report.total += 1
            try:
                record = raw if isinstance(raw, LocationRecord) else LocationRecord.model_validate(raw)
                finding = self.validate_record(record)
            except (InvalidCoordinate, ValidationError) as e:
                record_id = raw.get("record_id") if isinstance(raw, dict) else getattr(raw, "record_id", None)
                logger.warning("Record %s skipped: %s", record_id, e)
                report.invalid_input += 1
                report.entries.append(DatasetEntry(
                    record_id=str(record_id) if record_id is not None else None,
                    error=str(e),
                ))
                continue

            by_issue.update(issue.value for issue in finding.issues)
            by_action[finding.action.value] += 1

            if finding.is_valid and not finding.issues:
                report.valid += 1
                continue
            if finding.issues == [IssueKind.MISSING_SIGNAL]:
                report.unverifiable += 1
            else:
                report.contaminated += 1
            report.entries.append(DatasetEntry(record_id=record.record_id, name=record.name, finding=finding))

        checked = report.total - report.invalid_input
        report.contamination_rate = round(report.contaminated / checked, 4) if checked else 0.0
        report.by_issue = dict(by_issue)
        report.by_action = dict(by_action)
        logger.info(
            "Checked %d records: %d valid, %d contaminated, %d unverifiable, %d invalid",
            report.total, report.valid, report.contaminated, report.unverifiable, report.invalid_input,
        )
        return report


@lru_cache(maxsize=1)
def _validator() -> ContaminationValidator:
    return ContaminationValidator()


def validate(
    stored_territory: Optional[str],
    lat: Optional[float],
    lng: Optional[float],
    metadata: Union[Mapping[str, Any], LocationRecord, None] = None,
) -> ValidationFinding:
    """Check one stored assignment against its coordinates and metadata."""
    return _validator().validate(stored_territory, lat, lng, metadata)


def check_dataset(records: Iterable[Union[LocationRecord, dict]]) -> ContaminationReport:
    return _validator().check_dataset(records)
