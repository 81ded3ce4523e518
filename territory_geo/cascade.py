"""
Assignment cascade: one territory per location record.

Strategies are tried in a fixed order and the first that places the
record wins:
  1. coordinates   (bounding boxes, partition rule for split subdivisions)
  2. address       (free-text subdivision extraction)
  3. name_pattern  (regional nicknames, then subdivision names in titles)
  4. historical    (majority territory previously recorded for the name)

Confidence comes from a fixed table keyed on how the record was placed.
Every later strategy that independently lands on the same territory adds
a small agreement bonus, capped at 1.0. A record nothing can place gets a
null territory and zero confidence; that is a result, not an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Union

from territory_geo.catalog import Catalog, get_catalog
from territory_geo.config import get_settings
from territory_geo.coordinates import (
    BASIS_DEFAULT,
    BASIS_LATITUDE,
    BASIS_SUB_AREA,
    CoordinateResolver,
    Placement,
)
from territory_geo.historical import HistoricalMap
from territory_geo.models import AssignmentMethod, AssignmentResult, LocationRecord
from territory_geo.name_patterns import KIND_REGION, NamePatternResolver
from territory_geo.text import TextResolver

logger = logging.getLogger(__name__)

NO_METHOD_SUCCEEDED = "No assignment method succeeded"

# Strictly ordered: coordinates > name_pattern_region > historical > address
# > name_pattern_state > fallback
CONFIDENCE: dict[str, float] = {
    "coordinates": 0.95,
    "name_pattern_region": 0.90,
    "historical": 0.85,
    "address": 0.80,
    "name_pattern_state": 0.75,
    "fallback": 0.50,
}


@dataclass
class Resolution:
    territory: str
    method: AssignmentMethod
    confidence_key: str
    subdivision: Optional[str] = None
    reasoning: list[str] = field(default_factory=list)


@dataclass
class ResolveContext:
    """Shared, read-only collaborators for one resolve() call."""
    catalog: Catalog
    coordinates: CoordinateResolver
    text: TextResolver
    names: NamePatternResolver
    historical: Optional[HistoricalMap] = None


def _placement_reasons(placement: Placement, catalog: Catalog) -> list[str]:
    if placement.basis == BASIS_SUB_AREA:
        return [f"{placement.subdivision} split by sub-area '{placement.sub_area}' -> {placement.territory}"]
    if placement.basis == BASIS_LATITUDE:
        rule = catalog.partition_for(placement.subdivision)
        return [f"{placement.subdivision} split at latitude {rule.latitude_threshold} -> {placement.territory}"]
    if placement.basis == BASIS_DEFAULT:
        return [f"{placement.subdivision} split with no sub-area or latitude, defaulting to {placement.territory}"]
    return []


def _placement_key(placement: Placement, key: str) -> str:
    return "fallback" if placement.used_default else key


# ── Strategies ────────────────────────────────────────────────────────

class CoordinateStrategy:
    method = AssignmentMethod.COORDINATES

    def try_resolve(self, record: LocationRecord, ctx: ResolveContext) -> Optional[Resolution]:
        if not record.has_coordinates:
            return None
        # Raises InvalidCoordinate for bad input; the caller decides what to do
        placement = ctx.coordinates.resolve(record.latitude, record.longitude, record.sub_area)
        if placement is None:
            return None
        reasons = [
            f"Coordinates ({record.latitude}, {record.longitude}) fall in {placement.subdivision}",
            *_placement_reasons(placement, ctx.catalog),
        ]
        return Resolution(
            territory=placement.territory,
            method=self.method,
            confidence_key=_placement_key(placement, "coordinates"),
            subdivision=placement.subdivision,
            reasoning=reasons,
        )


class AddressStrategy:
    method = AssignmentMethod.ADDRESS

    def try_resolve(self, record: LocationRecord, ctx: ResolveContext) -> Optional[Resolution]:
        text = record.address_text
        if not text:
            return None
        placement = ctx.text.resolve(text, record.sub_area)
        if placement is None:
            return None
        reasons = [
            f"Address '{text}' names {placement.subdivision}",
            *_placement_reasons(placement, ctx.catalog),
        ]
        return Resolution(
            territory=placement.territory,
            method=self.method,
            confidence_key=_placement_key(placement, "address"),
            subdivision=placement.subdivision,
            reasoning=reasons,
        )


class NamePatternStrategy:
    method = AssignmentMethod.NAME_PATTERN

    def try_resolve(self, record: LocationRecord, ctx: ResolveContext) -> Optional[Resolution]:
        match = ctx.names.match(record.name)
        if match is None:
            return None
        if match.kind == KIND_REGION:
            return Resolution(
                territory=match.territory,
                method=self.method,
                confidence_key="name_pattern_region",
                reasoning=[f"Name '{record.name}' matches regional pattern '{match.matched}'"],
            )
        reasons = [
            f"Name '{record.name}' mentions {match.subdivision} ('{match.matched}')",
            *_placement_reasons(match.placement, ctx.catalog),
        ]
        return Resolution(
            territory=match.territory,
            method=self.method,
            confidence_key="fallback" if match.used_default else "name_pattern_state",
            subdivision=match.subdivision,
            reasoning=reasons,
        )


class HistoricalStrategy:
    method = AssignmentMethod.HISTORICAL

    def try_resolve(self, record: LocationRecord, ctx: ResolveContext) -> Optional[Resolution]:
        if ctx.historical is None or not record.name:
            return None
        territory = ctx.historical.lookup(record.name)
        if territory is None:
            return None
        votes = ctx.historical.votes(record.name)
        total = sum(votes.values())
        return Resolution(
            territory=territory,
            method=self.method,
            confidence_key="historical",
            reasoning=[
                f"Historical majority for '{record.name}': {territory} "
                f"({votes.get(territory, 0)} of {total} records)"
            ],
        )


DEFAULT_STRATEGIES = (
    CoordinateStrategy(),
    AddressStrategy(),
    NamePatternStrategy(),
    HistoricalStrategy(),
)


# ── Cascade ───────────────────────────────────────────────────────────

class AssignmentCascade:
    def __init__(self, catalog: Optional[Catalog] = None, strategies=DEFAULT_STRATEGIES):
        self.catalog = catalog or get_catalog()
        self.strategies = tuple(strategies)
        self._coordinates = CoordinateResolver(self.catalog)
        self._text = TextResolver(self.catalog)
        self._names = NamePatternResolver(self.catalog)

    def context(self, historical: Optional[HistoricalMap] = None) -> ResolveContext:
        return ResolveContext(
            catalog=self.catalog,
            coordinates=self._coordinates,
            text=self._text,
            names=self._names,
            historical=historical,
        )

    def resolve(
        self,
        record: Union[LocationRecord, dict],
        historical: Optional[HistoricalMap] = None,
        agreement_bonus: Optional[float] = None,
    ) -> AssignmentResult:
        if not isinstance(record, LocationRecord):
            record = LocationRecord.model_validate(record)
        if agreement_bonus is None:
            agreement_bonus = get_settings().assignment.agreement_bonus

        ctx = self.context(historical)
        winner: Optional[Resolution] = None
        skipped: list[str] = []
        later = []
        for i, strategy in enumerate(self.strategies):
            resolution = strategy.try_resolve(record, ctx)
            if resolution is not None:
                winner = resolution
                later = self.strategies[i + 1:]
                break
            skipped.append(strategy.method.value)

        if winner is None:
            logger.debug("Record %s unassigned", record.record_id)
            return AssignmentResult(
                territory=None,
                confidence=0.0,
                reasoning=[f"Tried {', '.join(skipped)}", NO_METHOD_SUCCEEDED],
            )

        reasoning = list(winner.reasoning)
        confidence = CONFIDENCE[winner.confidence_key]
        reasoning.append(f"Base confidence {confidence:.2f} ({winner.confidence_key})")

        for strategy in later:
            other = strategy.try_resolve(record, ctx)
            if other is not None and other.territory == winner.territory:
                confidence += agreement_bonus
                reasoning.append(f"{strategy.method.value} agrees on {winner.territory} (+{agreement_bonus:.2f})")

        confidence = round(min(confidence, 1.0), 4)
        logger.debug(
            "Record %s -> %s via %s (%.2f)",
            record.record_id, winner.territory, winner.method.value, confidence,
        )
        return AssignmentResult(
            territory=winner.territory,
            subdivision=winner.subdivision,
            method=winner.method,
            confidence=confidence,
            reasoning=reasoning,
        )


@lru_cache(maxsize=1)
def get_cascade() -> AssignmentCascade:
    return AssignmentCascade()


def resolve(
    record: Union[LocationRecord, dict],
    historical: Optional[HistoricalMap] = None,
) -> AssignmentResult:
    """Assign one record to a territory using the built-in catalog."""
    return get_cascade().resolve(record, historical)
