"""
Name-pattern resolver for event and organization titles.

Two passes over fixed tables, first match wins:
  1. Regional nicknames that name a territory outright ("SoCal Open",
     "PNW Championships", "Bay Area Classic")
  2. Subdivision names, aliases and upper-case abbreviations, mapped to a
     territory the same way an address is
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from territory_geo.catalog import (
    CALIFORNIA_NORTH,
    CALIFORNIA_SOUTH,
    Catalog,
    get_catalog,
    whole_word_pattern,
)
from territory_geo.coordinates import Placement, place_subdivision

logger = logging.getLogger(__name__)

KIND_REGION = "region"
KIND_SUBDIVISION = "subdivision"


def _rx(pattern: str) -> re.Pattern:
    return re.compile(r"(?<![A-Za-z])(?:" + pattern + r")(?![A-Za-z])", re.IGNORECASE)


# Order matters: California nicknames before the broader "southern"/"southwest"
REGIONAL_PATTERNS: list[tuple[str, re.Pattern]] = [
    (CALIFORNIA_NORTH, _rx(r"nor\s*cal|northern\s+california|bay\s+area|san\s+francisco")),
    (CALIFORNIA_SOUTH, _rx(r"so\s*cal|southern\s+california|los\s+angeles|san\s+diego")),
    ("Pacific Northwest", _rx(r"pacific\s+northwest|pnw")),
    ("New England", _rx(r"new\s+england|northeast")),
    ("Mountain North", _rx(r"mountain\s+north|rocky\s+mountains?")),
    ("Mountain South", _rx(r"mountain\s+south|southwest")),
    ("Southern", _rx(r"southern\s+states|deep\s+south")),
    ("Minnesota-Dakotas", _rx(r"dakotas")),
    ("Carolina", _rx(r"carolinas")),
    ("DMV", _rx(r"dmv")),
]

# Abbreviations that are ordinary words or directions in a title
# ("Meet IN Reno", "OK Open", "NE Regional")
AMBIGUOUS_ABBREVIATIONS = frozenset({
    "NE", "IN", "OR", "ME", "HI", "OK", "LA", "ID", "DE", "CO", "OH", "AL",
})


@dataclass(frozen=True)
class NameMatch:
    kind: str
    territory: str
    matched: str
    placement: Optional[Placement] = None

    @property
    def subdivision(self) -> Optional[str]:
        return self.placement.subdivision if self.placement else None

    @property
    def used_default(self) -> bool:
        return bool(self.placement and self.placement.used_default)


class NamePatternResolver:
    def __init__(self, catalog: Optional[Catalog] = None):
        self.catalog = catalog or get_catalog()

        for territory, _ in REGIONAL_PATTERNS:
            if self.catalog.territory(territory) is None:
                raise ValueError(f"regional pattern points at unknown territory {territory!r}")

        names = [
            (full_name, s.name)
            for s in self.catalog.subdivisions
            for full_name in s.full_names
        ]
        names.sort(key=lambda n: len(n[0]), reverse=True)
        # "New  York" and "New York" are the same name in a title
        self._subdivision_patterns = [
            (re.compile(
                r"(?<![A-Za-z])" + r"\s+".join(re.escape(w) for w in n.split()) + r"(?![A-Za-z])",
                re.IGNORECASE,
            ), sub)
            for n, sub in names
        ]
        self._subdivision_patterns += [
            (whole_word_pattern(abbr, ignore_case=False), s.name)
            for s in self.catalog.subdivisions
            for abbr in s.abbreviations
            if abbr not in AMBIGUOUS_ABBREVIATIONS
        ]

    def match(self, name: Optional[str]) -> Optional[NameMatch]:
        if not name or not name.strip():
            return None

        for territory, pattern in REGIONAL_PATTERNS:
            m = pattern.search(name)
            if m:
                logger.debug("Name %r matched regional pattern %r", name, m.group(0))
                return NameMatch(KIND_REGION, territory, m.group(0))

        for pattern, subdivision in self._subdivision_patterns:
            m = pattern.search(name)
            if m:
                placement = place_subdivision(subdivision, name, None, self.catalog)
                if placement is None:
                    continue
                return NameMatch(KIND_SUBDIVISION, placement.territory, m.group(0), placement)

        return None


@lru_cache(maxsize=1)
def _default_resolver() -> NamePatternResolver:
    return NamePatternResolver()


def match_name(name: Optional[str]) -> Optional[NameMatch]:
    """Territory suggested by an event or organization name, or None."""
    return _default_resolver().match(name)
