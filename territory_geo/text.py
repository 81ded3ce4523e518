"""
Free-text subdivision extraction for addresses and location strings.

Order of checks:
  1. Full names and aliases ("West Virginia", "Washington, DC"), longest
     first, whole word, any case
  2. Upper-case abbreviations as standalone tokens, in catalog order.
     Abbreviations that double as compass directions ("NE") only count
     right after ", " or right before a 5-digit postal code
  3. Any candidate followed by a street suffix ("Georgia St") is skipped

The first candidate that survives wins. Nothing is scored.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Optional

from territory_geo.catalog import Catalog, followed_by_street_suffix, get_catalog, whole_word_pattern
from territory_geo.coordinates import Placement, place_subdivision

logger = logging.getLogger(__name__)

COMPASS_TOKENS = frozenset({"N", "S", "E", "W", "NE", "NW", "SE", "SW"})

_POSTAL_CODE_RE = re.compile(r"\s+\d{5}(?!\d)")


class TextResolver:
    """Compiled full-name and abbreviation patterns for one catalog."""

    def __init__(self, catalog: Optional[Catalog] = None):
        self.catalog = catalog or get_catalog()

        names = [
            (full_name, s.name)
            for s in self.catalog.subdivisions
            for full_name in s.full_names
        ]
        # Stable sort keeps catalog order among names of equal length
        names.sort(key=lambda n: len(n[0]), reverse=True)
        self._full_names = [(whole_word_pattern(n), sub) for n, sub in names]

        self._abbreviations = [
            (abbr, whole_word_pattern(abbr, ignore_case=False), s.name)
            for s in self.catalog.subdivisions
            for abbr in s.abbreviations
        ]

    def extract_subdivision(self, text: Optional[str]) -> Optional[str]:
        if not text or not text.strip():
            return None

        for pattern, subdivision in self._full_names:
            for m in pattern.finditer(text):
                if followed_by_street_suffix(text, m.end()):
                    logger.debug("Skipping %r in %r: street name", m.group(0), text)
                    continue
                return subdivision

        for abbr, pattern, subdivision in self._abbreviations:
            for m in pattern.finditer(text):
                if followed_by_street_suffix(text, m.end()):
                    continue
                if abbr in COMPASS_TOKENS and not _in_state_position(text, m.start(), m.end()):
                    logger.debug("Skipping %r in %r: directional", abbr, text)
                    continue
                return subdivision

        return None

    def resolve(self, text: Optional[str], sub_area: Optional[str] = None) -> Optional[Placement]:
        """
        Extract a subdivision and map it to a territory.
        The text itself doubles as partition sub-area text, after any
        explicit sub_area.
        """
        subdivision = self.extract_subdivision(text)
        if subdivision is None:
            return None
        area_text = ", ".join(p for p in (sub_area, text) if p)
        return place_subdivision(subdivision, area_text, None, self.catalog)


def _in_state_position(text: str, start: int, end: int) -> bool:
    """Directly after ", " or directly before a postal code."""
    if start >= 2 and text[start - 2:start] == ", ":
        return True
    return bool(_POSTAL_CODE_RE.match(text, end))


@lru_cache(maxsize=1)
def _default_resolver() -> TextResolver:
    return TextResolver()


def extract_subdivision(text: Optional[str]) -> Optional[str]:
    """Subdivision named in text, or None."""
    return _default_resolver().extract_subdivision(text)


def resolve_text(text: Optional[str], sub_area: Optional[str] = None) -> Optional[Placement]:
    """Territory placement for text, or None."""
    return _default_resolver().resolve(text, sub_area)
