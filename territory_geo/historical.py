"""
Historical-majority lookup: identifier -> most frequently recorded territory.

The map is built in one scan over previously labeled records and is
read-only afterwards. Build it once per batch and pass it to every
resolve() call; no lookup can happen before the scan has finished.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Mapping
from typing import Iterable, Iterator, Optional

logger = logging.getLogger(__name__)


def normalize_identifier(identifier: Optional[str]) -> Optional[str]:
    """Collapse whitespace and case-fold. Blank identifiers become None."""
    if identifier is None:
        return None
    key = re.sub(r"\s+", " ", identifier).strip().casefold()
    return key or None


class HistoricalMap(Mapping):
    """Immutable identifier -> territory mapping with vote counts kept for reporting."""

    def __init__(self, winners: dict[str, str], votes: dict[str, Counter]):
        self._winners = dict(winners)
        self._votes = votes

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[Optional[str], Optional[str]]]) -> "HistoricalMap":
        """
        Scan (identifier, territory) pairs and keep each identifier's most
        frequent territory. Ties go to the territory seen first for that
        identifier. Pairs with a blank identifier or territory are skipped.
        """
        votes: dict[str, Counter] = {}
        scanned = 0
        for identifier, territory in pairs:
            scanned += 1
            key = normalize_identifier(identifier)
            if key is None or not territory:
                continue
            votes.setdefault(key, Counter())[territory] += 1

        # Counter keeps insertion order and max() returns the first of equal
        # counts, so the first-seen territory wins a tie
        winners = {
            key: max(counter.items(), key=lambda item: item[1])[0]
            for key, counter in votes.items()
        }
        logger.info("Historical map built: %d identifiers from %d records", len(winners), scanned)
        return cls(winners, votes)

    def __getitem__(self, identifier: str) -> str:
        key = normalize_identifier(identifier)
        if key is None:
            raise KeyError(identifier)
        return self._winners[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._winners)

    def __len__(self) -> int:
        return len(self._winners)

    def __contains__(self, identifier: object) -> bool:
        if not isinstance(identifier, str):
            return False
        key = normalize_identifier(identifier)
        return key is not None and key in self._winners

    def lookup(self, identifier: Optional[str]) -> Optional[str]:
        key = normalize_identifier(identifier)
        return self._winners.get(key) if key is not None else None

    def votes(self, identifier: Optional[str]) -> dict[str, int]:
        """Territory -> count for an identifier, in first-seen order."""
        key = normalize_identifier(identifier)
        if key is None or key not in self._votes:
            return {}
        return dict(self._votes[key])

    def __repr__(self) -> str:
        return f"HistoricalMap({len(self)} identifiers)"
