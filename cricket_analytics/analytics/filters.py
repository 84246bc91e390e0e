"""Ad-hoc filters applied to match entries before aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from cricket_analytics.analytics.aggregator import MatchEntry
from cricket_analytics.models.match import MatchFormat, MatchLevel, VenueType


@dataclass(frozen=True)
class AnalyticsFilters:
    """
    Narrow a player's history for a one-off summary.

    Opponent and venue match case-insensitive substrings; the date range
    is inclusive on both ends. Persisted snapshots are always unfiltered.
    """

    format: MatchFormat | None = None
    level: MatchLevel | None = None
    opponent: str | None = None
    venue: str | None = None
    series: str | None = None
    venue_type: VenueType | None = None
    start_date: date | None = None
    end_date: date | None = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in self.__dataclass_fields__)

    def matches(self, entry: MatchEntry) -> bool:
        match = entry.match
        if self.format is not None and match.format != self.format:
            return False
        if self.level is not None and match.level != self.level:
            return False
        if self.opponent and self.opponent.lower() not in match.opponent.lower():
            return False
        if self.venue and self.venue.lower() not in match.venue.lower():
            return False
        if self.series is not None and match.series != self.series:
            return False
        if self.venue_type is not None and match.venue_type != self.venue_type:
            return False
        if self.start_date is not None and match.date < self.start_date:
            return False
        if self.end_date is not None and match.date > self.end_date:
            return False
        return True

    def apply(self, entries: Iterable[MatchEntry]) -> list[MatchEntry]:
        return [e for e in entries if self.matches(e)]
