"""
Dimensional Aggregator

Groups a player's match entries along one dimension (format, opponent,
venue, year, ...) and reduces every group to a GroupAccumulator holding
raw sums, the innings-level records behind them, and the running best
innings and bowling figures.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable

from loguru import logger

from cricket_analytics.models.match import CANONICAL_FORMAT_ORDER, Match, MatchResult

if TYPE_CHECKING:
    from cricket_analytics.models.performance import (
        InningsBatting,
        InningsBowling,
        Performance,
    )


@dataclass(frozen=True)
class MatchEntry:
    """A performance joined to the match it belongs to."""

    match: Match
    performance: Performance

    @property
    def sort_key(self) -> tuple[date, str]:
        return self.match.sort_key


def sort_entries(entries: Iterable[MatchEntry]) -> list[MatchEntry]:
    """Chronological order (date, then match id)."""
    return sorted(entries, key=lambda e: e.sort_key)


# ---------------------------------------------------------------------------
# Innings-level records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BattingRecord:
    """One innings actually batted."""

    match_id: str
    date: date
    runs: int
    balls_faced: int
    fours: int
    sixes: int
    not_out: bool
    dismissal: str | None
    position: int | None
    innings_number: int = 1

    @classmethod
    def from_innings(
        cls, entry: MatchEntry, innings: InningsBatting, innings_number: int
    ) -> "BattingRecord":
        return cls(
            match_id=entry.match.match_id,
            date=entry.match.date,
            runs=innings.runs,
            balls_faced=innings.balls_faced,
            fours=innings.fours,
            sixes=innings.sixes,
            not_out=innings.is_not_out,
            dismissal=innings.dismissal_type.value if innings.dismissal_type else None,
            position=innings.batting_position,
            innings_number=innings_number,
        )


@dataclass(frozen=True)
class BowlingRecord:
    """One innings actually bowled."""

    match_id: str
    date: date
    balls: int
    maidens: int
    runs_conceded: int
    wickets: int
    wides: int
    no_balls: int
    innings_number: int = 1

    @classmethod
    def from_innings(
        cls, entry: MatchEntry, innings: InningsBowling, innings_number: int
    ) -> "BowlingRecord":
        return cls(
            match_id=entry.match.match_id,
            date=entry.match.date,
            balls=innings.balls_bowled,
            maidens=innings.maidens,
            runs_conceded=innings.runs_conceded,
            wickets=innings.wickets,
            wides=innings.wides,
            no_balls=innings.no_balls,
            innings_number=innings_number,
        )


@dataclass(frozen=True)
class BestInnings:
    """Highest score. Ties go to the not-out innings, then the earliest."""

    runs: int
    not_out: bool
    match_id: str
    date: date

    @property
    def rank_key(self) -> tuple[int, bool, date, str]:
        return (-self.runs, not self.not_out, self.date, self.match_id)

    def display(self) -> str:
        return f"{self.runs}*" if self.not_out else str(self.runs)


@dataclass(frozen=True)
class BestFigures:
    """Best bowling. More wickets wins, then fewer runs, then the earliest."""

    wickets: int
    runs: int
    match_id: str
    date: date

    @property
    def rank_key(self) -> tuple[int, int, date, str]:
        return (-self.wickets, self.runs, self.date, self.match_id)

    def display(self) -> str:
        return f"{self.wickets}/{self.runs}"


def _better(current, candidate):
    if candidate is None:
        return current
    if current is None or candidate.rank_key < current.rank_key:
        return candidate
    return current


# ---------------------------------------------------------------------------
# Accumulator
# ---------------------------------------------------------------------------


@dataclass
class GroupAccumulator:
    """Raw sums for one dimension group. Rates are derived by the composer."""

    key: str
    matches: int = 0
    match_ids: list[str] = field(default_factory=list)

    # Batting
    batting_innings: int = 0
    not_outs: int = 0
    runs: int = 0
    balls_faced: int = 0
    fours: int = 0
    sixes: int = 0
    batting_records: list[BattingRecord] = field(default_factory=list)
    best_innings: BestInnings | None = None

    # Bowling
    bowling_innings: int = 0
    balls_bowled: int = 0
    maidens: int = 0
    runs_conceded: int = 0
    wickets: int = 0
    wides: int = 0
    no_balls: int = 0
    bowling_records: list[BowlingRecord] = field(default_factory=list)
    match_figures: list[BestFigures] = field(default_factory=list)
    best_figures: BestFigures | None = None
    best_match_figures: BestFigures | None = None

    # Fielding
    catches: int = 0
    stumpings: int = 0
    run_outs: int = 0

    # Results and roles
    results: Counter = field(default_factory=Counter)
    captain_matches: int = 0
    keeper_matches: int = 0

    @property
    def fielding_dismissals(self) -> int:
        return self.catches + self.stumpings + self.run_outs

    def add(
        self,
        entry: MatchEntry,
        batting: list[tuple[int, InningsBatting]] | None = None,
        bowling: list[tuple[int, InningsBowling]] | None = None,
        fielding: bool = True,
    ) -> None:
        """Fold one match entry into the group.

        Args:
            entry: The match entry.
            batting: Numbered innings to count; defaults to every innings batted.
            bowling: Numbered innings to count; defaults to every innings bowled.
            fielding: Whether the match's fielding counts belong to this group.
        """
        perf = entry.performance
        match = entry.match
        batting = perf.numbered_batting_innings() if batting is None else batting
        bowling = perf.numbered_bowling_innings() if bowling is None else bowling

        self.matches += 1
        self.match_ids.append(match.match_id)
        if match.result is not None:
            self.results[match.result.value] += 1
        if perf.is_captain:
            self.captain_matches += 1
        if perf.is_wicketkeeper:
            self.keeper_matches += 1

        if fielding:
            self.catches += perf.fielding.catches
            self.stumpings += perf.fielding.stumpings
            self.run_outs += perf.fielding.run_outs

        for number, innings in batting:
            record = BattingRecord.from_innings(entry, innings, number)
            self.batting_innings += 1
            self.not_outs += int(record.not_out)
            self.runs += record.runs
            self.balls_faced += record.balls_faced
            self.fours += record.fours
            self.sixes += record.sixes
            self.batting_records.append(record)
            self.best_innings = _better(
                self.best_innings,
                BestInnings(record.runs, record.not_out, record.match_id, record.date),
            )

        match_wickets = 0
        match_runs = 0
        for number, innings in bowling:
            record = BowlingRecord.from_innings(entry, innings, number)
            self.bowling_innings += 1
            self.balls_bowled += record.balls
            self.maidens += record.maidens
            self.runs_conceded += record.runs_conceded
            self.wickets += record.wickets
            self.wides += record.wides
            self.no_balls += record.no_balls
            self.bowling_records.append(record)
            self.best_figures = _better(
                self.best_figures,
                BestFigures(record.wickets, record.runs_conceded, record.match_id, record.date),
            )
            match_wickets += record.wickets
            match_runs += record.runs_conceded

        if bowling:
            figures = BestFigures(match_wickets, match_runs, match.match_id, match.date)
            self.match_figures.append(figures)
            self.best_match_figures = _better(self.best_match_figures, figures)

    def merge(self, other: "GroupAccumulator") -> None:
        """Add another group's sums into this one."""
        self.matches += other.matches
        self.match_ids.extend(other.match_ids)
        self.batting_innings += other.batting_innings
        self.not_outs += other.not_outs
        self.runs += other.runs
        self.balls_faced += other.balls_faced
        self.fours += other.fours
        self.sixes += other.sixes
        self.batting_records.extend(other.batting_records)
        self.best_innings = _better(self.best_innings, other.best_innings)
        self.bowling_innings += other.bowling_innings
        self.balls_bowled += other.balls_bowled
        self.maidens += other.maidens
        self.runs_conceded += other.runs_conceded
        self.wickets += other.wickets
        self.wides += other.wides
        self.no_balls += other.no_balls
        self.bowling_records.extend(other.bowling_records)
        self.match_figures.extend(other.match_figures)
        self.best_figures = _better(self.best_figures, other.best_figures)
        self.best_match_figures = _better(self.best_match_figures, other.best_match_figures)
        self.catches += other.catches
        self.stumpings += other.stumpings
        self.run_outs += other.run_outs
        self.results.update(other.results)
        self.captain_matches += other.captain_matches
        self.keeper_matches += other.keeper_matches

    @classmethod
    def merged(cls, key: str, groups: Iterable["GroupAccumulator"]) -> "GroupAccumulator":
        total = cls(key=key)
        for group in groups:
            total.merge(group)
        return total


# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------

KeyFunction = Callable[[MatchEntry], "str | None"]


class Dimension(str, Enum):
    """Grouping axes."""

    FORMAT = "format"
    OPPONENT = "opponent"
    VENUE = "venue"
    YEAR = "year"
    HOME_AWAY = "home_away"
    DAY_NIGHT = "day_night"
    INNINGS_ROLE = "innings_role"
    SERIES = "series"
    LEVEL = "level"
    RESULT = "result"
    BATTING_POSITION = "batting_position"


def _innings_role(entry: MatchEntry) -> str | None:
    if entry.performance.is_chasing is None:
        return None
    return "chasing" if entry.performance.is_chasing else "setting"


DIMENSION_KEYS: dict[Dimension, KeyFunction] = {
    Dimension.FORMAT: lambda e: e.match.format.value,
    Dimension.OPPONENT: lambda e: e.match.opponent or None,
    Dimension.VENUE: lambda e: e.match.venue or None,
    Dimension.YEAR: lambda e: str(e.match.year),
    Dimension.HOME_AWAY: lambda e: e.match.venue_type.value if e.match.venue_type else None,
    Dimension.DAY_NIGHT: lambda e: "day/night" if e.match.day_night else "day",
    Dimension.INNINGS_ROLE: _innings_role,
    Dimension.SERIES: lambda e: e.match.series or None,
    Dimension.LEVEL: lambda e: e.match.level.value,
    Dimension.RESULT: lambda e: e.match.result.value if e.match.result else None,
}

# Dimensions keyed per innings rather than per match
INNINGS_DIMENSIONS = frozenset({Dimension.BATTING_POSITION})


class SortStrategy(str, Enum):
    """Caller-selected ordering for grouped output."""

    CANONICAL = "canonical"  # fixed format order, otherwise ascending key
    MATCHES_DESC = "matches_desc"  # ranking displays
    KEY_ASC = "key_asc"  # table displays


_FORMAT_RANK = {fmt.value: i for i, fmt in enumerate(CANONICAL_FORMAT_ORDER)}


def order_groups(
    groups: dict[str, GroupAccumulator],
    strategy: SortStrategy = SortStrategy.KEY_ASC,
) -> list[GroupAccumulator]:
    """Order grouped accumulators for display."""
    values = list(groups.values())
    if strategy == SortStrategy.MATCHES_DESC:
        return sorted(values, key=lambda g: (-g.matches, g.key))
    if strategy == SortStrategy.CANONICAL:
        return sorted(values, key=lambda g: (_FORMAT_RANK.get(g.key, len(_FORMAT_RANK)), g.key))
    return sorted(values, key=lambda g: g.key)


class DimensionalAggregator:
    """
    Reduces a player's match entries to per-group accumulators.

    Entries whose key is ``None`` for a dimension (for example a match with
    no recorded home/away flag) are left out of that dimension only.
    """

    def __init__(self, entries: Iterable[MatchEntry]) -> None:
        self.entries = sort_entries(entries)

    def aggregate(self, dimension: Dimension | KeyFunction) -> dict[str, GroupAccumulator]:
        """Group every entry by ``dimension`` (or a custom key function)."""
        if dimension == Dimension.BATTING_POSITION:
            return self._aggregate_batting_position()

        key_fn = DIMENSION_KEYS[dimension] if isinstance(dimension, Dimension) else dimension
        groups: dict[str, GroupAccumulator] = {}
        skipped = 0
        for entry in self.entries:
            key = key_fn(entry)
            if key is None:
                skipped += 1
                continue
            groups.setdefault(key, GroupAccumulator(key=key)).add(entry)

        label = dimension.value if isinstance(dimension, Dimension) else "custom"
        logger.debug(f"Aggregated {label}: {len(groups)} groups, {skipped} entries without key")
        return groups

    def grouped(
        self,
        dimension: Dimension | KeyFunction,
        strategy: SortStrategy = SortStrategy.KEY_ASC,
    ) -> list[GroupAccumulator]:
        return order_groups(self.aggregate(dimension), strategy)

    def total(self, key: str = "overall") -> GroupAccumulator:
        total = GroupAccumulator(key=key)
        for entry in self.entries:
            total.add(entry)
        return total

    def _aggregate_batting_position(self) -> dict[str, GroupAccumulator]:
        groups: dict[str, GroupAccumulator] = {}
        for entry in self.entries:
            by_position: dict[str, list[tuple[int, InningsBatting]]] = {}
            for number, innings in entry.performance.numbered_batting_innings():
                if innings.batting_position is None:
                    continue
                by_position.setdefault(str(innings.batting_position), []).append(
                    (number, innings)
                )
            for key, innings_list in by_position.items():
                groups.setdefault(key, GroupAccumulator(key=key)).add(
                    entry, batting=innings_list, bowling=[], fielding=False
                )
        return groups


def chase_record(group: GroupAccumulator) -> tuple[int, int, int]:
    """(decided matches, won, lost) for a group; draws and no-results are ignored."""
    won = group.results.get(MatchResult.WON.value, 0)
    lost = group.results.get(MatchResult.LOST.value, 0)
    tied = group.results.get(MatchResult.TIE.value, 0)
    return won + lost + tied, won, lost
