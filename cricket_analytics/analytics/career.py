"""
Career Roll-up

Merges per-format accumulators into a cross-format career snapshot,
replays the chronological history to build the milestone log, and
tracks running career figures match by match.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from loguru import logger

from cricket_analytics.analytics import primitives
from cricket_analytics.analytics.aggregator import (
    Dimension,
    DimensionalAggregator,
    GroupAccumulator,
    MatchEntry,
    SortStrategy,
    order_groups,
    sort_entries,
)
from cricket_analytics.analytics.composer import DerivedStatComposer
from cricket_analytics.models.snapshots import (
    CareerAnalytics,
    CareerSpan,
    Milestone,
    MilestoneType,
    TrendPoint,
)

MATCH_MILESTONE_STEP = 50
RUN_MILESTONES = (1000, 5000, 10000)
WICKET_MILESTONES = (50, 100, 200)


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def replay_milestones(entries: Iterable[MatchEntry]) -> list[Milestone]:
    """
    Rebuild the milestone log from scratch.

    Walks the history in chronological order exactly once and emits an
    event the first time each cumulative threshold is reached. A single
    match can cross more than one threshold.

    Args:
        entries: Match entries in any order.

    Returns:
        Milestones in the order they were reached.
    """
    milestones: list[Milestone] = []
    runs = 0
    wickets = 0

    for number, entry in enumerate(sort_entries(entries), start=1):
        match = entry.match
        perf = entry.performance

        def emit(kind: MilestoneType, value: int, description: str) -> None:
            milestones.append(
                Milestone(
                    type=kind,
                    value=value,
                    match_id=match.match_id,
                    date=match.date,
                    description=description,
                )
            )

        if number == 1:
            emit(MilestoneType.DEBUT, 1, f"Debut vs {match.opponent} at {match.venue}")
        if number % MATCH_MILESTONE_STEP == 0:
            emit(MilestoneType.MATCHES, number, f"{_ordinal(number)} match")

        previous_runs, runs = runs, runs + perf.match_runs
        for threshold in RUN_MILESTONES:
            if previous_runs < threshold <= runs:
                emit(MilestoneType.RUNS, threshold, f"{threshold} career runs")

        previous_wickets, wickets = wickets, wickets + perf.match_wickets
        for threshold in WICKET_MILESTONES:
            if previous_wickets < threshold <= wickets:
                emit(MilestoneType.WICKETS, threshold, f"{threshold} career wickets")

    return milestones


def build_trend(entries: Iterable[MatchEntry]) -> list[TrendPoint]:
    """Running career figures after each match, oldest first."""
    points: list[TrendPoint] = []
    runs = balls_faced = innings = not_outs = 0
    wickets = balls_bowled = runs_conceded = 0

    for entry in sort_entries(entries):
        perf = entry.performance
        batted = perf.batting_innings()
        runs += perf.match_runs
        balls_faced += perf.match_balls_faced
        innings += len(batted)
        not_outs += sum(1 for inn in batted if inn.is_not_out)
        wickets += perf.match_wickets
        balls_bowled += perf.match_balls_bowled
        runs_conceded += perf.match_runs_conceded

        points.append(
            TrendPoint(
                match_id=entry.match.match_id,
                date=entry.match.date,
                format=entry.match.format.value,
                runs=perf.match_runs,
                wickets=perf.match_wickets,
                cumulative_runs=runs,
                cumulative_wickets=wickets,
                batting_average=primitives.round_rate(
                    primitives.batting_average(runs, innings, not_outs)
                ),
                strike_rate=round(primitives.strike_rate(runs, balls_faced), 2),
                economy=round(
                    primitives.economy(runs_conceded, primitives.balls_to_overs(balls_bowled)), 2
                ),
            )
        )
    return points


class CareerRollup:
    """Builds the cross-format career snapshot."""

    def __init__(self, composer: DerivedStatComposer | None = None) -> None:
        self.composer = composer or DerivedStatComposer()

    def overall(self, per_format: dict[str, GroupAccumulator]) -> GroupAccumulator:
        """Sum per-format groups. Rates are recomputed from the summed totals."""
        return GroupAccumulator.merged("overall", order_groups(per_format, SortStrategy.CANONICAL))

    def build(
        self,
        player_id: str,
        aggregator: DimensionalAggregator,
        calculated_at: datetime,
        orphaned_performances: int = 0,
    ) -> CareerAnalytics:
        per_format = aggregator.aggregate(Dimension.FORMAT)
        overall = self.overall(per_format)
        entries = aggregator.entries

        span = CareerSpan()
        if entries:
            first = entries[0].match.date
            last = entries[-1].match.date
            span = CareerSpan(
                first_match=first,
                last_match=last,
                days=(last - first).days,
                seasons=len({e.match.year for e in entries}),
            )

        milestones = replay_milestones(entries)
        ordered_formats = order_groups(per_format, SortStrategy.CANONICAL)

        snapshot = CareerAnalytics(
            player_id=player_id,
            total_matches=overall.matches,
            overall=self.composer.group(overall),
            matches_by_format={g.key: g.matches for g in ordered_formats},
            by_format=[self.composer.group(g) for g in ordered_formats],
            by_year=[
                self.composer.group(g)
                for g in aggregator.grouped(Dimension.YEAR, SortStrategy.CANONICAL)
            ],
            by_level=[
                self.composer.group(g)
                for g in aggregator.grouped(Dimension.LEVEL, SortStrategy.MATCHES_DESC)
            ],
            results=self.composer.results(overall),
            career_span=span,
            captaincy_matches=overall.captain_matches,
            wicketkeeping_matches=overall.keeper_matches,
            milestones=milestones,
            trend=build_trend(entries),
            orphaned_performances=orphaned_performances,
            last_calculated=calculated_at,
        )
        logger.info(
            f"Career roll-up for {player_id}: {overall.matches} matches across "
            f"{len(per_format)} formats, {len(milestones)} milestones"
        )
        return snapshot
