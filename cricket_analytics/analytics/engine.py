"""
Analytics Engine

Runs the full projection chain for one player's history:
aggregator -> composer -> career roll-up -> advanced metrics.
Pure computation; persistence belongs to the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from pydantic import BaseModel

from diagnostics import diag, numeric_stats
from cricket_analytics.analytics.advanced import AdvancedMetricsEngine
from cricket_analytics.analytics.aggregator import DimensionalAggregator, MatchEntry
from cricket_analytics.analytics.career import CareerRollup
from cricket_analytics.analytics.composer import (
    DerivedStatComposer,
    build_batting_analytics,
    build_bowling_analytics,
    build_fielding_analytics,
)
from cricket_analytics.analytics.policy import WeightingPolicy
from cricket_analytics.models.snapshots import (
    AdvancedAnalytics,
    BattingAnalytics,
    BowlingAnalytics,
    CareerAnalytics,
    FieldingAnalytics,
    SnapshotKind,
)


@dataclass
class AnalyticsBundle:
    """The five snapshots produced by one run."""

    career: CareerAnalytics
    batting: BattingAnalytics
    bowling: BowlingAnalytics
    fielding: FieldingAnalytics
    advanced: AdvancedAnalytics

    def items(self) -> list[tuple[SnapshotKind, BaseModel]]:
        """Snapshots in dependency order."""
        return [
            (SnapshotKind.CAREER, self.career),
            (SnapshotKind.BATTING, self.batting),
            (SnapshotKind.BOWLING, self.bowling),
            (SnapshotKind.FIELDING, self.fielding),
            (SnapshotKind.ADVANCED, self.advanced),
        ]

    def get(self, kind: SnapshotKind) -> BaseModel:
        return dict(self.items())[kind]


class AnalyticsEngine:
    """Computes every snapshot kind from a list of match entries."""

    def __init__(
        self,
        policy: WeightingPolicy,
        composer: DerivedStatComposer | None = None,
    ) -> None:
        self.policy = policy
        self.composer = composer or DerivedStatComposer()
        self.rollup = CareerRollup(self.composer)
        self.advanced = AdvancedMetricsEngine(policy)

    def compute(
        self,
        player_id: str,
        entries: Iterable[MatchEntry],
        calculated_at: datetime,
        orphaned_performances: int = 0,
    ) -> AnalyticsBundle:
        with diag.timer("AGGREGATE"):
            aggregator = DimensionalAggregator(entries)
            batting = build_batting_analytics(player_id, aggregator, calculated_at, self.composer)
            bowling = build_bowling_analytics(player_id, aggregator, calculated_at, self.composer)
            fielding = build_fielding_analytics(
                player_id, aggregator, calculated_at, self.composer
            )
        diag.event(
            "AGGREGATE",
            {
                "entries": len(aggregator.entries),
                "batting_innings": batting.overall.innings,
                "bowling_innings": bowling.overall.innings,
            },
        )

        with diag.timer("ROLLUP"):
            career = self.rollup.build(
                player_id, aggregator, calculated_at, orphaned_performances
            )
        diag.event("ROLLUP", {"matches": career.total_matches, "milestones": len(career.milestones)})
        diag.assert_sanity(
            "batting_innings_consistent",
            career.overall.batting.innings - batting.overall.innings,
            expected_range=(0, 0),
            non_null=False,
        )

        with diag.timer("ADVANCED"):
            advanced = self.advanced.compute(player_id, career, aggregator.entries, calculated_at)
        diag.event(
            "ADVANCED",
            {
                "qualifying_matches": advanced.qualifying_matches,
                "form_current": advanced.form_curve.current,
                "pvi_total": advanced.player_value_index.total,
            },
        )
        diag.event(
            "ADVANCED",
            {
                "recent_scores": numeric_stats(
                    advanced.form_curve.calculation.performance_scores, "recent_scores"
                )
            },
            level="normal",
        )
        diag.assert_sanity(
            "consistency_overall", advanced.consistency_index.overall, (0, 100), non_null=False
        )

        return AnalyticsBundle(
            career=career,
            batting=batting,
            bowling=bowling,
            fielding=fielding,
            advanced=advanced,
        )
