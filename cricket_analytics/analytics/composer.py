"""
Derived-Stat Composer

Turns GroupAccumulators into the public rate rows (averages, strike
rates, economy, band counts, best figures) and assembles the batting,
bowling and fielding snapshots from an aggregator.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime

from loguru import logger

from cricket_analytics.analytics import primitives
from cricket_analytics.analytics.aggregator import (
    Dimension,
    DimensionalAggregator,
    GroupAccumulator,
    SortStrategy,
    chase_record,
)
from cricket_analytics.models.snapshots import (
    BattingAnalytics,
    BattingRow,
    BattingStats,
    BowlingAnalytics,
    BowlingRow,
    BowlingStats,
    ChaseRecord,
    ConversionRates,
    FieldingAnalytics,
    FieldingPerformance,
    FieldingRow,
    FieldingStats,
    GroupStats,
    ResultSummary,
)

# Exclusive scoring bands: a hundred is not also a fifty
HUNDRED = 100
FIFTY = 50
THIRTY = 30
FIVE_WICKETS = 5
TEN_WICKETS = 10
BEST_FIELDING_LIMIT = 5

_rate = primitives.round_rate


class DerivedStatComposer:
    """Applies metric primitives to accumulated groups."""

    def batting(self, acc: GroupAccumulator) -> BattingStats:
        return BattingStats(**self._batting_fields(acc))

    def bowling(self, acc: GroupAccumulator) -> BowlingStats:
        return BowlingStats(**self._bowling_fields(acc))

    def fielding(self, acc: GroupAccumulator) -> FieldingStats:
        return FieldingStats(**self._fielding_fields(acc))

    def batting_row(self, acc: GroupAccumulator) -> BattingRow:
        return BattingRow(key=acc.key, matches=acc.matches, **self._batting_fields(acc))

    def bowling_row(self, acc: GroupAccumulator) -> BowlingRow:
        return BowlingRow(key=acc.key, matches=acc.matches, **self._bowling_fields(acc))

    def fielding_row(self, acc: GroupAccumulator) -> FieldingRow:
        return FieldingRow(key=acc.key, matches=acc.matches, **self._fielding_fields(acc))

    def results(self, acc: GroupAccumulator) -> ResultSummary:
        won = acc.results.get("won", 0)
        lost = acc.results.get("lost", 0)
        drawn = acc.results.get("draw", 0)
        tied = acc.results.get("tie", 0)
        decided = won + lost + drawn + tied
        return ResultSummary(
            won=won,
            lost=lost,
            drawn=drawn,
            tied=tied,
            no_result=acc.results.get("no_result", 0),
            win_percentage=_rate(primitives.percentage(won, decided)),
        )

    def group(self, acc: GroupAccumulator) -> GroupStats:
        """All disciplines for one group."""
        return GroupStats(
            key=acc.key,
            matches=acc.matches,
            batting=self.batting(acc),
            bowling=self.bowling(acc),
            fielding=self.fielding(acc),
            results=self.results(acc),
        )

    # -- innings scans -------------------------------------------------------

    def dismissal_types(self, acc: GroupAccumulator) -> dict[str, int]:
        counts = Counter(
            rec.dismissal or "unknown" for rec in acc.batting_records if not rec.not_out
        )
        return dict(sorted(counts.items()))

    def conversion(self, acc: GroupAccumulator) -> ConversionRates:
        """Band-to-band conversion over innings actually batted."""
        thirty_plus = sum(1 for rec in acc.batting_records if rec.runs >= THIRTY)
        fifty_plus = sum(1 for rec in acc.batting_records if rec.runs >= FIFTY)
        hundreds = sum(1 for rec in acc.batting_records if rec.runs >= HUNDRED)
        return ConversionRates(
            thirty_to_fifty=_rate(primitives.percentage(fifty_plus, thirty_plus)),
            fifty_to_hundred=_rate(primitives.percentage(hundreds, fifty_plus)),
            starts_converted=_rate(primitives.percentage(hundreds, thirty_plus)),
        )

    def wicket_distribution(self, acc: GroupAccumulator) -> dict[str, int]:
        """Innings counts by wickets taken, with five or more pooled."""
        distribution = {str(n): 0 for n in range(FIVE_WICKETS)}
        distribution["5+"] = 0
        for rec in acc.bowling_records:
            bucket = "5+" if rec.wickets >= FIVE_WICKETS else str(rec.wickets)
            distribution[bucket] += 1
        return distribution

    # -- field builders ------------------------------------------------------

    def _batting_fields(self, acc: GroupAccumulator) -> dict:
        records = acc.batting_records
        best = acc.best_innings
        return {
            "innings": acc.batting_innings,
            "not_outs": acc.not_outs,
            "runs": acc.runs,
            "balls_faced": acc.balls_faced,
            "average": _rate(
                primitives.batting_average(acc.runs, acc.batting_innings, acc.not_outs)
            ),
            "strike_rate": _rate(primitives.strike_rate(acc.runs, acc.balls_faced)),
            "highest_score": best.display() if best else None,
            "highest_score_runs": best.runs if best else None,
            "hundreds": sum(1 for rec in records if rec.runs >= HUNDRED),
            "fifties": sum(1 for rec in records if FIFTY <= rec.runs < HUNDRED),
            "thirties": sum(1 for rec in records if THIRTY <= rec.runs < FIFTY),
            "ducks": sum(1 for rec in records if rec.runs == 0 and not rec.not_out),
            "fours": acc.fours,
            "sixes": acc.sixes,
            "boundary_percentage": _rate(
                primitives.boundary_percentage(acc.fours, acc.sixes, acc.runs)
            ),
        }

    def _bowling_fields(self, acc: GroupAccumulator) -> dict:
        records = acc.bowling_records
        overs = primitives.balls_to_overs(acc.balls_bowled)
        return {
            "innings": acc.bowling_innings,
            "balls_bowled": acc.balls_bowled,
            "overs": primitives.format_overs(acc.balls_bowled),
            "maidens": acc.maidens,
            "runs_conceded": acc.runs_conceded,
            "wickets": acc.wickets,
            "average": _rate(primitives.bowling_average(acc.runs_conceded, acc.wickets)),
            "economy": _rate(primitives.economy(acc.runs_conceded, overs)),
            "strike_rate": _rate(primitives.bowling_strike_rate(acc.balls_bowled, acc.wickets)),
            "best_figures": acc.best_figures.display() if acc.best_figures else None,
            "best_match_figures": (
                acc.best_match_figures.display() if acc.best_match_figures else None
            ),
            "three_wicket_hauls": sum(1 for rec in records if 3 <= rec.wickets < FIVE_WICKETS),
            "five_wicket_hauls": sum(1 for rec in records if rec.wickets >= FIVE_WICKETS),
            "ten_wicket_matches": sum(
                1 for fig in acc.match_figures if fig.wickets >= TEN_WICKETS
            ),
            "wides": acc.wides,
            "no_balls": acc.no_balls,
        }

    def _fielding_fields(self, acc: GroupAccumulator) -> dict:
        total = acc.fielding_dismissals
        return {
            "catches": acc.catches,
            "stumpings": acc.stumpings,
            "run_outs": acc.run_outs,
            "total_dismissals": total,
            "dismissals_per_match": _rate(total / acc.matches if acc.matches else 0.0),
        }


# ---------------------------------------------------------------------------
# Snapshot builders
# ---------------------------------------------------------------------------


def _batting_position_order(groups: dict[str, GroupAccumulator]) -> list[GroupAccumulator]:
    return sorted(groups.values(), key=lambda g: int(g.key))


def build_batting_analytics(
    player_id: str,
    aggregator: DimensionalAggregator,
    calculated_at: datetime,
    composer: DerivedStatComposer | None = None,
) -> BattingAnalytics:
    """Batting snapshot across every batting dimension."""
    composer = composer or DerivedStatComposer()
    overall = aggregator.total()

    def rows(dimension: Dimension, strategy: SortStrategy) -> list[BattingRow]:
        return [composer.batting_row(g) for g in aggregator.grouped(dimension, strategy)]

    roles = aggregator.aggregate(Dimension.INNINGS_ROLE)
    chasing = ChaseRecord()
    if "chasing" in roles:
        decided, won, lost = chase_record(roles["chasing"])
        chasing = ChaseRecord(
            matches=decided,
            won=won,
            lost=lost,
            success_rate=_rate(primitives.percentage(won, decided)),
        )

    snapshot = BattingAnalytics(
        player_id=player_id,
        overall=composer.batting_row(overall),
        by_format=rows(Dimension.FORMAT, SortStrategy.CANONICAL),
        by_opposition=rows(Dimension.OPPONENT, SortStrategy.MATCHES_DESC),
        by_venue=rows(Dimension.VENUE, SortStrategy.MATCHES_DESC),
        by_home_away=rows(Dimension.HOME_AWAY, SortStrategy.KEY_ASC),
        by_day_night=rows(Dimension.DAY_NIGHT, SortStrategy.KEY_ASC),
        by_innings_role=[composer.batting_row(g) for g in sorted(roles.values(), key=lambda g: g.key)],
        by_batting_position=[
            composer.batting_row(g)
            for g in _batting_position_order(aggregator.aggregate(Dimension.BATTING_POSITION))
        ],
        by_year=rows(Dimension.YEAR, SortStrategy.CANONICAL),
        by_series=rows(Dimension.SERIES, SortStrategy.KEY_ASC),
        dismissal_types=composer.dismissal_types(overall),
        conversion=composer.conversion(overall),
        chasing=chasing,
        last_calculated=calculated_at,
    )
    logger.info(
        f"Batting analytics for {player_id}: {overall.batting_innings} innings, "
        f"{overall.runs} runs"
    )
    return snapshot


def build_bowling_analytics(
    player_id: str,
    aggregator: DimensionalAggregator,
    calculated_at: datetime,
    composer: DerivedStatComposer | None = None,
) -> BowlingAnalytics:
    """Bowling snapshot across every bowling dimension."""
    composer = composer or DerivedStatComposer()
    overall = aggregator.total()

    def rows(dimension: Dimension, strategy: SortStrategy) -> list[BowlingRow]:
        return [composer.bowling_row(g) for g in aggregator.grouped(dimension, strategy)]

    snapshot = BowlingAnalytics(
        player_id=player_id,
        overall=composer.bowling_row(overall),
        by_format=rows(Dimension.FORMAT, SortStrategy.CANONICAL),
        by_opposition=rows(Dimension.OPPONENT, SortStrategy.MATCHES_DESC),
        by_venue=rows(Dimension.VENUE, SortStrategy.MATCHES_DESC),
        by_home_away=rows(Dimension.HOME_AWAY, SortStrategy.KEY_ASC),
        by_day_night=rows(Dimension.DAY_NIGHT, SortStrategy.KEY_ASC),
        by_innings_role=rows(Dimension.INNINGS_ROLE, SortStrategy.KEY_ASC),
        by_year=rows(Dimension.YEAR, SortStrategy.CANONICAL),
        wicket_distribution=composer.wicket_distribution(overall),
        last_calculated=calculated_at,
    )
    logger.info(
        f"Bowling analytics for {player_id}: {overall.bowling_innings} innings, "
        f"{overall.wickets} wickets"
    )
    return snapshot


def build_fielding_analytics(
    player_id: str,
    aggregator: DimensionalAggregator,
    calculated_at: datetime,
    composer: DerivedStatComposer | None = None,
) -> FieldingAnalytics:
    """Fielding snapshot with breakdowns and best single-match efforts."""
    composer = composer or DerivedStatComposer()
    overall = aggregator.total()

    def rows(dimension: Dimension, strategy: SortStrategy) -> list[FieldingRow]:
        return [composer.fielding_row(g) for g in aggregator.grouped(dimension, strategy)]

    efforts = [
        FieldingPerformance(
            match_id=e.match.match_id,
            date=e.match.date,
            opponent=e.match.opponent,
            catches=e.performance.fielding.catches,
            stumpings=e.performance.fielding.stumpings,
            run_outs=e.performance.fielding.run_outs,
            total=e.performance.fielding.total_dismissals,
        )
        for e in aggregator.entries
        if e.performance.fielding.total_dismissals > 0
    ]
    efforts.sort(key=lambda f: (-f.total, f.date, f.match_id))

    return FieldingAnalytics(
        player_id=player_id,
        overall=composer.fielding_row(overall),
        by_format=rows(Dimension.FORMAT, SortStrategy.CANONICAL),
        by_opposition=rows(Dimension.OPPONENT, SortStrategy.MATCHES_DESC),
        by_venue=rows(Dimension.VENUE, SortStrategy.MATCHES_DESC),
        best_performances=efforts[:BEST_FIELDING_LIMIT],
        wicketkeeping_matches=overall.keeper_matches,
        last_calculated=calculated_at,
    )
