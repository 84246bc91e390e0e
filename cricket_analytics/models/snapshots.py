"""
Analytics Snapshot Models

The five derived documents regenerated on every recompute: career,
batting, bowling, fielding and advanced analytics. All rates are rounded
to two decimals; undefined averages stay ``None``.
"""

from __future__ import annotations

from datetime import date as Date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

CALCULATION_VERSION = "2.0"


class SnapshotKind(str, Enum):
    """Snapshot document kinds."""

    CAREER = "career"
    BATTING = "batting"
    BOWLING = "bowling"
    FIELDING = "fielding"
    ADVANCED = "advanced"


# ---------------------------------------------------------------------------
# Row models shared across snapshots
# ---------------------------------------------------------------------------


class BattingStats(BaseModel):
    """Batting summary for one group of innings."""

    innings: int = 0
    not_outs: int = 0
    runs: int = 0
    balls_faced: int = 0
    average: float | None = None
    strike_rate: float = 0.0
    highest_score: str | None = None
    highest_score_runs: int | None = None
    hundreds: int = 0
    fifties: int = 0
    thirties: int = 0
    ducks: int = 0
    fours: int = 0
    sixes: int = 0
    boundary_percentage: float = 0.0


class BowlingStats(BaseModel):
    """Bowling summary for one group of innings."""

    innings: int = 0
    balls_bowled: int = 0
    overs: str = "0.0"
    maidens: int = 0
    runs_conceded: int = 0
    wickets: int = 0
    average: float | None = None
    economy: float = 0.0
    strike_rate: float | None = None
    best_figures: str | None = None
    best_match_figures: str | None = None
    three_wicket_hauls: int = 0
    five_wicket_hauls: int = 0
    ten_wicket_matches: int = 0
    wides: int = 0
    no_balls: int = 0


class FieldingStats(BaseModel):
    catches: int = 0
    stumpings: int = 0
    run_outs: int = 0
    total_dismissals: int = 0
    dismissals_per_match: float = 0.0


class ResultSummary(BaseModel):
    """Match outcomes for a group. Only matches with a recorded result count."""

    won: int = 0
    lost: int = 0
    drawn: int = 0
    tied: int = 0
    no_result: int = 0
    win_percentage: float = 0.0


class BattingRow(BattingStats):
    key: str
    matches: int = 0


class BowlingRow(BowlingStats):
    key: str
    matches: int = 0


class FieldingRow(FieldingStats):
    key: str
    matches: int = 0


class GroupStats(BaseModel):
    """All three disciplines plus results for one dimension group."""

    key: str
    matches: int = 0
    batting: BattingStats = Field(default_factory=BattingStats)
    bowling: BowlingStats = Field(default_factory=BowlingStats)
    fielding: FieldingStats = Field(default_factory=FieldingStats)
    results: ResultSummary = Field(default_factory=ResultSummary)


# ---------------------------------------------------------------------------
# Career
# ---------------------------------------------------------------------------


class MilestoneType(str, Enum):
    DEBUT = "debut"
    MATCHES = "matches"
    RUNS = "runs"
    WICKETS = "wickets"


class Milestone(BaseModel):
    """A cumulative threshold crossed in a specific match."""

    type: MilestoneType
    value: int
    match_id: str
    date: Date
    description: str


class CareerSpan(BaseModel):
    first_match: Date | None = None
    last_match: Date | None = None
    days: int = 0
    seasons: int = 0


class TrendPoint(BaseModel):
    """Running career position after one match."""

    match_id: str
    date: Date
    format: str
    runs: int
    wickets: int
    cumulative_runs: int
    cumulative_wickets: int
    batting_average: float | None = None
    strike_rate: float = 0.0
    economy: float = 0.0


class CareerAnalytics(BaseModel):
    player_id: str
    total_matches: int = 0
    overall: GroupStats = Field(default_factory=lambda: GroupStats(key="overall"))
    matches_by_format: dict[str, int] = Field(default_factory=dict)
    by_format: list[GroupStats] = Field(default_factory=list)
    by_year: list[GroupStats] = Field(default_factory=list)
    by_level: list[GroupStats] = Field(default_factory=list)
    results: ResultSummary = Field(default_factory=ResultSummary)
    career_span: CareerSpan = Field(default_factory=CareerSpan)
    captaincy_matches: int = 0
    wicketkeeping_matches: int = 0
    milestones: list[Milestone] = Field(default_factory=list)
    trend: list[TrendPoint] = Field(default_factory=list)
    orphaned_performances: int = 0
    last_calculated: datetime


# ---------------------------------------------------------------------------
# Batting / Bowling / Fielding
# ---------------------------------------------------------------------------


class ConversionRates(BaseModel):
    """Percentage of innings that moved from one band to the next."""

    thirty_to_fifty: float = 0.0
    fifty_to_hundred: float = 0.0
    starts_converted: float = 0.0


class ChaseRecord(BaseModel):
    """Results when batting second. Only matches with a decisive or tied result count."""

    matches: int = 0
    won: int = 0
    lost: int = 0
    success_rate: float = 0.0


class BattingAnalytics(BaseModel):
    player_id: str
    overall: BattingRow
    by_format: list[BattingRow] = Field(default_factory=list)
    by_opposition: list[BattingRow] = Field(default_factory=list)
    by_venue: list[BattingRow] = Field(default_factory=list)
    by_home_away: list[BattingRow] = Field(default_factory=list)
    by_day_night: list[BattingRow] = Field(default_factory=list)
    by_innings_role: list[BattingRow] = Field(default_factory=list)
    by_batting_position: list[BattingRow] = Field(default_factory=list)
    by_year: list[BattingRow] = Field(default_factory=list)
    by_series: list[BattingRow] = Field(default_factory=list)
    dismissal_types: dict[str, int] = Field(default_factory=dict)
    conversion: ConversionRates = Field(default_factory=ConversionRates)
    chasing: ChaseRecord = Field(default_factory=ChaseRecord)
    last_calculated: datetime


class BowlingAnalytics(BaseModel):
    player_id: str
    overall: BowlingRow
    by_format: list[BowlingRow] = Field(default_factory=list)
    by_opposition: list[BowlingRow] = Field(default_factory=list)
    by_venue: list[BowlingRow] = Field(default_factory=list)
    by_home_away: list[BowlingRow] = Field(default_factory=list)
    by_day_night: list[BowlingRow] = Field(default_factory=list)
    by_innings_role: list[BowlingRow] = Field(default_factory=list)
    by_year: list[BowlingRow] = Field(default_factory=list)
    wicket_distribution: dict[str, int] = Field(default_factory=dict)
    last_calculated: datetime


class FieldingPerformance(BaseModel):
    match_id: str
    date: Date
    opponent: str
    catches: int
    stumpings: int
    run_outs: int
    total: int


class FieldingAnalytics(BaseModel):
    player_id: str
    overall: FieldingRow
    by_format: list[FieldingRow] = Field(default_factory=list)
    by_opposition: list[FieldingRow] = Field(default_factory=list)
    by_venue: list[FieldingRow] = Field(default_factory=list)
    best_performances: list[FieldingPerformance] = Field(default_factory=list)
    wicketkeeping_matches: int = 0
    last_calculated: datetime


# ---------------------------------------------------------------------------
# Advanced
# ---------------------------------------------------------------------------


class ConsistencyCalculation(BaseModel):
    batting_cv: float | None = None
    bowling_cv: float | None = None
    batting_innings: int = 0
    bowling_innings: int = 0
    match_count: int = 0


class ConsistencyIndex(BaseModel):
    batting: float = 0.0
    bowling: float = 0.0
    overall: float = 0.0
    calculation: ConsistencyCalculation = Field(default_factory=ConsistencyCalculation)


class PeakForm(BaseModel):
    rating: float = 0.0
    start: Date | None = None
    end: Date | None = None
    matches: int = 0


class FormCalculation(BaseModel):
    decay: float = 0.0
    performance_scores: list[float] = Field(default_factory=list)
    trend_slope: float = 0.0


class FormTrend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class FormCurve(BaseModel):
    current: float = 0.0
    trend: FormTrend = FormTrend.STABLE
    last5_average: float = 0.0
    last10_average: float = 0.0
    career_average: float = 0.0
    percentile: float = 0.0
    peak_form: PeakForm = Field(default_factory=PeakForm)
    calculation: FormCalculation = Field(default_factory=FormCalculation)


class ImpactIndex(BaseModel):
    batting: float = 0.0
    bowling: float = 0.0
    fielding: float = 0.0
    overall: float = 0.0


class ClutchCalculation(BaseModel):
    pressure_threshold: float = 0.0
    pressure_average: float = 0.0
    normal_average: float = 0.0


class ClutchScore(BaseModel):
    """Importance-weighted minus unweighted mean score."""

    batting: float = 0.0
    bowling: float = 0.0
    overall: float = 0.0
    pressure_matches: int = 0
    calculation: ClutchCalculation = Field(default_factory=ClutchCalculation)


class PlayerValueCalculation(BaseModel):
    weights: dict[str, float] = Field(default_factory=dict)
    role: str = ""
    role_multiplier: dict[str, float] = Field(default_factory=dict)


class PlayerValueIndex(BaseModel):
    total: float = 0.0
    batting_contribution: float = 0.0
    bowling_contribution: float = 0.0
    fielding_contribution: float = 0.0
    calculation: PlayerValueCalculation = Field(default_factory=PlayerValueCalculation)


class MatchImpact(BaseModel):
    average_match_score: float = 0.0
    high_impact_matches: int = 0
    high_impact_match_ids: list[str] = Field(default_factory=list)
    win_contribution: float = 0.0


class CareerPhase(BaseModel):
    early: float = 0.0
    mid: float = 0.0
    late: float = 0.0


class SituationalMetrics(BaseModel):
    home_advantage: float = 0.0
    format_adaptability: float = 0.0
    career_phase: CareerPhase = Field(default_factory=CareerPhase)


class PredictiveMetrics(BaseModel):
    form_momentum: float = 0.0
    career_trajectory: FormTrend = FormTrend.STABLE
    expected_runs: float = 0.0
    expected_wickets: float = 0.0


class MilestonePrediction(BaseModel):
    type: MilestoneType
    target: int
    current: int
    estimated_matches: int | None = None
    confidence: float = 0.0


class MilestonePredictions(BaseModel):
    next_milestone: MilestonePrediction | None = None
    projections: list[MilestonePrediction] = Field(default_factory=list)


class AdvancedAnalytics(BaseModel):
    player_id: str
    role: str
    qualifying_matches: int = 0
    low_confidence: bool = True
    consistency_index: ConsistencyIndex = Field(default_factory=ConsistencyIndex)
    form_curve: FormCurve = Field(default_factory=FormCurve)
    impact_index: ImpactIndex = Field(default_factory=ImpactIndex)
    clutch_score: ClutchScore = Field(default_factory=ClutchScore)
    player_value_index: PlayerValueIndex = Field(default_factory=PlayerValueIndex)
    match_impact: MatchImpact = Field(default_factory=MatchImpact)
    situational_metrics: SituationalMetrics = Field(default_factory=SituationalMetrics)
    predictive_metrics: PredictiveMetrics = Field(default_factory=PredictiveMetrics)
    milestone_predictions: MilestonePredictions = Field(default_factory=MilestonePredictions)
    calculation_version: str = CALCULATION_VERSION
    last_calculated: datetime


SNAPSHOT_MODELS: dict[SnapshotKind, type[BaseModel]] = {
    SnapshotKind.CAREER: CareerAnalytics,
    SnapshotKind.BATTING: BattingAnalytics,
    SnapshotKind.BOWLING: BowlingAnalytics,
    SnapshotKind.FIELDING: FieldingAnalytics,
    SnapshotKind.ADVANCED: AdvancedAnalytics,
}


def load_snapshot(kind: SnapshotKind, payload: str | dict[str, Any]) -> BaseModel:
    """Rebuild a snapshot model from its persisted JSON payload."""
    model = SNAPSHOT_MODELS[kind]
    if isinstance(payload, str):
        return model.model_validate_json(payload)
    return model.model_validate(payload)
