"""
Advanced Metrics Engine

Stateless batch computation of the higher-order indices:
- Consistency (coefficient of variation of per-innings scores)
- Form curve (recency-weighted averages with a linear trend)
- Impact index and clutch differential (importance-weighted scores)
- Player value index (weighted multi-skill composite by role)
- Situational, predictive and milestone projections

Every metric degrades to a documented default (0, ``None`` or a
confidence of 0) when the sample is too small. Nothing here raises for
insufficient data; policy problems raise MissingWeightError.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

import numpy as np
from loguru import logger

from cricket_analytics.analytics.aggregator import MatchEntry, sort_entries
from cricket_analytics.analytics.career import MATCH_MILESTONE_STEP, RUN_MILESTONES, WICKET_MILESTONES
from cricket_analytics.analytics.policy import WeightingPolicy
from cricket_analytics.models.match import MatchResult, VenueType
from cricket_analytics.models.snapshots import (
    AdvancedAnalytics,
    CareerAnalytics,
    CareerPhase,
    ClutchCalculation,
    ClutchScore,
    ConsistencyCalculation,
    ConsistencyIndex,
    FormCalculation,
    FormCurve,
    FormTrend,
    ImpactIndex,
    MatchImpact,
    MilestonePrediction,
    MilestonePredictions,
    MilestoneType,
    PeakForm,
    PlayerValueCalculation,
    PlayerValueIndex,
    PredictiveMetrics,
    SituationalMetrics,
)

MIN_CONSISTENCY_INNINGS = 2


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(np.mean(values))


def _weighted_mean(values: Sequence[float], weights: Sequence[float]) -> float:
    total = float(np.sum(weights)) if weights else 0.0
    if total <= 0:
        return 0.0
    return float(np.dot(values, weights) / total)


def _r(value: float) -> float:
    return round(float(value), 2)


def ewma(values: Sequence[float], decay: float) -> float:
    """Recency-weighted mean; the newest value has weight 1, the one before ``decay``."""
    if not values:
        return 0.0
    n = len(values)
    weights = [decay ** (n - 1 - i) for i in range(n)]
    return _weighted_mean(values, weights)


def trend_slope(values: Sequence[float]) -> float:
    """Slope of a least-squares line through the values, 0 below two points."""
    if len(values) < 2:
        return 0.0
    x = np.arange(len(values), dtype=float)
    slope = np.polyfit(x, np.asarray(values, dtype=float), 1)[0]
    return float(slope) if np.isfinite(slope) else 0.0


def classify_trend(slope: float, epsilon: float) -> FormTrend:
    if abs(slope) < epsilon:
        return FormTrend.STABLE
    return FormTrend.IMPROVING if slope > 0 else FormTrend.DECLINING


def consistency_from(values: Sequence[float], max_cv: float) -> tuple[float, float | None]:
    """
    Map a coefficient of variation onto 0-100.

    Returns:
        (index, cv). Below two values, or with a zero mean, the index is 0
        and cv is ``None``.
    """
    if len(values) < MIN_CONSISTENCY_INNINGS:
        return 0.0, None
    arr = np.asarray(values, dtype=float)
    mean = float(arr.mean())
    if mean <= 0:
        return 0.0, None
    cv = float(arr.std()) / mean
    return 100.0 * (1.0 - min(cv, max_cv) / max_cv), cv


@dataclass(frozen=True)
class MatchScore:
    """Normalised per-match performance score and its situational weight."""

    entry: MatchEntry
    batting: float | None
    bowling: float | None
    fielding: float
    overall: float
    importance: float

    @property
    def qualifies(self) -> bool:
        return self.batting is not None or self.bowling is not None


class AdvancedMetricsEngine:
    """
    Computes the advanced analytics snapshot.

    The weighting policy is injected; the engine holds no per-player state
    and can be reused across players.
    """

    def __init__(self, policy: WeightingPolicy) -> None:
        self.policy = policy

    # -- scoring -------------------------------------------------------------

    def importance_factor(self, entry: MatchEntry) -> float:
        """Product of the configured situational weights for a match."""
        match = entry.match
        factor = 1.0
        factor *= self.policy.importance("result", match.result.value if match.result else None)
        factor *= self.policy.importance(
            "venue_type", match.venue_type.value if match.venue_type else None
        )
        factor *= self.policy.importance(
            "match_type", match.match_type.value if match.match_type else None
        )
        factor *= self.policy.importance("level", match.level.value)
        return factor

    def score_match(self, entry: MatchEntry) -> MatchScore:
        perf = entry.performance
        baseline = self.policy.baseline(entry.match.format.value)
        cap = self.policy.score_cap

        batting = min(cap, 100.0 * perf.match_runs / baseline.runs) if perf.batted else None
        bowling = (
            min(cap, 100.0 * perf.match_wickets / baseline.wickets) if perf.bowled else None
        )
        played = [c for c in (batting, bowling) if c is not None]
        points = self.policy.fielding_points
        fielding = (
            perf.fielding.catches * points["catch"]
            + perf.fielding.stumpings * points["stumping"]
            + perf.fielding.run_outs * points["run_out"]
        )
        return MatchScore(
            entry=entry,
            batting=batting,
            bowling=bowling,
            fielding=fielding,
            overall=_mean(played),
            importance=self.importance_factor(entry),
        )

    def score_matches(self, entries: Iterable[MatchEntry]) -> list[MatchScore]:
        return [self.score_match(e) for e in sort_entries(entries)]

    def batting_innings_scores(self, entries: Iterable[MatchEntry]) -> list[float]:
        scores = []
        for entry in sort_entries(entries):
            baseline = self.policy.baseline(entry.match.format.value)
            for innings in entry.performance.batting_innings():
                scores.append(100.0 * innings.runs / baseline.runs)
        return scores

    def bowling_innings_scores(self, entries: Iterable[MatchEntry]) -> list[float]:
        scores = []
        for entry in sort_entries(entries):
            baseline = self.policy.baseline(entry.match.format.value)
            for innings in entry.performance.bowling_innings():
                scores.append(100.0 * innings.wickets / baseline.wickets)
        return scores

    def classify_role(self, scores: list[MatchScore]) -> str:
        """batsman, bowler, all_rounder or wicketkeeper."""
        qualifying = [s for s in scores if s.qualifies]
        if not scores:
            return "all_rounder"
        keeper = sum(1 for s in scores if s.entry.performance.is_wicketkeeper)
        if keeper / len(scores) >= self.policy.keeper_share:
            return "wicketkeeper"
        bat = _mean([s.batting or 0.0 for s in qualifying])
        bowl = _mean([s.bowling or 0.0 for s in qualifying])
        threshold = self.policy.all_rounder_threshold
        if bat >= threshold and bowl >= threshold:
            return "all_rounder"
        return "bowler" if bowl > bat else "batsman"

    # -- metrics -------------------------------------------------------------

    def consistency(
        self, entries: list[MatchEntry], scores: list[MatchScore]
    ) -> ConsistencyIndex:
        batting_scores = self.batting_innings_scores(entries)
        bowling_scores = self.bowling_innings_scores(entries)
        batting, batting_cv = consistency_from(batting_scores, self.policy.max_cv)
        bowling, bowling_cv = consistency_from(bowling_scores, self.policy.max_cv)
        available = [
            idx
            for idx, cv in ((batting, batting_cv), (bowling, bowling_cv))
            if cv is not None
        ]
        return ConsistencyIndex(
            batting=_r(batting),
            bowling=_r(bowling),
            overall=_r(_mean(available)),
            calculation=ConsistencyCalculation(
                batting_cv=None if batting_cv is None else round(batting_cv, 4),
                bowling_cv=None if bowling_cv is None else round(bowling_cv, 4),
                batting_innings=len(batting_scores),
                bowling_innings=len(bowling_scores),
                match_count=sum(1 for s in scores if s.qualifies),
            ),
        )

    def form_curve(self, scores: list[MatchScore]) -> FormCurve:
        values = [s.overall for s in scores if s.qualifies]
        dated = [s for s in scores if s.qualifies]
        if not values:
            return FormCurve(calculation=FormCalculation(decay=self.policy.form_decay))

        short = self.policy.short_window
        long = self.policy.long_window
        decay = self.policy.form_decay
        last5 = ewma(values[-short:], decay)
        last10 = ewma(values[-long:], decay)
        career = ewma(values, decay)
        slope = trend_slope(values[-long:])

        window = min(short, len(values))
        rolling = [_mean(values[i : i + window]) for i in range(len(values) - window + 1)]
        peak_at = int(np.argmax(rolling))
        percentile = 0.0
        if len(values) >= short:
            latest = rolling[-1]
            percentile = 100.0 * sum(1 for r in rolling if r <= latest) / len(rolling)

        return FormCurve(
            current=_r(last5),
            trend=classify_trend(slope, self.policy.trend_epsilon),
            last5_average=_r(last5),
            last10_average=_r(last10),
            career_average=_r(career),
            percentile=_r(percentile),
            peak_form=PeakForm(
                rating=_r(rolling[peak_at]),
                start=dated[peak_at].entry.match.date,
                end=dated[peak_at + window - 1].entry.match.date,
                matches=window,
            ),
            calculation=FormCalculation(
                decay=decay,
                performance_scores=[_r(v) for v in values[-long:]],
                trend_slope=round(slope, 4),
            ),
        )

    def impact(self, scores: list[MatchScore]) -> ImpactIndex:
        batted = [s for s in scores if s.batting is not None]
        bowled = [s for s in scores if s.bowling is not None]
        qualifying = [s for s in scores if s.qualifies]
        return ImpactIndex(
            batting=_r(_weighted_mean([s.batting for s in batted], [s.importance for s in batted])),
            bowling=_r(_weighted_mean([s.bowling for s in bowled], [s.importance for s in bowled])),
            fielding=_r(
                _weighted_mean([s.fielding for s in scores], [s.importance for s in scores])
            ),
            overall=_r(
                _weighted_mean(
                    [s.overall for s in qualifying], [s.importance for s in qualifying]
                )
            ),
        )

    def clutch(self, scores: list[MatchScore]) -> ClutchScore:
        """Importance-weighted mean minus the plain mean, per discipline."""

        def differential(values: list[float], weights: list[float]) -> float:
            if not values:
                return 0.0
            return _weighted_mean(values, weights) - _mean(values)

        batted = [s for s in scores if s.batting is not None]
        bowled = [s for s in scores if s.bowling is not None]
        qualifying = [s for s in scores if s.qualifies]
        threshold = self.policy.pressure_threshold
        pressure = [s.overall for s in qualifying if s.importance >= threshold]
        normal = [s.overall for s in qualifying if s.importance < threshold]

        return ClutchScore(
            batting=_r(
                differential([s.batting for s in batted], [s.importance for s in batted])
            ),
            bowling=_r(
                differential([s.bowling for s in bowled], [s.importance for s in bowled])
            ),
            overall=_r(
                differential(
                    [s.overall for s in qualifying], [s.importance for s in qualifying]
                )
            ),
            pressure_matches=len(pressure),
            calculation=ClutchCalculation(
                pressure_threshold=threshold,
                pressure_average=_r(_mean(pressure)),
                normal_average=_r(_mean(normal)),
            ),
        )

    def player_value(self, scores: list[MatchScore], role: str) -> PlayerValueIndex:
        qualifying = [s for s in scores if s.qualifies]
        weights = self.policy.value_weights
        multipliers = self.policy.role_multipliers[role]
        batting = weights["batting"] * multipliers["batting"] * _mean(
            [s.batting or 0.0 for s in qualifying]
        )
        bowling = weights["bowling"] * multipliers["bowling"] * _mean(
            [s.bowling or 0.0 for s in qualifying]
        )
        fielding = weights["fielding"] * multipliers["fielding"] * _mean(
            [s.fielding for s in scores]
        )
        return PlayerValueIndex(
            total=_r(batting + bowling + fielding),
            batting_contribution=_r(batting),
            bowling_contribution=_r(bowling),
            fielding_contribution=_r(fielding),
            calculation=PlayerValueCalculation(
                weights=dict(weights), role=role, role_multiplier=dict(multipliers)
            ),
        )

    def match_impact(self, scores: list[MatchScore]) -> MatchImpact:
        qualifying = [s for s in scores if s.qualifies]
        high = [s for s in qualifying if s.overall >= self.policy.high_impact_score]
        total = sum(s.overall for s in qualifying)
        in_wins = sum(
            s.overall for s in qualifying if s.entry.match.result == MatchResult.WON
        )
        return MatchImpact(
            average_match_score=_r(_mean([s.overall for s in qualifying])),
            high_impact_matches=len(high),
            high_impact_match_ids=[s.entry.match.match_id for s in high],
            win_contribution=_r(100.0 * in_wins / total if total > 0 else 0.0),
        )

    def situational(self, scores: list[MatchScore]) -> SituationalMetrics:
        qualifying = [s for s in scores if s.qualifies]
        home = [s.overall for s in qualifying if s.entry.match.venue_type == VenueType.HOME]
        away = [s.overall for s in qualifying if s.entry.match.venue_type == VenueType.AWAY]
        home_advantage = _mean(home) - _mean(away) if home and away else 0.0

        by_format: dict[str, list[float]] = {}
        for s in qualifying:
            by_format.setdefault(s.entry.match.format.value, []).append(s.overall)
        format_means = [_mean(v) for v in by_format.values()]
        adaptability = 0.0
        if len(format_means) >= 2:
            adaptability, _ = consistency_from(format_means, self.policy.max_cv)

        phase = CareerPhase()
        if len(qualifying) >= 3:
            thirds = np.array_split(np.asarray([s.overall for s in qualifying]), 3)
            phase = CareerPhase(
                early=_r(thirds[0].mean()), mid=_r(thirds[1].mean()), late=_r(thirds[2].mean())
            )

        return SituationalMetrics(
            home_advantage=_r(home_advantage),
            format_adaptability=_r(adaptability),
            career_phase=phase,
        )

    def predictive(self, scores: list[MatchScore], form: FormCurve) -> PredictiveMetrics:
        values = [s.overall for s in scores if s.qualifies]
        decay = self.policy.form_decay
        recent = scores[-self.policy.long_window :]
        runs = [float(s.entry.performance.match_runs) for s in recent if s.batting is not None]
        wickets = [
            float(s.entry.performance.match_wickets) for s in recent if s.bowling is not None
        ]
        momentum = form.last5_average - _mean(values) if values else 0.0
        return PredictiveMetrics(
            form_momentum=_r(momentum),
            career_trajectory=classify_trend(trend_slope(values), self.policy.trend_epsilon),
            expected_runs=_r(ewma(runs, decay)),
            expected_wickets=_r(ewma(wickets, decay)),
        )

    def milestones(
        self, career: CareerAnalytics, scores: list[MatchScore]
    ) -> MilestonePredictions:
        """Extrapolate the recent per-match rate to the next thresholds."""
        window = self.policy.long_window
        recent = scores[-window:]
        sample = len(recent)
        sample_weight = min(1.0, sample / window)
        runs_rate = _mean([float(s.entry.performance.match_runs) for s in recent])
        wickets_rate = _mean([float(s.entry.performance.match_wickets) for s in recent])

        overall = career.overall
        matches = career.total_matches
        candidates: list[tuple[MilestoneType, int, int, float]] = []
        next_runs = next((t for t in RUN_MILESTONES if t > overall.batting.runs), None)
        if next_runs is not None:
            candidates.append((MilestoneType.RUNS, next_runs, overall.batting.runs, runs_rate))
        next_wickets = next((t for t in WICKET_MILESTONES if t > overall.bowling.wickets), None)
        if next_wickets is not None:
            candidates.append(
                (MilestoneType.WICKETS, next_wickets, overall.bowling.wickets, wickets_rate)
            )
        next_matches = (matches // MATCH_MILESTONE_STEP + 1) * MATCH_MILESTONE_STEP
        candidates.append(
            (MilestoneType.MATCHES, next_matches, matches, 1.0 if sample else 0.0)
        )

        projections = []
        for kind, target, current, rate in candidates:
            if rate <= 0 or sample == 0:
                projections.append(
                    MilestonePrediction(type=kind, target=target, current=current)
                )
                continue
            estimated = math.ceil((target - current) / rate)
            confidence = sample_weight * math.exp(-estimated / self.policy.milestone_horizon)
            projections.append(
                MilestonePrediction(
                    type=kind,
                    target=target,
                    current=current,
                    estimated_matches=estimated,
                    confidence=round(confidence, 3),
                )
            )

        projections.sort(
            key=lambda p: (p.estimated_matches is None, p.estimated_matches or 0, p.type.value)
        )
        reachable = [p for p in projections if p.estimated_matches is not None]
        return MilestonePredictions(
            next_milestone=reachable[0] if reachable else None,
            projections=projections,
        )

    # -- entry point ---------------------------------------------------------

    def compute(
        self,
        player_id: str,
        career: CareerAnalytics,
        entries: Iterable[MatchEntry],
        calculated_at: datetime,
    ) -> AdvancedAnalytics:
        """Build the advanced snapshot from the career roll-up and raw entries."""
        ordered = sort_entries(entries)
        scores = self.score_matches(ordered)
        qualifying = sum(1 for s in scores if s.qualifies)
        role = self.classify_role(scores)
        form = self.form_curve(scores)

        snapshot = AdvancedAnalytics(
            player_id=player_id,
            role=role,
            qualifying_matches=qualifying,
            low_confidence=qualifying < self.policy.short_window,
            consistency_index=self.consistency(ordered, scores),
            form_curve=form,
            impact_index=self.impact(scores),
            clutch_score=self.clutch(scores),
            player_value_index=self.player_value(scores, role),
            match_impact=self.match_impact(scores),
            situational_metrics=self.situational(scores),
            predictive_metrics=self.predictive(scores, form),
            milestone_predictions=self.milestones(career, scores),
            last_calculated=calculated_at,
        )
        if snapshot.low_confidence:
            logger.info(
                f"Advanced metrics for {player_id} are low confidence "
                f"({qualifying} qualifying matches)"
            )
        return snapshot
