"""
Analytics Module

Cricket statistics computation, leaves first.

Components:
    - primitives: Strike rate, economy and average arithmetic
    - DimensionalAggregator: Per-dimension accumulation of raw totals
    - DerivedStatComposer: Rates, band counts and best figures per group
    - CareerRollup: Cross-format totals, milestones and career trend
    - AdvancedMetricsEngine: Consistency, form, impact, clutch and value indices
    - AnalyticsEngine: Runs the whole chain for one player
"""

# primitives first: the models import it while this package initialises
from cricket_analytics.analytics import primitives
from cricket_analytics.analytics.aggregator import (
    Dimension,
    DimensionalAggregator,
    GroupAccumulator,
    MatchEntry,
    SortStrategy,
)
from cricket_analytics.analytics.composer import DerivedStatComposer
from cricket_analytics.analytics.career import CareerRollup, replay_milestones
from cricket_analytics.analytics.policy import (
    ConfigurationError,
    MissingWeightError,
    WeightingPolicy,
    load_policy,
)
from cricket_analytics.analytics.advanced import AdvancedMetricsEngine
from cricket_analytics.analytics.filters import AnalyticsFilters
from cricket_analytics.analytics.engine import AnalyticsBundle, AnalyticsEngine

__all__ = [
    "primitives",
    "Dimension",
    "DimensionalAggregator",
    "GroupAccumulator",
    "MatchEntry",
    "SortStrategy",
    "DerivedStatComposer",
    "CareerRollup",
    "replay_milestones",
    "ConfigurationError",
    "MissingWeightError",
    "WeightingPolicy",
    "load_policy",
    "AdvancedMetricsEngine",
    "AnalyticsFilters",
    "AnalyticsBundle",
    "AnalyticsEngine",
]
