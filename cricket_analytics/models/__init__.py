"""
Data Models Module

Pydantic models for cricket matches, performances and analytics snapshots.

Models:
    - Match: One fixture with format, level, venue and result
    - Performance: A player's batting, bowling and fielding in one match
    - CareerAnalytics / BattingAnalytics / BowlingAnalytics /
      FieldingAnalytics / AdvancedAnalytics: derived snapshot documents
"""

from cricket_analytics.models.match import (
    Match,
    MatchFormat,
    MatchLevel,
    MatchResult,
    MatchType,
    VenueType,
)
from cricket_analytics.models.performance import (
    DismissalType,
    Fielding,
    InningsBatting,
    InningsBowling,
    Performance,
)
from cricket_analytics.models.snapshots import (
    AdvancedAnalytics,
    BattingAnalytics,
    BowlingAnalytics,
    CareerAnalytics,
    FieldingAnalytics,
    SnapshotKind,
)

__all__ = [
    "Match",
    "MatchFormat",
    "MatchLevel",
    "MatchResult",
    "MatchType",
    "VenueType",
    "DismissalType",
    "Fielding",
    "InningsBatting",
    "InningsBowling",
    "Performance",
    "AdvancedAnalytics",
    "BattingAnalytics",
    "BowlingAnalytics",
    "CareerAnalytics",
    "FieldingAnalytics",
    "SnapshotKind",
]
