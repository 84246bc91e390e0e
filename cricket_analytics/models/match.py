"""
Match Data Model

Pydantic models for a single fixture: format, level, venue and outcome.
"""

from datetime import date as Date
from enum import Enum

from pydantic import BaseModel, Field


class MatchFormat(str, Enum):
    """Match format enumeration."""

    TEST = "Test"
    ODI = "ODI"
    T20 = "T20"
    FIRST_CLASS = "First-class"
    LIST_A = "List-A"
    T20_DOMESTIC = "T20-domestic"


# Fixed display order for per-format tables
CANONICAL_FORMAT_ORDER: tuple[MatchFormat, ...] = (
    MatchFormat.TEST,
    MatchFormat.ODI,
    MatchFormat.T20,
    MatchFormat.FIRST_CLASS,
    MatchFormat.LIST_A,
    MatchFormat.T20_DOMESTIC,
)

MULTI_INNINGS_FORMATS = frozenset({MatchFormat.TEST, MatchFormat.FIRST_CLASS})


class MatchLevel(str, Enum):
    """Competition level enumeration."""

    SCHOOL = "school"
    CLUB = "club"
    DOMESTIC = "domestic"
    RANJI = "ranji"
    LIST_A = "list-a"
    UNDER19 = "under19"
    IPL = "ipl"
    INTERNATIONAL = "international"


class VenueType(str, Enum):
    """Home/away flag from the player's team perspective."""

    HOME = "home"
    AWAY = "away"
    NEUTRAL = "neutral"


class MatchType(str, Enum):
    """Stage of the competition."""

    GROUP = "group"
    KNOCKOUT = "knockout"
    FINAL = "final"
    REGULAR = "regular"


class MatchResult(str, Enum):
    """Result from the player's team perspective."""

    WON = "won"
    LOST = "lost"
    DRAW = "draw"
    TIE = "tie"
    NO_RESULT = "no_result"


class Match(BaseModel):
    """One fixture the player took part in."""

    match_id: str
    date: Date
    format: MatchFormat
    level: MatchLevel
    venue: str
    city: str = ""
    country: str = ""
    opponent: str
    venue_type: VenueType | None = None
    day_night: bool = False
    series: str | None = None
    match_type: MatchType | None = None
    result: MatchResult | None = None
    result_margin: str | None = None
    notes: list[str] = Field(default_factory=list)

    @property
    def is_multi_innings(self) -> bool:
        """Test and first-class matches record two innings per discipline."""
        return self.format in MULTI_INNINGS_FORMATS

    @property
    def year(self) -> int:
        return self.date.year

    @property
    def sort_key(self) -> tuple[Date, str]:
        """Chronological ordering, ties broken by match id."""
        return (self.date, self.match_id)
