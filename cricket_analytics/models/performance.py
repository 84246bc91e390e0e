"""
Performance Data Model

One player's statistical record for one match. Derived fields (strike
rate, economy, boundary share, milestone flags) are computed from the raw
fields on every access and are never accepted as input.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from cricket_analytics.analytics import primitives


class DismissalType(str, Enum):
    """How a batting innings ended."""

    CAUGHT = "caught"
    BOWLED = "bowled"
    LBW = "lbw"
    RUN_OUT = "run_out"
    STUMPED = "stumped"
    HIT_WICKET = "hit_wicket"
    NOT_OUT = "not_out"
    RETIRED_HURT = "retired_hurt"


NOT_OUT_DISMISSALS = frozenset({DismissalType.NOT_OUT, DismissalType.RETIRED_HURT})


class InningsBatting(BaseModel):
    """A single batting innings."""

    did_not_bat: bool = False
    runs: int = Field(default=0, ge=0)
    balls_faced: int = Field(default=0, ge=0)
    fours: int = Field(default=0, ge=0)
    sixes: int = Field(default=0, ge=0)
    # None means the mode of dismissal was not recorded; counted as out
    dismissal_type: DismissalType | None = None
    batting_position: int | None = Field(default=None, ge=1, le=11)

    @model_validator(mode="after")
    def _check_boundaries(self) -> "InningsBatting":
        if self.fours * 4 + self.sixes * 6 > self.runs:
            raise ValueError("boundary runs exceed total runs")
        return self

    @property
    def batted(self) -> bool:
        return not self.did_not_bat

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_not_out(self) -> bool:
        return self.batted and self.dismissal_type in NOT_OUT_DISMISSALS

    @computed_field  # type: ignore[prop-decorator]
    @property
    def strike_rate(self) -> float:
        return round(primitives.strike_rate(self.runs, self.balls_faced), 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def boundary_runs(self) -> int:
        return self.fours * 4 + self.sixes * 6

    @computed_field  # type: ignore[prop-decorator]
    @property
    def boundary_percentage(self) -> float:
        return round(primitives.boundary_percentage(self.fours, self.sixes, self.runs), 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_duck(self) -> bool:
        return self.batted and self.runs == 0 and not self.is_not_out

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_fifty(self) -> bool:
        return self.batted and 50 <= self.runs < 100

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_century(self) -> bool:
        return self.batted and self.runs >= 100


class InningsBowling(BaseModel):
    """A single bowling innings. ``overs`` uses cricket notation."""

    did_not_bowl: bool = False
    overs: float = Field(default=0.0, ge=0)
    maidens: int = Field(default=0, ge=0)
    runs_conceded: int = Field(default=0, ge=0)
    wickets: int = Field(default=0, ge=0, le=10)
    wides: int = Field(default=0, ge=0)
    no_balls: int = Field(default=0, ge=0)

    @field_validator("overs")
    @classmethod
    def _legal_overs(cls, value: float) -> float:
        primitives.overs_to_balls(value)
        return value

    @property
    def bowled(self) -> bool:
        return not self.did_not_bowl

    @computed_field  # type: ignore[prop-decorator]
    @property
    def balls_bowled(self) -> int:
        return primitives.overs_to_balls(self.overs)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def economy(self) -> float:
        overs = primitives.balls_to_overs(self.balls_bowled)
        return round(primitives.economy(self.runs_conceded, overs), 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def bowling_average(self) -> float | None:
        return primitives.round_rate(
            primitives.bowling_average(self.runs_conceded, self.wickets)
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def bowling_strike_rate(self) -> float | None:
        return primitives.round_rate(
            primitives.bowling_strike_rate(self.balls_bowled, self.wickets)
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_five_wicket_haul(self) -> bool:
        return self.wickets >= 5


class Fielding(BaseModel):
    """Fielding contributions in a match."""

    catches: int = Field(default=0, ge=0)
    stumpings: int = Field(default=0, ge=0)
    run_outs: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_dismissals(self) -> int:
        return self.catches + self.stumpings + self.run_outs


class Performance(BaseModel):
    """
    A player's record for one match.

    Limited-overs matches use ``batting``/``bowling``. Test and first-class
    matches use the ``first_innings_*``/``second_innings_*`` pairs instead.
    """

    player_id: str
    match_id: str
    batting: InningsBatting | None = None
    bowling: InningsBowling | None = None
    first_innings_batting: InningsBatting | None = None
    second_innings_batting: InningsBatting | None = None
    first_innings_bowling: InningsBowling | None = None
    second_innings_bowling: InningsBowling | None = None
    fielding: Fielding = Field(default_factory=Fielding)
    is_captain: bool = False
    is_wicketkeeper: bool = False
    # True when the player's side batted second
    is_chasing: bool | None = None

    @model_validator(mode="after")
    def _single_or_split_innings(self) -> "Performance":
        split = any(
            (
                self.first_innings_batting,
                self.second_innings_batting,
                self.first_innings_bowling,
                self.second_innings_bowling,
            )
        )
        if split and (self.batting is not None or self.bowling is not None):
            raise ValueError(
                "a performance carries either single-innings or two-innings records, not both"
            )
        return self

    @property
    def is_multi_innings(self) -> bool:
        return self.batting is None and self.bowling is None and any(
            (
                self.first_innings_batting,
                self.second_innings_batting,
                self.first_innings_bowling,
                self.second_innings_bowling,
            )
        )

    def fits_innings_shape(self, multi_innings: bool) -> bool:
        """Whether the records match a one-innings or two-innings match format."""
        if multi_innings:
            return self.batting is None and self.bowling is None
        return not self.is_multi_innings

    def numbered_batting_innings(self) -> list[tuple[int, InningsBatting]]:
        """Innings actually batted with their innings number in the match."""
        candidates = (
            [self.first_innings_batting, self.second_innings_batting]
            if self.is_multi_innings
            else [self.batting]
        )
        return [
            (number, inn)
            for number, inn in enumerate(candidates, start=1)
            if inn is not None and inn.batted
        ]

    def numbered_bowling_innings(self) -> list[tuple[int, InningsBowling]]:
        """Innings actually bowled with their innings number in the match."""
        candidates = (
            [self.first_innings_bowling, self.second_innings_bowling]
            if self.is_multi_innings
            else [self.bowling]
        )
        return [
            (number, inn)
            for number, inn in enumerate(candidates, start=1)
            if inn is not None and inn.bowled
        ]

    def batting_innings(self) -> list[InningsBatting]:
        """Innings actually batted, in order. Did-not-bat entries are dropped."""
        return [inn for _, inn in self.numbered_batting_innings()]

    def bowling_innings(self) -> list[InningsBowling]:
        """Innings actually bowled, in order. Did-not-bowl entries are dropped."""
        return [inn for _, inn in self.numbered_bowling_innings()]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def match_runs(self) -> int:
        return sum(inn.runs for inn in self.batting_innings())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def match_balls_faced(self) -> int:
        return sum(inn.balls_faced for inn in self.batting_innings())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def match_wickets(self) -> int:
        return sum(inn.wickets for inn in self.bowling_innings())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def match_runs_conceded(self) -> int:
        return sum(inn.runs_conceded for inn in self.bowling_innings())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def match_balls_bowled(self) -> int:
        return sum(inn.balls_bowled for inn in self.bowling_innings())

    @property
    def batted(self) -> bool:
        return bool(self.batting_innings())

    @property
    def bowled(self) -> bool:
        return bool(self.bowling_innings())
