"""
Pytest Configuration and Fixtures

Shared fixtures and configuration for the cricket analytics test suite.
"""

import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

from cricket_analytics.analytics.aggregator import MatchEntry
from cricket_analytics.analytics.policy import WeightingPolicy, default_policy_config
from cricket_analytics.database.db import Database
from cricket_analytics.models.match import Match
from cricket_analytics.models.performance import Performance
from cricket_analytics.service.orchestrator import AnalyticsOrchestrator

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
PLAYER_ID = "P001"


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock that always returns the same instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def player_id() -> str:
    return PLAYER_ID


@pytest.fixture
def make_match() -> Callable[..., Match]:
    """Factory for matches with sensible defaults."""

    def _make(match_id: str = "M1", **overrides: Any) -> Match:
        data: dict[str, Any] = {
            "match_id": match_id,
            "date": date(2023, 1, 1),
            "format": "ODI",
            "level": "international",
            "venue": "Eden Gardens",
            "city": "Kolkata",
            "country": "India",
            "opponent": "Australia",
            "venue_type": "home",
            "result": "won",
        }
        data.update(overrides)
        return Match.model_validate(data)

    return _make


@pytest.fixture
def make_performance() -> Callable[..., Performance]:
    """Factory for performances. ``batting``/``bowling`` accept plain dicts."""

    def _make(match_id: str = "M1", player_id: str = PLAYER_ID, **fields: Any) -> Performance:
        return Performance.model_validate({"player_id": player_id, "match_id": match_id, **fields})

    return _make


@pytest.fixture
def make_entry(make_match, make_performance) -> Callable[..., MatchEntry]:
    """Factory for joined match entries.

    Keyword arguments prefixed ``match_`` go to the match, the rest to the
    performance.
    """

    def _make(match_id: str = "M1", **kwargs: Any) -> MatchEntry:
        match_fields = {k[len("match_"):]: v for k, v in kwargs.items() if k.startswith("match_")}
        perf_fields = {k: v for k, v in kwargs.items() if not k.startswith("match_")}
        return MatchEntry(
            match=make_match(match_id, **match_fields),
            performance=make_performance(match_id, **perf_fields),
        )

    return _make


@pytest.fixture
def policy() -> WeightingPolicy:
    """The built-in weighting policy."""
    return WeightingPolicy.from_dict(default_policy_config(), source="test")


@pytest.fixture
def sample_entries(make_entry) -> list[MatchEntry]:
    """A small mixed-format career, deliberately out of chronological order."""
    return [
        make_entry(
            "M3",
            match_date=date(2023, 3, 10),
            match_format="T20",
            match_opponent="England",
            match_venue="Lord's",
            match_venue_type="away",
            match_result="lost",
            batting={"runs": 45, "balls_faced": 30, "fours": 5, "sixes": 1, "dismissal_type": "caught", "batting_position": 3},
            bowling={"overs": 4, "runs_conceded": 30, "wickets": 1},
            fielding={"catches": 1},
            is_chasing=True,
        ),
        make_entry(
            "M1",
            match_date=date(2023, 1, 5),
            match_format="ODI",
            batting={"runs": 50, "balls_faced": 40, "fours": 6, "dismissal_type": "bowled", "batting_position": 3},
            bowling={"overs": 10, "runs_conceded": 40, "wickets": 3},
            is_chasing=False,
        ),
        make_entry(
            "M2",
            match_date=date(2023, 2, 1),
            match_format="ODI",
            match_venue="Wankhede",
            batting={"runs": 100, "balls_faced": 80, "fours": 10, "sixes": 2, "dismissal_type": "not_out", "batting_position": 4},
            bowling={"overs": 8, "runs_conceded": 24, "wickets": 0},
            fielding={"catches": 2, "run_outs": 1},
            is_chasing=True,
        ),
        make_entry(
            "M4",
            match_date=date(2023, 4, 20),
            match_format="Test",
            match_opponent="England",
            match_venue="Lord's",
            match_venue_type="away",
            match_result="draw",
            match_match_type="regular",
            first_innings_batting={"runs": 0, "balls_faced": 3, "dismissal_type": "lbw", "batting_position": 3},
            second_innings_batting={"runs": 120, "balls_faced": 200, "fours": 15, "dismissal_type": "caught", "batting_position": 3},
            first_innings_bowling={"overs": 20.3, "maidens": 4, "runs_conceded": 60, "wickets": 5},
            second_innings_bowling={"did_not_bowl": True},
        ),
    ]


@pytest.fixture
def temp_db(tmp_path) -> Database:
    """Initialised database in a temporary directory."""
    db = Database(tmp_path / "analytics.db")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def seeded_db(temp_db, sample_entries) -> Database:
    """Database holding the sample career."""
    for entry in sample_entries:
        temp_db.upsert_match(entry.match)
        temp_db.upsert_performance(entry.performance)
    return temp_db


@pytest.fixture
def orchestrator(seeded_db, policy, fixed_clock, tmp_path):
    """Orchestrator over the sample career with a fixed clock."""
    orch = AnalyticsOrchestrator(
        seeded_db, policy=policy, clock=fixed_clock, lock_dir=tmp_path / "locks"
    )
    yield orch
    orch.close()


@pytest.fixture
def import_file(tmp_path, sample_entries) -> Path:
    """JSON import document for the sample career."""
    path = tmp_path / "career.json"
    document = {
        "matches": [e.match.model_dump(mode="json") for e in sample_entries],
        "performances": [e.performance.model_dump(mode="json") for e in sample_entries],
    }
    path.write_text(json.dumps(document))
    return path
