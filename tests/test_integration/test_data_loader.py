"""
Integration tests for DataLoader service.

Tests history assembly, orphan handling and JSON import.
"""

import json
from datetime import date

import pytest
from pydantic import ValidationError

from cricket_analytics.service.data_loader import DataLoader


class TestLoadHistory:
    """Tests for joining performances to matches."""

    def test_history_is_chronological(self, seeded_db, player_id):
        history = DataLoader(seeded_db).load_history(player_id)

        assert history.match_count == 4
        assert [e.match.match_id for e in history.entries] == ["M1", "M2", "M3", "M4"]
        assert history.orphaned_match_ids == []

    def test_orphans_are_excluded_and_reported(self, seeded_db, player_id, make_performance):
        seeded_db.upsert_performance(make_performance("ghost"))

        history = DataLoader(seeded_db).load_history(player_id)

        assert history.match_count == 4
        assert history.orphaned_match_ids == ["ghost"]
        assert history.to_dict()["orphaned_performances"] == 1

    def test_innings_shape_must_fit_format(self, seeded_db, player_id, make_match, make_performance):
        seeded_db.upsert_match(make_match("T1", format="Test"))
        seeded_db.upsert_performance(make_performance("T1", batting={"runs": 80, "balls_faced": 120}))
        seeded_db.upsert_match(make_match("L1", format="T20"))
        seeded_db.upsert_performance(
            make_performance("L1", second_innings_batting={"runs": 10, "balls_faced": 8})
        )

        history = DataLoader(seeded_db).load_history(player_id)

        assert history.match_count == 4
        assert sorted(history.mismatched_match_ids) == ["L1", "T1"]
        assert history.to_dict()["mismatched_performances"] == 2

    def test_fielding_only_record_fits_any_format(self, seeded_db, player_id, make_match, make_performance):
        seeded_db.upsert_match(make_match("T2", format="First-class", date=date(2023, 6, 1)))
        seeded_db.upsert_performance(make_performance("T2", fielding={"catches": 2}))

        history = DataLoader(seeded_db).load_history(player_id)

        assert history.entries[-1].match.match_id == "T2"
        assert history.mismatched_match_ids == []

    def test_other_players_are_ignored(self, seeded_db, make_performance):
        seeded_db.upsert_performance(make_performance("M1", player_id="P002"))

        history = DataLoader(seeded_db).load_history("P002")

        assert [e.match.match_id for e in history.entries] == ["M1"]

    def test_unknown_player(self, temp_db):
        history = DataLoader(temp_db).load_history("nobody")
        assert history.entries == []


class TestImport:
    """Tests for importing match data."""

    def test_import_file(self, temp_db, import_file, player_id):
        summary = DataLoader(temp_db).import_file(import_file)

        assert (summary.matches, summary.performances) == (4, 4)
        history = DataLoader(temp_db).load_history(player_id)
        assert history.entries[-1].performance.match_runs == 120

    def test_import_is_an_upsert(self, temp_db, import_file):
        loader = DataLoader(temp_db)
        loader.import_file(import_file)
        loader.import_file(import_file)

        assert temp_db.get_stats()["performances"] == 4

    def test_invalid_record_rejected(self, temp_db, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(
            json.dumps(
                {
                    "matches": [],
                    "performances": [
                        {"player_id": "P1", "match_id": "M1", "bowling": {"overs": 3.8}}
                    ],
                }
            )
        )

        with pytest.raises(ValidationError):
            DataLoader(temp_db).import_file(path)
        assert temp_db.get_stats()["performances"] == 0
