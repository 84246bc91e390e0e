"""
Integration tests for the Orchestrator service.

Runs the full load -> compute -> persist path against a temporary SQLite
database and a temporary lock directory.
"""

import sqlite3
import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from cricket_analytics.analytics.filters import AnalyticsFilters
from cricket_analytics.models.match import MatchFormat
from cricket_analytics.models.snapshots import (
    CALCULATION_VERSION,
    AdvancedAnalytics,
    CareerAnalytics,
    SnapshotKind,
)
from cricket_analytics.service.locks import PlayerLocks, PlayerLockTimeout
from cricket_analytics.service.orchestrator import PartialRecalculationError

PLAYER_ID = "P001"
FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestRecalculateAll:
    """Tests for the forced recompute trigger."""

    def test_writes_every_snapshot(self, orchestrator, seeded_db):
        report = orchestrator.recalculate_all(PLAYER_ID)

        assert report.ok
        assert report.matches == 4
        assert set(report.succeeded) == set(SnapshotKind)
        assert seeded_db.get_stats()["analytics_snapshots"] == 5

    def test_snapshots_carry_clock_time(self, orchestrator, seeded_db):
        orchestrator.recalculate_all(PLAYER_ID)
        row = seeded_db.get_snapshot(PLAYER_ID, "batting")

        assert row["last_calculated"] == FIXED_NOW.isoformat()
        assert seeded_db.get_snapshot(PLAYER_ID, "advanced")["calculation_version"] == (
            CALCULATION_VERSION
        )

    def test_recompute_is_idempotent(self, orchestrator, seeded_db):
        orchestrator.recalculate_all(PLAYER_ID)
        first = {k: seeded_db.get_snapshot(PLAYER_ID, k.value)["payload"] for k in SnapshotKind}
        orchestrator.recalculate_all(PLAYER_ID)
        second = {k: seeded_db.get_snapshot(PLAYER_ID, k.value)["payload"] for k in SnapshotKind}

        assert first == second

    def test_recompute_reflects_new_data(self, orchestrator, seeded_db, make_match, make_performance):
        orchestrator.recalculate_all(PLAYER_ID)
        seeded_db.upsert_match(make_match("M5", date=FIXED_NOW.date()))
        seeded_db.upsert_performance(
            make_performance("M5", batting={"runs": 85, "balls_faced": 70})
        )
        orchestrator.recalculate_all(PLAYER_ID)

        career = orchestrator.get_snapshot(PLAYER_ID, SnapshotKind.CAREER)
        assert career.total_matches == 5
        assert career.overall.batting.runs == 400

    def test_orphaned_performance_is_reported(self, orchestrator, seeded_db, make_performance):
        seeded_db.upsert_performance(make_performance("ghost", batting={"runs": 10, "balls_faced": 5}))

        report = orchestrator.recalculate_all(PLAYER_ID)
        career = orchestrator.get_snapshot(PLAYER_ID, "career")

        assert report.orphaned_match_ids == ["ghost"]
        assert career.orphaned_performances == 1
        assert career.total_matches == 4

    def test_player_without_history(self, orchestrator):
        report = orchestrator.recalculate_all("UNKNOWN")
        career = orchestrator.get_snapshot("UNKNOWN", "career")

        assert report.ok
        assert career.total_matches == 0


class TestPartialFailure:
    """Tests for snapshot write failures."""

    def test_failed_write_keeps_others(self, orchestrator, seeded_db, monkeypatch):
        original = seeded_db.save_snapshot

        def failing_save(player_id, kind, *args, **kwargs):
            if kind == "bowling":
                raise sqlite3.OperationalError("disk I/O error")
            return original(player_id, kind, *args, **kwargs)

        monkeypatch.setattr(seeded_db, "save_snapshot", failing_save)

        with pytest.raises(PartialRecalculationError) as exc_info:
            orchestrator.recalculate_all(PLAYER_ID)

        error = exc_info.value
        assert error.report.failed == [SnapshotKind.BOWLING]
        assert len(error.report.succeeded) == 4
        assert isinstance(error.errors[SnapshotKind.BOWLING], sqlite3.OperationalError)
        assert isinstance(error.__cause__, sqlite3.OperationalError)
        assert seeded_db.get_snapshot(PLAYER_ID, "career") is not None
        assert seeded_db.get_snapshot(PLAYER_ID, "bowling") is None

    def test_report_serialises_errors(self, orchestrator, seeded_db, monkeypatch):
        monkeypatch.setattr(
            seeded_db, "save_snapshot", MagicMock(side_effect=sqlite3.OperationalError("locked"))
        )

        with pytest.raises(PartialRecalculationError) as exc_info:
            orchestrator.recalculate_all(PLAYER_ID)

        data = exc_info.value.report.to_dict()
        assert all(not o["success"] for o in data["outcomes"])
        assert "locked" in data["outcomes"][0]["error"]


class TestGetSnapshot:
    """Tests for the lazy read trigger."""

    def test_computes_when_absent(self, orchestrator, seeded_db):
        career = orchestrator.get_snapshot(PLAYER_ID, SnapshotKind.CAREER)

        assert isinstance(career, CareerAnalytics)
        assert career.total_matches == 4
        assert seeded_db.get_stats()["analytics_snapshots"] == 5

    def test_returns_stored_without_recompute(self, orchestrator):
        orchestrator.recalculate_all(PLAYER_ID)
        orchestrator.engine = MagicMock(wraps=orchestrator.engine)

        batting = orchestrator.get_snapshot(PLAYER_ID, "batting")

        assert batting.overall.runs == 315
        orchestrator.engine.compute.assert_not_called()

    def test_stale_advanced_version_is_recomputed(self, orchestrator, seeded_db):
        seeded_db.save_snapshot(PLAYER_ID, "advanced", "{}", FIXED_NOW, "1.0")

        advanced = orchestrator.get_snapshot(PLAYER_ID, "advanced")

        assert isinstance(advanced, AdvancedAnalytics)
        assert seeded_db.get_snapshot(PLAYER_ID, "advanced")["calculation_version"] == (
            CALCULATION_VERSION
        )

    def test_concurrent_readers_compute_once(self, orchestrator):
        orchestrator.engine = MagicMock(wraps=orchestrator.engine)
        results = []
        errors = []

        def read():
            try:
                results.append(orchestrator.get_snapshot(PLAYER_ID, "career"))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=read) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert errors == []
        assert len(results) == 4
        assert orchestrator.engine.compute.call_count == 1

    def test_unknown_kind(self, orchestrator):
        with pytest.raises(ValueError):
            orchestrator.get_snapshot(PLAYER_ID, "bogus")


class TestFilteredAndClear:
    """Tests for filtered summaries and snapshot clearing."""

    def test_filtered_summary_is_not_persisted(self, orchestrator, seeded_db):
        bundle = orchestrator.compute_filtered(
            PLAYER_ID, AnalyticsFilters(format=MatchFormat.ODI)
        )

        assert bundle.batting.overall.innings == 2
        assert bundle.bowling.overall.economy == 3.56
        assert bundle.get(SnapshotKind.CAREER).total_matches == 2
        assert seeded_db.get_stats()["analytics_snapshots"] == 0

    def test_clear(self, orchestrator):
        orchestrator.recalculate_all(PLAYER_ID)

        assert orchestrator.clear(PLAYER_ID) == 5
        assert orchestrator.clear() == 0


class TestPlayerLocks:
    """Tests for the per-player lock."""

    def test_timeout_when_held_elsewhere(self, tmp_path):
        locks = PlayerLocks(tmp_path / "locks")
        try:
            locks.cache.add("recalculate:P1", None)
            assert locks.is_locked("P1")

            with pytest.raises(PlayerLockTimeout):
                with locks.hold("P1", timeout=0.05):
                    pass
        finally:
            locks.close()

    def test_reentrant_in_same_thread(self, tmp_path):
        locks = PlayerLocks(tmp_path / "locks")
        try:
            with locks.hold("P1", timeout=1):
                with locks.hold("P1", timeout=1):
                    assert locks.is_locked("P1")
            assert not locks.is_locked("P1")
        finally:
            locks.close()

    def test_players_lock_independently(self, tmp_path):
        locks = PlayerLocks(tmp_path / "locks")
        try:
            with locks.hold("P1"):
                with locks.hold("P2", timeout=1):
                    assert locks.is_locked("P1") and locks.is_locked("P2")
        finally:
            locks.close()
