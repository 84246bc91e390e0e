"""Tests for the pipeline diagnostics collector."""

import json

import pytest

from diagnostics import DiagConfig, DiagnosticsEngine, numeric_stats


@pytest.fixture
def engine():
    diag = DiagnosticsEngine()
    yield diag
    diag.close()


class TestDiagnosticsEngine:
    """Tests for events, timers and sanity checks."""

    def test_disabled_is_a_no_op(self, engine):
        with engine.timer("LOAD"):
            pass
        engine.event("LOAD", {"matches": 3})
        engine.assert_sanity("x", None)

        assert engine.stage_runs("LOAD") == 0
        assert engine.warnings == []

    def test_events_and_timers(self, engine):
        engine.configure(DiagConfig(enabled=True))
        with engine.timer("LOAD"):
            pass
        engine.event("LOAD", {"matches": 3})
        engine.event("LOAD", {"detail": 1}, level="verbose")

        assert engine.stage_runs("LOAD") == 1
        checklist = engine.checklist()
        assert "load.matches: 3" in checklist
        assert "detail" not in checklist

    def test_jsonl_log(self, engine, tmp_path):
        path = tmp_path / "diag.jsonl"
        engine.configure(DiagConfig(enabled=True, jsonl_path=str(path)))
        engine.event("PERSIST", {"written": 5})
        engine.close()

        record = json.loads(path.read_text().splitlines()[0])
        assert record["stage"] == "PERSIST"
        assert record["written"] == 5

    def test_sanity_warning(self, engine):
        engine.configure(DiagConfig(enabled=True))
        engine.assert_sanity("consistency", 140, expected_range=(0, 100), non_null=False)

        assert [w.name for w in engine.warnings] == ["consistency"]

    def test_strict_mode_raises(self, engine):
        engine.configure(DiagConfig(enabled=True, strict=True))
        with pytest.raises(ValueError):
            engine.assert_sanity("matches", 0)

    def test_unknown_level_falls_back(self):
        assert DiagConfig(level="loud").level == "lite"

    def test_numeric_stats(self):
        assert numeric_stats([], "empty") == {"name": "empty", "count": 0}
        assert numeric_stats([1, 3], "xs")["mean"] == 2.0
