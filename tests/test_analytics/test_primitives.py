"""
Tests for Metric Primitives

Validates cricket rate arithmetic and undefined-value handling.
"""

import pytest

from cricket_analytics.analytics import primitives


class TestBattingRates:
    """Tests for strike rate and batting average."""

    def test_strike_rate(self):
        """Runs per 100 balls."""
        assert primitives.strike_rate(50, 40) == pytest.approx(125.0)

    def test_strike_rate_no_balls(self):
        """No balls faced gives 0, not an error."""
        assert primitives.strike_rate(0, 0) == 0.0

    def test_average_excludes_not_outs(self):
        """150 runs, two innings, one not out -> 150."""
        assert primitives.batting_average(150, 2, 1) == 150.0

    def test_average_undefined_when_never_dismissed(self):
        """An all-not-out record has no average."""
        assert primitives.batting_average(73, 3, 3) is None

    def test_average_zero_is_distinct_from_undefined(self):
        """Dismissed for nothing is a real zero."""
        assert primitives.batting_average(0, 1, 0) == 0.0

    def test_boundary_percentage(self):
        assert primitives.boundary_percentage(4, 1, 44) == pytest.approx(50.0)
        assert primitives.boundary_percentage(0, 0, 0) == 0.0


class TestBowlingRates:
    """Tests for economy, bowling average and strike rate."""

    def test_economy_uses_true_overs(self):
        """64 runs from 18 overs."""
        assert primitives.economy(64, 18) == pytest.approx(3.5555, rel=1e-3)

    def test_economy_nothing_bowled(self):
        assert primitives.economy(10, 0) == 0.0

    def test_bowling_average(self):
        assert primitives.bowling_average(64, 3) == pytest.approx(21.3333, rel=1e-3)

    def test_bowling_average_without_wickets(self):
        assert primitives.bowling_average(64, 0) is None

    def test_bowling_strike_rate(self):
        assert primitives.bowling_strike_rate(60, 3) == 20.0
        assert primitives.bowling_strike_rate(60, 0) is None


class TestOvers:
    """Tests for cricket over notation."""

    @pytest.mark.parametrize(
        "overs,balls",
        [(0, 0), (10, 60), (7.3, 45), (20.5, 125), (0.1, 1)],
    )
    def test_overs_to_balls(self, overs, balls):
        assert primitives.overs_to_balls(overs) == balls

    def test_illegal_ball_count(self):
        """A seventh ball is not valid notation."""
        with pytest.raises(ValueError):
            primitives.overs_to_balls(7.6)

    def test_balls_to_overs(self):
        assert primitives.balls_to_overs(45) == 7.5

    def test_format_overs(self):
        assert primitives.format_overs(45) == "7.3"
        assert primitives.format_overs(108) == "18.0"


class TestRounding:
    """Tests for presentation rounding."""

    def test_round_rate(self):
        assert primitives.round_rate(3.5555) == 3.56

    def test_round_rate_passes_none(self):
        assert primitives.round_rate(None) is None

    def test_percentage(self):
        assert primitives.percentage(1, 4) == 25.0
        assert primitives.percentage(1, 0) == 0.0
