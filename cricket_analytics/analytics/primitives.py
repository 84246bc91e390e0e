"""
Metric Primitives

Cricket rate arithmetic over already-summed numerators and denominators.

Functions return ``None`` where a rate is algebraically undefined (an
average with no dismissals) so callers can tell "undefined" apart from a
genuine zero. Strike rate and economy fall back to 0 for empty
denominators. Nothing here rounds; rounding is applied once at the
snapshot boundary via :func:`round_rate`.
"""

from __future__ import annotations

import math

BALLS_PER_OVER = 6


def strike_rate(runs: int | float, balls_faced: int | float) -> float:
    """Runs per 100 balls faced, 0 when no balls were faced."""
    if balls_faced > 0:
        return runs / balls_faced * 100
    return 0.0


def economy(runs_conceded: int | float, overs_bowled: float) -> float:
    """Runs conceded per over, 0 when nothing was bowled.

    ``overs_bowled`` is a true decimal over count (``balls / 6``), not
    cricket notation. Use :func:`balls_to_overs` to convert.
    """
    if overs_bowled > 0:
        return runs_conceded / overs_bowled
    return 0.0


def batting_average(runs: int | float, innings: int, not_outs: int) -> float | None:
    """Runs per dismissal, ``None`` when the batter was never dismissed."""
    dismissals = innings - not_outs
    if dismissals > 0:
        return runs / dismissals
    return None


def bowling_average(runs_conceded: int | float, wickets: int) -> float | None:
    """Runs conceded per wicket, ``None`` without a wicket."""
    if wickets > 0:
        return runs_conceded / wickets
    return None


def bowling_strike_rate(balls_bowled: int, wickets: int) -> float | None:
    """Balls bowled per wicket, ``None`` without a wicket."""
    if wickets > 0:
        return balls_bowled / wickets
    return None


def overs_to_balls(overs: float) -> int:
    """Convert cricket notation (``7.3`` = 7 overs 3 balls) to balls.

    Raises:
        ValueError: If the part after the point is not a legal ball count.
    """
    completed = math.floor(overs)
    extra = round((overs - completed) * 10)
    if extra >= BALLS_PER_OVER or extra < 0:
        raise ValueError(f"Invalid overs value {overs}: ball part must be 0-5")
    return completed * BALLS_PER_OVER + extra


def balls_to_overs(balls: int) -> float:
    """True decimal overs for rate arithmetic (``45`` balls -> ``7.5``)."""
    return balls / BALLS_PER_OVER


def format_overs(balls: int) -> str:
    """Cricket notation string (``45`` balls -> ``"7.3"``)."""
    return f"{balls // BALLS_PER_OVER}.{balls % BALLS_PER_OVER}"


def boundary_percentage(fours: int, sixes: int, runs: int) -> float:
    """Share of runs scored in boundaries."""
    if runs > 0:
        return (fours * 4 + sixes * 6) / runs * 100
    return 0.0


def percentage(part: int | float, whole: int | float) -> float:
    if whole > 0:
        return part / whole * 100
    return 0.0


def round_rate(value: float | None, digits: int = 2) -> float | None:
    """Presentation rounding that passes undefined values through."""
    if value is None:
        return None
    return round(value, digits)
