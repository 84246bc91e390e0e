"""
Weighting Policy

Named, externally supplied coefficients for the advanced metrics: format
baselines for the per-match score, situational importance weights,
pressure threshold, player value weights and role multipliers.

Policies are loaded from ``config/analytics.yaml``. A missing weight is a
configuration error naming the weight; nothing is silently defaulted
once a policy document has been supplied.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from cricket_analytics.models.match import (
    MatchFormat,
    MatchLevel,
    MatchResult,
    MatchType,
    VenueType,
)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "analytics.yaml"

DISCIPLINES = ("batting", "bowling", "fielding")
ROLES = ("batsman", "bowler", "all_rounder", "wicketkeeper")
# Every member of each enum needs a weight
IMPORTANCE_FACTORS = {
    "result": MatchResult,
    "venue_type": VenueType,
    "match_type": MatchType,
    "level": MatchLevel,
}


class ConfigurationError(ValueError):
    """Raised when a weighting policy document is malformed."""


class MissingWeightError(ConfigurationError):
    """Raised when a required weight is absent from the policy."""

    def __init__(self, weight_name: str) -> None:
        self.weight_name = weight_name
        super().__init__(f"Missing required weight: {weight_name}")


@dataclass(frozen=True)
class FormatBaseline:
    """Par runs and wickets per match for a format; a par match scores 100."""

    runs: float
    wickets: float


@dataclass(frozen=True)
class WeightingPolicy:
    """Validated advanced-metrics configuration."""

    format_baselines: dict[str, FormatBaseline]
    score_cap: float
    importance_weights: dict[str, dict[str, float]]
    pressure_threshold: float
    value_weights: dict[str, float]
    role_multipliers: dict[str, dict[str, float]]
    fielding_points: dict[str, float]
    all_rounder_threshold: float
    keeper_share: float
    form_decay: float
    trend_epsilon: float
    short_window: int
    long_window: int
    max_cv: float
    milestone_horizon: float
    high_impact_score: float
    source: str = field(default="defaults", compare=False)

    def baseline(self, match_format: str) -> FormatBaseline:
        try:
            return self.format_baselines[match_format]
        except KeyError:
            raise MissingWeightError(f"format_baselines.{match_format}") from None

    def importance(self, factor: str, value: str | None) -> float:
        """Weight for one situational factor; an unrecorded value weighs 1.0."""
        if value is None:
            return 1.0
        try:
            return self.importance_weights[factor][value]
        except KeyError:
            raise MissingWeightError(f"importance_weights.{factor}.{value}") from None

    @classmethod
    def from_dict(cls, config: dict[str, Any], source: str = "dict") -> "WeightingPolicy":
        """Build a policy, failing fast on the first missing weight."""
        if not isinstance(config, dict):
            raise ConfigurationError("Weighting policy must be a mapping")

        def require(mapping: dict[str, Any], key: str, path: str) -> Any:
            if not isinstance(mapping, dict) or key not in mapping or mapping[key] is None:
                raise MissingWeightError(path)
            return mapping[key]

        def number(mapping: dict[str, Any], key: str, path: str) -> float:
            value = require(mapping, key, path)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"Weight {path} must be numeric, got {value!r}")
            return float(value)

        baselines_cfg = require(config, "format_baselines", "format_baselines")
        baselines = {}
        for fmt in (f.value for f in MatchFormat):
            values = require(baselines_cfg, fmt, f"format_baselines.{fmt}")
            runs = number(values, "runs", f"format_baselines.{fmt}.runs")
            wickets = number(values, "wickets", f"format_baselines.{fmt}.wickets")
            if runs <= 0 or wickets <= 0:
                raise ConfigurationError(f"Baselines for {fmt} must be positive")
            baselines[fmt] = FormatBaseline(runs=runs, wickets=wickets)

        importance_cfg = require(config, "importance_weights", "importance_weights")
        importance = {}
        for factor, members in IMPORTANCE_FACTORS.items():
            section = require(importance_cfg, factor, f"importance_weights.{factor}")
            importance[factor] = {
                m.value: number(section, m.value, f"importance_weights.{factor}.{m.value}")
                for m in members
            }

        value_cfg = require(config, "value_weights", "value_weights")
        value_weights = {d: number(value_cfg, d, f"value_weights.{d}") for d in DISCIPLINES}

        roles_cfg = require(config, "role_multipliers", "role_multipliers")
        role_multipliers = {}
        for role in ROLES:
            section = require(roles_cfg, role, f"role_multipliers.{role}")
            role_multipliers[role] = {
                d: number(section, d, f"role_multipliers.{role}.{d}") for d in DISCIPLINES
            }

        fielding_cfg = require(config, "fielding_points", "fielding_points")
        fielding_points = {
            k: number(fielding_cfg, k, f"fielding_points.{k}")
            for k in ("catch", "stumping", "run_out")
        }

        roles = require(config, "role_classification", "role_classification")
        form = require(config, "form", "form")
        consistency = require(config, "consistency", "consistency")
        milestones = require(config, "milestones", "milestones")

        policy = cls(
            format_baselines=baselines,
            score_cap=number(config, "score_cap", "score_cap"),
            importance_weights=importance,
            pressure_threshold=number(config, "pressure_threshold", "pressure_threshold"),
            value_weights=value_weights,
            role_multipliers=role_multipliers,
            fielding_points=fielding_points,
            all_rounder_threshold=number(
                roles, "all_rounder_threshold", "role_classification.all_rounder_threshold"
            ),
            keeper_share=number(roles, "keeper_share", "role_classification.keeper_share"),
            form_decay=number(form, "decay", "form.decay"),
            trend_epsilon=number(form, "trend_epsilon", "form.trend_epsilon"),
            short_window=int(number(form, "short_window", "form.short_window")),
            long_window=int(number(form, "long_window", "form.long_window")),
            max_cv=number(consistency, "max_cv", "consistency.max_cv"),
            milestone_horizon=number(milestones, "horizon", "milestones.horizon"),
            high_impact_score=number(
                config, "high_impact_score", "high_impact_score"
            ),
            source=source,
        )
        if not 0 < policy.form_decay < 1:
            raise ConfigurationError("form.decay must be between 0 and 1")
        if policy.short_window < 2 or policy.long_window < policy.short_window:
            raise ConfigurationError("form windows must satisfy 2 <= short_window <= long_window")
        if policy.max_cv <= 0 or policy.milestone_horizon <= 0:
            raise ConfigurationError("consistency.max_cv and milestones.horizon must be positive")
        return policy


def default_policy_config() -> dict[str, Any]:
    """Built-in policy used when no config file is present."""
    return copy.deepcopy(_DEFAULT_POLICY)


def load_policy(config_path: str | Path | None = None) -> WeightingPolicy:
    """
    Load the weighting policy from YAML.

    Args:
        config_path: Explicit policy file. When omitted the project default
            is used, falling back to built-in values if that file is absent.

    Raises:
        FileNotFoundError: An explicit ``config_path`` does not exist.
        MissingWeightError: A required weight is absent.
    """
    if config_path is None:
        path = DEFAULT_CONFIG_PATH
        if not path.exists():
            logger.warning(f"Analytics config not found at {path}, using defaults")
            return WeightingPolicy.from_dict(default_policy_config(), source="defaults")
    else:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}
    logger.debug(f"Loaded analytics policy from {path}")
    return WeightingPolicy.from_dict(config, source=str(path))


_DEFAULT_POLICY: dict[str, Any] = {
    "format_baselines": {
        "Test": {"runs": 50, "wickets": 3},
        "First-class": {"runs": 50, "wickets": 3},
        "ODI": {"runs": 40, "wickets": 2},
        "List-A": {"runs": 40, "wickets": 2},
        "T20": {"runs": 30, "wickets": 1.5},
        "T20-domestic": {"runs": 30, "wickets": 1.5},
    },
    "score_cap": 300,
    "importance_weights": {
        "result": {"won": 1.0, "lost": 1.2, "tie": 1.3, "draw": 1.0, "no_result": 1.0},
        "venue_type": {"home": 1.0, "away": 1.15, "neutral": 1.05},
        "match_type": {"group": 1.0, "regular": 1.0, "knockout": 1.3, "final": 1.5},
        "level": {
            "school": 0.6,
            "club": 0.7,
            "under19": 0.8,
            "domestic": 0.9,
            "ranji": 0.95,
            "list-a": 0.95,
            "ipl": 1.1,
            "international": 1.2,
        },
    },
    "pressure_threshold": 1.3,
    "high_impact_score": 150,
    "value_weights": {"batting": 0.45, "bowling": 0.4, "fielding": 0.15},
    "role_multipliers": {
        "batsman": {"batting": 1.2, "bowling": 0.6, "fielding": 1.0},
        "bowler": {"batting": 0.6, "bowling": 1.2, "fielding": 1.0},
        "all_rounder": {"batting": 1.0, "bowling": 1.0, "fielding": 1.0},
        "wicketkeeper": {"batting": 1.1, "bowling": 0.3, "fielding": 1.5},
    },
    "fielding_points": {"catch": 10, "stumping": 12, "run_out": 15},
    "role_classification": {"all_rounder_threshold": 40, "keeper_share": 0.5},
    "form": {"decay": 0.8, "trend_epsilon": 2.0, "short_window": 5, "long_window": 10},
    "consistency": {"max_cv": 2.0},
    "milestones": {"horizon": 50},
}
