"""
Cricket Analytics Diagnostics Module

Structured observability for the recompute pipeline that leaves the
computed numbers untouched. Emits checkpoint events at fixed pipeline
boundaries: LOAD, AGGREGATE, ROLLUP, ADVANCED, PERSIST.

Usage:
    from diagnostics import diag, DiagConfig

    diag.configure(DiagConfig(enabled=True, level="normal"))

    with diag.timer("LOAD"):
        history = loader.load_history(player_id)
    diag.event("LOAD", {"matches": history.match_count})

    diag.print_checklist()
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, TextIO

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

VALID_LEVELS = ("lite", "normal", "verbose")
STAGE_ORDER = ("LOAD", "AGGREGATE", "ROLLUP", "ADVANCED", "PERSIST")
_EVENT_META = ("stage", "level", "ts", "elapsed")


@dataclass
class DiagConfig:
    """Central diagnostics configuration."""

    enabled: bool = False
    level: str = "lite"  # lite | normal | verbose
    strict: bool = False  # raise on sanity failures instead of warn
    jsonl_path: str | None = None  # optional .jsonl event log

    def __post_init__(self) -> None:
        if self.level not in VALID_LEVELS:
            self.level = "lite"


# ---------------------------------------------------------------------------
# Logger setup (stdlib logging, kept apart from the loguru application log)
# ---------------------------------------------------------------------------

_diag_logger = logging.getLogger("cricket.diagnostics")
_diag_logger.propagate = False

_console_handler: logging.StreamHandler | None = None


def _ensure_handler() -> None:
    """Attach the console handler once."""
    global _console_handler
    if _console_handler is None:
        _console_handler = logging.StreamHandler()
        _console_handler.setFormatter(logging.Formatter("[DIAG][%(levelname)s] %(message)s"))
        _diag_logger.addHandler(_console_handler)
        _diag_logger.setLevel(logging.DEBUG)


def numeric_stats(values: list[float | int], name: str) -> dict[str, Any]:
    """Compute count/min/max/mean for a list of numbers."""
    if not values:
        return {"name": name, "count": 0}
    return {
        "name": name,
        "count": len(values),
        "min": round(min(values), 4),
        "max": round(max(values), 4),
        "mean": round(sum(values) / len(values), 4),
    }


# ---------------------------------------------------------------------------
# Stage and warning records
# ---------------------------------------------------------------------------


@dataclass
class SanityWarning:
    """A failed sanity check."""

    name: str
    message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class _StageRecord:
    """Timings and events for one pipeline stage. Stages may run repeatedly."""

    stage: str
    runs: int = 0
    total_seconds: float = 0.0
    events: list[dict[str, Any]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Core Diagnostics Engine
# ---------------------------------------------------------------------------


class DiagnosticsEngine:
    """Process-wide diagnostics collector; a no-op until enabled."""

    def __init__(self) -> None:
        self._config = DiagConfig()
        self._started: float = time.time()
        self._stages: dict[str, _StageRecord] = {}
        self._warnings: list[SanityWarning] = []
        self._jsonl: TextIO | None = None

    # -- configuration -------------------------------------------------------

    def configure(self, config: DiagConfig) -> None:
        """Apply a new configuration and start a fresh run."""
        self.close()
        self._config = config
        if not config.enabled:
            return
        _ensure_handler()
        self.reset()
        if config.jsonl_path:
            try:
                self._jsonl = open(config.jsonl_path, "w")
            except OSError as e:
                _diag_logger.warning(f"Cannot open {config.jsonl_path}: {e}")

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def level(self) -> str:
        return self._config.level

    @property
    def warnings(self) -> list[SanityWarning]:
        return list(self._warnings)

    def reset(self) -> None:
        """Reset all state for a fresh run."""
        self._started = time.time()
        self._stages = {}
        self._warnings = []

    def stage_runs(self, stage: str) -> int:
        rec = self._stages.get(stage)
        return rec.runs if rec else 0

    # -- timing --------------------------------------------------------------

    @contextmanager
    def timer(self, stage: str) -> Generator[None, None, None]:
        """Accumulate wall-clock time spent in *stage*."""
        if not self.enabled:
            yield
            return

        rec = self._stages.setdefault(stage, _StageRecord(stage=stage))
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            rec.runs += 1
            rec.total_seconds += elapsed
            _diag_logger.info(f"[{stage}] completed in {elapsed:.3f}s")

    # -- events --------------------------------------------------------------

    def event(self, stage: str, summary: dict[str, Any], level: str = "lite") -> None:
        """Record a structured checkpoint.

        Args:
            stage: Pipeline stage name (LOAD, AGGREGATE, ROLLUP, ADVANCED, PERSIST).
            summary: Key-value summary.
            level: Minimum diagnostics level at which the event is kept.
        """
        if not self.enabled:
            return
        if VALID_LEVELS.index(level) > VALID_LEVELS.index(self._config.level):
            return

        now = time.time()
        entry = {"stage": stage, "level": level, "ts": now, "elapsed": now - self._started}
        entry.update(summary)
        self._stages.setdefault(stage, _StageRecord(stage=stage)).events.append(entry)
        _diag_logger.info(f"[{stage}] {_format_summary(summary)}")

        if self._jsonl is not None:
            self._jsonl.write(json.dumps(entry, default=str) + "\n")
            self._jsonl.flush()

    # -- sanity checks -------------------------------------------------------

    def assert_sanity(
        self,
        name: str,
        value: Any,
        expected_range: tuple[float, float] | None = None,
        non_null: bool = True,
    ) -> None:
        """Warn (or raise in strict mode) when a value looks wrong.

        Args:
            name: Label for the check.
            value: Value under test.
            expected_range: Optional inclusive (min, max).
            non_null: Treat None, 0 and "" as failures.
        """
        if not self.enabled:
            return

        message = None
        if non_null and value in (None, 0, ""):
            message = f"Expected non-null, got {value!r}"
        elif expected_range is not None and value is not None:
            lo, hi = expected_range
            if not lo <= float(value) <= hi:
                message = f"Value {value} outside expected range [{lo}, {hi}]"

        if message is None:
            return
        self._warnings.append(SanityWarning(name, message))
        _diag_logger.warning(f"SANITY [{name}]: {message}")
        if self._config.strict:
            raise ValueError(f"Strict sanity failure [{name}]: {message}")

    # -- checklist -----------------------------------------------------------

    def checklist(self) -> str:
        """Render the end-of-run summary."""
        lines = [
            "",
            "=" * 62,
            "  DIAGNOSTICS CHECKLIST",
            "=" * 62,
            f"  Total runtime:  {time.time() - self._started:.3f}s",
            "",
            "  Stage timings:",
        ]
        for stage in STAGE_ORDER:
            rec = self._stages.get(stage)
            if rec and rec.runs:
                lines.append(f"    [{stage:>9}]  {rec.total_seconds:.3f}s over {rec.runs} run(s)")
            else:
                lines.append(f"    [{stage:>9}]  (not recorded)")

        lines += ["", "  Key counts:"]
        for stage in STAGE_ORDER:
            rec = self._stages.get(stage)
            if rec is None or not rec.events:
                continue
            last = rec.events[-1]
            for key, value in last.items():
                if key in _EVENT_META:
                    continue
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    lines.append(f"    {stage.lower()}.{key}: {value}")

        lines.append("")
        if self._warnings:
            lines.append(f"  Sanity warnings: {len(self._warnings)}")
            lines += [f"    ! [{w.name}] {w.message}" for w in self._warnings]
        else:
            lines.append("  Sanity warnings: 0 (all clear)")
        lines += ["", "=" * 62]
        return "\n".join(lines)

    def print_checklist(self) -> None:
        if not self.enabled:
            return
        output = self.checklist()
        _diag_logger.info(output)
        print(output)

    # -- teardown ------------------------------------------------------------

    def close(self) -> None:
        """Close the event log if one is open."""
        if self._jsonl is not None:
            self._jsonl.close()
            self._jsonl = None


def _format_summary(summary: dict[str, Any], max_width: int = 200) -> str:
    """Compact one-line rendering of a summary dict."""
    parts = []
    for key, value in summary.items():
        if isinstance(value, dict):
            inner = ", ".join(f"{k}={v}" for k, v in list(value.items())[:4])
            parts.append(f"{key}={{{inner}}}")
        elif isinstance(value, list):
            parts.append(f"{key}=[{len(value)} items]")
        elif isinstance(value, float):
            parts.append(f"{key}={value:.4f}")
        else:
            parts.append(f"{key}={value}")
    line = " | ".join(parts)
    return line if len(line) <= max_width else line[:max_width] + "..."


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

diag = DiagnosticsEngine()
