"""
Orchestrator Service

Coordinates recomputation of a player's analytics snapshots and their
persistence.

The orchestrator bridges three collaborators:
  1. DataLoader - joined match/performance history from SQLite
  2. AnalyticsEngine - pure computation of the five snapshots
  3. Database - snapshot persistence, one atomic upsert per snapshot

It is the only component that writes snapshots. Recomputes for one
player are serialised through PlayerLocks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from loguru import logger
from pydantic import BaseModel

from diagnostics import diag
from cricket_analytics.analytics.engine import AnalyticsBundle, AnalyticsEngine
from cricket_analytics.analytics.filters import AnalyticsFilters
from cricket_analytics.analytics.policy import WeightingPolicy, load_policy
from cricket_analytics.database.db import Database
from cricket_analytics.models.snapshots import (
    CALCULATION_VERSION,
    SnapshotKind,
    load_snapshot,
)
from cricket_analytics.service.data_loader import DataLoader
from cricket_analytics.service.locks import PlayerLocks

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SnapshotOutcome:
    """Result of writing one snapshot."""

    kind: SnapshotKind
    success: bool
    error: Exception | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "success": self.success,
            "error": repr(self.error) if self.error else None,
        }


@dataclass
class RecalculationReport:
    """Per-snapshot outcome of one recompute run."""

    player_id: str
    calculated_at: datetime
    matches: int = 0
    orphaned_match_ids: list[str] = field(default_factory=list)
    mismatched_match_ids: list[str] = field(default_factory=list)
    outcomes: list[SnapshotOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[SnapshotKind]:
        return [o.kind for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[SnapshotKind]:
        return [o.kind for o in self.outcomes if not o.success]

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "calculated_at": self.calculated_at.isoformat(),
            "matches": self.matches,
            "orphaned_match_ids": self.orphaned_match_ids,
            "mismatched_match_ids": self.mismatched_match_ids,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class PartialRecalculationError(RuntimeError):
    """
    One or more snapshot writes failed.

    Writes that succeeded in the same run are kept. ``report`` carries the
    per-snapshot outcomes and ``errors`` the original exceptions.
    """

    def __init__(self, report: RecalculationReport) -> None:
        self.report = report
        self.errors = {o.kind: o.error for o in report.outcomes if not o.success}
        names = ", ".join(kind.value for kind in report.failed)
        super().__init__(f"Failed to persist analytics snapshots for {report.player_id}: {names}")


class AnalyticsOrchestrator:
    """
    Main service orchestrator for analytics recomputation.

    Supports the two trigger operations: ``recalculate_all`` always
    recomputes and overwrites, ``get_snapshot`` returns the stored snapshot
    or computes and stores it when absent.
    """

    def __init__(
        self,
        db: Database,
        policy: WeightingPolicy | None = None,
        data_loader: DataLoader | None = None,
        engine: AnalyticsEngine | None = None,
        locks: PlayerLocks | None = None,
        clock: Clock | None = None,
        lock_dir: str | Path | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            db: Database holding matches, performances and snapshots
            policy: Weighting policy (loaded from config when not provided)
            data_loader: History loader (creates one if not provided)
            engine: Analytics engine (creates one from the policy if not provided)
            locks: Per-player locks (creates one if not provided)
            clock: Source of ``last_calculated`` timestamps
            lock_dir: Lock directory when ``locks`` is not provided
        """
        self.db = db
        self.policy = policy or load_policy()
        self.data_loader = data_loader or DataLoader(db)
        self.engine = engine or AnalyticsEngine(self.policy)
        self._owns_locks = locks is None
        self.locks = locks or (PlayerLocks(lock_dir) if lock_dir else PlayerLocks())
        self.clock = clock or utc_now

        logger.info(f"AnalyticsOrchestrator initialized (policy: {self.policy.source})")

    # -- recompute -----------------------------------------------------------

    def recalculate_all(self, player_id: str) -> RecalculationReport:
        """
        Recompute and replace all five snapshots for a player.

        Raises:
            PartialRecalculationError: One or more snapshot writes failed.
            sqlite3.Error: Reading the history failed.
        """
        with self.locks.hold(player_id):
            return self._recalculate(player_id)

    def _recalculate(self, player_id: str) -> RecalculationReport:
        calculated_at = self.clock()

        with diag.timer("LOAD"):
            history = self.data_loader.load_history(player_id)
        diag.event(
            "LOAD",
            {
                "matches": history.match_count,
                "orphaned": len(history.orphaned_match_ids),
                "mismatched": len(history.mismatched_match_ids),
            },
        )

        bundle = self.engine.compute(
            player_id,
            history.entries,
            calculated_at,
            orphaned_performances=len(history.orphaned_match_ids),
        )

        report = RecalculationReport(
            player_id=player_id,
            calculated_at=calculated_at,
            matches=history.match_count,
            orphaned_match_ids=list(history.orphaned_match_ids),
            mismatched_match_ids=list(history.mismatched_match_ids),
        )
        with diag.timer("PERSIST"):
            self._persist(player_id, bundle, report)
        diag.event("PERSIST", {"written": len(report.succeeded), "failed": len(report.failed)})

        if not report.ok:
            failures = [o.error for o in report.outcomes if not o.success]
            logger.error(
                f"Recalculation for {player_id} failed for "
                f"{', '.join(k.value for k in report.failed)}"
            )
            raise PartialRecalculationError(report) from failures[0]

        logger.info(f"Recalculated analytics for {player_id} ({history.match_count} matches)")
        return report

    def _persist(
        self, player_id: str, bundle: AnalyticsBundle, report: RecalculationReport
    ) -> None:
        # Snapshots are independent; a failed write does not undo earlier ones
        for kind, snapshot in bundle.items():
            try:
                self._write(player_id, kind, snapshot)
            except Exception as e:
                logger.error(f"Failed to write {kind.value} snapshot for {player_id}: {e}")
                report.outcomes.append(SnapshotOutcome(kind=kind, success=False, error=e))
            else:
                report.outcomes.append(SnapshotOutcome(kind=kind, success=True))

    def _write(self, player_id: str, kind: SnapshotKind, snapshot: BaseModel) -> None:
        self.db.save_snapshot(
            player_id,
            kind.value,
            snapshot.model_dump_json(),
            snapshot.last_calculated,
            CALCULATION_VERSION if kind == SnapshotKind.ADVANCED else None,
        )

    # -- read path -----------------------------------------------------------

    def _read(self, player_id: str, kind: SnapshotKind) -> BaseModel | None:
        row = self.db.get_snapshot(player_id, kind.value)
        if row is None:
            return None
        if kind == SnapshotKind.ADVANCED and row["calculation_version"] != CALCULATION_VERSION:
            logger.info(
                f"Advanced snapshot for {player_id} is version "
                f"{row['calculation_version']}, recomputing"
            )
            return None
        return load_snapshot(kind, row["payload"])

    def get_snapshot(self, player_id: str, kind: SnapshotKind | str) -> BaseModel:
        """
        Return the stored snapshot, computing every snapshot if it is absent.

        Double-checked: the absent case re-reads under the player lock so
        concurrent readers trigger at most one recompute.
        """
        kind = SnapshotKind(kind)
        snapshot = self._read(player_id, kind)
        if snapshot is not None:
            return snapshot

        with self.locks.hold(player_id):
            snapshot = self._read(player_id, kind)
            if snapshot is not None:
                return snapshot
            logger.info(f"No {kind.value} snapshot for {player_id}, computing")
            self._recalculate(player_id)
            snapshot = self._read(player_id, kind)

        if snapshot is None:
            raise LookupError(f"{kind.value} snapshot for {player_id} missing after recompute")
        return snapshot

    def compute_filtered(
        self, player_id: str, filters: AnalyticsFilters
    ) -> AnalyticsBundle:
        """Compute snapshots over a filtered history without persisting them."""
        history = self.data_loader.load_history(player_id)
        entries = filters.apply(history.entries)
        logger.info(f"Filtered {history.match_count} matches to {len(entries)} for {player_id}")
        return self.engine.compute(
            player_id,
            entries,
            self.clock(),
            orphaned_performances=len(history.orphaned_match_ids),
        )

    def clear(self, player_id: str | None = None) -> int:
        """Drop stored snapshots; they are rebuilt on the next read."""
        removed = self.db.delete_snapshots(player_id)
        logger.info(f"Cleared {removed} analytics snapshots")
        return removed

    # -- lifecycle -----------------------------------------------------------

    def close(self) -> None:
        if self._owns_locks:
            self.locks.close()

    def __enter__(self) -> "AnalyticsOrchestrator":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
