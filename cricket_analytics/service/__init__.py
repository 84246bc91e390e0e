"""Service layer for loading player histories and orchestrating recomputation."""

from .data_loader import DataLoader, ImportSummary, PlayerHistory
from .locks import PlayerLocks, PlayerLockTimeout
from .orchestrator import (
    AnalyticsOrchestrator,
    PartialRecalculationError,
    RecalculationReport,
    SnapshotOutcome,
)

__all__ = [
    "DataLoader",
    "ImportSummary",
    "PlayerHistory",
    "PlayerLocks",
    "PlayerLockTimeout",
    "AnalyticsOrchestrator",
    "PartialRecalculationError",
    "RecalculationReport",
    "SnapshotOutcome",
]
