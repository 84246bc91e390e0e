"""Database connection and helper functions for cricket performance data."""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Generator, Optional

from cricket_analytics.models.match import Match
from cricket_analytics.models.performance import Performance

# Default database path
DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "data" / "cricket_analytics.db"
SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class Database:
    """SQLite database wrapper for matches, performances and analytics snapshots."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Defaults to data/cricket_analytics.db
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    @contextmanager
    def cursor(self) -> Generator[sqlite3.Cursor, None, None]:
        """Context manager for database cursor with auto-commit."""
        with self._lock:
            cur = self.connection.cursor()
            try:
                yield cur
                self.connection.commit()
            except Exception:
                self.connection.rollback()
                raise
            finally:
                cur.close()

    def initialize(self) -> None:
        """Initialize database schema from schema.sql."""
        schema_sql = SCHEMA_PATH.read_text()
        with self.cursor() as cur:
            cur.executescript(schema_sql)

    def is_initialized(self) -> bool:
        """Check if database has been initialized with schema."""
        with self.cursor() as cur:
            cur.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='analytics_snapshots'"
            )
            return cur.fetchone() is not None

    # -------------------------------------------------------------------------
    # Match operations
    # -------------------------------------------------------------------------

    def upsert_match(self, match: Match) -> None:
        """Insert or update a match record.

        Args:
            match: Match model
        """
        with self.cursor() as cur:
            cur.execute(
                """
                INSERT INTO matches (
                    match_id, match_date, format, level, opponent, venue,
                    series, result, payload, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(match_id) DO UPDATE SET
                    match_date = excluded.match_date,
                    format = excluded.format,
                    level = excluded.level,
                    opponent = excluded.opponent,
                    venue = excluded.venue,
                    series = excluded.series,
                    result = excluded.result,
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (
                    match.match_id,
                    match.date.isoformat(),
                    match.format.value,
                    match.level.value,
                    match.opponent,
                    match.venue,
                    match.series,
                    match.result.value if match.result else None,
                    match.model_dump_json(),
                    datetime.now().isoformat(),
                ),
            )

    def get_match(self, match_id: str) -> Optional[Match]:
        """Get a match by ID.

        Returns:
            Match or None if not found
        """
        with self.cursor() as cur:
            cur.execute("SELECT payload FROM matches WHERE match_id = ?", (match_id,))
            row = cur.fetchone()
            return Match.model_validate_json(row["payload"]) if row else None

    def get_matches(self, match_ids: Optional[list[str]] = None) -> list[Match]:
        """Get matches in chronological order.

        Args:
            match_ids: Restrict to these IDs. All matches when omitted.
        """
        with self.cursor() as cur:
            if match_ids is None:
                cur.execute("SELECT payload FROM matches ORDER BY match_date, match_id")
            else:
                if not match_ids:
                    return []
                placeholders = ",".join("?" for _ in match_ids)
                cur.execute(
                    f"SELECT payload FROM matches WHERE match_id IN ({placeholders}) "
                    "ORDER BY match_date, match_id",
                    list(match_ids),
                )
            return [Match.model_validate_json(row["payload"]) for row in cur.fetchall()]

    def delete_match(self, match_id: str) -> int:
        """Delete a match together with every performance that references it.

        Returns:
            Number of performances removed
        """
        with self.cursor() as cur:
            cur.execute("DELETE FROM performances WHERE match_id = ?", (match_id,))
            removed = cur.rowcount
            cur.execute("DELETE FROM matches WHERE match_id = ?", (match_id,))
            return removed

    # -------------------------------------------------------------------------
    # Performance operations
    # -------------------------------------------------------------------------

    def upsert_performance(self, performance: Performance) -> None:
        """Insert or update a performance keyed by (player_id, match_id)."""
        with self.cursor() as cur:
            cur.execute(
                """
                INSERT INTO performances (player_id, match_id, payload, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(player_id, match_id) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (
                    performance.player_id,
                    performance.match_id,
                    performance.model_dump_json(),
                    datetime.now().isoformat(),
                ),
            )

    def get_performances(self, player_id: str) -> list[Performance]:
        """Get all performances recorded for a player."""
        with self.cursor() as cur:
            cur.execute(
                "SELECT payload FROM performances WHERE player_id = ? ORDER BY match_id",
                (player_id,),
            )
            return [Performance.model_validate_json(row["payload"]) for row in cur.fetchall()]

    def delete_performance(self, player_id: str, match_id: str) -> bool:
        with self.cursor() as cur:
            cur.execute(
                "DELETE FROM performances WHERE player_id = ? AND match_id = ?",
                (player_id, match_id),
            )
            return cur.rowcount > 0

    def get_player_ids(self) -> list[str]:
        """Get every player with at least one performance."""
        with self.cursor() as cur:
            cur.execute("SELECT DISTINCT player_id FROM performances ORDER BY player_id")
            return [row["player_id"] for row in cur.fetchall()]

    # -------------------------------------------------------------------------
    # Analytics snapshots
    # -------------------------------------------------------------------------

    def save_snapshot(
        self,
        player_id: str,
        kind: str,
        payload: str,
        last_calculated: datetime,
        calculation_version: Optional[str] = None,
    ) -> None:
        """Replace a snapshot document in a single statement."""
        with self.cursor() as cur:
            cur.execute(
                """
                INSERT INTO analytics_snapshots (
                    player_id, kind, payload, calculation_version, last_calculated
                ) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(player_id, kind) DO UPDATE SET
                    payload = excluded.payload,
                    calculation_version = excluded.calculation_version,
                    last_calculated = excluded.last_calculated
                """,
                (player_id, kind, payload, calculation_version, last_calculated.isoformat()),
            )

    def get_snapshot(self, player_id: str, kind: str) -> Optional[dict[str, Any]]:
        """Get a snapshot row.

        Returns:
            Row with payload, calculation_version and last_calculated, or None
        """
        with self.cursor() as cur:
            cur.execute(
                "SELECT * FROM analytics_snapshots WHERE player_id = ? AND kind = ?",
                (player_id, kind),
            )
            row = cur.fetchone()
            return dict(row) if row else None

    def delete_snapshots(self, player_id: Optional[str] = None) -> int:
        with self.cursor() as cur:
            if player_id is None:
                cur.execute("DELETE FROM analytics_snapshots")
            else:
                cur.execute("DELETE FROM analytics_snapshots WHERE player_id = ?", (player_id,))
            return cur.rowcount

    def clear(self) -> None:
        """Remove all data, keeping the schema."""
        with self.cursor() as cur:
            cur.execute("DELETE FROM analytics_snapshots")
            cur.execute("DELETE FROM performances")
            cur.execute("DELETE FROM matches")

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, int]:
        """Get row counts per table."""
        stats = {}
        with self.cursor() as cur:
            for table in ("matches", "performances", "analytics_snapshots"):
                cur.execute(f"SELECT COUNT(*) FROM {table}")
                stats[table] = cur.fetchone()[0]
        return stats


# Singleton instance for convenience
_db_instance: Optional[Database] = None


def get_database(db_path: Optional[Path] = None) -> Database:
    """Get database instance (singleton pattern).

    Args:
        db_path: Optional custom database path

    Returns:
        Database instance
    """
    global _db_instance
    if _db_instance is None or (db_path and _db_instance.db_path != Path(db_path)):
        _db_instance = Database(db_path)
        if not _db_instance.is_initialized():
            _db_instance.initialize()
    return _db_instance
