"""
Data Loader Service

Assembles a player's full history (performances joined to their matches)
from the database and imports raw match and performance records.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from cricket_analytics.analytics.aggregator import MatchEntry, sort_entries
from cricket_analytics.database.db import Database
from cricket_analytics.models.match import Match
from cricket_analytics.models.performance import Performance


@dataclass
class PlayerHistory:
    """A player's joined history plus the performances that could not be used."""

    player_id: str
    entries: list[MatchEntry] = field(default_factory=list)
    # Match ids of performances whose match does not exist
    orphaned_match_ids: list[str] = field(default_factory=list)
    # Match ids of performances whose innings records contradict the match format
    mismatched_match_ids: list[str] = field(default_factory=list)

    @property
    def match_count(self) -> int:
        return len(self.entries)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "player_id": self.player_id,
            "matches": self.match_count,
            "orphaned_performances": len(self.orphaned_match_ids),
            "orphaned_match_ids": self.orphaned_match_ids,
            "mismatched_performances": len(self.mismatched_match_ids),
            "mismatched_match_ids": self.mismatched_match_ids,
        }


@dataclass
class ImportSummary:
    matches: int = 0
    performances: int = 0


class DataLoader:
    """
    Reads match and performance records for the analytics engine.

    Performances referencing a match that does not exist, or whose innings
    records contradict the match format, are excluded from the history and
    reported, never treated as fatal.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def load_history(self, player_id: str) -> PlayerHistory:
        """
        Load and join a player's performances with their matches.

        Args:
            player_id: Player identifier

        Returns:
            PlayerHistory in chronological order
        """
        performances = self.db.get_performances(player_id)
        matches = {
            m.match_id: m for m in self.db.get_matches([p.match_id for p in performances])
        }

        history = PlayerHistory(player_id=player_id)
        entries = []
        for perf in performances:
            match = matches.get(perf.match_id)
            if match is None:
                history.orphaned_match_ids.append(perf.match_id)
                continue
            if not perf.fits_innings_shape(match.is_multi_innings):
                history.mismatched_match_ids.append(perf.match_id)
                continue
            entries.append(MatchEntry(match=match, performance=perf))
        history.entries = sort_entries(entries)

        if history.orphaned_match_ids:
            logger.warning(
                f"Excluded {len(history.orphaned_match_ids)} orphaned performances "
                f"for {player_id}: {', '.join(history.orphaned_match_ids)}"
            )
        if history.mismatched_match_ids:
            logger.warning(
                f"Excluded {len(history.mismatched_match_ids)} performances with innings "
                f"records that do not fit the match format for {player_id}: "
                f"{', '.join(history.mismatched_match_ids)}"
            )
        logger.info(f"Loaded {history.match_count} matches for {player_id}")
        return history

    def import_records(
        self,
        matches: list[Match],
        performances: list[Performance],
    ) -> ImportSummary:
        """Upsert matches first, then performances."""
        summary = ImportSummary()
        for match in matches:
            self.db.upsert_match(match)
            summary.matches += 1
        for perf in performances:
            self.db.upsert_performance(perf)
            summary.performances += 1
        logger.info(
            f"Imported {summary.matches} matches and {summary.performances} performances"
        )
        return summary

    def import_file(self, path: str | Path) -> ImportSummary:
        """
        Import a JSON document of the form
        ``{"matches": [...], "performances": [...]}``.

        Raises:
            pydantic.ValidationError: A record fails model validation.
        """
        with open(path) as f:
            data = json.load(f)
        matches = [Match.model_validate(m) for m in data.get("matches", [])]
        performances = [Performance.model_validate(p) for p in data.get("performances", [])]
        return self.import_records(matches, performances)
