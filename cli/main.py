#!/usr/bin/env python3
"""
Command-line interface for the Cricket Analytics Engine

Imports match data, triggers recomputation and prints analytics
snapshots as JSON.

Usage:
    python -m cli.main import data/player.json
    python -m cli.main recalculate --player P001
    python -m cli.main show career --player P001
    python -m cli.main show batting --player P001 --format ODI --from 2020-01-01
    python -m cli.main clear --player P001
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from diagnostics import DiagConfig, diag
from cricket_analytics.analytics.filters import AnalyticsFilters
from cricket_analytics.analytics.policy import ConfigurationError, load_policy
from cricket_analytics.database.db import DEFAULT_DB_PATH, Database
from cricket_analytics.models.match import MatchFormat, MatchLevel, VenueType
from cricket_analytics.models.snapshots import SnapshotKind
from cricket_analytics.service.data_loader import DataLoader
from cricket_analytics.service.orchestrator import (
    AnalyticsOrchestrator,
    PartialRecalculationError,
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for CLI usage."""
    logger.remove()
    if verbose:
        logger.add(sys.stderr, level="DEBUG")
    else:
        logger.add(sys.stderr, level="WARNING")


def configure_diagnostics(args: argparse.Namespace) -> None:
    """Configure diagnostics from CLI flags."""
    if args.diagnostics:
        diag.configure(
            DiagConfig(
                enabled=True,
                level=args.diag_level,
                strict=args.strict,
                jsonl_path=args.diag_log,
            )
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cricket player analytics engine")
    parser.add_argument("--db", type=Path, default=DEFAULT_DB_PATH, help="SQLite database path")
    parser.add_argument("--config", default=None, help="Weighting policy YAML (default: config/analytics.yaml)")
    parser.add_argument("--lock-dir", default="data/locks", help="Directory for per-player locks")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose application logging")
    parser.add_argument("--diagnostics", action="store_true", help="Enable pipeline diagnostics")
    parser.add_argument(
        "--diag-level", choices=["lite", "normal", "verbose"], default="lite",
        help="Diagnostics verbosity level (default: lite)",
    )
    parser.add_argument("--diag-log", default=None, help="Path to write JSONL diagnostics log")
    parser.add_argument("--strict", action="store_true", help="Raise on sanity check failures")

    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import matches and performances from JSON")
    imp.add_argument("file", type=Path)

    recalc = sub.add_parser("recalculate", help="Recompute and overwrite all snapshots")
    recalc.add_argument("--player", required=True)

    show = sub.add_parser("show", help="Print a snapshot, computing it if absent")
    show.add_argument("kind", choices=[k.value for k in SnapshotKind])
    show.add_argument("--player", required=True)
    show.add_argument("--format", choices=[f.value for f in MatchFormat])
    show.add_argument("--level", choices=[lv.value for lv in MatchLevel])
    show.add_argument("--venue-type", choices=[v.value for v in VenueType])
    show.add_argument("--opponent")
    show.add_argument("--venue")
    show.add_argument("--series")
    show.add_argument("--from", dest="start_date", type=date.fromisoformat)
    show.add_argument("--to", dest="end_date", type=date.fromisoformat)

    clear = sub.add_parser("clear", help="Delete stored snapshots, or everything with --all")
    clear.add_argument("--player", default=None)
    clear.add_argument("--all", action="store_true", help="Also delete matches and performances")

    sub.add_parser("players", help="List players with recorded performances")
    return parser


def filters_from_args(args: argparse.Namespace) -> AnalyticsFilters:
    return AnalyticsFilters(
        format=MatchFormat(args.format) if args.format else None,
        level=MatchLevel(args.level) if args.level else None,
        opponent=args.opponent,
        venue=args.venue,
        series=args.series,
        venue_type=VenueType(args.venue_type) if args.venue_type else None,
        start_date=args.start_date,
        end_date=args.end_date,
    )


def run(args: argparse.Namespace) -> int:
    db = Database(args.db)
    if not db.is_initialized():
        db.initialize()

    try:
        if args.command == "import":
            summary = DataLoader(db).import_file(args.file)
            print(f"Imported {summary.matches} matches, {summary.performances} performances")
            return EXIT_OK

        if args.command == "players":
            for player_id in db.get_player_ids():
                print(player_id)
            return EXIT_OK

        if args.command == "clear" and args.all:
            db.clear()
            print("Database cleared")
            return EXIT_OK

        with AnalyticsOrchestrator(
            db, policy=load_policy(args.config), lock_dir=args.lock_dir
        ) as orchestrator:
            if args.command == "recalculate":
                report = orchestrator.recalculate_all(args.player)
                print(json.dumps(report.to_dict(), indent=2))
            elif args.command == "show":
                filters = filters_from_args(args)
                if filters.is_empty:
                    snapshot = orchestrator.get_snapshot(args.player, args.kind)
                else:
                    bundle = orchestrator.compute_filtered(args.player, filters)
                    snapshot = bundle.get(SnapshotKind(args.kind))
                print(snapshot.model_dump_json(indent=2))
            elif args.command == "clear":
                removed = orchestrator.clear(args.player)
                print(f"Removed {removed} snapshots")
        return EXIT_OK
    finally:
        db.close()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    configure_diagnostics(args)

    try:
        code = run(args)
        diag.print_checklist()
        return code
    except PartialRecalculationError as e:
        print(f"Partial failure: {e}")
        print(json.dumps(e.report.to_dict(), indent=2))
        return EXIT_PARTIAL
    except (ConfigurationError, FileNotFoundError, ValidationError) as e:
        print(f"Error: {e}")
        return EXIT_ERROR
    except Exception as e:
        print(f"Fatal error: {e}")
        logger.exception("Unhandled CLI error")
        return EXIT_ERROR
    finally:
        diag.close()


if __name__ == "__main__":
    sys.exit(main())
