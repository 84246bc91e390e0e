"""
CLI Module for the Cricket Analytics Engine

Command-line front end for importing data, recomputing analytics and
printing snapshots.

Usage:
    python -m cli.main --help
"""

from cli.main import main, run

__all__ = ["main", "run"]
