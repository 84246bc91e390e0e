"""Database module for cricket performance and analytics storage."""

from .db import Database, get_database

__all__ = ["Database", "get_database"]
