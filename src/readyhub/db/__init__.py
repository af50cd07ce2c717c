"""Readyhub database layer."""

from readyhub.db.connection import Database
from readyhub.db.migrations import MIGRATIONS, run_migrations
from readyhub.db.schema import initialize

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
]
