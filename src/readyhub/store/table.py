"""Chunk store table management.

The store table name is configurable, so the table is created on demand
rather than through the migration runner. Every cell is nullable: a
malformed (short) row must be representable so the reader can skip it.
"""

from __future__ import annotations

import sqlite3

from readyhub.config import TABLE_NAME_RE
from readyhub.db.models import STORE_HEADER
from readyhub.store.errors import StoreSchemaError

_COLUMN_TYPES: dict[str, str] = {
    "Filename": "TEXT",
    "Category": "TEXT",
    "Key": "TEXT",
    "ChunkIndex": "INTEGER",
    "Content": "TEXT",
    "LastUpdated": "TEXT",
}


def check_table_name(table: str) -> str:
    """Return *table* if it is a safe SQL identifier, else raise ValueError."""
    if not TABLE_NAME_RE.fullmatch(table):
        raise ValueError(f"Invalid store table name '{table}'.")
    return table


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    check_table_name(table)
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,)
    ).fetchone()
    return row is not None


def table_columns(conn: sqlite3.Connection, table: str) -> tuple[str, ...]:
    """Return the column names of *table* in declaration order."""
    check_table_name(table)
    rows = conn.execute(f'PRAGMA table_info("{table}")').fetchall()
    return tuple(r["name"] for r in rows)


def verify_header(conn: sqlite3.Connection, table: str) -> None:
    """Raise StoreSchemaError unless *table*'s columns equal STORE_HEADER."""
    columns = table_columns(conn, table)
    if columns != STORE_HEADER:
        raise StoreSchemaError(
            f"Store table '{table}' has columns {list(columns)}, "
            f"expected {list(STORE_HEADER)}."
        )


def ensure_store_table(conn: sqlite3.Connection, table: str) -> str:
    """Create the store table if it doesn't already exist and verify its header.

    Returns:
        The table name.
    """
    check_table_name(table)
    if not table_exists(conn, table):
        columns = ", ".join(f'"{name}" {_COLUMN_TYPES[name]}' for name in STORE_HEADER)
        conn.execute(f'CREATE TABLE "{table}" ({columns})')
    verify_header(conn, table)
    return table
