"""Store writer — wholesale replace of the chunk table.

One ingestion run replaces the entire table inside a single transaction:
readers see either the previous contents or the complete new set, never
a mix. There is no incremental update.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from readyhub.config import MAX_CELL_CHARS
from readyhub.db.models import STORE_HEADER, ChunkRow
from readyhub.store.errors import StoreSchemaError, WriteFailure
from readyhub.store.table import ensure_store_table

if TYPE_CHECKING:
    from readyhub.ingest.classifier import ClassifiedFile

logger = logging.getLogger(__name__)


def write_order(files: Iterable[ClassifiedFile]) -> list[ClassifiedFile]:
    """Return *files* sorted by rule priority (stable for equal priorities)."""
    return sorted(files, key=lambda f: f.rule.priority)


class StoreWriter:
    """Bulk writer for the chunk store table.

    Args:
        conn: Open connection in autocommit mode (see readyhub.db.connection).
        table: Store table name.
        max_cell_chars: Per-cell size limit of the store.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        table: str,
        max_cell_chars: int = MAX_CELL_CHARS,
    ) -> None:
        self._conn = conn
        self._table = table
        self._max_cell_chars = max_cell_chars

    def replace_all(self, rows: Sequence[ChunkRow]) -> int:
        """Replace the table contents with *rows*, in the order given.

        An empty *rows* leaves the existing contents untouched.

        Returns:
            Number of rows written (0 when *rows* is empty).

        Raises:
            WriteFailure: A row exceeds the cell limit, the store rejected the
                write, or the stored row count does not match.
        """
        if not rows:
            logger.warning("No rows to write — store '%s' left unchanged", self._table)
            return 0

        for row in rows:
            if len(row.content) > self._max_cell_chars:
                raise WriteFailure(
                    f"Fragment {row.chunk_index} of '{row.filename}' is "
                    f"{len(row.content)} chars; the cell limit is {self._max_cell_chars}."
                )

        try:
            ensure_store_table(self._conn, self._table)
        except StoreSchemaError as exc:
            raise WriteFailure(str(exc)) from exc
        except sqlite3.Error as exc:
            raise WriteFailure(f"Cannot create store table '{self._table}': {exc}") from exc

        columns = ", ".join(f'"{c}"' for c in STORE_HEADER)
        placeholders = ", ".join("?" * len(STORE_HEADER))
        try:
            self._conn.execute("BEGIN IMMEDIATE")
            self._conn.execute(f'DELETE FROM "{self._table}"')
            self._conn.executemany(
                f'INSERT INTO "{self._table}" ({columns}) VALUES ({placeholders})',
                [row.as_cells() for row in rows],
            )
            stored = self._conn.execute(f'SELECT COUNT(*) FROM "{self._table}"').fetchone()[0]
            if stored != len(rows):
                raise WriteFailure(
                    f"Verification failed: wrote {len(rows)} rows, store holds {stored}."
                )
            self._conn.execute("COMMIT")
        except WriteFailure:
            self._rollback()
            raise
        except sqlite3.Error as exc:
            self._rollback()
            raise WriteFailure(f"Bulk write to '{self._table}' failed: {exc}") from exc

        logger.info("Wrote %d rows to store '%s'", len(rows), self._table)
        return len(rows)

    def _rollback(self) -> None:
        if self._conn.in_transaction:
            self._conn.execute("ROLLBACK")
