"""Access log — bounded record of every ingest / fetch outcome.

Recording is a side effect only: a failure here is logged and dropped,
never raised into the operation being recorded.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone

from readyhub.db.models import LogRecord

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class AccessLogger:
    """Append-only access log with oldest-first pruning.

    Args:
        conn: Open connection to a migrated database (table ``access_log``),
            or None when the log sink is unavailable — records are then dropped.
        max_records: Retention ceiling.
    """

    def __init__(self, conn: sqlite3.Connection | None, max_records: int = 500) -> None:
        self._conn = conn
        self._max_records = max_records

    def record(self, event: LogRecord) -> None:
        """Append *event* and prune beyond ``max_records``. Never raises."""
        if self._conn is None:
            logger.warning(
                "Access log unavailable; dropped %s/%s", event.operation, event.status
            )
            return
        try:
            with self._conn:
                self._conn.execute("BEGIN")
                self._conn.execute(
                    """
                    INSERT INTO access_log (recorded_at, operation, status, detail, duration_ms)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        event.recorded_at or _utc_now(),
                        event.operation,
                        event.status,
                        event.detail,
                        event.duration_ms,
                    ),
                )
                self._conn.execute(
                    """
                    DELETE FROM access_log WHERE id NOT IN (
                        SELECT id FROM access_log ORDER BY id DESC LIMIT ?
                    )
                    """,
                    (self._max_records,),
                )
        except sqlite3.Error as exc:
            logger.warning(
                "Failed to record access log entry %s/%s: %s",
                event.operation,
                event.status,
                exc,
            )

    def recent(self, limit: int = 20) -> list[LogRecord]:
        """Return up to *limit* records, newest first."""
        if self._conn is None:
            return []
        rows = self._conn.execute(
            """
            SELECT id, recorded_at, operation, status, detail, duration_ms
            FROM access_log ORDER BY id DESC LIMIT ?
            """,
            (limit,),
        ).fetchall()
        return [_row_to_record(r) for r in rows]

    def count(self) -> int:
        if self._conn is None:
            return 0
        return self._conn.execute("SELECT COUNT(*) FROM access_log").fetchone()[0]


def _row_to_record(row: sqlite3.Row) -> LogRecord:
    return LogRecord(
        id=row["id"],
        recorded_at=row["recorded_at"],
        operation=row["operation"],
        status=row["status"],
        detail=row["detail"],
        duration_ms=row["duration_ms"],
    )
