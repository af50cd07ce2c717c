"""Store reader — reassemble stored fragments into the dashboard payload.

Rows are grouped by compound key ``category|key``; each group's fragments
are concatenated in ``ChunkIndex`` order. Malformed rows are skipped and
reported, never fatal. A missing or empty table is fatal (run ingest first).
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass, field

from readyhub.db.models import CATEGORIES, STORE_HEADER, ReassembledPayload, compound_key
from readyhub.ingest.rules import REQUIRED_KEYS
from readyhub.store.errors import EmptyStoreError, MissingStoreError
from readyhub.store.table import table_exists, verify_header

logger = logging.getLogger(__name__)

# Filename, Category, Key, ChunkIndex, Content; LastUpdated may be absent.
MIN_COLUMNS = 5


@dataclass(frozen=True)
class SkippedRow:
    position: int  # 1-based, header excluded
    reason: str


@dataclass
class ReassemblyResult:
    payload: ReassembledPayload
    skipped: list[SkippedRow] = field(default_factory=list)
    missing_keys: list[str] = field(default_factory=list)


class FragmentSlots:
    """Fragments of one compound key, addressed by chunk index.

    Setting an index twice keeps the later value. Indices never set read
    as empty strings when joined.
    """

    def __init__(self) -> None:
        self._slots: dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def set(self, index: int, text: str) -> None:
        self._slots[index] = text

    def join(self) -> str:
        return "".join(self._slots[i] for i in sorted(self._slots))


def _trim(cells: Sequence[object]) -> list[object]:
    """Drop trailing NULL cells, so a short row reports its real width."""
    values = list(cells)
    while values and values[-1] is None:
        values.pop()
    return values


def _parse_index(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value >= 0 else None
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            return int(text)
    return None


class Reassembler:
    """Read the whole store table and rebuild the payload.

    Args:
        conn: Open database connection.
        table: Store table name.
        required_keys: Compound keys whose absence is reported.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        table: str,
        required_keys: Sequence[str] = REQUIRED_KEYS,
    ) -> None:
        self._conn = conn
        self._table = table
        self._required_keys = tuple(required_keys)

    def reassemble(self) -> ReassemblyResult:
        """Return the reassembled payload with skipped rows and missing keys.

        Raises:
            MissingStoreError: The store table does not exist.
            StoreSchemaError: The table's columns differ from the store header.
            EmptyStoreError: The table holds no data rows.
        """
        if not table_exists(self._conn, self._table):
            raise MissingStoreError(f"Store table '{self._table}' does not exist.")
        verify_header(self._conn, self._table)

        columns = ", ".join(f'"{c}"' for c in STORE_HEADER)
        rows = self._conn.execute(
            f'SELECT {columns} FROM "{self._table}" ORDER BY rowid'
        ).fetchall()
        if not rows:
            raise EmptyStoreError(f"Store table '{self._table}' has no data rows.")

        groups: dict[str, FragmentSlots] = {}
        skipped: list[SkippedRow] = []
        last_updated: str | None = None
        seen_valid = False

        for position, row in enumerate(rows, start=1):
            cells = _trim(tuple(row))
            reason = self._validate(cells)
            if reason is not None:
                logger.warning("Skipping store row %d: %s", position, reason)
                skipped.append(SkippedRow(position=position, reason=reason))
                continue

            _, category, key, raw_index, content = cells[:MIN_COLUMNS]
            if not seen_valid:
                # All rows of one run share a timestamp.
                stamp = cells[MIN_COLUMNS] if len(cells) > MIN_COLUMNS else None
                last_updated = str(stamp) if stamp not in (None, "") else None
                seen_valid = True

            slots = groups.setdefault(compound_key(str(category), str(key)), FragmentSlots())
            slots.set(_parse_index(raw_index), "" if content is None else str(content))

        payload = ReassembledPayload(last_updated=last_updated)
        for compound, slots in groups.items():
            category, _, key = compound.partition("|")
            payload.section(category)[key] = slots.join()

        missing = [k for k in self._required_keys if not payload.has(k)]
        if missing:
            logger.warning("Payload is missing required keys: %s", ", ".join(missing))

        return ReassemblyResult(payload=payload, skipped=skipped, missing_keys=missing)

    @staticmethod
    def _validate(cells: list[object]) -> str | None:
        """Return why *cells* cannot be used, or None if the row is valid."""
        if len(cells) < MIN_COLUMNS:
            return f"has {len(cells)} columns, need at least {MIN_COLUMNS}"
        category, key, raw_index = cells[1], cells[2], cells[3]
        if category in (None, "") or key in (None, ""):
            return "missing category or key"
        if category not in CATEGORIES:
            return f"unknown category {category!r}"
        if _parse_index(raw_index) is None:
            return f"invalid chunk index {raw_index!r}"
        return None
