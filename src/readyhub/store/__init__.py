"""Chunk store: bulk writer, reassembling reader, table management."""

from readyhub.store.errors import (
    EmptyStoreError,
    MissingStoreError,
    StoreError,
    StoreNotReadyError,
    StoreSchemaError,
    StoreUnavailableError,
    WriteFailure,
)
from readyhub.store.reader import Reassembler, ReassemblyResult, SkippedRow
from readyhub.store.table import ensure_store_table, table_exists
from readyhub.store.writer import StoreWriter, write_order

__all__ = [
    "EmptyStoreError",
    "MissingStoreError",
    "Reassembler",
    "ReassemblyResult",
    "SkippedRow",
    "StoreError",
    "StoreNotReadyError",
    "StoreSchemaError",
    "StoreUnavailableError",
    "StoreWriter",
    "WriteFailure",
    "ensure_store_table",
    "table_exists",
    "write_order",
]
