"""Store error taxonomy."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for chunk store failures."""


class StoreNotReadyError(StoreError):
    """The store has no payload yet. Retryable: run ingest first."""

    retryable = True


class MissingStoreError(StoreNotReadyError):
    """The store table does not exist."""


class EmptyStoreError(StoreNotReadyError):
    """The store table holds only its header."""


class StoreSchemaError(StoreError):
    """The store table's columns do not match the expected header."""


class WriteFailure(StoreError):
    """The bulk replace was rejected or failed verification."""


class StoreUnavailableError(StoreError):
    """The store database cannot be opened or read (damaged file, bad path)."""
