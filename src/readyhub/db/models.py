"""Domain models for the readyhub store, payload and access log."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

# Column names of the chunk store, in storage order.
STORE_HEADER: tuple[str, ...] = (
    "Filename",
    "Category",
    "Key",
    "ChunkIndex",
    "Content",
    "LastUpdated",
)

CATEGORIES: tuple[str, ...] = ("config", "data")


def compound_key(category: str, key: str) -> str:
    """Return the ``category|key`` grouping key used during reassembly."""
    return f"{category}|{key}"


@dataclass(frozen=True)
class ChunkRow:
    filename: str
    category: str
    key: str
    chunk_index: int
    content: str
    last_updated: str

    @property
    def compound_key(self) -> str:
        return compound_key(self.category, self.key)

    def as_cells(self) -> tuple[str, str, str, int, str, str]:
        """Cell values in ``STORE_HEADER`` order."""
        return (
            self.filename,
            self.category,
            self.key,
            self.chunk_index,
            self.content,
            self.last_updated,
        )


@dataclass
class ReassembledPayload:
    """Structured payload served to the dashboard.

    ``config`` and ``data`` values are opaque file contents; nested formats
    are parsed by the consumer, never here.
    """

    config: dict[str, str] = field(default_factory=dict)
    data: dict[str, str] = field(default_factory=dict)
    last_updated: str | None = None

    def section(self, category: str) -> dict[str, str]:
        if category == "config":
            return self.config
        if category == "data":
            return self.data
        raise ValueError(f"Unknown category: {category!r}")

    def has(self, compound: str) -> bool:
        category, _, key = compound.partition("|")
        return category in CATEGORIES and key in self.section(category)

    def to_dict(self) -> dict:
        return {
            "config": dict(self.config),
            "data": dict(self.data),
            "meta": {"lastUpdated": self.last_updated},
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


@dataclass
class LogRecord:
    operation: str
    status: str
    detail: str = ""
    duration_ms: int | None = None
    recorded_at: str | None = None
    id: int | None = None  # set once persisted
