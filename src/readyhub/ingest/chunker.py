"""Fixed-size fragment chunker.

Splits file content at fixed character offsets so each fragment fits in
one store cell. Splits ignore record boundaries; concatenating the
fragments in index order restores the original text exactly.
"""

from __future__ import annotations

from readyhub.db.models import ChunkRow
from readyhub.ingest.classifier import ClassifiedFile


def split_fixed(content: str, max_fragment_size: int) -> list[str]:
    """Split *content* into consecutive slices of at most *max_fragment_size* chars.

    Empty content yields a single empty fragment so the file is still
    recorded downstream.
    """
    if max_fragment_size < 1:
        raise ValueError("max_fragment_size must be >= 1")
    if not content:
        return [""]
    return [
        content[pos : pos + max_fragment_size]
        for pos in range(0, len(content), max_fragment_size)
    ]


class FragmentChunker:
    """Turn classified files into store rows.

    Unlike retrieval chunkers there is no overlap and no whitespace
    stripping: fragments must concatenate back to the source byte for byte.
    """

    def __init__(self, max_fragment_size: int = 45_000) -> None:
        if max_fragment_size < 1:
            raise ValueError("max_fragment_size must be >= 1")
        self.max_fragment_size = max_fragment_size

    def split(self, content: str) -> list[str]:
        return split_fixed(content, self.max_fragment_size)

    def chunk(self, file: ClassifiedFile, last_updated: str) -> list[ChunkRow]:
        """Return rows for *file* with contiguous 0-based ``chunk_index``.

        Args:
            file: Classified source file.
            last_updated: Ingestion-run timestamp stamped on every row.
        """
        return [
            ChunkRow(
                filename=file.name,
                category=file.rule.category,
                key=file.rule.key,
                chunk_index=i,
                content=fragment,
                last_updated=last_updated,
            )
            for i, fragment in enumerate(self.split(file.content))
        ]
