"""Keeps the code_vec table in step with the chunk store, one file at a time."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from code_xref.search.embedder import QueryKind

if TYPE_CHECKING:
    from code_xref.search.embedder import Embedder
    from code_xref.search.lance_store import LanceStore
    from code_xref.storage.models import CodeChunk

logger = logging.getLogger(__name__)


def chunk_rows(chunks: list[CodeChunk], vectors: list[list[float]]) -> list[dict]:
    """LanceDB rows pairing each chunk with its vector."""
    return [
        {
            "id": chunk.id,
            "content": chunk.content,
            "file_path": chunk.file_path,
            "language": chunk.language,
            "kind": str(chunk.kind),
            "line_start": chunk.start_line,
            "line_end": chunk.end_line,
            "vector": vector,
        }
        for chunk, vector in zip(chunks, vectors, strict=True)
    ]


def replace_file_vectors(
    lance_store: LanceStore,
    file_path: str,
    chunks: list[CodeChunk],
    embedder: Embedder | None = None,
) -> int:
    """Drop a file's vectors, then embed and store its chunks. Returns rows written.

    Without an embedder only the stale rows are removed. Chunk content is
    embedded without an instruction prefix; lookups add theirs at query time.
    """
    lance_store.delete_file(file_path)
    if embedder is None:
        return 0

    embeddable = [c for c in chunks if c.content.strip()]
    if not embeddable:
        return 0
    vectors = embedder.embed_batch([c.content for c in embeddable], QueryKind.RAW)
    written = lance_store.add_vectors(chunk_rows(embeddable, vectors))
    logger.debug("Stored %d vectors for %s", written, file_path)
    return written
