"""Vector-similarity collaborator: embeds query text and searches chunk vectors."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from code_xref.search.embedder import QueryKind
from code_xref.xref.exceptions import CollaboratorUnavailableError

if TYPE_CHECKING:
    from code_xref.search.embedder import Embedder
    from code_xref.search.lance_store import LanceStore
    from code_xref.storage.models import VectorHit


class VectorSimilarity:
    """Async facade over the embedder and the LanceDB vector table.

    Model inference and LanceDB queries block, so both run in a worker thread.
    Any failure surfaces as CollaboratorUnavailableError.
    """

    def __init__(self, embedder: Embedder, lance_store: LanceStore) -> None:
        self.embedder = embedder
        self.lance_store = lance_store

    async def embed_text(self, text: str, kind: QueryKind = QueryKind.SYMBOL) -> list[float]:
        if not self.embedder.available:
            msg = "Embedding model not loaded"
            raise CollaboratorUnavailableError(msg)
        try:
            return await asyncio.to_thread(self.embedder.embed_query, text, kind)
        except Exception as e:
            msg = f"Embedding failed: {e}"
            raise CollaboratorUnavailableError(msg) from e

    async def search_similar(
        self,
        vector: list[float],
        top_k: int = 10,
        language: str | None = None,
    ) -> list[VectorHit]:
        try:
            return await asyncio.to_thread(self.lance_store.search, vector, top_k, language)
        except Exception as e:
            msg = f"Vector search failed: {e}"
            raise CollaboratorUnavailableError(msg) from e
