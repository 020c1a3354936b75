"""Shared wiring for CLI commands: store, event log, optional similarity fallback."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from code_xref.logging.logger import EventLogger
from code_xref.storage.chunk_store import ChunkStore
from code_xref.xref.analyzer import CrossReferenceAnalyzer

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from code_xref.config import Config
    from code_xref.search.lance_store import LanceStore
    from code_xref.search.similarity import VectorSimilarity

logger = logging.getLogger(__name__)


def open_lance_store(config: Config) -> LanceStore | None:
    """Connected vector table, or None (logged) if LanceDB cannot be opened."""
    from code_xref.search.lance_store import LanceStore

    lance_store = LanceStore(config)
    try:
        lance_store.connect()
    except Exception:
        logger.warning("LanceDB unavailable at %s", config.lance_path, exc_info=True)
        return None
    return lance_store


def load_similarity(config: Config) -> VectorSimilarity | None:
    """Embedder + LanceDB table, or None if either cannot be brought up."""
    from code_xref.search.embedder import Embedder
    from code_xref.search.similarity import VectorSimilarity

    embedder = Embedder(config)
    if not embedder.load():
        return None

    lance_store = open_lance_store(config)
    if lance_store is None:
        return None
    return VectorSimilarity(embedder, lance_store)


@asynccontextmanager
async def open_analyzer(
    config: Config,
    *,
    semantic: bool = False,
) -> AsyncIterator[CrossReferenceAnalyzer]:
    """Connected analyzer whose events go to the JSONL log and the event_log table."""
    config.ensure_dirs()
    async with ChunkStore(config.storage_path) as store:
        # Autocommit: each event row is its own transaction.
        conn = sqlite3.connect(str(config.db_path), isolation_level=None)
        try:
            yield CrossReferenceAnalyzer(
                store,
                config,
                similarity=load_similarity(config) if semantic else None,
                event_logger=EventLogger(config.log_dir, conn),
            )
        finally:
            conn.close()
