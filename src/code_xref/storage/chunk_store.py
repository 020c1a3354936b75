"""Async SQLite chunk store: the code entity store queried by the index builder."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite

from code_xref.storage.migrations import migrate
from code_xref.storage.models import ChunkQuery, CodeChunk, StoreStats

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

DB_FILENAME = "chunks.db"

_COLUMNS = (
    "id",
    "kind",
    "name",
    "content",
    "file_path",
    "language",
    "start_line",
    "end_line",
    "start_column",
    "end_column",
    "signature",
    "documentation",
    "dependencies",
    "metadata",
    "timestamp",
)


def _row_to_chunk(row: aiosqlite.Row) -> CodeChunk:
    """Hydrate a CodeChunk from a chunks row. Malformed JSON columns raise."""
    data = dict(row)
    data["dependencies"] = json.loads(data["dependencies"] or "[]")
    data["metadata"] = json.loads(data["metadata"]) if data["metadata"] else None
    return CodeChunk(**data)


def _chunk_to_params(chunk: CodeChunk) -> tuple:
    return (
        chunk.id,
        str(chunk.kind),
        chunk.name,
        chunk.content,
        chunk.file_path,
        chunk.language,
        chunk.start_line,
        chunk.end_line,
        chunk.start_column,
        chunk.end_column,
        chunk.signature,
        chunk.documentation,
        json.dumps(chunk.dependencies),
        json.dumps(chunk.metadata) if chunk.metadata is not None else None,
        chunk.timestamp,
    )


class ChunkStore:
    """Chunk storage on a single aiosqlite connection.

    Call ``connect()`` (or use ``async with``) before any query. The schema is
    migrated with a short-lived sync connection first.
    """

    def __init__(self, storage_path: Path) -> None:
        self.storage_path = storage_path
        self.db_path = storage_path / DB_FILENAME
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Create the storage directory, migrate, and open the async connection."""
        if self._db is not None:
            return
        self.storage_path.mkdir(parents=True, exist_ok=True)

        sync_conn = sqlite3.connect(str(self.db_path))
        try:
            migrate(sync_conn)
        finally:
            sync_conn.close()

        db = await aiosqlite.connect(str(self.db_path))
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA journal_mode=WAL")
        await db.execute("PRAGMA busy_timeout=3000")
        self._db = db

    async def close(self) -> None:
        """Close the database connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> ChunkStore:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            msg = "ChunkStore is not connected; call connect() first"
            raise RuntimeError(msg)
        return self._db

    def get_storage_path(self) -> Path:
        """Directory holding the chunk database and the cross-reference snapshots."""
        return self.storage_path

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------
    async def store_chunks(self, chunks: Iterable[CodeChunk]) -> int:
        """Insert or replace chunks by id. Returns the number written."""
        params = [_chunk_to_params(c) for c in chunks]
        if not params:
            return 0
        placeholders = ", ".join("?" for _ in _COLUMNS)
        await self.db.executemany(
            f"INSERT OR REPLACE INTO chunks ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
            params,
        )
        await self.db.commit()
        return len(params)

    async def remove_chunks_by_file(self, file_path: str) -> int:
        """Delete every chunk of a file. Returns the number removed."""
        cursor = await self.db.execute("DELETE FROM chunks WHERE file_path = ?", (file_path,))
        await self.db.commit()
        return cursor.rowcount

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------
    async def search_chunks(self, query: ChunkQuery | None = None) -> list[CodeChunk]:
        """Return chunks matching every set field of ``query``, in insertion order.

        An empty or missing query returns every stored chunk.
        """
        query = query or ChunkQuery()
        sql = "SELECT * FROM chunks WHERE 1=1"
        params: list = []
        if query.file_path is not None:
            sql += " AND file_path = ?"
            params.append(query.file_path)
        if query.language is not None:
            sql += " AND language = ?"
            params.append(query.language)
        if query.kind is not None:
            sql += " AND kind = ?"
            params.append(str(query.kind))
        if query.name is not None:
            sql += " AND name = ?"
            params.append(query.name)
        if query.content:
            sql += " AND instr(lower(content), lower(?)) > 0"
            params.append(query.content)
        sql += " ORDER BY rowid"
        if query.limit is not None or query.offset:
            sql += " LIMIT ? OFFSET ?"
            params.extend([query.limit if query.limit is not None else -1, query.offset])

        cursor = await self.db.execute(sql, params)
        rows = await cursor.fetchall()
        return [_row_to_chunk(r) for r in rows]

    async def get_chunks_by_file(self, file_path: str) -> list[CodeChunk]:
        """All chunks parsed from one file."""
        return await self.search_chunks(ChunkQuery(file_path=file_path))

    async def get_chunk(self, chunk_id: str) -> CodeChunk | None:
        """Get a chunk by id."""
        cursor = await self.db.execute("SELECT * FROM chunks WHERE id = ?", (chunk_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_chunk(row)

    async def get_stats(self) -> StoreStats:
        """Chunk, file, and per-kind counts."""
        cursor = await self.db.execute(
            "SELECT COUNT(*), COUNT(DISTINCT file_path) FROM chunks"
        )
        total, files = await cursor.fetchone()
        cursor = await self.db.execute("SELECT kind, COUNT(*) FROM chunks GROUP BY kind")
        by_kind = {row[0]: row[1] for row in await cursor.fetchall()}
        return StoreStats(total_chunks=total, file_count=files, by_kind=by_kind)
