"""LanceDB table of precomputed chunk vectors, searched by the similarity fallback."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pyarrow as pa

from code_xref.storage.models import VectorHit

if TYPE_CHECKING:
    from code_xref.config import Config

logger = logging.getLogger(__name__)

TABLE_NAME = "code_vec"


def _code_schema(dim: int) -> pa.Schema:
    return pa.schema(
        [
            pa.field("id", pa.string()),
            pa.field("content", pa.string()),
            pa.field("file_path", pa.string()),
            pa.field("language", pa.string()),
            pa.field("kind", pa.string()),
            pa.field("line_start", pa.int32()),
            pa.field("line_end", pa.int32()),
            pa.field("vector", pa.list_(pa.float32(), dim)),
        ]
    )


def _quote(value: str) -> str:
    """Quote a string literal for a LanceDB where clause."""
    return "'" + value.replace("'", "''") + "'"


def _row_to_hit(row: dict) -> VectorHit:
    # Cosine distance in [0, 2]; report similarity in [-1, 1].
    distance = float(row.get("_distance", 1.0))
    return VectorHit(
        id=row["id"],
        content=row["content"],
        file_path=row["file_path"],
        language=row.get("language") or "",
        kind=row["kind"],
        line_start=row.get("line_start") or 0,
        line_end=row.get("line_end") or 0,
        similarity=1.0 - distance,
    )


class LanceStore:
    """Manages the LanceDB chunk-vector table."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self._db: Any = None
        self._table: Any = None

    def connect(self) -> None:
        """Connect to LanceDB and ensure the vector table exists."""
        import lancedb

        self._db = lancedb.connect(str(self.config.lance_path))
        if TABLE_NAME not in set(self._db.table_names()):
            self._db.create_table(TABLE_NAME, schema=_code_schema(self.config.embedding_dim))
        self._table = self._db.open_table(TABLE_NAME)

    @property
    def table(self) -> Any:
        if self._table is None:
            msg = "LanceStore is not connected; call connect() first"
            raise RuntimeError(msg)
        return self._table

    def add_vectors(self, rows: list[dict]) -> int:
        """Append rows with precomputed ``vector`` values. Returns rows written."""
        if not rows:
            return 0
        self.table.add(rows)
        return len(rows)

    def delete_file(self, file_path: str) -> None:
        """Remove every vector belonging to a file."""
        self.table.delete(f"file_path = {_quote(file_path)}")

    def count(self) -> int:
        return int(self.table.count_rows())

    def search(
        self,
        vector: list[float],
        top_k: int = 10,
        language: str | None = None,
    ) -> list[VectorHit]:
        """Nearest chunks by cosine distance, optionally restricted to a language."""
        if self.table.count_rows() == 0:
            return []
        query = self.table.search(vector).distance_type("cosine").limit(top_k)
        if language:
            query = query.where(f"language = {_quote(language)}", prefilter=True)
        return [_row_to_hit(r) for r in query.to_list()]
