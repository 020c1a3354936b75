"""Pydantic models and enums for the chunk store and similarity search."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ChunkKind(StrEnum):
    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"
    VARIABLE = "variable"
    INTERFACE = "interface"
    TYPE = "type"
    IMPORT = "import"
    EXPORT = "export"


class CodeChunk(BaseModel):
    """A parsed span of source produced by the external parser."""

    id: str
    kind: ChunkKind
    name: str
    content: str = ""
    file_path: str
    language: str = ""
    start_line: int = 0
    end_line: int = 0
    start_column: int = 0
    end_column: int = 0
    signature: str | None = None
    documentation: str | None = None
    dependencies: list[Any] = []  # parser output; non-strings dropped at index time
    metadata: dict[str, Any] | None = None
    timestamp: float = 0.0


class ChunkQuery(BaseModel):
    """Filter for ChunkStore.search_chunks. All fields optional, ANDed together."""

    file_path: str | None = None
    language: str | None = None
    kind: ChunkKind | None = None
    name: str | None = None
    content: str | None = None  # case-insensitive substring
    limit: int | None = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)


class StoreStats(BaseModel):
    """Chunk store counts for status output."""

    total_chunks: int = 0
    file_count: int = 0
    by_kind: dict[str, int] = {}


class VectorHit(BaseModel):
    """Single ranked result from the similarity collaborator."""

    id: str
    content: str
    file_path: str
    language: str = ""
    kind: str
    line_start: int = 0
    line_end: int = 0
    similarity: float = 0.0
