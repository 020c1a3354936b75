"""Query-side embedding for method and class lookups."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from code_xref.config import Config


logger = logging.getLogger(__name__)


class QueryKind(StrEnum):
    """What a lookup text describes; selects the model's instruction prefix."""

    SYMBOL = "symbol"
    CODE = "code"
    RAW = "raw"


_INSTRUCTIONS: dict[QueryKind, str] = {
    QueryKind.SYMBOL: "Instruct: Find the definition of a method or class by name\nQuery: ",
    QueryKind.CODE: "Instruct: Find code snippets that implement the described behaviour\nQuery: ",
    QueryKind.RAW: "",
}


class Embedder:
    """Lazily loaded sentence-transformers model.

    Chunk vectors are produced upstream; this side only embeds lookup text so
    it can be compared against them. Vectors are L2-normalized.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self._model: Any = None
        self._available = False

    def load(self) -> bool:
        """Load the model. Returns False (and logs) instead of raising."""
        try:
            from sentence_transformers import SentenceTransformer

            self._model = SentenceTransformer(
                self.config.embedding_model,
                device=self.config.embedding_device,
                truncate_dim=self.config.embedding_dim,
            )
            self._available = True
            logger.info("Loaded embedding model %s", self.config.embedding_model)
        except Exception:
            logger.warning(
                "Failed to load %s; similarity fallback disabled.",
                self.config.embedding_model,
                exc_info=True,
            )
            self._available = False
        return self._available

    @property
    def available(self) -> bool:
        return self._available

    @property
    def ndims(self) -> int:
        return self.config.embedding_dim

    def embed_batch(self, texts: list[str], kind: QueryKind = QueryKind.SYMBOL) -> list[list[float]]:
        """Embed several lookup texts with the instruction for ``kind``."""
        if not self._available or self._model is None:
            msg = "Embedding model not loaded"
            raise RuntimeError(msg)

        prefix = _INSTRUCTIONS[QueryKind(kind)]
        vectors = self._model.encode(
            [prefix + t for t in texts],
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return vectors.tolist()  # type: ignore[no-any-return]

    def embed_query(self, text: str, kind: QueryKind = QueryKind.SYMBOL) -> list[float]:
        return self.embed_batch([text], kind)[0]
