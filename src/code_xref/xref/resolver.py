"""Method name resolution as an ordered pipeline of resolvers.

Resolvers are tried in order; the first one returning a node wins:

- ExactNameResolver: method name equal, optional class / file filters.
- CaseInsensitiveNameResolver: same filters, case-insensitive name.
- EmbeddingFallbackResolver: nearest chunks from the similarity collaborator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from code_xref.xref.exceptions import CollaboratorUnavailableError
from code_xref.xref.index import UNKNOWN_CLASS, normalize_class_name
from code_xref.xref.models import MethodNode

if TYPE_CHECKING:
    from code_xref.storage.models import VectorHit
    from code_xref.xref.index import IndexView

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MethodQuery:
    """What to resolve: a method name plus optional owning class and file."""

    name: str
    class_name: str | None = None
    file_path: str | None = None


class SimilaritySearch(Protocol):
    """Vector-similarity collaborator used as the last resolution resort."""

    async def embed_text(self, text: str, kind: str = "symbol") -> list[float]: ...

    async def search_similar(
        self,
        vector: list[float],
        top_k: int = 10,
        language: str | None = None,
    ) -> list[VectorHit]: ...


class MethodResolver(Protocol):
    async def resolve(self, query: MethodQuery) -> MethodNode | None: ...


def _passes_filters(method: MethodNode, query: MethodQuery) -> bool:
    if query.class_name and method.class_name != query.class_name:
        if normalize_class_name(method.class_name) != normalize_class_name(query.class_name):
            return False
    return not (query.file_path and method.file_path != query.file_path)


class ExactNameResolver:
    def __init__(self, view: IndexView) -> None:
        self.view = view

    async def resolve(self, query: MethodQuery) -> MethodNode | None:
        for method in self.view.methods.values():
            if method.name == query.name and _passes_filters(method, query):
                return method
        return None


class CaseInsensitiveNameResolver:
    def __init__(self, view: IndexView) -> None:
        self.view = view

    async def resolve(self, query: MethodQuery) -> MethodNode | None:
        wanted = query.name.lower()
        for method in self.view.methods.values():
            if method.name.lower() == wanted and _passes_filters(method, query):
                return method
        return None


class EmbeddingFallbackResolver:
    """Ask the similarity collaborator for chunks that look like the method.

    The first ``method`` hit whose content mentions the method name (and the
    class name, if given) becomes a synthetic MethodNode. Such nodes are not
    part of the index and carry no call edges.
    """

    def __init__(self, similarity: SimilaritySearch, top_k: int = 10) -> None:
        self.similarity = similarity
        self.top_k = top_k

    @staticmethod
    def query_text(query: MethodQuery) -> str:
        text = f"method {query.name}"
        if query.class_name:
            text += f" in class {query.class_name}"
        return text

    async def resolve(self, query: MethodQuery) -> MethodNode | None:
        vector = await self.similarity.embed_text(self.query_text(query))
        hits = await self.similarity.search_similar(vector, self.top_k)
        for hit in hits:
            if hit.kind != "method" or query.name not in hit.content:
                continue
            if query.class_name and query.class_name not in hit.content:
                continue
            if query.file_path and hit.file_path != query.file_path:
                continue
            return MethodNode(
                id=hit.id,
                name=query.name,
                class_name=query.class_name or UNKNOWN_CLASS,
                file_path=hit.file_path,
                lines_of_code=hit.line_end - hit.line_start,
                start_line=hit.line_start,
                end_line=hit.line_end,
                documentation=hit.content,
            )
        return None


class ResolutionPipeline:
    """Runs resolvers in order and memoizes results per query."""

    def __init__(self, resolvers: list[MethodResolver]) -> None:
        self.resolvers = resolvers
        self._cache: dict[MethodQuery, MethodNode | None] = {}

    @classmethod
    def for_index(
        cls,
        view: IndexView,
        similarity: SimilaritySearch | None = None,
        top_k: int = 10,
    ) -> ResolutionPipeline:
        resolvers: list[MethodResolver] = [
            ExactNameResolver(view),
            CaseInsensitiveNameResolver(view),
        ]
        if similarity is not None:
            resolvers.append(EmbeddingFallbackResolver(similarity, top_k))
        return cls(resolvers)

    async def resolve(self, query: MethodQuery) -> MethodNode | None:
        if query in self._cache:
            return self._cache[query]

        found: MethodNode | None = None
        for resolver in self.resolvers:
            try:
                found = await resolver.resolve(query)
            except CollaboratorUnavailableError:
                logger.warning(
                    "Similarity fallback unavailable while resolving %s",
                    query.name,
                    exc_info=True,
                )
                continue
            if found is not None:
                break

        if found is None:
            logger.debug("Method not found: %s", query.name)
        self._cache[query] = found
        return found
