"""CrossReferenceAnalyzer: the programmatic surface of the cross-reference engine.

Owns the method and class indices for its lifetime. Every query first calls
``build_indexes()``, which loads the persisted snapshot or builds from the
chunk store exactly once; after that the indices are read-only.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from code_xref.config import Config
from code_xref.search.embedder import QueryKind
from code_xref.xref.call_graph import CallGraphTracer
from code_xref.xref.context import (
    AnalysisType,
    Relationship,
    analyze_chunks,
    dependent_files,
    generate_documentation,
    referenced_files,
    similar_files,
)
from code_xref.xref.dependencies import DependencyAnalyzer
from code_xref.xref.exceptions import CollaboratorUnavailableError, NotFoundError
from code_xref.xref.implementations import ImplementationFinder
from code_xref.xref.index import IndexBuilder, IndexStore
from code_xref.xref.inheritance import InheritanceTreeBuilder
from code_xref.xref.models import (
    ClassSummary,
    ClassType,
    DebugInfo,
    Direction,
    InterfaceSummary,
    Scope,
)
from code_xref.xref.persistence import IndexSnapshot
from code_xref.xref.resolver import ResolutionPipeline

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from code_xref.logging.logger import EventLogger
    from code_xref.storage.models import CodeChunk, VectorHit
    from code_xref.xref.context import ContextReport, RelatedFile
    from code_xref.xref.index import ChunkSource, IndexView
    from code_xref.xref.models import (
        DependencyGraph,
        DependencyKind,
        Implementation,
        InheritanceTree,
        MethodCallGraph,
    )
    from code_xref.xref.resolver import SimilaritySearch

logger = logging.getLogger(__name__)


class CrossReferenceAnalyzer:
    def __init__(
        self,
        store: ChunkSource,
        config: Config | None = None,
        similarity: SimilaritySearch | None = None,
        event_logger: EventLogger | None = None,
    ) -> None:
        self.store = store
        self.config = config or Config()
        self.similarity = similarity
        self.event_logger = event_logger
        self._index = IndexStore()
        self._builder = IndexBuilder(store, self._index, self.config)
        self._snapshot = IndexSnapshot(store.get_storage_path())
        self._built = False

    @property
    def index(self) -> IndexView:
        return self._index.view()

    @property
    def is_built(self) -> bool:
        return self._built

    @contextmanager
    def _event(self, event_type: str, **data) -> Iterator[dict]:
        """``EventLogger.timed`` when an event logger is set, else a scratch dict."""
        if self.event_logger is None:
            yield {}
            return
        with self.event_logger.timed(event_type, **data) as context:
            yield context

    def _resolver(self) -> ResolutionPipeline:
        return ResolutionPipeline.for_index(
            self.index, self.similarity, top_k=self.config.fallback_top_k
        )

    # -----------------------------------------------------------------------
    # Index lifecycle
    # -----------------------------------------------------------------------

    async def build_indexes(self, force: bool = False) -> None:
        """Load the snapshot or build the indices from the chunk store.

        No-op once built, unless ``force``; a forced build ignores the
        snapshot and rebuilds from chunks.

        Raises:
            IndexUnavailableError: the chunk store could not be enumerated.
        """
        if self._built and not force:
            return

        with self._event("xref.build", force=force) as event:
            if not force and await self.load_indexes():
                self._built = True
                event["source"] = "snapshot"
                event["node_count"] = self._index.method_count + self._index.class_count
                return

            logger.info("Building cross-reference indexes...")
            self._index.clear()
            files = await self._builder.index_all()
            self._built = True
            await self.save_indexes()
            event["source"] = "chunks"
            event["files"] = files
            event["node_count"] = self._index.method_count + self._index.class_count

    async def index_file(self, file_path: str) -> bool:
        """Re-index one file into the current indices and refresh reverse edges.

        Returns False when the file was skipped or no longer has chunks.
        """
        indexed = await self._builder.index_file(file_path)
        self._builder.link_reverse_edges()
        return indexed

    async def save_indexes(self) -> bool:
        return await self._snapshot.save(self._index)

    async def load_indexes(self) -> bool:
        return await self._snapshot.load(self._index)

    # -----------------------------------------------------------------------
    # Structural queries
    # -----------------------------------------------------------------------

    async def trace_method_calls(
        self,
        method_name: str,
        class_name: str | None = None,
        file_path: str | None = None,
        max_depth: int | None = None,
        direction: Direction | str = Direction.CALLEES,
    ) -> MethodCallGraph:
        """Call graph around ``method_name``.

        Raises:
            NotFoundError: no method resolves from the given name and filters.
        """
        await self.build_indexes()
        depth = self.config.trace_max_depth if max_depth is None else max_depth
        logger.info("Tracing method calls for %s (%s, depth %d)", method_name, direction, depth)

        with self._event(
            "xref.trace", method=method_name, direction=str(direction), max_depth=depth
        ) as event:
            graph = await CallGraphTracer(self._resolver()).trace(
                method_name,
                class_name=class_name,
                file_path=file_path,
                max_depth=depth,
                direction=direction,
            )
            event["node_count"] = len(graph.nodes)
        return graph

    async def build_inheritance_tree(
        self,
        class_name: str,
        include_interfaces: bool = True,
        include_abstract: bool = True,
    ) -> InheritanceTree:
        await self.build_indexes()
        logger.info("Building inheritance tree for %s", class_name)

        with self._event("xref.inheritance", class_name=class_name) as event:
            tree = InheritanceTreeBuilder(self.index).build(
                class_name,
                include_interfaces=include_interfaces,
                include_abstract=include_abstract,
            )
            event["node_count"] = len(tree.nodes)
        return tree

    async def analyze_dependencies(
        self,
        target: str,
        dependency_types: Iterable[DependencyKind | str] | None = None,
        scope: Scope | str = Scope.FILE,
    ) -> DependencyGraph:
        await self.build_indexes()
        logger.info("Analyzing dependencies for %s (scope %s)", target, scope)

        with self._event("xref.dependencies", target=target, scope=str(scope)) as event:
            graph = DependencyAnalyzer(self.index, self.config).analyze(
                target, dependency_types=dependency_types, scope=scope
            )
            event["node_count"] = len(graph.nodes)
            event["cycles"] = len(graph.cycles)
        return graph

    async def find_implementations(
        self,
        interface_name: str,
        include_subinterfaces: bool = False,
    ) -> list[Implementation]:
        await self.build_indexes()
        logger.info("Finding implementations of %s", interface_name)

        with self._event("xref.implementations", interface=interface_name) as event:
            found = ImplementationFinder(self.index).find(
                interface_name, include_subinterfaces=include_subinterfaces
            )
            event["node_count"] = len(found)
        return found

    # -----------------------------------------------------------------------
    # Search and file context
    # -----------------------------------------------------------------------

    async def semantic_search(
        self,
        query: str,
        top_k: int = 10,
        language: str | None = None,
    ) -> list[VectorHit]:
        """Nearest stored chunks to ``query`` from the similarity collaborator."""
        if self.similarity is None:
            msg = "No similarity collaborator configured"
            raise CollaboratorUnavailableError(msg)
        vector = await self.similarity.embed_text(query, QueryKind.CODE)
        hits = await self.similarity.search_similar(vector, top_k, language)
        logger.info("Semantic search for %r: %d results", query, len(hits))
        return hits

    async def analyze_context(
        self,
        file_path: str,
        analysis_type: AnalysisType | str = AnalysisType.GENERAL,
    ) -> ContextReport:
        """Heuristic report over one file's chunks; unknown types fall back to general."""
        chunks = await self.store.get_chunks_by_file(file_path)
        if not chunks:
            msg = f"No chunks found for file: {file_path}"
            raise NotFoundError(msg)

        try:
            kind = AnalysisType(analysis_type)
        except ValueError:
            logger.debug("Unknown analysis type %s, using general", analysis_type)
            kind = AnalysisType.GENERAL
        return analyze_chunks(chunks, kind)

    async def find_related_code(
        self,
        file_path: str,
        relationship: Relationship | str = Relationship.SIMILAR,
    ) -> list[RelatedFile]:
        """Files related to ``file_path``; unknown relationships fall back to similar.

        ``similar`` embeds the file's content once and keeps other files whose
        stored chunks score above ``related_similarity_threshold``.

        Raises:
            NotFoundError: the file has no chunks.
            CollaboratorUnavailableError: ``similar`` without a working collaborator.
        """
        chunks = await self.store.get_chunks_by_file(file_path)
        if not chunks:
            msg = f"No chunks found for file: {file_path}"
            raise NotFoundError(msg)

        try:
            kind = Relationship(relationship)
        except ValueError:
            logger.debug("Unknown relationship %s, using similar", relationship)
            kind = Relationship.SIMILAR

        if kind == Relationship.DEPENDENT:
            related = dependent_files(chunks)
        elif kind == Relationship.REFERENCED:
            related = referenced_files(chunks)
        else:
            related = await self._similar_files(file_path, chunks)
        logger.info("Found %d %s files for %s", len(related), kind, file_path)
        return related

    async def _similar_files(self, file_path: str, chunks: list[CodeChunk]) -> list[RelatedFile]:
        if self.similarity is None:
            msg = "No similarity collaborator configured"
            raise CollaboratorUnavailableError(msg)
        content = "\n".join(c.content for c in chunks)
        if not content.strip():
            logger.warning("No content to compare in %s", file_path)
            return []
        vector = await self.similarity.embed_text(content, QueryKind.RAW)
        hits = await self.similarity.search_similar(vector, self.config.related_top_k)
        return similar_files(hits, file_path, self.config.related_similarity_threshold)

    def generate_documentation(self, code: str) -> str:
        logger.info("Generating documentation for %d characters of code", len(code))
        return generate_documentation(code)

    def debug_info(self) -> DebugInfo:
        """Counts, class summaries, and each interface with its implementers."""
        view = self.index
        classes = [
            ClassSummary(name=name, type=cls.type, interfaces=list(cls.interfaces), file_path=cls.file_path)
            for name, cls in view.classes.items()
        ]
        interfaces = [
            InterfaceSummary(
                name=iface.name,
                implementations=[c.name for c in classes if iface.name in c.interfaces],
            )
            for iface in classes
            if iface.type == ClassType.INTERFACE
        ]
        return DebugInfo(
            method_count=len(view.methods),
            class_count=len(view.classes),
            classes=classes,
            interfaces=interfaces,
        )
