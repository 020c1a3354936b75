"""Method and class indices built from stored code chunks.

The IndexStore owns the two maps. Only IndexBuilder writes to it; queries
get an IndexView whose maps are read-only proxies.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol

from code_xref.storage.models import ChunkKind, ChunkQuery, CodeChunk
from code_xref.xref.exceptions import IndexUnavailableError
from code_xref.xref.models import ClassNode, ClassType, FieldNode, MethodNode, Parameter

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from code_xref.config import Config

logger = logging.getLogger(__name__)

LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ".java": "java",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".py": "python",
    ".go": "go",
    ".rs": "rust",
}

_CLASS_KINDS = frozenset({ChunkKind.CLASS, ChunkKind.INTERFACE})
_METHOD_KINDS = frozenset({ChunkKind.FUNCTION, ChunkKind.METHOD})
_CLASS_TYPES = frozenset(t.value for t in ClassType)

UNKNOWN_CLASS = "Unknown"


class ChunkSource(Protocol):
    """The part of the chunk store the index builder depends on."""

    async def search_chunks(self, query: ChunkQuery | None = None) -> list[CodeChunk]: ...

    async def get_chunks_by_file(self, file_path: str) -> list[CodeChunk]: ...

    def get_storage_path(self) -> Path: ...


def detect_language(file_path: str) -> str | None:
    """Language for a file extension, or None if unsupported."""
    return LANGUAGE_BY_EXTENSION.get(PurePosixPath(file_path).suffix.lower())


def package_for(file_path: str) -> str:
    """Package of a file: its directory ("." for a bare file name)."""
    return str(PurePosixPath(file_path).parent)


def normalize_class_name(name: str) -> str:
    """Lower-case and drop hyphens, so "auth-service" matches "AuthService"."""
    return name.lower().replace("-", "")


class IndexView:
    """Read-only view over the method and class indices."""

    __slots__ = ("classes", "methods")

    def __init__(self, methods: dict[str, MethodNode], classes: dict[str, ClassNode]) -> None:
        self.methods: Mapping[str, MethodNode] = MappingProxyType(methods)
        self.classes: Mapping[str, ClassNode] = MappingProxyType(classes)

    def find_class(self, name: str) -> ClassNode | None:
        """Exact key lookup, then the first case-insensitive match."""
        node = self.classes.get(name)
        if node is not None:
            return node
        lowered = name.lower()
        for key, candidate in self.classes.items():
            if key.lower() == lowered:
                return candidate
        return None


class IndexStore:
    """Owner of the Method Index (keyed by method id) and Class Index (keyed by name)."""

    def __init__(self) -> None:
        self.methods: dict[str, MethodNode] = {}
        self.classes: dict[str, ClassNode] = {}

    def replace(self, methods: dict[str, MethodNode], classes: dict[str, ClassNode]) -> None:
        """Swap both maps wholesale (snapshot load). Never merges."""
        self.methods = methods
        self.classes = classes

    def clear(self) -> None:
        self.methods = {}
        self.classes = {}

    @property
    def method_count(self) -> int:
        return len(self.methods)

    @property
    def class_count(self) -> int:
        return len(self.classes)

    def is_empty(self) -> bool:
        return not self.methods and not self.classes

    def view(self) -> IndexView:
        return IndexView(self.methods, self.classes)


# ---------------------------------------------------------------------------
# Chunk metadata helpers
# ---------------------------------------------------------------------------


def _meta(metadata: dict[str, Any], *keys: str) -> Any:
    """First present value among camelCase / snake_case spellings of a key."""
    for key in keys:
        value = metadata.get(key)
        if value is not None:
            return value
    return None


def _str_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def _field(raw: Any) -> FieldNode:
    if isinstance(raw, str):
        return FieldNode(name=raw)
    return FieldNode(
        name=raw["name"],
        type=raw.get("type") or "any",
        modifiers=_str_list(raw.get("modifiers")),
        initial_value=_meta(raw, "initialValue", "initial_value"),
    )


def _parameter(raw: Any) -> Parameter:
    if isinstance(raw, str):
        return Parameter(name=raw)
    return Parameter(
        name=raw["name"],
        type=raw.get("type") or "any",
        optional=bool(raw.get("optional", False)),
    )


def _class_type(chunk: CodeChunk, metadata: dict[str, Any], modifiers: list[str]) -> ClassType:
    if chunk.kind == ChunkKind.INTERFACE:
        return ClassType.INTERFACE
    declared = metadata.get("type")
    if declared in _CLASS_TYPES:
        return ClassType(declared)
    if _meta(metadata, "isAbstract", "is_abstract") or "abstract" in modifiers:
        return ClassType.ABSTRACT
    return ClassType.CLASS


class IndexBuilder:
    """Populates an IndexStore from a ChunkSource, one file at a time."""

    def __init__(self, source: ChunkSource, index: IndexStore, config: Config) -> None:
        self.source = source
        self.index = index
        self.config = config
        # Class names registered from chunks that carried metadata.
        self._annotated: set[str] = set()

    async def index_all(self) -> int:
        """Index every file known to the chunk source. Returns files indexed.

        Raises:
            IndexUnavailableError: the unfiltered chunk query failed.
        """
        self._annotated.clear()
        try:
            chunks = await self.source.search_chunks()
        except Exception as e:
            msg = f"Chunk store could not be enumerated: {e}"
            raise IndexUnavailableError(msg) from e

        if not chunks:
            logger.warning("No chunks in code storage; index some code before analysis.")
            return 0

        file_paths = list(dict.fromkeys(c.file_path for c in chunks))
        logger.info("Indexing %d files (%d chunks)", len(file_paths), len(chunks))

        indexed = 0
        for file_path in file_paths:
            if await self.index_file(file_path):
                indexed += 1

        self.link_reverse_edges()
        logger.info(
            "Built indexes: %d methods, %d classes from %d files",
            self.index.method_count,
            self.index.class_count,
            indexed,
        )
        return indexed

    async def index_file(self, file_path: str) -> bool:
        """Index one file's chunks. Returns False if the file was skipped.

        Nodes are built into local maps and committed only if the whole file
        succeeds, so a malformed chunk never leaves a half-indexed file. The
        file's previous nodes are replaced; a file with no chunks left is
        removed from the index.
        """
        language = detect_language(file_path)
        if language is None:
            logger.debug("Skipping %s: unsupported extension", file_path)
            return False

        try:
            chunks = await self.source.get_chunks_by_file(file_path)
            if not chunks:
                logger.debug("No chunks found for %s", file_path)
                self._commit(file_path, {}, {}, [])
                return False
            # Names this file registered last time do not block its own re-index.
            registered = self._annotated - {
                name for name, c in self.index.classes.items() if c.file_path == file_path
            }
            classes, class_chunks, annotated = self._build_classes(file_path, chunks, registered)
            methods, attachments = self._build_methods(file_path, chunks, class_chunks)
        except Exception:
            logger.warning("Failed to index %s", file_path, exc_info=True)
            return False

        self._commit(file_path, classes, methods, attachments)
        self._annotated.update(annotated)

        logger.debug("Indexed %d chunks from %s (%s)", len(chunks), file_path, language)
        return True

    def _commit(
        self,
        file_path: str,
        classes: dict[str, ClassNode],
        methods: dict[str, MethodNode],
        attachments: list[tuple[str, MethodNode]],
    ) -> None:
        """Swap one file's nodes into the index, replacing its previous version.

        The file's old methods leave the Method Index and every class's
        ``methods``. Classes it no longer declares are dropped. A replaced
        class keeps the methods other files attached to it by class name.
        """
        index = self.index
        for method_id in [k for k, m in index.methods.items() if m.file_path == file_path]:
            del index.methods[method_id]
        for name in [
            k for k, c in index.classes.items() if c.file_path == file_path and k not in classes
        ]:
            del index.classes[name]
            self._annotated.discard(name)
        for cls in index.classes.values():
            cls.methods[:] = [m for m in cls.methods if m.file_path != file_path]

        for name, cls in classes.items():
            previous = index.classes.get(name)
            if previous is not None:
                cls.methods.extend(m for m in previous.methods if m.file_path != previous.file_path)
            index.classes[name] = cls

        index.methods.update(methods)
        for class_name, method in attachments:
            owner = index.classes.get(class_name)
            if owner is not None:
                owner.methods.append(method)

    def _build_classes(
        self,
        file_path: str,
        chunks: list[CodeChunk],
        registered: set[str],
    ) -> tuple[dict[str, ClassNode], dict[str, CodeChunk], set[str]]:
        """Pass 1: class and interface chunks become ClassNodes."""
        classes: dict[str, ClassNode] = {}
        class_chunks: dict[str, CodeChunk] = {}
        annotated: set[str] = set()
        package = package_for(file_path)

        for chunk in chunks:
            if chunk.kind not in _CLASS_KINDS or not chunk.name:
                continue
            if chunk.metadata is None and (chunk.name in annotated or chunk.name in registered):
                continue

            metadata = chunk.metadata or {}
            modifiers = _str_list(metadata.get("modifiers"))
            classes[chunk.name] = ClassNode(
                id=f"{file_path}:{chunk.name}",
                name=chunk.name,
                file_path=chunk.file_path,
                type=_class_type(chunk, metadata, modifiers),
                superclass=metadata.get("superclass") or None,
                interfaces=_str_list(metadata.get("interfaces")),
                fields=[_field(f) for f in metadata.get("fields") or []],
                modifiers=modifiers,
                package=package,
                imports=_str_list(metadata.get("imports")),
            )
            class_chunks[chunk.name] = chunk
            if chunk.metadata is not None:
                annotated.add(chunk.name)

        return classes, class_chunks, annotated

    def _build_methods(
        self,
        file_path: str,
        chunks: list[CodeChunk],
        class_chunks: dict[str, CodeChunk],
    ) -> tuple[dict[str, MethodNode], list[tuple[str, MethodNode]]]:
        """Pass 2: function and method chunks become MethodNodes."""
        methods: dict[str, MethodNode] = {}
        attachments: list[tuple[str, MethodNode]] = []

        for chunk in chunks:
            if chunk.kind not in _METHOD_KINDS or not chunk.name:
                continue

            metadata = chunk.metadata or {}
            class_name = _meta(metadata, "className", "class_name") or self._enclosing_class(
                chunk, class_chunks
            )
            method = MethodNode(
                id=f"{file_path}:{chunk.name}",
                name=chunk.name,
                class_name=class_name or UNKNOWN_CLASS,
                file_path=chunk.file_path,
                signature=chunk.signature or chunk.content[: self.config.signature_preview_chars],
                modifiers=_str_list(metadata.get("modifiers")),
                calls=[d for d in chunk.dependencies if isinstance(d, str)],
                complexity=int(metadata.get("complexity") or 1),
                lines_of_code=chunk.end_line - chunk.start_line,
                start_line=chunk.start_line,
                end_line=chunk.end_line,
                parameters=[_parameter(p) for p in metadata.get("parameters") or []],
                return_type=_meta(metadata, "returnType", "return_type") or "void",
                documentation=chunk.documentation or "",
            )
            methods[method.id] = method
            if class_name:
                attachments.append((class_name, method))

        return methods, attachments

    @staticmethod
    def _enclosing_class(chunk: CodeChunk, class_chunks: dict[str, CodeChunk]) -> str | None:
        """First class chunk whose line range contains the method's range."""
        for name, cls in class_chunks.items():
            if chunk.start_line >= cls.start_line and chunk.end_line <= cls.end_line:
                return name
        return None

    def link_reverse_edges(self) -> None:
        """Backfill ``called_by`` and ``subclasses`` from forward references.

        A method's name is added to ``called_by`` of every method whose name
        it lists in ``calls``; a class's name is added to ``subclasses`` of
        its indexed superclass. Both lists are recomputed from scratch, and
        class method lists are pointed back at the Method Index entries.
        """
        for cls in self.index.classes.values():
            cls.subclasses.clear()
            cls.methods[:] = [self.index.methods.get(m.id, m) for m in cls.methods]
        for method in self.index.methods.values():
            method.called_by.clear()

        by_name: dict[str, list[MethodNode]] = defaultdict(list)
        for method in self.index.methods.values():
            by_name[method.name].append(method)

        for caller in self.index.methods.values():
            for call in caller.calls:
                for target in by_name.get(call, ()):
                    if caller.name not in target.called_by:
                        target.called_by.append(caller.name)

        for cls in self.index.classes.values():
            if not cls.superclass:
                continue
            parent = self.index.classes.get(cls.superclass)
            if parent is not None and parent is not cls and cls.name not in parent.subclasses:
                parent.subclasses.append(cls.name)
