"""Snapshot persistence for the method and class indices.

Each index is written as a JSON list of ``[key, node]`` pairs under the
chunk store's storage path. Writes overwrite in place; a snapshot torn by a
crash fails validation on load and is treated as a cache miss.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from code_xref.xref.models import ClassNode, MethodNode

if TYPE_CHECKING:
    from pathlib import Path

    from code_xref.xref.index import IndexStore

logger = logging.getLogger(__name__)

METHOD_INDEX_FILE = "methodIndex.json"
CLASS_INDEX_FILE = "classIndex.json"

_METHOD_ENTRIES = TypeAdapter(list[tuple[str, MethodNode]])
_CLASS_ENTRIES = TypeAdapter(list[tuple[str, ClassNode]])


class IndexSnapshot:
    """Reads and writes the two index files in one directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    @property
    def method_index_path(self) -> Path:
        return self.directory / METHOD_INDEX_FILE

    @property
    def class_index_path(self) -> Path:
        return self.directory / CLASS_INDEX_FILE

    def exists(self) -> bool:
        return self.method_index_path.exists() and self.class_index_path.exists()

    async def save(self, index: IndexStore) -> bool:
        """Write both index files. Returns False (and logs) on failure."""
        try:
            method_data = _METHOD_ENTRIES.dump_json(list(index.methods.items()))
            class_data = _CLASS_ENTRIES.dump_json(list(index.classes.items()))
            await asyncio.to_thread(self._write, method_data, class_data)
        except Exception:
            logger.error("Failed to save indexes to %s", self.directory, exc_info=True)
            return False
        logger.info(
            "Saved %d methods and %d classes to %s",
            index.method_count,
            index.class_count,
            self.directory,
        )
        return True

    def _write(self, method_data: bytes, class_data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self.method_index_path.write_bytes(method_data)
        self.class_index_path.write_bytes(class_data)

    async def load(self, index: IndexStore) -> bool:
        """Replace ``index`` with the snapshot if both files hold non-empty maps.

        Missing, unreadable, malformed, or empty snapshots leave ``index``
        untouched and return False.
        """
        if not self.exists():
            logger.debug("Index files not found in %s", self.directory)
            return False

        try:
            method_data, class_data = await asyncio.to_thread(self._read)
            methods = dict(_METHOD_ENTRIES.validate_json(method_data))
            classes = dict(_CLASS_ENTRIES.validate_json(class_data))
        except (OSError, ValidationError):
            logger.warning("Failed to load indexes from %s", self.directory, exc_info=True)
            return False

        if not methods or not classes:
            logger.debug("Index snapshot in %s is empty", self.directory)
            return False

        index.replace(methods, classes)
        logger.info("Loaded %d methods and %d classes from indexes.", len(methods), len(classes))
        return True

    def _read(self) -> tuple[bytes, bytes]:
        return self.method_index_path.read_bytes(), self.class_index_path.read_bytes()
