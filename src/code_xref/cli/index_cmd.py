"""CLI ingest and index commands: load parsed chunks, build the cross-reference indexes."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.markup import escape

from code_xref.storage.chunk_store import ChunkStore
from code_xref.storage.models import CodeChunk
from code_xref.xref.exceptions import XrefError

if TYPE_CHECKING:
    from code_xref.config import Config

console = Console()

_CHUNKS = TypeAdapter(list[CodeChunk])


def read_chunks(path: Path) -> list[CodeChunk]:
    """Parse a JSON array or JSONL file of chunks.

    Raises:
        ValueError: malformed JSON.
        ValidationError: an entry is not a valid chunk.
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".jsonl":
        raw = [json.loads(line) for line in text.splitlines() if line.strip()]
    else:
        raw = json.loads(text)
    return _CHUNKS.validate_python(raw)


def _group_by_file(chunks: list[CodeChunk]) -> dict[str, list[CodeChunk]]:
    by_file: dict[str, list[CodeChunk]] = {}
    for chunk in chunks:
        by_file.setdefault(chunk.file_path, []).append(chunk)
    return by_file


async def _store(config: Config, by_file: dict[str, list[CodeChunk]]) -> int:
    async with ChunkStore(config.storage_path) as store:
        for file_path in by_file:
            await store.remove_chunks_by_file(file_path)
        return await store.store_chunks([c for chunks in by_file.values() for c in chunks])


def _sync_vectors(config: Config, by_file: dict[str, list[CodeChunk]], embed: bool) -> int | None:
    """Replace the files' rows in the vector table. None if the table is unreachable."""
    from code_xref.cli.runtime import open_lance_store
    from code_xref.search.embedder import Embedder
    from code_xref.search.vector_sync import replace_file_vectors

    lance_store = open_lance_store(config)
    if lance_store is None:
        return None

    embedder = None
    if embed:
        embedder = Embedder(config)
        if not embedder.load():
            console.print("[yellow]Embedding model unavailable; vectors not written.[/yellow]")
            embedder = None

    return sum(
        replace_file_vectors(lance_store, file_path, chunks, embedder)
        for file_path, chunks in by_file.items()
    )


def ingest_cmd(
    file: Annotated[Path, typer.Argument(help="JSON array or JSONL file of parsed chunks.")],
    vectors: Annotated[
        bool, typer.Option("--vectors", help="Embed chunk content into the vector table.")
    ] = False,
) -> None:
    """Load parsed code chunks into the chunk store, replacing their files' chunks.

    The files' old vectors are always dropped; ``--vectors`` embeds the new
    chunks so search and the similarity fallback can find them.
    """
    from code_xref.config import Config

    config = Config()

    if not file.exists():
        console.print(f"[red]File not found:[/red] {escape(str(file))}")
        raise typer.Exit(code=1)

    try:
        chunks = read_chunks(file)
    except (ValueError, ValidationError) as e:
        console.print(f"[red]Invalid chunk file:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    config.ensure_dirs()
    by_file = _group_by_file(chunks)
    written = asyncio.run(_store(config, by_file))
    console.print(f"[green]Stored {written} chunks from {len(by_file)} files.[/green]")

    embedded = _sync_vectors(config, by_file, vectors)
    if embedded is None:
        console.print("[yellow]Vector table unavailable; stale vectors not removed.[/yellow]")
    elif vectors:
        console.print(f"Embedded {embedded} chunks.")
    console.print("[dim]Run `code-xref index --rebuild` to refresh the indexes.[/dim]")


async def _build(config: Config, rebuild: bool) -> tuple[int, int]:
    from code_xref.cli.runtime import open_analyzer

    async with open_analyzer(config) as analyzer:
        await analyzer.build_indexes(force=rebuild)
        info = analyzer.debug_info()
        return info.method_count, info.class_count


def index_cmd(
    rebuild: Annotated[
        bool, typer.Option("--rebuild", help="Ignore the saved snapshot and rebuild from chunks.")
    ] = False,
) -> None:
    """Build (or load) the method and class indexes and save the snapshot."""
    from code_xref.config import Config

    config = Config()
    try:
        methods, classes = asyncio.run(_build(config, rebuild))
    except XrefError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Indexed {methods} methods and {classes} classes.[/green]")
