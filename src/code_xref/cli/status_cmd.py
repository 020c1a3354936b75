"""CLI status command: chunk store and index snapshot health."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import typer
from rich.console import Console

from code_xref.logging.logger import EventLogger
from code_xref.storage.chunk_store import ChunkStore
from code_xref.xref.index import IndexStore
from code_xref.xref.persistence import IndexSnapshot

if TYPE_CHECKING:
    from code_xref.config import Config

console = Console()


async def _collect(config: Config) -> tuple:
    async with ChunkStore(config.storage_path) as store:
        stats = await store.get_stats()
    index = IndexStore()
    loaded = await IndexSnapshot(config.storage_path).load(index)
    return stats, loaded, index


def status_cmd() -> None:
    """Show chunk store and index status."""
    from code_xref.config import Config

    config = Config()

    console.print("[bold]code-xref status[/bold]\n")
    console.print(f"Config dir: {config.base_dir}")
    console.print(f"Database:   {config.db_path}")
    console.print(f"Vectors:    {config.lance_path}")
    console.print()

    if not config.db_path.exists():
        console.print("[red]Database: NOT FOUND[/red]")
        raise typer.Exit(code=1)

    stats, loaded, index = asyncio.run(_collect(config))

    console.print("[green]Database: OK[/green]")
    console.print(f"  Chunks: {stats.total_chunks}")
    console.print(f"  Files:  {stats.file_count}")
    for kind, count in sorted(stats.by_kind.items()):
        console.print(f"    {kind}: {count}")

    if loaded:
        console.print("[green]Index snapshot: OK[/green]")
        console.print(f"  Methods: {index.method_count}")
        console.print(f"  Classes: {index.class_count}")
    else:
        console.print("[yellow]Index snapshot: NOT FOUND[/yellow] (run `code-xref index`)")

    if config.lance_path.exists():
        from code_xref.cli.runtime import open_lance_store

        lance_store = open_lance_store(config)
        if lance_store is not None:
            console.print(f"Vector rows: {lance_store.count()}")

    last = EventLogger(config.log_dir).last_event("xref.build")
    if last is not None:
        console.print(
            f"Last build: {last['timestamp']} from {last['data'].get('source', '?')} "
            f"({last['duration_ms']} ms, {last['node_count']} nodes)"
        )
