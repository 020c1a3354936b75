"""Root Typer app for the code-xref CLI."""

from __future__ import annotations

import typer

app = typer.Typer(
    name="code-xref",
    help="code-xref: cross-reference analysis over parsed code chunks.",
    no_args_is_help=True,
)


def _register_commands() -> None:
    """Register all CLI commands."""
    from code_xref.cli.index_cmd import index_cmd, ingest_cmd
    from code_xref.cli.status_cmd import status_cmd
    from code_xref.cli.xref_cmds import (
        context_cmd,
        deps_cmd,
        docs_cmd,
        impls_cmd,
        inheritance_cmd,
        related_cmd,
        search_cmd,
        trace_cmd,
    )

    app.command(name="ingest")(ingest_cmd)
    app.command(name="index")(index_cmd)
    app.command(name="trace")(trace_cmd)
    app.command(name="inheritance")(inheritance_cmd)
    app.command(name="deps")(deps_cmd)
    app.command(name="impls")(impls_cmd)
    app.command(name="search")(search_cmd)
    app.command(name="context")(context_cmd)
    app.command(name="related")(related_cmd)
    app.command(name="docs")(docs_cmd)
    app.command(name="status")(status_cmd)


_register_commands()
