"""CLI query commands: trace, inheritance, deps, impls, search, context, related, docs."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from code_xref.xref.context import AnalysisType, Relationship
from code_xref.xref.exceptions import XrefError
from code_xref.xref.mermaid import call_graph_to_mermaid, dependency_graph_to_mermaid
from code_xref.xref.models import DependencyKind, Direction, Scope

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from code_xref.xref.analyzer import CrossReferenceAnalyzer
    from code_xref.xref.models import InheritanceTree

console = Console()


def _run(query: Callable[[CrossReferenceAnalyzer], Awaitable], *, semantic: bool = False):
    """Run one analyzer query; XrefError becomes a red message and exit code 1."""
    from code_xref.cli.runtime import open_analyzer
    from code_xref.config import Config

    config = Config()

    async def _go():
        async with open_analyzer(config, semantic=semantic) as analyzer:
            return await query(analyzer)

    try:
        return asyncio.run(_go())
    except XrefError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def trace_cmd(
    method: Annotated[str, typer.Argument(help="Method name to trace.")],
    class_name: Annotated[str | None, typer.Option("--class", help="Owning class.")] = None,
    file_path: Annotated[str | None, typer.Option("--file", help="Defining file.")] = None,
    depth: Annotated[
        int | None, typer.Option(help="Maximum traversal depth. Default: config trace_max_depth.")
    ] = None,
    direction: Annotated[Direction, typer.Option(help="callers, callees, or both.")] = Direction.CALLEES,
    semantic: Annotated[
        bool, typer.Option("--semantic", help="Fall back to embedding search for unknown names.")
    ] = False,
    mermaid: Annotated[bool, typer.Option("--mermaid", help="Print a Mermaid diagram.")] = False,
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
) -> None:
    """Trace the call graph around a method."""
    graph = _run(
        lambda a: a.trace_method_calls(
            method, class_name=class_name, file_path=file_path, max_depth=depth, direction=direction
        ),
        semantic=semantic,
    )

    if output_json:
        typer.echo(graph.model_dump_json(indent=2))
        return
    if mermaid:
        typer.echo(call_graph_to_mermaid(graph))
        return

    table = Table(title=f"Call graph: {graph.root.class_name}.{graph.root.name} ({direction})")
    table.add_column("Method")
    table.add_column("Class")
    table.add_column("File")
    table.add_column("Complexity", justify="right")
    for node in graph.nodes.values():
        table.add_row(node.name, node.class_name, node.file_path, str(node.complexity))
    console.print(table)
    console.print(
        f"{graph.metadata.total_methods} methods, {len(graph.edges)} edges, "
        f"{graph.metadata.circular_dependencies} cycles, depth {graph.metadata.depth_reached}"
    )
    if graph.entry_points:
        console.print(f"Entry points: {', '.join(graph.entry_points)}")
    if graph.termination_points:
        console.print(f"Termination points: {', '.join(graph.termination_points)}")


def _render_tree(tree: InheritanceTree) -> Tree:
    by_parent: dict[str, list[str]] = {}
    for node in tree.nodes.values():
        if node.superclass and node.id != tree.root.id:
            by_parent.setdefault(node.superclass, []).append(node.id)

    def label(node_id: str) -> str:
        node = tree.nodes[node_id]
        return f"[bold]{escape(node.name)}[/bold] [dim]({node.type}, {escape(node.file_path)})[/dim]"

    root = Tree(label(tree.root.id))
    stack = [(root, tree.root.name)]
    while stack:
        branch, name = stack.pop()
        for child_id in by_parent.get(name, []):
            stack.append((branch.add(label(child_id)), tree.nodes[child_id].name))
    return root


def inheritance_cmd(
    class_name: Annotated[str, typer.Argument(help="Root class name.")],
    no_interfaces: Annotated[
        bool, typer.Option("--no-interfaces", help="Skip interface subtypes.")
    ] = False,
    no_abstract: Annotated[
        bool, typer.Option("--no-abstract", help="Skip abstract subclasses.")
    ] = False,
) -> None:
    """Show the inheritance tree below a class."""
    tree = _run(
        lambda a: a.build_inheritance_tree(
            class_name, include_interfaces=not no_interfaces, include_abstract=not no_abstract
        )
    )
    console.print(_render_tree(tree))
    console.print(
        f"Depth {tree.depth}: {len(tree.interfaces)} interfaces, "
        f"{len(tree.abstract_classes)} abstract, {len(tree.concrete_classes)} concrete"
    )


def deps_cmd(
    target: Annotated[str, typer.Argument(help="Class to analyze.")],
    scope: Annotated[Scope, typer.Option(help="file, package, or global.")] = Scope.FILE,
    types: Annotated[
        list[DependencyKind] | None,
        typer.Option("--type", help="Dependency kind to include (repeatable). Default: all."),
    ] = None,
    mermaid: Annotated[bool, typer.Option("--mermaid", help="Print a Mermaid diagram.")] = False,
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
) -> None:
    """Analyze the dependency graph around a class."""
    graph = _run(lambda a: a.analyze_dependencies(target, dependency_types=types, scope=scope))

    if output_json:
        typer.echo(graph.model_dump_json(indent=2))
        return
    if mermaid:
        typer.echo(dependency_graph_to_mermaid(graph))
        return

    table = Table(title=f"Dependencies of {target} ({scope})")
    table.add_column("Class")
    table.add_column("Depends on", justify="right")
    table.add_column("Dependents", justify="right")
    table.add_column("Stability", justify="right")
    for node in graph.nodes:
        table.add_row(
            node.name,
            str(len(node.dependencies)),
            str(len(node.dependents)),
            f"{node.stability:.2f}",
        )
    console.print(table)

    for cycle in graph.cycles:
        console.print(f"[yellow]Cycle:[/yellow] {' -> '.join(cycle)}")
    for hotspot in graph.hotspots:
        console.print(
            f"[red]{hotspot.kind}[/red] {hotspot.node_id} (score {hotspot.score:g}): "
            f"{'; '.join(hotspot.recommendations)}"
        )

    m = graph.metrics
    console.print(
        f"{m.total_nodes} nodes, {m.total_edges} edges, coupling {m.average_coupling:.2f}, "
        f"cohesion {m.cohesion_score:.2f}, stability {m.stability_index:.2f}, "
        f"abstractness {m.abstractness:.2f}"
    )


def impls_cmd(
    interface: Annotated[str, typer.Argument(help="Interface name.")],
    subinterfaces: Annotated[
        bool, typer.Option("--subinterfaces", help="Include implementers of sub-interfaces.")
    ] = False,
) -> None:
    """List classes implementing an interface."""
    found = _run(
        lambda a: a.find_implementations(interface, include_subinterfaces=subinterfaces)
    )
    if not found:
        console.print("[dim]No implementations found.[/dim]")
        return

    table = Table(title=f"Implementations of {interface}")
    table.add_column("Class")
    table.add_column("Interface")
    table.add_column("File")
    table.add_column("Methods", justify="right")
    table.add_column("Abstract")
    for impl in found:
        table.add_row(
            impl.implementation_name,
            impl.interface_name,
            impl.file_path,
            str(len(impl.methods)),
            "yes" if impl.is_abstract else "",
        )
    console.print(table)


def search_cmd(
    query: Annotated[str, typer.Argument(help="Search query string.")],
    limit: Annotated[int, typer.Option(help="Maximum results to return.")] = 10,
    language: Annotated[str | None, typer.Option(help="Restrict to one language.")] = None,
) -> None:
    """Semantic search over precomputed chunk vectors."""
    hits = _run(lambda a: a.semantic_search(query, top_k=limit, language=language), semantic=True)
    if not hits:
        console.print("[dim]No results found.[/dim]")
        return

    table = Table(title="Search Results", show_lines=True)
    table.add_column("Kind")
    table.add_column("Location")
    table.add_column("Content", max_width=60)
    table.add_column("Score", justify="right")
    for hit in hits:
        table.add_row(
            hit.kind,
            f"{hit.file_path}:{hit.line_start}",
            escape(hit.content[:100]),
            f"{hit.similarity:.3f}",
        )
    console.print(table)


def context_cmd(
    file_path: Annotated[str, typer.Argument(help="File path as stored in the chunk store.")],
    analysis: Annotated[
        AnalysisType, typer.Option("--type", help="Kind of analysis.")
    ] = AnalysisType.GENERAL,
) -> None:
    """Heuristic analysis of one file's chunks."""
    report = _run(lambda a: a.analyze_context(file_path, analysis))
    typer.echo(report.model_dump_json(indent=2))


def related_cmd(
    file_path: Annotated[str, typer.Argument(help="File path as stored in the chunk store.")],
    relationship: Annotated[
        Relationship, typer.Option("--type", help="similar, dependent, or referenced.")
    ] = Relationship.SIMILAR,
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
) -> None:
    """Files related to a file by content similarity, dependencies, or imports."""
    related = _run(
        lambda a: a.find_related_code(file_path, relationship),
        semantic=relationship == Relationship.SIMILAR,
    )

    if output_json:
        typer.echo(json.dumps([r.model_dump() for r in related], indent=2))
        return
    if not related:
        console.print("[dim]No related files found.[/dim]")
        return

    table = Table(title=f"Related to {file_path} ({relationship})")
    table.add_column("File")
    table.add_column("Link")
    table.add_column("Similarity", justify="right")
    for item in related:
        score = "" if item.similarity is None else f"{item.similarity:.2f}"
        table.add_row(escape(item.file_path), item.link, score)
    console.print(table)


def docs_cmd(
    source: Annotated[Path, typer.Argument(help="Source file to document.")],
) -> None:
    """Print generated Markdown documentation for a source file."""
    from code_xref.xref.context import generate_documentation

    if not source.exists():
        console.print(f"[red]File not found:[/red] {escape(str(source))}")
        raise typer.Exit(code=1)
    typer.echo(generate_documentation(source.read_text(encoding="utf-8")))
