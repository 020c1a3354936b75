"""Mermaid diagram generation from call graphs and dependency graphs."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from code_xref.xref.models import DependencyGraph, MethodCallGraph

ROOT_STYLE = "#dfd"
CYCLE_STYLE = "#fdd"


def _sanitize_for_mermaid(label: str) -> str:
    """Escape Mermaid syntax chars in labels."""
    return (
        label.replace("[", "⟨")  # U+27E8
        .replace("]", "⟩")  # U+27E9
        .replace("{", "(")
        .replace("}", ")")
        .replace('"', "'")
        .replace("|", "∣")  # U+2223
        .replace("<", "‹")  # U+2039
        .replace(">", "›")  # U+203A
    )


def _node_id(index: int) -> str:
    """Generate sequential node ID (A, B, C, ..., Z, AA, AB, ...)."""
    result = ""
    i = index
    while True:
        result = chr(ord("A") + i % 26) + result
        i = i // 26 - 1
        if i < 0:
            break
    return result


def _render(
    labels: dict[str, str],
    edges: list[tuple[str, str, str]],
    root_id: str | None,
    cycle_ids: set[str],
) -> str:
    """Shared renderer: ``labels`` maps graph id -> label, edges carry an arrow."""
    mermaid_ids = {graph_id: _node_id(i) for i, graph_id in enumerate(labels)}

    lines: list[str] = ["graph TD"]
    lines.extend(f'    {mermaid_ids[g]}["{_sanitize_for_mermaid(label)}"]' for g, label in labels.items())
    lines.extend(
        f"    {mermaid_ids[src]} {arrow} {mermaid_ids[dst]}"
        for src, dst, arrow in edges
        if src in mermaid_ids and dst in mermaid_ids
    )
    if root_id in mermaid_ids:
        lines.append(f"    style {mermaid_ids[root_id]} fill:{ROOT_STYLE}")
    lines.extend(
        f"    style {mermaid_ids[g]} fill:{CYCLE_STYLE}"
        for g in labels
        if g in cycle_ids and g != root_id
    )
    return "\n".join(lines)


def call_graph_to_mermaid(graph: MethodCallGraph) -> str:
    """Render a traced call graph; the root is highlighted, cycle members tinted."""
    labels = {
        node_id: f"{node.class_name}.{node.name}" for node_id, node in graph.nodes.items()
    }
    edges = [(e.from_id, e.to_id, "-->") for e in graph.edges]
    cycle_ids = {node_id for cycle in graph.cycles for node_id in cycle}
    return _render(labels, edges, graph.root.id, cycle_ids)


def dependency_graph_to_mermaid(graph: DependencyGraph) -> str:
    """Render a dependency graph with edge kinds as labels.

    Edge targets outside the analysed scope are drawn as bare nodes labelled
    with their id. The first node (the analysis target) is highlighted.
    """
    labels = {node.id: node.name for node in graph.nodes}
    for edge in graph.edges:
        labels.setdefault(edge.to_id, edge.to_id)
    edges = [(e.from_id, e.to_id, f"-->|{e.kind}|") for e in graph.edges]
    cycle_ids = {node_id for cycle in graph.cycles for node_id in cycle}
    root_id = graph.nodes[0].id if graph.nodes else None
    return _render(labels, edges, root_id, cycle_ids)
