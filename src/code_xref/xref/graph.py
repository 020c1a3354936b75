"""Cycle detection shared by the call-graph tracer and dependency analyzer."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


def adjacency(node_ids: Iterable[str], edges: Iterable[tuple[str, str]]) -> dict[str, list[str]]:
    """Ordered adjacency lists; edge endpoints outside ``node_ids`` are added."""
    adj: dict[str, list[str]] = {node_id: [] for node_id in node_ids}
    for src, dst in edges:
        adj.setdefault(src, [])
        adj.setdefault(dst, [])
        if dst not in adj[src]:
            adj[src].append(dst)
    return adj


def find_cycles(node_ids: Iterable[str], edges: Iterable[tuple[str, str]]) -> list[list[str]]:
    """Find cycles with an iterative depth-first search.

    Each node is explored once. Reaching a node that is still on the current
    path yields the path slice from that node's position, so ``A -> B -> C ->
    A`` is reported as ``["A", "B", "C"]``.
    """
    adj = adjacency(node_ids, edges)
    visited: set[str] = set()
    cycles: list[list[str]] = []

    for start in adj:
        if start in visited:
            continue

        path: list[str] = [start]
        on_path: set[str] = {start}
        stack: list[Iterator[str]] = [iter(adj[start])]
        visited.add(start)

        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if nxt in on_path:
                cycles.append(path[path.index(nxt) :])
            elif nxt not in visited:
                visited.add(nxt)
                path.append(nxt)
                on_path.add(nxt)
                stack.append(iter(adj[nxt]))

    return cycles
