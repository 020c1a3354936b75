"""CallGraphTracer: breadth-first call-graph expansion over the method index."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from code_xref.xref.exceptions import NotFoundError
from code_xref.xref.graph import find_cycles
from code_xref.xref.models import (
    CallEdgeKind,
    CallGraphMetadata,
    Direction,
    MethodCallGraph,
    MethodEdge,
    MethodNode,
    parse_choice,
)
from code_xref.xref.resolver import MethodQuery

if TYPE_CHECKING:
    from code_xref.xref.resolver import ResolutionPipeline

logger = logging.getLogger(__name__)


class CallGraphTracer:
    """Traces callers and/or callees of a method up to a depth bound.

    Every dequeued node is recorded; only nodes below ``max_depth`` are
    expanded, and each node is expanded at most once.
    """

    def __init__(self, resolver: ResolutionPipeline) -> None:
        self.resolver = resolver

    async def trace(
        self,
        method_name: str,
        class_name: str | None = None,
        file_path: str | None = None,
        max_depth: int = 10,
        direction: Direction | str = Direction.CALLEES,
    ) -> MethodCallGraph:
        direction = parse_choice(Direction, direction, "direction")
        root = await self.resolver.resolve(MethodQuery(method_name, class_name, file_path))
        if root is None:
            msg = f"Method {method_name} not found"
            raise NotFoundError(msg)

        nodes: dict[str, MethodNode] = {}
        edges: list[MethodEdge] = []
        seen_edges: set[tuple[str, str]] = set()
        depth_reached = 0

        def add_edge(caller: MethodNode, callee: MethodNode) -> None:
            key = (caller.id, callee.id)
            if key in seen_edges:
                return
            seen_edges.add(key)
            edges.append(
                MethodEdge(
                    from_id=caller.id,
                    to_id=callee.id,
                    kind=CallEdgeKind.DIRECT,
                    weight=1,
                    file_path=caller.file_path,
                    line=0,
                )
            )

        queue: deque[tuple[MethodNode, int]] = deque([(root, 0)])
        while queue:
            node, depth = queue.popleft()
            if node.id in nodes:
                continue
            nodes[node.id] = node
            depth_reached = max(depth_reached, depth)
            if depth >= max_depth:
                continue

            if direction in (Direction.CALLEES, Direction.BOTH):
                for call in node.calls:
                    callee = await self.resolver.resolve(MethodQuery(call))
                    if callee is None:
                        continue
                    add_edge(node, callee)
                    queue.append((callee, depth + 1))

            if direction in (Direction.CALLERS, Direction.BOTH):
                for caller_name in node.called_by:
                    caller = await self.resolver.resolve(MethodQuery(caller_name))
                    if caller is None:
                        continue
                    add_edge(caller, node)
                    queue.append((caller, depth + 1))

        cycles = find_cycles(nodes, ((e.from_id, e.to_id) for e in edges))
        logger.debug(
            "Traced %s (%s): %d nodes, %d edges, %d cycles",
            root.id,
            direction,
            len(nodes),
            len(edges),
            len(cycles),
        )

        return MethodCallGraph(
            root=root,
            nodes=nodes,
            edges=edges,
            cycles=cycles,
            entry_points=[n.id for n in nodes.values() if not n.called_by],
            termination_points=[n.id for n in nodes.values() if not n.calls],
            metadata=CallGraphMetadata(
                total_methods=len(nodes),
                max_depth=max((n.complexity for n in nodes.values()), default=0),
                circular_dependencies=len(cycles),
                depth_reached=depth_reached,
            ),
        )
