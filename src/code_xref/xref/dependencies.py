"""Dependency-graph analysis: typed edges, cycles, hotspots and package metrics."""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import TYPE_CHECKING

from code_xref.xref.exceptions import NotFoundError
from code_xref.xref.graph import find_cycles
from code_xref.xref.models import (
    ClassNode,
    ClassType,
    DependencyEdge,
    DependencyGraph,
    DependencyKind,
    DependencyMetrics,
    DependencyNode,
    DependencyNodeKind,
    Hotspot,
    HotspotKind,
    MethodNode,
    Scope,
    parse_choice,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from code_xref.config import Config
    from code_xref.xref.index import IndexView

logger = logging.getLogger(__name__)

RECOMMENDATIONS: dict[HotspotKind, str] = {
    HotspotKind.HIGH_COMPLEXITY: "Consider breaking down this component into smaller parts",
    HotspotKind.HIGH_COUPLING: "Consider reducing dependencies to improve maintainability",
    HotspotKind.CIRCULAR_DEPENDENCY: (
        "Break the circular dependency by introducing an interface or moving shared code"
    ),
}

_GENERIC_ARGS = re.compile(r"<.*>|\[\]")
_PATH_SEPARATORS = re.compile(r"[./\\]")


def strip_generics(type_name: str) -> str:
    """``List<User>`` -> ``List``, ``User[]`` -> ``User``."""
    return _GENERIC_ARGS.sub("", type_name).strip()


def import_target(import_path: str) -> str:
    """Last dotted or slashed segment of an import path."""
    return _PATH_SEPARATORS.split(import_path.strip().strip("'\""))[-1]


class DependencyAnalyzer:
    def __init__(self, view: IndexView, config: Config) -> None:
        self.view = view
        self.config = config
        methods_by_name: dict[str, MethodNode] = {}
        for method in view.methods.values():
            methods_by_name.setdefault(method.name, method)
        self._methods_by_name = methods_by_name

    # -----------------------------------------------------------------------
    # Edges
    # -----------------------------------------------------------------------

    def _targets(self, cls: ClassNode, kind: DependencyKind) -> list[ClassNode]:
        names: list[str] = []
        if kind == DependencyKind.INHERITANCE:
            names.extend(cls.interfaces)
            if cls.superclass:
                names.append(cls.superclass)
        elif kind == DependencyKind.IMPORT:
            names.extend(import_target(imp) for imp in cls.imports)
        elif kind == DependencyKind.COMPOSITION:
            names.extend(strip_generics(f.type) for f in cls.fields)
        elif kind == DependencyKind.METHOD_CALL:
            for method in cls.methods:
                for call in method.calls:
                    callee = self._methods_by_name.get(call)
                    if callee is not None:
                        names.append(callee.class_name)

        targets: list[ClassNode] = []
        for name in names:
            target = self.view.classes.get(name)
            if target is not None and target.id != cls.id:
                targets.append(target)
        return targets

    def edges_from(self, cls: ClassNode, kinds: Iterable[DependencyKind]) -> list[DependencyEdge]:
        """Outgoing typed edges of one class, each (target, kind) once."""
        edges: list[DependencyEdge] = []
        seen: set[tuple[str, DependencyKind]] = set()
        for kind in kinds:
            for target in self._targets(cls, kind):
                if (target.id, kind) in seen:
                    continue
                seen.add((target.id, kind))
                edges.append(
                    DependencyEdge(
                        from_id=cls.id,
                        to_id=target.id,
                        kind=kind,
                        strength=1,
                        file_path=cls.file_path,
                    )
                )
        return edges

    # -----------------------------------------------------------------------
    # Analysis
    # -----------------------------------------------------------------------

    def _scope(self, target: ClassNode, scope: Scope) -> list[ClassNode]:
        if scope == Scope.FILE:
            candidates: list[ClassNode] = []
        elif scope == Scope.PACKAGE:
            candidates = [c for c in self.view.classes.values() if c.package == target.package]
        else:
            candidates = list(self.view.classes.values())

        nodes: dict[str, ClassNode] = {target.id: target}
        for cls in candidates:
            nodes.setdefault(cls.id, cls)
        return list(nodes.values())

    def analyze(
        self,
        target: str,
        dependency_types: Iterable[DependencyKind | str] | None = None,
        scope: Scope | str = Scope.FILE,
    ) -> DependencyGraph:
        target_cls = self.view.find_class(target)
        if target_cls is None:
            msg = f"Target {target} not found"
            raise NotFoundError(msg)

        kinds = (
            [parse_choice(DependencyKind, k, "dependency type") for k in dependency_types]
            if dependency_types
            else list(DependencyKind)
        )
        scope_nodes = self._scope(target_cls, parse_choice(Scope, scope, "scope"))

        # Edges of every indexed class, so dependents are known outside the scope too.
        all_edges = {cls.id: self.edges_from(cls, kinds) for cls in self.view.classes.values()}
        incoming: dict[str, list[str]] = defaultdict(list)
        for outgoing in all_edges.values():
            for edge in outgoing:
                if edge.from_id not in incoming[edge.to_id]:
                    incoming[edge.to_id].append(edge.from_id)

        nodes: list[DependencyNode] = []
        edges: list[DependencyEdge] = []
        for cls in scope_nodes:
            outgoing = all_edges[cls.id]
            edges.extend(outgoing)
            dependencies = list(dict.fromkeys(e.to_id for e in outgoing))
            dependents = list(incoming.get(cls.id, []))
            if DependencyKind.INHERITANCE in kinds:
                for sub_name in cls.subclasses:
                    sub = self.view.classes.get(sub_name)
                    if sub is not None and sub.id not in dependents:
                        dependents.append(sub.id)

            afferent, efferent = len(dependents), len(dependencies)
            nodes.append(
                DependencyNode(
                    id=cls.id,
                    name=cls.name,
                    kind=(
                        DependencyNodeKind.INTERFACE
                        if cls.type == ClassType.INTERFACE
                        else DependencyNodeKind.CLASS
                    ),
                    file_path=cls.file_path,
                    package=cls.package,
                    dependencies=dependencies,
                    dependents=dependents,
                    complexity=max(1, len(cls.methods)),
                    stability=(
                        afferent / (afferent + efferent) if afferent + efferent else 0.5
                    ),
                )
            )

        cycles = find_cycles((n.id for n in nodes), ((e.from_id, e.to_id) for e in edges))
        hotspots = self.hotspots(nodes, edges, cycles)
        metrics = self.metrics(nodes, edges, cycles)
        logger.debug(
            "Dependencies of %s (%s): %d nodes, %d edges, %d cycles",
            target_cls.name,
            scope,
            len(nodes),
            len(edges),
            len(cycles),
        )
        return DependencyGraph(
            nodes=nodes,
            edges=edges,
            cycles=cycles,
            hotspots=hotspots,
            metrics=metrics,
        )

    def hotspots(
        self,
        nodes: list[DependencyNode],
        edges: list[DependencyEdge],
        cycles: list[list[str]],
    ) -> list[Hotspot]:
        in_cycle = {node_id for cycle in cycles for node_id in cycle}
        hotspots: list[Hotspot] = []
        for node in nodes:
            coupling = sum(1 for e in edges if node.id in (e.from_id, e.to_id))
            if node.complexity > self.config.hotspot_complexity_threshold:
                hotspots.append(self._hotspot(node.id, HotspotKind.HIGH_COMPLEXITY, node.complexity))
            if coupling > self.config.hotspot_coupling_threshold:
                hotspots.append(self._hotspot(node.id, HotspotKind.HIGH_COUPLING, coupling))
            if node.id in in_cycle:
                hotspots.append(self._hotspot(node.id, HotspotKind.CIRCULAR_DEPENDENCY, 1))
        return hotspots

    @staticmethod
    def _hotspot(node_id: str, kind: HotspotKind, score: float) -> Hotspot:
        return Hotspot(node_id=node_id, kind=kind, score=score, recommendations=[RECOMMENDATIONS[kind]])

    def metrics(
        self,
        nodes: list[DependencyNode],
        edges: list[DependencyEdge],
        cycles: list[list[str]],
    ) -> DependencyMetrics:
        total_nodes = len(nodes)
        if total_nodes == 0:
            return DependencyMetrics()

        packages = {c.id: c.package for c in self.view.classes.values()}
        same_package = sum(1 for e in edges if packages.get(e.from_id) == packages.get(e.to_id))
        stability_index = 1 - len(cycles) / total_nodes
        abstractness = sum(1 for n in nodes if n.kind == DependencyNodeKind.INTERFACE) / total_nodes
        return DependencyMetrics(
            total_nodes=total_nodes,
            total_edges=len(edges),
            circular_dependencies=len(cycles),
            average_coupling=len(edges) / total_nodes,
            cohesion_score=same_package / len(edges) if edges else 0.0,
            stability_index=stability_index,
            abstractness=abstractness,
            distance_from_main_sequence=abs(abstractness + stability_index - 1),
        )
