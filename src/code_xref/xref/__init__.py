"""Cross-reference analysis over stored code chunks.

Public API:
    CrossReferenceAnalyzer(store, config=None, similarity=None, event_logger=None)
        .trace_method_calls(method_name, ...) -> MethodCallGraph
        .build_inheritance_tree(class_name, ...) -> InheritanceTree
        .analyze_dependencies(target, ...) -> DependencyGraph
        .find_implementations(interface_name, ...) -> list[Implementation]
        .find_related_code(file_path, relationship) -> list[RelatedFile]
        .generate_documentation(code) -> str
    call_graph_to_mermaid(graph) -> str
    dependency_graph_to_mermaid(graph) -> str
"""

from __future__ import annotations

from code_xref.xref.analyzer import CrossReferenceAnalyzer
from code_xref.xref.exceptions import (
    CollaboratorUnavailableError,
    IndexUnavailableError,
    InvalidQueryError,
    NotFoundError,
    XrefError,
)
from code_xref.xref.context import RelatedFile, Relationship
from code_xref.xref.mermaid import call_graph_to_mermaid, dependency_graph_to_mermaid
from code_xref.xref.models import (
    ClassNode,
    DependencyGraph,
    Implementation,
    InheritanceTree,
    MethodCallGraph,
    MethodNode,
)

__all__ = [
    "ClassNode",
    "CollaboratorUnavailableError",
    "CrossReferenceAnalyzer",
    "DependencyGraph",
    "Implementation",
    "IndexUnavailableError",
    "InheritanceTree",
    "InvalidQueryError",
    "MethodCallGraph",
    "MethodNode",
    "NotFoundError",
    "RelatedFile",
    "Relationship",
    "XrefError",
    "call_graph_to_mermaid",
    "dependency_graph_to_mermaid",
]
