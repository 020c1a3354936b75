"""Pydantic models and enums for the cross-reference indices and query results.

Index nodes (MethodNode, ClassNode and their parts) are frozen: their fields
cannot be reassigned once built. Their list fields are only edited in place by
the index builder while it owns the IndexStore.
"""

from enum import StrEnum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict

from code_xref.xref.exceptions import InvalidQueryError

E = TypeVar("E", bound=StrEnum)


class ClassType(StrEnum):
    CLASS = "class"
    INTERFACE = "interface"
    ABSTRACT = "abstract"
    ENUM = "enum"


class Direction(StrEnum):
    CALLERS = "callers"
    CALLEES = "callees"
    BOTH = "both"


class CallEdgeKind(StrEnum):
    DIRECT = "direct"
    INDIRECT = "indirect"
    CALLBACK = "callback"
    EVENT = "event"


class DependencyKind(StrEnum):
    IMPORT = "import"
    INHERITANCE = "inheritance"
    COMPOSITION = "composition"
    METHOD_CALL = "method-call"


class DependencyNodeKind(StrEnum):
    CLASS = "class"
    INTERFACE = "interface"
    PACKAGE = "package"
    FILE = "file"


class Scope(StrEnum):
    FILE = "file"
    PACKAGE = "package"
    GLOBAL = "global"


class HotspotKind(StrEnum):
    HIGH_COMPLEXITY = "high-complexity"
    HIGH_COUPLING = "high-coupling"
    CIRCULAR_DEPENDENCY = "circular-dependency"
    UNSTABLE = "unstable"


def parse_choice(enum_type: type[E], value: object, what: str) -> E:
    """Coerce a user-supplied value to ``enum_type`` or raise InvalidQueryError."""
    try:
        return enum_type(value)
    except ValueError as e:
        choices = ", ".join(member.value for member in enum_type)
        msg = f"Invalid {what} {value!r}; expected one of: {choices}"
        raise InvalidQueryError(msg) from e


# -----------------------------------------------------------------------
# Index nodes
# -----------------------------------------------------------------------


class Parameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "any"
    optional: bool = False


class FieldNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "any"
    modifiers: list[str] = []
    initial_value: str | None = None


class MethodNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str  # "{file_path}:{name}"
    name: str
    class_name: str = "Unknown"
    file_path: str
    signature: str = ""
    modifiers: list[str] = []
    calls: list[str] = []
    called_by: list[str] = []
    complexity: int = 1
    lines_of_code: int = 0
    start_line: int = 0
    end_line: int = 0
    parameters: list[Parameter] = []
    return_type: str = "void"
    documentation: str = ""


class ClassNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str  # "{file_path}:{name}"
    name: str
    file_path: str
    type: ClassType = ClassType.CLASS
    superclass: str | None = None
    interfaces: list[str] = []
    subclasses: list[str] = []
    methods: list[MethodNode] = []
    fields: list[FieldNode] = []
    modifiers: list[str] = []
    package: str = ""
    imports: list[str] = []


# -----------------------------------------------------------------------
# Call graph
# -----------------------------------------------------------------------


class MethodEdge(BaseModel):
    from_id: str
    to_id: str
    kind: CallEdgeKind = CallEdgeKind.DIRECT
    weight: int = 1
    file_path: str
    line: int = 0


class CallGraphMetadata(BaseModel):
    total_methods: int = 0
    max_depth: int = 0  # highest node complexity, kept as a depth proxy
    circular_dependencies: int = 0
    depth_reached: int = 0  # deepest BFS level actually recorded


class MethodCallGraph(BaseModel):
    root: MethodNode
    nodes: dict[str, MethodNode]
    edges: list[MethodEdge] = []
    cycles: list[list[str]] = []
    entry_points: list[str] = []
    termination_points: list[str] = []
    metadata: CallGraphMetadata = CallGraphMetadata()


# -----------------------------------------------------------------------
# Inheritance
# -----------------------------------------------------------------------


class InheritanceTree(BaseModel):
    root: ClassNode
    nodes: dict[str, ClassNode]
    depth: int = 0
    interfaces: list[str] = []
    abstract_classes: list[str] = []
    concrete_classes: list[str] = []


# -----------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------


class DependencyNode(BaseModel):
    id: str
    name: str
    kind: DependencyNodeKind = DependencyNodeKind.CLASS
    file_path: str
    package: str = ""
    dependencies: list[str] = []
    dependents: list[str] = []
    complexity: int = 1
    stability: float = 0.5


class DependencyEdge(BaseModel):
    from_id: str
    to_id: str
    kind: DependencyKind
    strength: int = 1
    file_path: str


class Hotspot(BaseModel):
    node_id: str
    kind: HotspotKind
    score: float
    recommendations: list[str] = []


class DependencyMetrics(BaseModel):
    total_nodes: int = 0
    total_edges: int = 0
    circular_dependencies: int = 0
    average_coupling: float = 0.0
    cohesion_score: float = 0.0
    stability_index: float = 1.0
    abstractness: float = 0.0
    distance_from_main_sequence: float = 0.0


class DependencyGraph(BaseModel):
    nodes: list[DependencyNode]
    edges: list[DependencyEdge] = []
    cycles: list[list[str]] = []
    hotspots: list[Hotspot] = []
    metrics: DependencyMetrics = DependencyMetrics()


# -----------------------------------------------------------------------
# Implementations
# -----------------------------------------------------------------------


class Implementation(BaseModel):
    interface_name: str
    implementation_name: str
    file_path: str
    methods: list[MethodNode] = []
    is_abstract: bool = False
    package: str = ""


# -----------------------------------------------------------------------
# Debug summary
# -----------------------------------------------------------------------


class ClassSummary(BaseModel):
    name: str
    type: ClassType
    interfaces: list[str] = []
    file_path: str


class InterfaceSummary(BaseModel):
    name: str
    implementations: list[str] = []


class DebugInfo(BaseModel):
    method_count: int
    class_count: int
    classes: list[ClassSummary] = []
    interfaces: list[InterfaceSummary] = []
