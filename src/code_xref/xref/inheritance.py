"""Inheritance tree construction below a root class."""

from __future__ import annotations

from collections import defaultdict, deque
from typing import TYPE_CHECKING

from code_xref.xref.exceptions import NotFoundError
from code_xref.xref.models import ClassNode, ClassType, InheritanceTree

if TYPE_CHECKING:
    from code_xref.xref.index import IndexView


class InheritanceTreeBuilder:
    def __init__(self, view: IndexView) -> None:
        self.view = view

    def _children_by_parent(self) -> dict[str, list[ClassNode]]:
        children: dict[str, list[ClassNode]] = defaultdict(list)
        for cls in self.view.classes.values():
            if cls.superclass:
                children[cls.superclass].append(cls)
        return children

    def build(
        self,
        class_name: str,
        include_interfaces: bool = True,
        include_abstract: bool = True,
    ) -> InheritanceTree:
        """Walk subclasses of ``class_name`` breadth-first.

        Enum children are never followed. A visited set stops malformed
        hierarchies where a class ends up below itself.
        """
        root = self.view.find_class(class_name)
        if root is None:
            msg = f"Class {class_name} not found"
            raise NotFoundError(msg)

        def admitted(child: ClassNode) -> bool:
            if child.type == ClassType.ENUM:
                return False
            if child.type == ClassType.INTERFACE:
                return include_interfaces
            if child.type == ClassType.ABSTRACT:
                return include_abstract
            return True

        children = self._children_by_parent()
        nodes: dict[str, ClassNode] = {root.id: root}
        depth = 0
        queue: deque[tuple[ClassNode, int]] = deque([(root, 0)])
        while queue:
            node, level = queue.popleft()
            depth = max(depth, level)
            for child in children.get(node.name, ()):
                if child.id in nodes or not admitted(child):
                    continue
                nodes[child.id] = child
                queue.append((child, level + 1))

        interfaces: list[str] = []
        abstract_classes: list[str] = []
        concrete_classes: list[str] = []
        for node in nodes.values():
            if node.type == ClassType.INTERFACE:
                interfaces.append(node.name)
            elif node.type == ClassType.ABSTRACT:
                abstract_classes.append(node.name)
            else:
                concrete_classes.append(node.name)

        return InheritanceTree(
            root=root,
            nodes=nodes,
            depth=depth,
            interfaces=interfaces,
            abstract_classes=abstract_classes,
            concrete_classes=concrete_classes,
        )
