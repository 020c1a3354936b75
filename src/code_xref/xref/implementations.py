"""Interface implementation discovery."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from code_xref.xref.exceptions import NotFoundError
from code_xref.xref.models import ClassType, Implementation

if TYPE_CHECKING:
    from code_xref.xref.index import IndexView


class ImplementationFinder:
    def __init__(self, view: IndexView) -> None:
        self.view = view

    def subinterfaces(self, interface_name: str) -> list[str]:
        """Interfaces extending ``interface_name``, transitively, nearest first."""
        found: list[str] = []
        visited = {interface_name}
        queue = deque([interface_name])
        while queue:
            current = queue.popleft()
            for cls in self.view.classes.values():
                if cls.type != ClassType.INTERFACE or cls.name in visited:
                    continue
                if current in cls.interfaces:
                    visited.add(cls.name)
                    found.append(cls.name)
                    queue.append(cls.name)
        return found

    def find(self, interface_name: str, include_subinterfaces: bool = False) -> list[Implementation]:
        """Classes listing the interface (or, optionally, a sub-interface) in ``interfaces``.

        Raises:
            NotFoundError: no indexed entry of type interface has that name.
        """
        iface = self.view.find_class(interface_name)
        if iface is None or iface.type != ClassType.INTERFACE:
            msg = f"Interface {interface_name} not found"
            raise NotFoundError(msg)

        wanted = [iface.name]
        if include_subinterfaces:
            wanted.extend(self.subinterfaces(iface.name))

        results: list[Implementation] = []
        seen: set[str] = set()
        for name in wanted:
            for cls in self.view.classes.values():
                if name not in cls.interfaces or cls.id in seen:
                    continue
                seen.add(cls.id)
                results.append(
                    Implementation(
                        interface_name=name,
                        implementation_name=cls.name,
                        file_path=cls.file_path,
                        methods=list(cls.methods),
                        is_abstract=cls.type == ClassType.ABSTRACT or "abstract" in cls.modifiers,
                        package=cls.package,
                    )
                )
        return results
