from __future__ import annotations

from typing import Protocol

from domain.graph import Graph


class LayoutEngine(Protocol):
    def open_graph(self, name: str) -> Graph: ...

    def parse_graph(self, source: str) -> Graph | None: ...

    def layout(self, graph: Graph, algorithm: str = "dot") -> bool: ...
