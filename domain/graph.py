from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from domain.models import EdgeLayout, EngineBox, NameValueList, NodeLayout

logger = logging.getLogger(__name__)

_ATTRIBUTE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class GraphNotLaidOutError(RuntimeError):
    pass


class AttributeKind(str, Enum):
    GRAPH = "graph"
    NODE = "node"
    EDGE = "edge"


def is_valid_attribute_name(name: str) -> bool:
    return bool(_ATTRIBUTE_NAME.match(name))


@dataclass(eq=False)
class GraphNode:
    graph: Graph = field(repr=False)
    name: str
    attributes: dict[str, str] = field(default_factory=dict)
    layout: NodeLayout | None = None

    def attribute(self, name: str) -> str:
        return self.graph.resolve(AttributeKind.NODE, self.attributes, name)

    def set_attribute(self, name: str, value: str) -> bool:
        return self.graph.assign(AttributeKind.NODE, self.attributes, name, value)

    def require_layout(self) -> NodeLayout:
        if self.layout is None:
            msg = f"Node {self.name!r} has no layout; run a layout pass first"
            raise GraphNotLaidOutError(msg)
        return self.layout


@dataclass(eq=False)
class GraphEdge:
    graph: Graph = field(repr=False)
    tail: GraphNode
    head: GraphNode
    key: str = ""
    index: int = 0
    attributes: dict[str, str] = field(default_factory=dict)
    layout: EdgeLayout | None = None

    @property
    def name(self) -> str:
        return f"{self.tail.name}->{self.head.name}" + (f"[{self.key}]" if self.key else "")

    def attribute(self, name: str) -> str:
        return self.graph.resolve(AttributeKind.EDGE, self.attributes, name)

    def set_attribute(self, name: str, value: str) -> bool:
        return self.graph.assign(AttributeKind.EDGE, self.attributes, name, value)

    def require_layout(self) -> EdgeLayout:
        if self.layout is None:
            msg = f"Edge {self.name!r} has no layout; run a layout pass first"
            raise GraphNotLaidOutError(msg)
        return self.layout


class Graph:
    """Directed graph records plus graph/node/edge attribute tables.

    Attribute lookup on a record falls back to the declared default of its kind,
    then to the empty string.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.directed = True
        self.attributes: dict[str, str] = {}
        self.defaults: dict[AttributeKind, dict[str, str]] = {kind: {} for kind in AttributeKind}
        self.bounding_box: EngineBox | None = None
        self.released = False
        self._nodes: dict[str, GraphNode] = {}
        self._edges: list[GraphEdge] = []

    def resolve(self, kind: AttributeKind, local: dict[str, str], name: str) -> str:
        if name in local:
            return local[name]
        return self.defaults[kind].get(name, "")

    def assign(self, kind: AttributeKind, local: dict[str, str], name: str, value: str) -> bool:
        if not is_valid_attribute_name(name):
            logger.warning("Rejected %s attribute %r=%r", kind.value, name, value)
            return False
        self.defaults[kind].setdefault(name, "")
        local[name] = str(value)
        return True

    def attribute(self, name: str) -> str:
        return self.resolve(AttributeKind.GRAPH, self.attributes, name)

    def set_attribute(self, name: str, value: str) -> bool:
        return self.assign(AttributeKind.GRAPH, self.attributes, name, value)

    def set_default(self, kind: AttributeKind, name: str, value: str) -> bool:
        if not is_valid_attribute_name(name):
            logger.warning("Rejected %s default %r=%r", kind.value, name, value)
            return False
        self.defaults[kind][name] = str(value)
        return True

    def apply_defaults(self, kind: AttributeKind, settings: NameValueList) -> int:
        return sum(1 for name, value in settings if self.set_default(kind, name, value))

    def add_node(self, name: str) -> GraphNode:
        node = self._nodes.get(name)
        if node is None:
            node = GraphNode(graph=self, name=name)
            self._nodes[name] = node
        return node

    def node(self, name: str) -> GraphNode | None:
        return self._nodes.get(name)

    def nodes(self) -> Iterator[GraphNode]:
        return iter(list(self._nodes.values()))

    def add_edge(self, tail: str, head: str, key: str = "", *, unique: bool = True) -> GraphEdge:
        """Adds an edge; with `unique` an existing (tail, head, key) edge is returned instead."""
        tail_node = self.add_node(tail)
        head_node = self.add_node(head)
        if unique:
            for edge in self._edges:
                if edge.tail is tail_node and edge.head is head_node and edge.key == key:
                    return edge
        edge = GraphEdge(graph=self, tail=tail_node, head=head_node, key=key, index=len(self._edges))
        self._edges.append(edge)
        return edge

    def edges(self) -> Iterator[GraphEdge]:
        return iter(list(self._edges))

    def out_edges(self, node: GraphNode) -> list[GraphEdge]:
        return [edge for edge in self._edges if edge.tail is node]

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    @property
    def is_laid_out(self) -> bool:
        return self.bounding_box is not None

    @property
    def height(self) -> float:
        if self.bounding_box is None:
            msg = f"Graph {self.name!r} has no bounding box; run a layout pass first"
            raise GraphNotLaidOutError(msg)
        return self.bounding_box.height

    def clear_layout(self) -> None:
        self.bounding_box = None
        for node in self._nodes.values():
            node.layout = None
        for edge in self._edges:
            edge.layout = None

    def release(self) -> None:
        if self.released:
            return
        logger.debug("Releasing graph %s", self.name)
        self.clear_layout()
        self._edges.clear()
        self._nodes.clear()
        self.released = True
