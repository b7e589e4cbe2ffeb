from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pydot
from pyparsing import ParseBaseException

from domain.graph import AttributeKind, Graph

logger = logging.getLogger(__name__)

_DEFAULT_STATEMENTS = {
    "graph": AttributeKind.GRAPH,
    "node": AttributeKind.NODE,
    "edge": AttributeKind.EDGE,
}


def unquote(value: Any) -> str:
    text = str(value).strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1].replace('\\"', '"')
    return text


def _endpoint_name(endpoint: Any) -> str | None:
    if not isinstance(endpoint, str):
        return None
    text = endpoint.strip()
    if text.startswith('"'):
        closing = text.find('"', 1)
        while closing > 0 and text[closing - 1] == "\\":
            closing = text.find('"', closing + 1)
        return unquote(text[: closing + 1]) if closing > 0 else unquote(text)
    # strip a trailing port, e.g. node:port or node:port:compass
    return text.split(":", 1)[0]


def _attributes(element: Any) -> dict[str, str]:
    raw = element.obj_dict.get("attributes", {}) or {}
    return {str(name): unquote(value) for name, value in raw.items()}


def _sequence(element: Any) -> int:
    value = element.obj_dict.get("sequence")
    return value if isinstance(value, int) else 0


class DotReader:
    """Builds graph records from DOT text, creating nodes in first-mention order."""

    def read(self, source: str) -> Graph | None:
        try:
            parsed = pydot.graph_from_dot_data(source)
        except (ParseBaseException, pydot.PydotException, ValueError) as exc:
            logger.warning("Unable to parse DOT source: %s", exc)
            return None
        if not parsed:
            logger.warning("Unable to parse DOT source")
            return None
        if len(parsed) > 1:
            logger.warning("DOT source holds %d graphs; reading the first", len(parsed))
        dot_graph = parsed[0]
        graph = Graph(unquote(dot_graph.get_name() or "G"))
        if dot_graph.get_type() != "digraph":
            logger.debug("Graph %s is undirected in source; reading it as directed", graph.name)
        for name, value in _attributes(dot_graph).items():
            graph.set_attribute(name, value)
        self._read_body(dot_graph, graph, {}, {}, nested=False)
        logger.debug(
            "Parsed graph %s with %d nodes and %d edges",
            graph.name,
            graph.node_count,
            graph.edge_count,
        )
        return graph

    def _read_body(
        self,
        container: Any,
        graph: Graph,
        node_scope: Mapping[str, str],
        edge_scope: Mapping[str, str],
        *,
        nested: bool,
    ) -> None:
        # subgraph default statements only reach the statements that follow them in that subgraph
        node_defaults = dict(node_scope)
        edge_defaults = dict(edge_scope)
        statements = sorted(
            [*container.get_nodes(), *container.get_edges(), *container.get_subgraphs()],
            key=_sequence,
        )
        for statement in statements:
            if isinstance(statement, pydot.Edge):
                self._read_edge(statement, graph, node_defaults, edge_defaults)
            elif isinstance(statement, pydot.Subgraph):
                self._read_body(statement, graph, node_defaults, edge_defaults, nested=True)
            elif isinstance(statement, pydot.Node):
                name = unquote(statement.get_name())
                attributes = _attributes(statement)
                kind = _DEFAULT_STATEMENTS.get(name)
                if kind is None:
                    self._read_node(name, attributes, graph, node_defaults)
                elif kind is AttributeKind.GRAPH:
                    if not nested:
                        for key, value in attributes.items():
                            graph.set_attribute(key, value)
                elif nested:
                    target = node_defaults if kind is AttributeKind.NODE else edge_defaults
                    target.update(attributes)
                else:
                    graph.apply_defaults(kind, list(attributes.items()))

    def _read_node(
        self,
        name: str,
        attributes: Mapping[str, str],
        graph: Graph,
        node_defaults: Mapping[str, str],
    ) -> None:
        is_new = graph.node(name) is None
        node = graph.add_node(name)
        if is_new:
            for key, value in node_defaults.items():
                node.set_attribute(key, value)
        for key, value in attributes.items():
            node.set_attribute(key, value)

    def _read_edge(
        self,
        statement: Any,
        graph: Graph,
        node_defaults: Mapping[str, str],
        edge_defaults: Mapping[str, str],
    ) -> None:
        tail = _endpoint_name(statement.get_source())
        head = _endpoint_name(statement.get_destination())
        if tail is None or head is None:
            logger.warning("Skipping edge with a subgraph endpoint")
            return
        for name in (tail, head):
            if graph.node(name) is None:
                self._read_node(name, {}, graph, node_defaults)
        attributes = {**edge_defaults, **_attributes(statement)}
        key = attributes.pop("key", "")
        # only keyed statements name the same edge; each unkeyed one adds a parallel edge
        edge = graph.add_edge(tail, head, key=key, unique=bool(key))
        for name, value in attributes.items():
            edge.set_attribute(name, value)
