from __future__ import annotations

from collections.abc import Mapping

import pydot

from domain.graph import AttributeKind, Graph, GraphEdge

SCENE_REF_ATTRIBUTE = "scene_ref"


def scene_ref(edge: GraphEdge) -> str:
    return f"e{edge.index}"


def _quoted(attributes: Mapping[str, str]) -> dict[str, str]:
    # every value goes out as a DOT string, so "<init>" stays text instead of HTML
    return {name: pydot.make_quoted(value) for name, value in attributes.items()}


def _declared(defaults: Mapping[str, str]) -> dict[str, str]:
    # undeclared and empty defaults read the same
    return _quoted({name: value for name, value in defaults.items() if value})


def build_dot(graph: Graph) -> pydot.Dot:
    dot = pydot.Dot(pydot.make_quoted(graph.name), graph_type="digraph")
    for name, value in _quoted(graph.attributes).items():
        dot.set(name, value)
    graph_defaults = _declared(graph.defaults[AttributeKind.GRAPH])
    if graph_defaults:
        dot.set_graph_defaults(**graph_defaults)
    node_defaults = _declared(graph.defaults[AttributeKind.NODE])
    if node_defaults:
        dot.set_node_defaults(**node_defaults)
    edge_defaults = _declared(graph.defaults[AttributeKind.EDGE])
    if edge_defaults:
        dot.set_edge_defaults(**edge_defaults)
    for node in graph.nodes():
        dot_node = pydot.Node(pydot.make_quoted(node.name))
        for name, value in _quoted(node.attributes).items():
            dot_node.set(name, value)
        dot.add_node(dot_node)
    for edge in graph.edges():
        attributes = dict(edge.attributes)
        if edge.key:
            attributes.setdefault("key", edge.key)
        attributes[SCENE_REF_ATTRIBUTE] = scene_ref(edge)
        dot_edge = pydot.Edge(pydot.make_quoted(edge.tail.name), pydot.make_quoted(edge.head.name))
        for name, value in _quoted(attributes).items():
            dot_edge.set(name, value)
        dot.add_edge(dot_edge)
    return dot


def write_dot(graph: Graph) -> str:
    return build_dot(graph).to_string(indent="  ")
