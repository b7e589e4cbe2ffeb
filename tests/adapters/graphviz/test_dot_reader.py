from __future__ import annotations

import logging

import pytest

from adapters.graphviz.dot_reader import DotReader, unquote
from tests.helpers.graphviz_fixtures import CALL_TREE_DOT


def test_reads_call_tree_in_source_order() -> None:
    graph = DotReader().read(CALL_TREE_DOT)

    assert graph is not None
    assert graph.name == "G"
    assert [node.name for node in graph.nodes()] == ["0", "1", "2", "3", "4"]
    assert [edge.name for edge in graph.edges()] == ["0->1", "1->2", "1->3", "1->4"]
    main = graph.node("0")
    assert main is not None
    assert main.attribute("label") == "main"
    assert main.attribute("shape") == "square"
    assert main.attribute("file") == "mutatee.c"
    assert [edge.attribute("label") for edge in graph.edges()] == ["0", "50", "36.3636", "13.6364"]


def test_subgraph_defaults_stay_in_their_scope() -> None:
    source = """digraph G {
      node [shape=box];
      a;
      subgraph cluster_x {
        node [color=red];
        b;
        c -> d;
      }
      e;
      a -> e [label="x", key="k"];
    }
    """

    graph = DotReader().read(source)

    assert graph is not None
    colors = {node.name: node.attribute("color") for node in graph.nodes()}
    assert colors == {"a": "", "b": "red", "c": "red", "d": "red", "e": ""}
    assert all(node.attribute("shape") == "box" for node in graph.nodes())
    edge = [edge for edge in graph.edges() if edge.tail.name == "a"][0]
    assert edge.key == "k"
    assert edge.attribute("label") == "x"


def test_ports_and_quoted_names_are_resolved() -> None:
    graph = DotReader().read('digraph { "my node":p1 -> b:n; }')

    assert graph is not None
    assert [node.name for node in graph.nodes()] == ["my node", "b"]
    assert graph.edge_count == 1


def test_repeated_edge_statements_add_parallel_edges() -> None:
    graph = DotReader().read('digraph G { a -> b; a -> b [label="again"]; }')

    assert graph is not None
    assert graph.edge_count == 2
    first, second = graph.edges()
    assert first is not second
    assert (first.index, second.index) == (0, 1)
    assert first.attribute("label") == ""
    assert second.attribute("label") == "again"


def test_edge_statements_with_same_key_name_one_edge() -> None:
    graph = DotReader().read('digraph G { a -> b [key="k"]; a -> b [key="k", color="red"]; a -> b; }')

    assert graph is not None
    assert [edge.name for edge in graph.edges()] == ["a->b[k]", "a->b"]
    keyed = next(graph.edges())
    assert keyed.attribute("color") == "red"


def test_graph_attributes_are_kept() -> None:
    graph = DotReader().read('digraph calls { rankdir=LR; graph [label="Calls"]; a; }')

    assert graph is not None
    assert graph.attribute("rankdir") == "LR"
    assert graph.attribute("label") == "Calls"


def test_invalid_source_is_rejected(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        graph = DotReader().read("digraph { a -> ")

    assert graph is None
    assert caplog.records


def test_unquote_strips_one_level_of_quotes() -> None:
    assert unquote('"a \\"b\\""') == 'a "b"'
    assert unquote("plain") == "plain"
