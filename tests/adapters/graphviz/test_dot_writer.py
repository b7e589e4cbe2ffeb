from __future__ import annotations

from adapters.graphviz.dot_reader import DotReader
from adapters.graphviz.dot_writer import build_dot, scene_ref, write_dot
from domain.graph import AttributeKind, Graph


def test_values_are_written_as_quoted_strings() -> None:
    graph = Graph("G")
    node = graph.add_node("<init>")
    node.set_attribute("label", "<init>")
    node.set_attribute("tooltip", 'say "hi"')

    lines = write_dot(graph).splitlines()

    assert '  "<init>" [label="<init>", tooltip="say \\"hi\\""];' in lines
    restored = DotReader().read(write_dot(graph))
    assert restored is not None
    init = restored.node("<init>")
    assert init is not None
    assert init.attribute("label") == "<init>"
    assert init.attribute("tooltip") == 'say "hi"'


def test_write_dot_lists_defaults_nodes_and_edges() -> None:
    graph = Graph("G")
    graph.set_default(AttributeKind.NODE, "shape", "box")
    graph.add_node("a").set_attribute("label", "A")
    graph.add_edge("a", "b")

    assert write_dot(graph).splitlines() == [
        'digraph "G" {',
        '  node [shape="box"];',
        '  "a" [label="A"];',
        '  "b";',
        '  "a" -> "b" [scene_ref="e0"];',
        "}",
    ]


def test_write_dot_tags_parallel_edges_with_key_and_reference() -> None:
    graph = Graph("G")
    graph.add_edge("a", "b", key="first")
    second = graph.add_edge("a", "b", key="second")
    second.set_attribute("color", "red")

    lines = write_dot(graph).splitlines()

    assert '  "a" -> "b" [key="first", scene_ref="e0"];' in lines
    assert '  "a" -> "b" [color="red", key="second", scene_ref="e1"];' in lines
    assert scene_ref(second) == "e1"


def test_written_dot_reads_back_with_same_records() -> None:
    graph = Graph("calls")
    graph.set_attribute("rankdir", "LR")
    graph.add_node("main").set_attribute("label", 'the "main"')
    graph.add_edge("main", "runTest").set_attribute("label", "k1")

    restored = DotReader().read(write_dot(graph))

    assert restored is not None
    assert restored.name == "calls"
    assert restored.attribute("rankdir") == "LR"
    assert [node.name for node in restored.nodes()] == ["main", "runTest"]
    main = restored.node("main")
    assert main is not None
    assert main.attribute("label") == 'the "main"'
    (edge,) = restored.edges()
    assert edge.attribute("label") == "k1"
    assert edge.attribute("scene_ref") == "e0"


def test_unkeyed_parallel_edges_keep_separate_references() -> None:
    graph = Graph("G")
    graph.add_edge("a", "b", unique=False)
    graph.add_edge("a", "b", unique=False)

    dot = build_dot(graph)

    assert [edge.get("scene_ref") for edge in dot.get_edges()] == ['"e0"', '"e1"']
    restored = DotReader().read(dot.to_string())
    assert restored is not None
    assert restored.edge_count == 2
