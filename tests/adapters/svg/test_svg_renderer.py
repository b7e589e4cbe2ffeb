from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from adapters.svg.renderer import SVG_NS, SvgPainter, SvgRenderer, colorize_matrix, path_data
from domain.geometry import Path
from domain.models import Pen, Point, Rect
from domain.ports.display import ColorizeEffect
from domain.services.scene_canvas import SceneCanvas


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


def test_render_call_tree_to_svg(call_tree_canvas: SceneCanvas) -> None:
    root = ET.fromstring(SvgRenderer().render(call_tree_canvas))

    assert root.tag == _q("svg")
    assert root.get("viewBox") == "-4 -4 268 260"
    texts = sorted(element.text or "" for element in root.iter(_q("text")))
    assert texts == sorted(["main", "work", "f3", "f2", "f1", "0", "50", "36.3636", "13.6364"])
    # 5 node outlines and 4 edge curves
    assert len(root.findall(_q("path"))) == 9
    background = root.find(_q("rect"))
    assert background is not None
    assert background.get("fill") == "white"


def test_selected_item_gets_colorize_filter(call_tree_canvas: SceneCanvas) -> None:
    call_tree_canvas.select(call_tree_canvas.node_items()[0])

    root = ET.fromstring(SvgRenderer(background=None).render(call_tree_canvas))

    filters = root.findall(f"{_q('defs')}/{_q('filter')}")
    assert [element.get("id") for element in filters] == ["colorize-0"]
    filtered = [element for element in root.iter() if element.get("filter") == "url(#colorize-0)"]
    assert filtered
    assert root.find(_q("rect")) is None


def test_grid_renders_lines(call_tree_canvas: SceneCanvas) -> None:
    call_tree_canvas.show_grid()

    root = ET.fromstring(SvgRenderer().render(call_tree_canvas))

    lines = root.findall(_q("line"))
    assert len(lines) == 52
    assert lines[0].get("stroke") == "rgb(240,240,240)"


def test_path_data_writes_ellipse_as_two_arcs() -> None:
    path = Path()
    path.add_ellipse(Rect(-20.0, -10.0, 40.0, 20.0))

    assert path_data(path) == "M 20 0 A 20 10 0 1 0 -20 0 A 20 10 0 1 0 20 0 Z"


def test_path_data_formats_fractions() -> None:
    path = Path()
    path.move_to(Point(0.5, 1.0))
    path.line_to(Point(2.125, 3.3333))

    assert path_data(path) == "M 0.5 1 L 2.125 3.333"


def test_colorize_matrix_with_zero_strength_is_identity() -> None:
    matrix = colorize_matrix(ColorizeEffect(color="#ffffff", strength=0.0))

    assert matrix == "1 0 0 0 0 0 1 0 0 0 0 0 1 0 0 0 0 0 1 0"


def test_colorize_matrix_rejects_named_colors() -> None:
    with pytest.raises(ValueError, match="hex color"):
        colorize_matrix(ColorizeEffect(color="blue"))


def test_painter_applies_offsets_and_pen() -> None:
    painter = SvgPainter(Rect(0.0, 0.0, 100.0, 100.0))
    path = Path()
    path.move_to(Point(0.0, 0.0))
    path.line_to(Point(10.0, 0.0))

    painter.save()
    painter.translate(Point(5.0, 5.0))
    painter.set_pen(Pen(color="red", width=2.0, dash="5,2"))
    painter.set_brush("transparent")
    painter.draw_path(path)
    painter.restore()
    painter.draw_path(path)

    root = ET.fromstring(painter.to_string())
    first, second = root.findall(_q("path"))
    assert first.get("d") == "M 5 5 L 15 5"
    assert first.get("stroke") == "red"
    assert first.get("stroke-dasharray") == "5,2"
    assert first.get("fill") == "none"
    assert second.get("d") == "M 0 0 L 10 0"
    assert second.get("stroke") == "black"
