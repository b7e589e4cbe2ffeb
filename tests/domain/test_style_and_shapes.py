from __future__ import annotations

import logging

import pytest

from domain.models import TRANSPARENT, Point, ShapeDescriptor, ShapeKind, StyleFlag
from domain.services.node_geometry import build_node_path
from domain.services.shape_classifier import classify
from domain.services.style_parser import parse_style, pen_for, resolve_fill_color, resolve_pen_color


def test_parse_style_drops_unknown_tokens() -> None:
    assert parse_style("filled,bold,bogus") == {StyleFlag.FILLED, StyleFlag.BOLD}


def test_parse_style_accepts_spacing_and_invis() -> None:
    assert parse_style(" dashed , invis") == {StyleFlag.DASHED, StyleFlag.INVISIBLE}
    assert parse_style("") == frozenset()


def test_fill_color_prefers_fillcolor_then_color() -> None:
    filled = parse_style("filled")

    assert resolve_fill_color(filled, "", "red") == "red"
    assert resolve_fill_color(filled, "blue", "red") == "blue"
    assert resolve_fill_color(filled, "", "") == TRANSPARENT


def test_fill_color_needs_filled_style() -> None:
    assert resolve_fill_color(parse_style("bold"), "blue", "red") == TRANSPARENT


def test_pen_color_defaults_to_black() -> None:
    assert resolve_pen_color("") == "black"
    assert resolve_pen_color("red") == "red"


def test_pen_for_maps_bold_and_dashes() -> None:
    pen = pen_for(parse_style("bold,dotted"), "red")

    assert pen.color == "red"
    assert pen.width == 2.0
    assert pen.dash == "1,5"


@pytest.mark.parametrize(
    ("name", "kind"),
    [
        ("box", ShapeKind.POLYGON),
        ("Msquare", ShapeKind.POLYGON),
        ("plaintext", ShapeKind.POLYGON),
        ("circle", ShapeKind.ELLIPSE),
        ("doublecircle", ShapeKind.ELLIPSE),
        ("record", ShapeKind.RECORD),
        ("Mrecord", ShapeKind.RECORD),
    ],
)
def test_classify_known_shapes(name: str, kind: ShapeKind) -> None:
    assert classify(name) is kind


def test_unsupported_shape_warns_and_has_no_geometry(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        assert classify("bogus") is ShapeKind.UNSUPPORTED
        path = build_node_path(ShapeDescriptor("bogus", ((Point(-1.0, -1.0), Point(1.0, 1.0)),)))

    assert path.is_empty()
    assert any("bogus" in record.getMessage() for record in caplog.records)


def test_polygon_outline_closes_every_periphery() -> None:
    ring = (Point(-5.0, -5.0), Point(5.0, -5.0), Point(5.0, 5.0), Point(-5.0, 5.0))
    outer = tuple(point.scaled(2.0) for point in ring)

    path = build_node_path(ShapeDescriptor("doubleoctagon", (ring, outer)))

    polylines = path.subpaths()
    assert len(polylines) == 2
    assert all(line[0] == line[-1] for line in polylines)
    assert path.bounding_rect().width == 20.0


def test_ellipse_outline_from_two_point_extent() -> None:
    path = build_node_path(ShapeDescriptor("ellipse", ((Point(-27.0, -18.0), Point(27.0, 18.0)),)))

    rect = path.bounding_rect()
    assert (rect.x, rect.y, rect.width, rect.height) == (-27.0, -18.0, 54.0, 36.0)


def test_ellipse_with_wrong_ring_size_is_empty(caplog: pytest.LogCaptureFixture) -> None:
    ring = (Point(0.0, 0.0), Point(1.0, 0.0), Point(1.0, 1.0))
    with caplog.at_level(logging.WARNING):
        path = build_node_path(ShapeDescriptor("ellipse", (ring,)))

    assert path.is_empty()
    assert caplog.records


def test_record_shape_has_no_geometry() -> None:
    ring = (Point(-1.0, -1.0), Point(1.0, -1.0), Point(1.0, 1.0))

    assert build_node_path(ShapeDescriptor("record", (ring,))).is_empty()
