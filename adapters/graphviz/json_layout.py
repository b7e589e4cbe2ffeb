from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import orjson

from adapters.graphviz.dot_writer import SCENE_REF_ATTRIBUTE, scene_ref
from domain.graph import Graph, GraphEdge, GraphNode
from domain.models import (
    DEFAULT_FONT_COLOR,
    DEFAULT_FONT_NAME,
    DEFAULT_FONT_SIZE,
    BezierSegment,
    EdgeLayout,
    EngineBox,
    LabelMetadata,
    NodeLayout,
    Point,
    ShapeDescriptor,
    Size,
)

logger = logging.getLogger(__name__)

POINTS_PER_INCH = 72.0
# default node margin (0.11in x 0.055in) on both sides
NODE_LABEL_MARGIN = Size(16.0, 8.0)
DEFAULT_SHAPE = "ellipse"
_ELLIPSE_FALLBACK = frozenset({"ellipse", "circle", "oval", "doublecircle"})
_POLYGON_OPS = frozenset({"p", "P"})
_ELLIPSE_OPS = frozenset({"e", "E"})


class LayoutOutputError(ValueError):
    pass


@dataclass
class LayoutResult:
    bounding_box: EngineBox
    nodes: dict[str, NodeLayout] = field(default_factory=dict)
    edges: dict[str, EdgeLayout] = field(default_factory=dict)


def _float(value: Any, what: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        msg = f"Invalid number for {what}: {value!r}"
        raise LayoutOutputError(msg) from exc


def parse_point(text: str, what: str = "point") -> Point:
    parts = str(text).split(",")
    if len(parts) < 2:
        msg = f"Invalid {what}: {text!r}"
        raise LayoutOutputError(msg)
    return Point(_float(parts[0], what), _float(parts[1], what))


def parse_bounding_box(text: str) -> EngineBox:
    parts = str(text).split(",")
    if len(parts) != 4:
        msg = f"Invalid bounding box: {text!r}"
        raise LayoutOutputError(msg)
    llx, lly, urx, ury = (_float(part, "bounding box") for part in parts)
    return EngineBox(Point(llx, lly), Point(urx, ury))


def parse_spline(text: str) -> tuple[BezierSegment, ...]:
    """Parse an edge ``pos`` value: segments split by ``;``, each ``[s,x,y] [e,x,y] x,y ...``."""
    segments: list[BezierSegment] = []
    for chunk in str(text).split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        start_point: Point | None = None
        end_point: Point | None = None
        points: list[Point] = []
        try:
            for token in chunk.split():
                if token.startswith("s,"):
                    start_point = parse_point(token[2:], "spline start point")
                elif token.startswith("e,"):
                    end_point = parse_point(token[2:], "spline end point")
                else:
                    points.append(parse_point(token, "spline control point"))
        except LayoutOutputError as exc:
            logger.warning("Skipping unreadable spline segment: %s", exc)
            continue
        segments.append(BezierSegment(tuple(points), start_point, end_point))
    return tuple(segments)


def substitute_escapes(text: str, replacements: Mapping[str, str]) -> str:
    result: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            code = text[index + 1]
            if code in replacements:
                result.append(replacements[code])
                index += 2
                continue
            result.append(text[index : index + 2])
            index += 2
            continue
        result.append(char)
        index += 1
    return "".join(result)


def _label_font(ops: Iterable[Mapping[str, Any]], fallback: Mapping[str, str]) -> tuple[str, float, str]:
    font_name = fallback.get("fontname") or DEFAULT_FONT_NAME
    font_size = _float(fallback.get("fontsize") or DEFAULT_FONT_SIZE, "fontsize")
    font_color = fallback.get("fontcolor") or DEFAULT_FONT_COLOR
    for op in ops:
        kind = op.get("op")
        if kind == "F":
            font_name = str(op.get("face") or font_name)
            font_size = _float(op.get("size", font_size), "font size")
        elif kind == "c" and op.get("color"):
            font_color = str(op["color"])
        elif kind == "T":
            break
    return font_name, font_size, font_color


def _rings(ops: Iterable[Mapping[str, Any]], center: Point) -> tuple[tuple[Point, ...], ...]:
    """Outline rings relative to ``center`` with y pointing down."""
    rings: list[tuple[Point, ...]] = []
    for op in ops:
        kind = op.get("op")
        if kind in _POLYGON_OPS:
            rings.append(
                tuple(
                    Point(_float(x, "polygon") - center.x, center.y - _float(y, "polygon"))
                    for x, y in op.get("points", [])
                )
            )
        elif kind in _ELLIPSE_OPS:
            cx, cy, rx, ry = (_float(value, "ellipse") for value in op.get("rect", []))
            dx = cx - center.x
            dy = center.y - cy
            rings.append((Point(dx - rx, dy - ry), Point(dx + rx, dy + ry)))
    return tuple(rings)


def _fallback_ring(shape: str, width: float, height: float) -> tuple[Point, ...]:
    half_w = width / 2
    half_h = height / 2
    if shape in _ELLIPSE_FALLBACK:
        return (Point(-half_w, -half_h), Point(half_w, half_h))
    return (
        Point(-half_w, -half_h),
        Point(half_w, -half_h),
        Point(half_w, half_h),
        Point(-half_w, half_h),
    )


class JsonLayoutReader:
    """Reads ``dot -Tjson`` output into layout records for an existing graph."""

    def read(self, payload: str | bytes, graph: Graph) -> LayoutResult:
        try:
            data = orjson.loads(payload)
        except orjson.JSONDecodeError as exc:
            msg = f"Layout output is not valid JSON: {exc}"
            raise LayoutOutputError(msg) from exc
        if not isinstance(data, dict) or "bb" not in data:
            msg = "Layout output has no graph bounding box"
            raise LayoutOutputError(msg)

        try:
            return self._read_objects(data, graph)
        except LayoutOutputError:
            raise
        except (TypeError, ValueError) as exc:
            msg = f"Layout output is malformed: {exc}"
            raise LayoutOutputError(msg) from exc

    def _read_objects(self, data: Mapping[str, Any], graph: Graph) -> LayoutResult:
        result = LayoutResult(bounding_box=parse_bounding_box(data["bb"]))
        for obj in data.get("objects", []) or []:
            if not isinstance(obj, dict) or "width" not in obj or "height" not in obj:
                continue  # subgraphs and clusters
            name = str(obj.get("name", ""))
            node = graph.node(name)
            if node is None:
                logger.debug("Layout output names unknown node %r", name)
                continue
            result.nodes[name] = self._node_layout(obj, node, graph)

        edges_by_ref = {scene_ref(edge): edge for edge in graph.edges()}
        ordered = list(graph.edges())
        for position, obj in enumerate(data.get("edges", []) or []):
            if not isinstance(obj, dict):
                continue
            edge = edges_by_ref.get(str(obj.get(SCENE_REF_ATTRIBUTE, "")))
            if edge is None and position < len(ordered):
                edge = ordered[position]
            if edge is None:
                logger.debug("Layout output names unknown edge %r", obj.get("_gvid"))
                continue
            result.edges[scene_ref(edge)] = self._edge_layout(obj, edge, graph)
        return result

    def _node_layout(self, obj: Mapping[str, Any], node: GraphNode, graph: Graph) -> NodeLayout:
        position = parse_point(obj.get("pos", ""), f"position of node {node.name}")
        width = _float(obj.get("width"), "node width") * POINTS_PER_INCH
        height = _float(obj.get("height"), "node height") * POINTS_PER_INCH
        shape = str(obj.get("shape") or node.attribute("shape") or DEFAULT_SHAPE)
        rings = _rings(obj.get("_draw_", []) or [], position)
        if not rings:
            rings = (_fallback_ring(shape, width, height),)

        raw_label = str(obj.get("label") or node.attribute("label") or "\\N")
        text = substitute_escapes(raw_label, {"N": node.name, "G": graph.name})
        font_name, font_size, font_color = _label_font(obj.get("_ldraw_", []) or [], obj)
        label = LabelMetadata(
            text=text,
            font_name=font_name,
            font_size=font_size,
            font_color=font_color,
            position=None,
            valign=str(obj.get("labelloc") or node.attribute("labelloc") or "c"),
            space=Size(
                max(0.0, width - NODE_LABEL_MARGIN.width),
                max(0.0, height - NODE_LABEL_MARGIN.height),
            ),
        )
        return NodeLayout(
            position=position,
            width=width,
            height=height,
            shape=ShapeDescriptor(name=shape, peripheries=rings),
            label=label,
        )

    def _edge_layout(self, obj: Mapping[str, Any], edge: GraphEdge, graph: Graph) -> EdgeLayout:
        splines = parse_spline(obj.get("pos", ""))
        raw_label = str(obj.get("label") or edge.attribute("label") or "")
        text = substitute_escapes(
            raw_label,
            {
                "E": f"{edge.tail.name}->{edge.head.name}",
                "T": edge.tail.name,
                "H": edge.head.name,
                "G": graph.name,
            },
        )
        label = None
        if text:
            font_name, font_size, font_color = _label_font(obj.get("_ldraw_", []) or [], obj)
            position = parse_point(obj["lp"], "edge label position") if obj.get("lp") else None
            label = LabelMetadata(
                text=text,
                font_name=font_name,
                font_size=font_size,
                font_color=font_color,
                position=position,
            )
        return EdgeLayout(splines=splines, label=label)


def apply_layout(graph: Graph, result: LayoutResult) -> None:
    graph.clear_layout()
    graph.bounding_box = result.bounding_box
    for name, layout in result.nodes.items():
        node = graph.node(name)
        if node is not None:
            node.layout = layout
    for edge in graph.edges():
        edge.layout = result.edges.get(scene_ref(edge))
