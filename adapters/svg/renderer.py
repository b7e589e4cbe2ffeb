from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass, replace

from domain.geometry import CubicTo, EllipseElement, LineTo, MoveTo, Path, TextRun
from domain.models import TRANSPARENT, Pen, Point, Rect
from domain.ports.display import ColorizeEffect
from domain.services.scene_canvas import SceneCanvas

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
ET.register_namespace("", SVG_NS)

# luminance weights used to desaturate before tinting
_LUMA = (0.299, 0.587, 0.114)


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


def _fmt(value: float) -> str:
    if math.isclose(value, round(value), abs_tol=1e-9):
        return str(int(round(value)))
    return f"{value:.3f}".rstrip("0").rstrip(".")


def _hex_channels(color: str) -> tuple[float, float, float]:
    raw = color.lstrip("#")
    if len(raw) == 3:
        raw = "".join(char * 2 for char in raw)
    if len(raw) != 6:
        msg = f"Colorize effects need a hex color, got {color!r}"
        raise ValueError(msg)
    return tuple(int(raw[index : index + 2], 16) / 255.0 for index in (0, 2, 4))  # type: ignore[return-value]


def colorize_matrix(effect: ColorizeEffect) -> str:
    tint = _hex_channels(effect.color)
    strength = max(0.0, min(1.0, effect.strength))
    rows: list[list[float]] = []
    for channel in range(3):
        row = [strength * tint[channel] * weight for weight in _LUMA]
        row[channel] += 1.0 - strength
        rows.append([*row, 0.0, 0.0])
    rows.append([0.0, 0.0, 0.0, 1.0, 0.0])
    return " ".join(_fmt(value) for row in rows for value in row)


def path_data(path: Path) -> str:
    parts: list[str] = []
    for element in path.elements:
        if isinstance(element, MoveTo):
            parts.append(f"M {_fmt(element.point.x)} {_fmt(element.point.y)}")
        elif isinstance(element, LineTo):
            parts.append(f"L {_fmt(element.point.x)} {_fmt(element.point.y)}")
        elif isinstance(element, CubicTo):
            parts.append(
                "C "
                + " ".join(
                    f"{_fmt(point.x)} {_fmt(point.y)}"
                    for point in (element.control1, element.control2, element.end)
                )
            )
        elif isinstance(element, EllipseElement):
            rect = element.rect.normalized()
            center = rect.center
            rx = _fmt(rect.width / 2)
            ry = _fmt(rect.height / 2)
            right = _fmt(rect.right)
            left = _fmt(rect.left)
            cy = _fmt(center.y)
            parts.append(
                f"M {right} {cy} A {rx} {ry} 0 1 0 {left} {cy} A {rx} {ry} 0 1 0 {right} {cy} Z"
            )
    return " ".join(parts)


@dataclass(frozen=True)
class _PaintState:
    offset: Point = Point(0.0, 0.0)
    pen: Pen | None = Pen()
    brush: str | None = None
    effect: ColorizeEffect | None = None


class SvgPainter:
    """Collects painter calls as SVG elements under one root."""

    def __init__(self, view: Rect, background: str | None = None) -> None:
        self.root = ET.Element(
            _q("svg"),
            {
                "width": _fmt(view.width),
                "height": _fmt(view.height),
                "viewBox": " ".join(_fmt(v) for v in (view.x, view.y, view.width, view.height)),
            },
        )
        self._defs = ET.SubElement(self.root, _q("defs"))
        self._filters: dict[ColorizeEffect, str] = {}
        self._state = _PaintState()
        self._stack: list[_PaintState] = []
        if background and background != TRANSPARENT:
            ET.SubElement(
                self.root,
                _q("rect"),
                {
                    "x": _fmt(view.x),
                    "y": _fmt(view.y),
                    "width": _fmt(view.width),
                    "height": _fmt(view.height),
                    "fill": background,
                },
            )

    def save(self) -> None:
        self._stack.append(self._state)

    def restore(self) -> None:
        if self._stack:
            self._state = self._stack.pop()

    def translate(self, offset: Point) -> None:
        self._state = replace(self._state, offset=self._state.offset + offset)

    def set_pen(self, pen: Pen | None) -> None:
        self._state = replace(self._state, pen=pen)

    def set_brush(self, color: str | None) -> None:
        self._state = replace(self._state, brush=color)

    def set_effect(self, effect: ColorizeEffect | None) -> None:
        self._state = replace(self._state, effect=effect)

    def draw_path(self, path: Path) -> None:
        moved = path.translated(self._state.offset.x, self._state.offset.y)
        data = path_data(moved)
        if data:
            ET.SubElement(self.root, _q("path"), {"d": data, **self._shape_style()})
        for run in moved.text_runs():
            self._draw_text(run)

    def draw_line(self, start: Point, end: Point) -> None:
        offset = self._state.offset
        ET.SubElement(
            self.root,
            _q("line"),
            {
                "x1": _fmt(start.x + offset.x),
                "y1": _fmt(start.y + offset.y),
                "x2": _fmt(end.x + offset.x),
                "y2": _fmt(end.y + offset.y),
                **self._shape_style(fill=False),
            },
        )

    def draw_rect(self, rect: Rect) -> None:
        moved = rect.normalized().translated(self._state.offset.x, self._state.offset.y)
        ET.SubElement(
            self.root,
            _q("rect"),
            {
                "x": _fmt(moved.x),
                "y": _fmt(moved.y),
                "width": _fmt(moved.width),
                "height": _fmt(moved.height),
                **self._shape_style(),
            },
        )

    def _draw_text(self, run: TextRun) -> None:
        fill = self._state.brush or (self._state.pen.color if self._state.pen else "black")
        attrs = {
            "x": _fmt(run.origin.x),
            "y": _fmt(run.origin.y),
            "font-family": run.font.family,
            "font-size": f"{run.font.pixel_size}px",
            "fill": fill,
        }
        attrs.update(self._filter_attr())
        text = ET.SubElement(self.root, _q("text"), attrs)
        text.text = run.text

    def _shape_style(self, fill: bool = True) -> dict[str, str]:
        pen = self._state.pen
        brush = self._state.brush if fill else None
        attrs = {"fill": brush if brush and brush != TRANSPARENT else "none"}
        if pen is None:
            attrs["stroke"] = "none"
        else:
            attrs["stroke"] = pen.color
            attrs["stroke-width"] = _fmt(pen.width)
            if pen.dash:
                attrs["stroke-dasharray"] = pen.dash
        attrs.update(self._filter_attr())
        return attrs

    def _filter_attr(self) -> dict[str, str]:
        effect = self._state.effect
        if effect is None:
            return {}
        filter_id = self._filters.get(effect)
        if filter_id is None:
            filter_id = f"colorize-{len(self._filters)}"
            self._filters[effect] = filter_id
            element = ET.SubElement(self._defs, _q("filter"), {"id": filter_id})
            ET.SubElement(
                element,
                _q("feColorMatrix"),
                {"type": "matrix", "values": colorize_matrix(effect)},
            )
        return {"filter": f"url(#{filter_id})"}

    def to_string(self) -> str:
        ET.indent(self.root, space="  ")
        return ET.tostring(self.root, encoding="unicode")


class SvgRenderer:
    def __init__(self, background: str | None = "white", padding: float = 4.0) -> None:
        self._background = background
        self._padding = padding

    def render(self, canvas: SceneCanvas) -> str:
        scene = canvas.scene_rect
        if scene.is_null():
            scene = canvas.items_bounding_rect()
        view = scene.adjusted(-self._padding, -self._padding, self._padding, self._padding)
        painter = SvgPainter(view, self._background)
        canvas.paint(painter, scene)
        logger.debug("Rendered %d items to SVG", len(canvas.items()))
        return painter.to_string()
