from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from domain.geometry import Path, StrokeOutline, to_display
from domain.graph import GraphEdge, GraphNode, GraphNotLaidOutError
from domain.models import (
    DEFAULT_FONT_COLOR,
    DEFAULT_PEN_COLOR,
    TRANSPARENT,
    LabelMetadata,
    Pen,
    Point,
    Rect,
    StyleFlag,
)
from domain.ports.display import ColorizeEffect, Painter
from domain.services.edge_geometry import build_edge_paths, hit_outline
from domain.services.label_layout import LabelGeometry, layout_label
from domain.services.node_geometry import build_node_path
from domain.services.style_parser import parse_style, pen_for, resolve_fill_color

if TYPE_CHECKING:
    from domain.services.scene_canvas import SceneCanvas

logger = logging.getLogger(__name__)

SELECTION_MARGIN = 1.0


@dataclass
class NodeState:
    position: Point = Point(0.0, 0.0)
    path: Path = field(default_factory=Path)
    bounding_box: Rect = Rect()
    styles: frozenset[StyleFlag] = frozenset()
    pen_color: str = DEFAULT_PEN_COLOR
    fill_color: str = TRANSPARENT
    label: LabelGeometry | None = None


@dataclass
class EdgeState:
    position: Point = Point(0.0, 0.0)
    path: Path = field(default_factory=Path)
    arrow_path: Path = field(default_factory=Path)
    label_path: Path = field(default_factory=Path)
    bounding_box: Rect = Rect()
    styles: frozenset[StyleFlag] = frozenset()
    pen: Pen = Pen()
    font_color: str = DEFAULT_FONT_COLOR
    font_size: float = 0.0
    label: LabelGeometry | None = None
    outline: StrokeOutline | None = None


class SceneItem:
    kind = "item"

    def __init__(self, canvas: SceneCanvas) -> None:
        self.canvas = canvas
        self.selected = False
        self.effect: ColorizeEffect | None = None

    @property
    def name(self) -> str:
        raise NotImplementedError

    @property
    def position(self) -> Point:
        raise NotImplementedError

    @property
    def is_visible(self) -> bool:
        raise NotImplementedError

    def update_state(self) -> None:
        raise NotImplementedError

    def bounding_rect(self) -> Rect:
        raise NotImplementedError

    def contains(self, point: Point) -> bool:
        raise NotImplementedError

    def paint(self, painter: Painter) -> None:
        raise NotImplementedError

    def set_selected(self, selected: bool) -> bool:
        if selected == self.selected:
            return False
        self.selected = selected
        self.effect = ColorizeEffect() if selected else None
        return True

    def scene_bounding_rect(self) -> Rect:
        return self.bounding_rect().translated(self.position.x, self.position.y)

    def contains_scene_point(self, point: Point) -> bool:
        return self.contains(point - self.position)


class NodeItem(SceneItem):
    kind = "node"

    def __init__(self, canvas: SceneCanvas, record: GraphNode) -> None:
        super().__init__(canvas)
        self.record = record
        self.state = NodeState()

    @classmethod
    def create(cls, canvas: SceneCanvas, name: str) -> NodeItem:
        record = canvas.graph.add_node(name)
        record.set_attribute("label", name)
        return cls(canvas, record)

    @classmethod
    def adopt(cls, canvas: SceneCanvas, record: GraphNode) -> NodeItem:
        return cls(canvas, record)

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def position(self) -> Point:
        return self.state.position

    @property
    def is_visible(self) -> bool:
        return StyleFlag.INVISIBLE not in self.state.styles

    def attribute(self, name: str) -> str:
        return self.record.attribute(name)

    def set_attribute(self, name: str, value: str) -> bool:
        return self.record.set_attribute(name, value)

    def update_state(self) -> None:
        try:
            layout = self.record.require_layout()
            height = self.canvas.graph.height
        except GraphNotLaidOutError as exc:
            logger.debug("Node %s keeps empty geometry: %s", self.name, exc)
            self.state = NodeState()
            return

        position = to_display(layout.position, height)
        color = self.attribute("color")
        styles = parse_style(self.attribute("style"))
        path = build_node_path(layout.shape)
        self.state = NodeState(
            position=position,
            path=path,
            bounding_box=path.bounding_rect(),
            styles=styles,
            pen_color=color or DEFAULT_PEN_COLOR,
            fill_color=resolve_fill_color(styles, self.attribute("fillcolor"), color),
            label=self._layout_label(layout.label, height, position),
        )

    def _layout_label(
        self, label: LabelMetadata | None, height: float, position: Point
    ) -> LabelGeometry | None:
        if label is None:
            return None
        center = Point(0.0, 0.0)
        if label.position is not None:
            center = to_display(label.position, height) - position
        return layout_label(label, center, self.canvas.fonts, self.canvas.logical_dpi_y())

    def bounding_rect(self) -> Rect:
        if self.selected:
            return self.state.bounding_box.adjusted(
                -SELECTION_MARGIN, -SELECTION_MARGIN, SELECTION_MARGIN, SELECTION_MARGIN
            )
        return self.state.bounding_box

    def shape(self) -> Path:
        return self.state.path

    def contains(self, point: Point) -> bool:
        return self.state.path.contains(point)

    def paint(self, painter: Painter) -> None:
        if not self.is_visible:
            return
        painter.save()
        painter.set_brush(self.state.fill_color)
        painter.set_pen(pen_for(self.state.styles, self.state.pen_color))
        painter.draw_path(self.state.path)
        label = self.state.label
        if label is not None and not label.path.is_empty():
            painter.set_pen(Pen(color=label.font_color))
            painter.set_brush(None)
            painter.draw_path(label.path)
        painter.restore()


class EdgeItem(SceneItem):
    kind = "edge"

    def __init__(self, canvas: SceneCanvas, record: GraphEdge) -> None:
        super().__init__(canvas)
        self.record = record
        self.state = EdgeState()

    @classmethod
    def create(cls, canvas: SceneCanvas, name: str, tail: NodeItem, head: NodeItem) -> EdgeItem:
        record = canvas.graph.add_edge(tail.name, head.name, key=name)
        record.set_attribute("label", name)
        return cls(canvas, record)

    @classmethod
    def adopt(cls, canvas: SceneCanvas, record: GraphEdge) -> EdgeItem:
        return cls(canvas, record)

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def position(self) -> Point:
        return self.state.position

    @property
    def is_visible(self) -> bool:
        return StyleFlag.INVISIBLE not in self.state.styles

    def attribute(self, name: str) -> str:
        return self.record.attribute(name)

    def set_attribute(self, name: str, value: str) -> bool:
        return self.record.set_attribute(name, value)

    def update_state(self) -> None:
        try:
            layout = self.record.require_layout()
            height = self.canvas.graph.height
        except GraphNotLaidOutError as exc:
            logger.debug("Edge %s keeps empty geometry: %s", self.name, exc)
            self.state = EdgeState()
            return

        paths = build_edge_paths(layout.splines, height)
        label = None
        label_path = Path()
        if layout.label is not None:
            center = Point(0.0, 0.0)
            if layout.label.position is not None:
                center = to_display(layout.label.position, height)
            label = layout_label(layout.label, center, self.canvas.fonts, self.canvas.logical_dpi_y())
            if label is not None:
                label_path = label.path

        joint = Path()
        joint.add_path(paths.path)
        joint.add_path(label_path)
        bounding_box = joint.bounding_rect()
        position = bounding_box.center
        dx, dy = -position.x, -position.y
        styles = parse_style(self.attribute("style"))
        self.state = EdgeState(
            position=position,
            path=paths.path.translated(dx, dy),
            arrow_path=paths.arrows.translated(dx, dy),
            label_path=label_path.translated(dx, dy),
            bounding_box=bounding_box.translated(dx, dy),
            styles=styles,
            pen=pen_for(styles, self.attribute("color")),
            font_color=label.font_color if label else DEFAULT_FONT_COLOR,
            font_size=label.font_size if label else 0.0,
            label=label,
        )

    def bounding_rect(self) -> Rect:
        return self.state.bounding_box

    def shape(self) -> StrokeOutline:
        if self.state.outline is None:
            self.state.outline = hit_outline(self.state.path, self.state.label_path)
        return self.state.outline

    def contains(self, point: Point) -> bool:
        return self.shape().contains(point)

    def paint(self, painter: Painter) -> None:
        if not self.is_visible:
            return
        painter.save()
        pen = self.state.pen
        if self.selected:
            pen = replace(pen, width=pen.width * 2.0)
        painter.set_pen(pen)
        painter.set_brush(None)
        painter.draw_path(self.state.path)
        if not self.state.label_path.is_empty():
            painter.set_pen(Pen(color=self.state.font_color, width=self.state.pen.width / 4.0))
            painter.set_brush(self.state.font_color)
            painter.draw_path(self.state.label_path)
        painter.restore()
