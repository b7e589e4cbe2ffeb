from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from enum import Enum

from domain.graph import AttributeKind, Graph, GraphEdge, GraphNode
from domain.models import (
    DEFAULT_LOGICAL_DPI,
    AttributeDefaults,
    NameValueList,
    Pen,
    Point,
    Rect,
)
from domain.ports.display import DisplayDevice, Painter
from domain.ports.fonts import FontEngine
from domain.ports.layout import LayoutEngine
from domain.services.scene_items import EdgeItem, NodeItem, SceneItem

logger = logging.getLogger(__name__)

DEFAULT_GRAPH_NAME = "G"
GRID_STEP = 10
GRID_COLOR = "rgb(240,240,240)"
BORDER_PEN = Pen(color="gray", width=1.5)

LayoutObserver = Callable[[], None]
NodeObserver = Callable[[NodeItem], None]
EdgeObserver = Callable[[EdgeItem], None]


class CanvasState(str, Enum):
    EMPTY = "empty"
    POPULATED = "populated"
    LAID_OUT = "laid_out"


class SceneCanvas:
    """Owns the node and edge items of one graph and keeps them in step with its layout."""

    def __init__(
        self,
        graph: Graph,
        engine: LayoutEngine,
        fonts: FontEngine,
        display: DisplayDevice | None = None,
        attributes: AttributeDefaults | None = None,
        algorithm: str = "dot",
    ) -> None:
        self.graph = graph
        self.engine = engine
        self.fonts = fonts
        self.display = display
        self.algorithm = algorithm
        self.state = CanvasState.EMPTY
        self.scene_rect = Rect()
        self.grid_shown = False
        self.closed = False
        self.parsed = True
        self._items: list[SceneItem] = []
        self._node_items: dict[str, NodeItem] = {}
        self._layout_observers: list[LayoutObserver] = []
        self._node_observers: list[NodeObserver] = []
        self._edge_observers: list[EdgeObserver] = []
        self._pending_defaults = attributes or AttributeDefaults()

    @classmethod
    def create(
        cls,
        name: str,
        engine: LayoutEngine,
        fonts: FontEngine,
        display: DisplayDevice | None = None,
        attributes: AttributeDefaults | None = None,
        algorithm: str = "dot",
    ) -> SceneCanvas:
        canvas = cls(engine.open_graph(name), engine, fonts, display, attributes, algorithm)
        canvas.set_attributes(canvas._pending_defaults)
        return canvas

    @classmethod
    def from_dot(
        cls,
        source: str,
        engine: LayoutEngine,
        fonts: FontEngine,
        display: DisplayDevice | None = None,
        attributes: AttributeDefaults | None = None,
        algorithm: str = "dot",
    ) -> SceneCanvas:
        graph = engine.parse_graph(source)
        parsed = graph is not None
        if graph is None:
            logger.warning("DOT source rejected; starting from an empty graph")
            graph = engine.open_graph(DEFAULT_GRAPH_NAME)
        canvas = cls(graph, engine, fonts, display, attributes, algorithm)
        canvas.parsed = parsed
        if parsed:
            canvas._populate()
        canvas.set_attributes(canvas._pending_defaults)
        return canvas

    def _populate(self) -> None:
        for record in self.graph.nodes():
            self.add_node_item(record)
            for edge in self.graph.out_edges(record):
                self.add_edge_item(edge)

    def set_attributes(self, attributes: AttributeDefaults) -> None:
        self._apply(AttributeKind.GRAPH, attributes.graph)
        self._apply(AttributeKind.NODE, attributes.node)
        self._apply(AttributeKind.EDGE, attributes.edge)

    def _apply(self, kind: AttributeKind, settings: NameValueList) -> None:
        for name, value in settings:
            if not self.graph.set_default(kind, name, value):
                logger.warning("Unable to set %s attribute %r", kind.value, name)

    def set_graph_attribute(self, name: str, value: str) -> bool:
        return self.graph.set_default(AttributeKind.GRAPH, name, value)

    def set_node_attribute(self, name: str, value: str) -> bool:
        return self.graph.set_default(AttributeKind.NODE, name, value)

    def set_edge_attribute(self, name: str, value: str) -> bool:
        return self.graph.set_default(AttributeKind.EDGE, name, value)

    def logical_dpi_y(self) -> float:
        if self.display is None:
            return DEFAULT_LOGICAL_DPI
        dpi = self.display.logical_dpi_y()
        return dpi if dpi and dpi > 0 else DEFAULT_LOGICAL_DPI

    def _register(self, item: SceneItem) -> None:
        self._items.append(item)
        if self.state is CanvasState.EMPTY:
            self.state = CanvasState.POPULATED

    def add_node_item(self, record: GraphNode) -> NodeItem:
        item = NodeItem.adopt(self, record)
        self._node_items[record.name] = item
        self._register(item)
        return item

    def add_edge_item(self, record: GraphEdge) -> EdgeItem:
        item = EdgeItem.adopt(self, record)
        self._register(item)
        return item

    def add_node(self, name: str) -> NodeItem:
        existing = self._node_items.get(name)
        if existing is not None:
            return existing
        item = NodeItem.create(self, name)
        self._node_items[name] = item
        self._register(item)
        return item

    def add_edge(self, name: str, tail: NodeItem | str, head: NodeItem | str) -> EdgeItem:
        tail_item = tail if isinstance(tail, NodeItem) else self.add_node(tail)
        head_item = head if isinstance(head, NodeItem) else self.add_node(head)
        record_count = self.graph.edge_count
        item = EdgeItem.create(self, name, tail_item, head_item)
        if self.graph.edge_count == record_count:
            for existing in self.edge_items():
                if existing.record is item.record:
                    return existing
        self._register(item)
        return item

    def items(self) -> list[SceneItem]:
        return list(self._items)

    def node_items(self) -> list[NodeItem]:
        return [item for item in self._items if isinstance(item, NodeItem)]

    def edge_items(self) -> list[EdgeItem]:
        return [item for item in self._items if isinstance(item, EdgeItem)]

    def node_item(self, name: str) -> NodeItem | None:
        return self._node_items.get(name)

    def on_layout_updated(self, observer: LayoutObserver) -> None:
        self._layout_observers.append(observer)

    def on_node_selected(self, observer: NodeObserver) -> None:
        self._node_observers.append(observer)

    def on_edge_selected(self, observer: EdgeObserver) -> None:
        self._edge_observers.append(observer)

    def update_layout(self) -> bool:
        if self.closed:
            logger.warning("Layout requested on closed canvas %s", self.graph.name)
            return False
        if not self.engine.layout(self.graph, self.algorithm):
            logger.warning("Layout of graph %s failed; keeping previous geometry", self.graph.name)
            return False
        self.state = CanvasState.LAID_OUT
        for item in list(self._items):
            item.update_state()
        self.scene_rect = self.bounding_rect()
        logger.debug("Graph %s laid out, scene rect %s", self.graph.name, self.scene_rect)
        for observer in list(self._layout_observers):
            observer()
        return True

    def bounding_rect(self) -> Rect:
        if self.graph.bounding_box is None:
            return Rect()
        return self.graph.bounding_box.to_rect()

    def items_bounding_rect(self) -> Rect:
        rect = Rect()
        for item in self._items:
            rect = rect.united(item.scene_bounding_rect())
        return rect

    def selected_items(self) -> list[SceneItem]:
        return [item for item in self._items if item.selected]

    def select(self, item: SceneItem, selected: bool = True) -> None:
        if item.set_selected(selected):
            self._selection_changed()

    def set_selection(self, items: Iterable[SceneItem]) -> None:
        wanted = list(items)
        changed = False
        for item in self._items:
            changed = item.set_selected(item in wanted) or changed
        if changed:
            self._selection_changed()

    def clear_selection(self) -> None:
        self.set_selection([])

    def _selection_changed(self) -> None:
        # every change reports the whole current selection, one event per item
        for item in self.selected_items():
            if isinstance(item, NodeItem):
                for observer in list(self._node_observers):
                    observer(item)
            elif isinstance(item, EdgeItem):
                for observer in list(self._edge_observers):
                    observer(item)

    def item_at(self, point: Point) -> SceneItem | None:
        for item in reversed(self._items):
            if not item.scene_bounding_rect().adjusted(-10, -10, 10, 10).contains(point):
                continue
            if item.contains_scene_point(point):
                return item
        return None

    def show_grid(self, shown: bool = True) -> None:
        self.grid_shown = shown

    def draw_background(self, painter: Painter, rect: Rect) -> None:
        if not self.grid_shown:
            return
        painter.save()
        painter.set_pen(Pen(color=GRID_COLOR))
        painter.set_brush(None)
        left = int(rect.left) - (int(rect.left) % GRID_STEP)
        top = int(rect.top) - (int(rect.top) % GRID_STEP)
        x = float(left)
        while x < rect.right:
            painter.draw_line(Point(x, rect.top), Point(x, rect.bottom))
            x += GRID_STEP
        y = float(top)
        while y < rect.bottom:
            painter.draw_line(Point(rect.left, y), Point(rect.right, y))
            y += GRID_STEP
        painter.set_pen(BORDER_PEN)
        painter.draw_rect(self.scene_rect)
        painter.restore()

    def paint(self, painter: Painter, rect: Rect | None = None) -> None:
        self.draw_background(painter, rect or self.scene_rect)
        for item in self._items:
            painter.save()
            painter.translate(item.position)
            painter.set_effect(item.effect)
            item.paint(painter)
            painter.restore()

    def close(self) -> None:
        if self.closed:
            return
        self._items.clear()
        self._node_items.clear()
        self._layout_observers.clear()
        self._node_observers.clear()
        self._edge_observers.clear()
        self.graph.release()
        self.closed = True
        logger.debug("Closed canvas %s", self.graph.name)
