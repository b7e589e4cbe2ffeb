from __future__ import annotations

from dataclasses import dataclass, field

from adapters.graphviz.dot_reader import DotReader
from adapters.graphviz.json_layout import JsonLayoutReader, LayoutOutputError, apply_layout
from domain.geometry import Path
from domain.graph import Graph
from domain.models import Pen, Point, Rect
from domain.ports.display import ColorizeEffect


@dataclass(frozen=True)
class MonospaceMetrics:
    pixel_size: int

    @property
    def ascent(self) -> float:
        return 0.8 * self.pixel_size

    @property
    def descent(self) -> float:
        return 0.2 * self.pixel_size

    @property
    def line_spacing(self) -> float:
        return float(self.pixel_size)

    def width(self, text: str) -> float:
        return 0.6 * self.pixel_size * len(text)


class MonospaceFontEngine:
    def __init__(self) -> None:
        self.requests: list[tuple[str, int]] = []

    def resolve(self, family: str, pixel_size: int) -> MonospaceMetrics:
        self.requests.append((family, pixel_size))
        return MonospaceMetrics(pixel_size)


class CannedLayoutEngine:
    """Parses DOT for real and answers layout calls with a fixed ``dot -Tjson`` payload."""

    def __init__(self, payload: str | None, succeed: bool = True) -> None:
        self.payload = payload
        self.succeed = succeed
        self.calls: list[tuple[str, str]] = []

    def open_graph(self, name: str) -> Graph:
        return Graph(name)

    def parse_graph(self, source: str) -> Graph | None:
        return DotReader().read(source)

    def layout(self, graph: Graph, algorithm: str = "dot") -> bool:
        self.calls.append((graph.name, algorithm))
        if not self.succeed or self.payload is None:
            return False
        try:
            result = JsonLayoutReader().read(self.payload, graph)
        except LayoutOutputError:
            return False
        apply_layout(graph, result)
        return True


@dataclass
class RecordingPainter:
    calls: list[tuple[str, object]] = field(default_factory=list)
    pen: Pen | None = None
    brush: str | None = None
    effect: ColorizeEffect | None = None
    offset: Point = Point(0.0, 0.0)

    def save(self) -> None:
        self.calls.append(("save", None))

    def restore(self) -> None:
        self.calls.append(("restore", None))

    def translate(self, offset: Point) -> None:
        self.offset = offset
        self.calls.append(("translate", offset))

    def set_pen(self, pen: Pen | None) -> None:
        self.pen = pen
        self.calls.append(("pen", pen))

    def set_brush(self, color: str | None) -> None:
        self.brush = color
        self.calls.append(("brush", color))

    def set_effect(self, effect: ColorizeEffect | None) -> None:
        self.effect = effect
        self.calls.append(("effect", effect))

    def draw_path(self, path: Path) -> None:
        self.calls.append(("path", (path, self.pen, self.brush)))

    def draw_line(self, start: Point, end: Point) -> None:
        self.calls.append(("line", (start, end)))

    def draw_rect(self, rect: Rect) -> None:
        self.calls.append(("rect", rect))

    def drawn_paths(self) -> list[tuple[Path, Pen | None, str | None]]:
        return [payload for name, payload in self.calls if name == "path"]  # type: ignore[misc]
