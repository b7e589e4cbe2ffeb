from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

SCENE_SCHEMA_VERSION = "1.0"
DEFAULT_LOGICAL_DPI = 96.0
DEFAULT_FONT_NAME = "Times-Roman"
DEFAULT_FONT_SIZE = 14.0
DEFAULT_FONT_COLOR = "black"
DEFAULT_PEN_COLOR = "black"
TRANSPARENT = "transparent"

NameValuePair = Tuple[str, str]
NameValueList = List[NameValuePair]


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> Point:
        return Point(self.x * factor, self.y * factor)


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_corners(cls, first: Point, second: Point) -> Rect:
        return cls(first.x, first.y, second.x - first.x, second.y - first.y)

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def is_null(self) -> bool:
        return self.width == 0 and self.height == 0

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def normalized(self) -> Rect:
        x, width = (self.x + self.width, -self.width) if self.width < 0 else (self.x, self.width)
        y, height = (self.y + self.height, -self.height) if self.height < 0 else (self.y, self.height)
        return Rect(x, y, width, height)

    def united(self, other: Rect) -> Rect:
        if self.is_null():
            return other
        if other.is_null():
            return self
        first = self.normalized()
        second = other.normalized()
        left = min(first.left, second.left)
        top = min(first.top, second.top)
        right = max(first.right, second.right)
        bottom = max(first.bottom, second.bottom)
        return Rect(left, top, right - left, bottom - top)

    def adjusted(self, dx1: float, dy1: float, dx2: float, dy2: float) -> Rect:
        return Rect(self.x + dx1, self.y + dy1, self.width + dx2 - dx1, self.height + dy2 - dy1)

    def translated(self, dx: float, dy: float) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def with_center(self, center: Point) -> Rect:
        return Rect(center.x - self.width / 2, center.y - self.height / 2, self.width, self.height)

    def contains(self, point: Point) -> bool:
        rect = self.normalized()
        return rect.left <= point.x <= rect.right and rect.top <= point.y <= rect.bottom

    def corners(self) -> List[Point]:
        return [
            Point(self.left, self.top),
            Point(self.right, self.top),
            Point(self.right, self.bottom),
            Point(self.left, self.bottom),
        ]


@dataclass(frozen=True)
class EngineBox:
    """Layout engine bounding box, lower-left and upper-right corners, y up."""

    lower_left: Point
    upper_right: Point

    @property
    def height(self) -> float:
        return self.upper_right.y - self.lower_left.y

    def to_rect(self) -> Rect:
        # top-left corner at the lower-left y so that normalizing flips the rectangle
        corner_rect = Rect(
            self.lower_left.x,
            self.upper_right.y,
            self.upper_right.x - self.lower_left.x,
            self.lower_left.y - self.upper_right.y,
        )
        return corner_rect.normalized()


class StyleFlag(str, Enum):
    DEFAULT = "default"
    FILLED = "filled"
    INVISIBLE = "invisible"
    DIAGONALS = "diagonals"
    ROUNDED = "rounded"
    DASHED = "dashed"
    DOTTED = "dotted"
    SOLID = "solid"
    BOLD = "bold"


class ShapeKind(str, Enum):
    POLYGON = "polygon"
    ELLIPSE = "ellipse"
    RECORD = "record"
    UNSUPPORTED = "unsupported"


class VerticalAlignment(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    CENTER = "center"

    @classmethod
    def from_code(cls, code: Optional[str]) -> VerticalAlignment:
        if code == "t":
            return cls.TOP
        if code == "b":
            return cls.BOTTOM
        return cls.CENTER


@dataclass(frozen=True)
class FontSpec:
    family: str
    pixel_size: int


@dataclass(frozen=True)
class Pen:
    color: str = DEFAULT_PEN_COLOR
    width: float = 1.0
    dash: Optional[str] = None


@dataclass(frozen=True)
class LabelMetadata:
    text: str
    font_name: str = DEFAULT_FONT_NAME
    font_size: float = DEFAULT_FONT_SIZE
    font_color: str = DEFAULT_FONT_COLOR
    position: Optional[Point] = None  # engine coordinates when set explicitly
    valign: str = "c"
    space: Size = Size(0.0, 0.0)


@dataclass(frozen=True)
class BezierSegment:
    points: Tuple[Point, ...]
    start_point: Optional[Point] = None
    end_point: Optional[Point] = None

    @property
    def is_well_formed(self) -> bool:
        return len(self.points) % 3 == 1


@dataclass(frozen=True)
class ShapeDescriptor:
    """Node outline: one vertex ring per periphery, offsets from the node center, y down."""

    name: str
    peripheries: Tuple[Tuple[Point, ...], ...] = ()


@dataclass(frozen=True)
class NodeLayout:
    position: Point
    width: float
    height: float
    shape: ShapeDescriptor
    label: Optional[LabelMetadata] = None


@dataclass(frozen=True)
class EdgeLayout:
    splines: Tuple[BezierSegment, ...] = ()
    label: Optional[LabelMetadata] = None


class AttributeDefaults(BaseModel):
    graph: NameValueList = Field(default_factory=list)
    node: NameValueList = Field(default_factory=list)
    edge: NameValueList = Field(default_factory=list)

    @field_validator("graph", "node", "edge", mode="after")
    @classmethod
    def ensure_named(cls, settings: NameValueList) -> NameValueList:
        for name, _ in settings:
            if not name.strip():
                msg = "Attribute names must not be empty"
                raise ValueError(msg)
        return settings


@dataclass(frozen=True)
class SceneDocument:
    name: str
    scene_rect: Rect
    nodes: List[Dict[str, Any]] = field(default_factory=list)
    edges: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "type": "graph-scene",
            "version": SCENE_SCHEMA_VERSION,
            "source": "dotscene",
            "name": self.name,
            "sceneRect": rect_to_dict(self.scene_rect),
            "nodes": self.nodes,
            "edges": self.edges,
        }


def rect_to_dict(rect: Rect) -> Dict[str, float]:
    return {"x": rect.x, "y": rect.y, "width": rect.width, "height": rect.height}
