from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from domain.models import FontSpec, Point, Rect

CURVE_SAMPLES = 16
ELLIPSE_SAMPLES = 48


@dataclass(frozen=True)
class MoveTo:
    point: Point


@dataclass(frozen=True)
class LineTo:
    point: Point


@dataclass(frozen=True)
class CubicTo:
    control1: Point
    control2: Point
    end: Point


@dataclass(frozen=True)
class EllipseElement:
    rect: Rect


@dataclass(frozen=True)
class TextRun:
    origin: Point  # left end of the baseline
    text: str
    font: FontSpec
    ascent: float
    descent: float
    advance: float

    def bounding_rect(self) -> Rect:
        return Rect(
            self.origin.x,
            self.origin.y - self.ascent,
            self.advance,
            self.ascent + self.descent,
        )


PathElement = Union[MoveTo, LineTo, CubicTo, EllipseElement, TextRun]


def to_display(point: Point, graph_height: float) -> Point:
    return Point(point.x, graph_height - point.y)


def create_normal_arrow(start: Point, end: Point) -> List[Point]:
    """Triangle with its base across ``start`` and its apex at ``end``.

    The base half-width is half the segment length, along the segment's normal.
    """
    dx = end.x - start.x
    dy = end.y - start.y
    translation = Point(dy, -dx).scaled(0.5)
    first_and_last = start + translation
    return [first_and_last, end, start - translation, first_and_last]


@dataclass
class Path:
    elements: List[PathElement] = field(default_factory=list)

    def move_to(self, point: Point) -> None:
        self.elements.append(MoveTo(point))

    def line_to(self, point: Point) -> None:
        if not self.elements:
            self.move_to(Point(0.0, 0.0))
        self.elements.append(LineTo(point))

    def cubic_to(self, control1: Point, control2: Point, end: Point) -> None:
        if not self.elements:
            self.move_to(Point(0.0, 0.0))
        self.elements.append(CubicTo(control1, control2, end))

    def add_polygon(self, points: Sequence[Point]) -> None:
        if not points:
            return
        self.move_to(points[0])
        for point in points[1:]:
            self.elements.append(LineTo(point))

    def add_rect(self, rect: Rect) -> None:
        corners = rect.corners()
        self.add_polygon([*corners, corners[0]])

    def add_ellipse(self, rect: Rect) -> None:
        self.elements.append(EllipseElement(rect))

    def add_text(self, run: TextRun) -> None:
        self.elements.append(run)

    def add_path(self, other: Path) -> None:
        self.elements.extend(other.elements)

    def is_empty(self) -> bool:
        return not self.elements

    def text_runs(self) -> List[TextRun]:
        return [element for element in self.elements if isinstance(element, TextRun)]

    def translated(self, dx: float, dy: float) -> Path:
        offset = Point(dx, dy)
        moved: List[PathElement] = []
        for element in self.elements:
            if isinstance(element, MoveTo):
                moved.append(MoveTo(element.point + offset))
            elif isinstance(element, LineTo):
                moved.append(LineTo(element.point + offset))
            elif isinstance(element, CubicTo):
                moved.append(
                    CubicTo(element.control1 + offset, element.control2 + offset, element.end + offset)
                )
            elif isinstance(element, EllipseElement):
                moved.append(EllipseElement(element.rect.translated(dx, dy)))
            else:
                moved.append(
                    TextRun(
                        origin=element.origin + offset,
                        text=element.text,
                        font=element.font,
                        ascent=element.ascent,
                        descent=element.descent,
                        advance=element.advance,
                    )
                )
        return Path(moved)

    def bounding_rect(self) -> Rect:
        bounds = _Bounds()
        current: Optional[Point] = None
        for element in self.elements:
            if isinstance(element, (MoveTo, LineTo)):
                bounds.add(element.point)
                current = element.point
            elif isinstance(element, CubicTo):
                start = current or Point(0.0, 0.0)
                for point in _cubic_extrema(start, element.control1, element.control2, element.end):
                    bounds.add(point)
                current = element.end
            elif isinstance(element, EllipseElement):
                rect = element.rect.normalized()
                bounds.add(Point(rect.left, rect.top))
                bounds.add(Point(rect.right, rect.bottom))
            else:
                rect = element.bounding_rect()
                bounds.add(Point(rect.left, rect.top))
                bounds.add(Point(rect.right, rect.bottom))
        return bounds.rect()

    def subpaths(self) -> List[List[Point]]:
        """Flattened polylines, one per sub-path; ellipses and text become closed rings."""
        polylines: List[List[Point]] = []
        current: List[Point] = []
        for element in self.elements:
            if isinstance(element, MoveTo):
                if current:
                    polylines.append(current)
                current = [element.point]
            elif isinstance(element, LineTo):
                current.append(element.point)
            elif isinstance(element, CubicTo):
                start = current[-1] if current else Point(0.0, 0.0)
                if not current:
                    current = [start]
                current.extend(_sample_cubic(start, element.control1, element.control2, element.end))
            elif isinstance(element, EllipseElement):
                if current:
                    polylines.append(current)
                    current = []
                polylines.append(_sample_ellipse(element.rect))
            else:
                if current:
                    polylines.append(current)
                    current = []
                corners = element.bounding_rect().corners()
                polylines.append([*corners, corners[0]])
        if current:
            polylines.append(current)
        return polylines

    def contains(self, point: Point) -> bool:
        """Odd-even fill rule over all sub-paths, each implicitly closed."""
        inside = False
        for ring in self.subpaths():
            if len(ring) < 3:
                continue
            for start, end in _closed_pairs(ring):
                if (start.y > point.y) != (end.y > point.y):
                    cross_x = start.x + (point.y - start.y) * (end.x - start.x) / (end.y - start.y)
                    if point.x < cross_x:
                        inside = not inside
        return inside


@dataclass(frozen=True)
class StrokeOutline:
    """Area covered by stroking a path with a round pen of the given width."""

    polylines: Tuple[Tuple[Point, ...], ...]
    width: float

    @classmethod
    def from_path(cls, path: Path, width: float) -> StrokeOutline:
        return cls(tuple(tuple(polyline) for polyline in path.subpaths()), width)

    def is_empty(self) -> bool:
        return not self.polylines

    def translated(self, dx: float, dy: float) -> StrokeOutline:
        offset = Point(dx, dy)
        return StrokeOutline(
            tuple(tuple(point + offset for point in polyline) for polyline in self.polylines),
            self.width,
        )

    def bounding_rect(self) -> Rect:
        bounds = _Bounds()
        for polyline in self.polylines:
            for point in polyline:
                bounds.add(point)
        rect = bounds.rect()
        if self.is_empty():
            return rect
        half = self.width / 2
        return rect.adjusted(-half, -half, half, half)

    def contains(self, point: Point) -> bool:
        limit = (self.width / 2) ** 2
        for polyline in self.polylines:
            if len(polyline) == 1:
                if _square_distance(point, polyline[0]) <= limit:
                    return True
                continue
            for start, end in zip(polyline, polyline[1:]):
                if _square_segment_distance(point, start, end) <= limit:
                    return True
        return False


class _Bounds:
    def __init__(self) -> None:
        self.points: List[Point] = []

    def add(self, point: Point) -> None:
        self.points.append(point)

    def rect(self) -> Rect:
        if not self.points:
            return Rect()
        left = min(point.x for point in self.points)
        right = max(point.x for point in self.points)
        top = min(point.y for point in self.points)
        bottom = max(point.y for point in self.points)
        return Rect(left, top, right - left, bottom - top)


def _cubic_point(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    mt = 1.0 - t
    a = mt * mt * mt
    b = 3 * mt * mt * t
    c = 3 * mt * t * t
    d = t * t * t
    return Point(
        a * p0.x + b * p1.x + c * p2.x + d * p3.x,
        a * p0.y + b * p1.y + c * p2.y + d * p3.y,
    )


def _axis_roots(a: float, b: float, c: float, d: float) -> Iterator[float]:
    # derivative of the cubic on one axis: qa*t^2 + qb*t + qc
    qa = 3 * (-a + 3 * b - 3 * c + d)
    qb = 6 * (a - 2 * b + c)
    qc = 3 * (b - a)
    if abs(qa) < 1e-12:
        if abs(qb) > 1e-12:
            yield -qc / qb
        return
    discriminant = qb * qb - 4 * qa * qc
    if discriminant < 0:
        return
    root = math.sqrt(discriminant)
    yield (-qb + root) / (2 * qa)
    yield (-qb - root) / (2 * qa)


def _cubic_extrema(p0: Point, p1: Point, p2: Point, p3: Point) -> List[Point]:
    points = [p0, p3]
    for t in [*_axis_roots(p0.x, p1.x, p2.x, p3.x), *_axis_roots(p0.y, p1.y, p2.y, p3.y)]:
        if 0.0 < t < 1.0:
            points.append(_cubic_point(p0, p1, p2, p3, t))
    return points


def _sample_cubic(p0: Point, p1: Point, p2: Point, p3: Point) -> List[Point]:
    return [_cubic_point(p0, p1, p2, p3, step / CURVE_SAMPLES) for step in range(1, CURVE_SAMPLES + 1)]


def _sample_ellipse(rect: Rect) -> List[Point]:
    center = rect.center
    rx = rect.width / 2
    ry = rect.height / 2
    ring = [
        Point(
            center.x + rx * math.cos(2 * math.pi * step / ELLIPSE_SAMPLES),
            center.y + ry * math.sin(2 * math.pi * step / ELLIPSE_SAMPLES),
        )
        for step in range(ELLIPSE_SAMPLES)
    ]
    ring.append(ring[0])
    return ring


def _closed_pairs(ring: Sequence[Point]) -> Iterable[Tuple[Point, Point]]:
    for index, start in enumerate(ring):
        yield start, ring[(index + 1) % len(ring)]


def _square_distance(first: Point, second: Point) -> float:
    deltax = second.x - first.x
    deltay = second.y - first.y
    return deltax * deltax + deltay * deltay


def _square_segment_distance(point: Point, start: Point, end: Point) -> float:
    dx = end.x - start.x
    dy = end.y - start.y
    length = dx * dx + dy * dy
    if length == 0:
        return _square_distance(point, start)
    t = ((point.x - start.x) * dx + (point.y - start.y) * dy) / length
    t = max(0.0, min(1.0, t))
    return _square_distance(point, Point(start.x + t * dx, start.y + t * dy))
