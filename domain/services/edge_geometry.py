from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from domain.geometry import Path, StrokeOutline, create_normal_arrow, to_display
from domain.models import BezierSegment

logger = logging.getLogger(__name__)

HIT_STROKE_WIDTH = 20.0


@dataclass(frozen=True)
class EdgePaths:
    path: Path
    arrows: Path


def build_edge_paths(splines: Sequence[BezierSegment], graph_height: float) -> EdgePaths:
    """Edge curves with arrowheads, and the arrowheads alone, in display coordinates."""
    path = Path()
    arrows = Path()
    for index, segment in enumerate(splines):
        if not segment.is_well_formed:
            logger.warning(
                "Skipping spline segment %d with %d control points", index, len(segment.points)
            )
            continue
        points = [to_display(point, graph_height) for point in segment.points]
        first = points[0]
        last = points[-1]
        if segment.start_point is not None:
            start = to_display(segment.start_point, graph_height)
            head = create_normal_arrow(first, start)
            path.move_to(start)
            path.line_to(first)
            path.add_polygon(head)
            # the curve starts at the first control point, not at the last arrow vertex
            path.move_to(first)
            arrows.add_polygon(head)
        else:
            path.move_to(first)
        for offset in range(1, len(points), 3):
            path.cubic_to(points[offset], points[offset + 1], points[offset + 2])
        if segment.end_point is not None:
            end = to_display(segment.end_point, graph_height)
            tail = create_normal_arrow(last, end)
            path.line_to(end)
            path.add_polygon(tail)
            arrows.add_polygon(tail)
    return EdgePaths(path=path, arrows=arrows)


def hit_outline(path: Path, label_path: Path) -> StrokeOutline:
    joint = Path()
    joint.add_path(path)
    if not label_path.is_empty():
        joint.add_rect(label_path.bounding_rect())
    return StrokeOutline.from_path(joint, HIT_STROKE_WIDTH)
