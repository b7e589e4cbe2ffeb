from __future__ import annotations

import logging

from domain.geometry import Path
from domain.models import Rect, ShapeDescriptor, ShapeKind
from domain.services.shape_classifier import classify

logger = logging.getLogger(__name__)


def build_node_path(shape: ShapeDescriptor) -> Path:
    """Outline of one node in item coordinates (origin at the node center, y down)."""
    kind = classify(shape.name)
    if kind is ShapeKind.POLYGON:
        return _polygon_path(shape)
    if kind is ShapeKind.ELLIPSE:
        return _ellipse_path(shape)
    if kind is ShapeKind.RECORD:
        logger.warning("Record shape %r is not rendered", shape.name)
    return Path()


def _polygon_path(shape: ShapeDescriptor) -> Path:
    path = Path()
    for ring in shape.peripheries:
        if not ring:
            continue
        path.add_polygon([*ring, ring[0]])
    return path


def _ellipse_path(shape: ShapeDescriptor) -> Path:
    path = Path()
    if not shape.peripheries:
        return path
    ring = shape.peripheries[0]
    if len(ring) != 2:
        logger.warning(
            "Ellipse shape %r expects a 2-point extent, got %d points", shape.name, len(ring)
        )
        return path
    path.add_ellipse(Rect.from_corners(ring[0], ring[1]).normalized())
    return path
