from __future__ import annotations

import logging

from domain.models import ShapeKind

logger = logging.getLogger(__name__)

POLYGON_SHAPES = frozenset(
    {
        "rectangle",
        "box",
        "square",
        "polygon",
        "diamond",
        "star",
        "rect",
        "triangle",
        "trapezium",
        "parallelogram",
        "house",
        "pentagon",
        "hexagon",
        "septagon",
        "octagon",
        "doubleoctagon",
        "tripleoctagon",
        "invtriangle",
        "invtrapezium",
        "invhouse",
        "Mdiamond",
        "Msquare",
        "note",
        # outline-less shapes still carry a polygon ring
        "plaintext",
        "plain",
        "none",
    }
)
ELLIPSE_SHAPES = frozenset({"ellipse", "circle", "oval", "doublecircle"})
RECORD_SHAPES = frozenset({"record", "Mrecord"})


def classify(shape_name: str) -> ShapeKind:
    if shape_name in POLYGON_SHAPES:
        return ShapeKind.POLYGON
    if shape_name in ELLIPSE_SHAPES:
        return ShapeKind.ELLIPSE
    if shape_name in RECORD_SHAPES:
        return ShapeKind.RECORD
    logger.warning("Unsupported node shape %r", shape_name)
    return ShapeKind.UNSUPPORTED
