from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from domain.geometry import Path, TextRun
from domain.models import (
    DEFAULT_LOGICAL_DPI,
    FontSpec,
    LabelMetadata,
    Point,
    Rect,
    VerticalAlignment,
)
from domain.ports.fonts import FontEngine, FontMetrics

logger = logging.getLogger(__name__)

# DOT line terminators: \n centers the line, \l left-justifies, \r right-justifies
_LINE_BREAK = re.compile(r"(\\[nlr]|\n)")


@dataclass(frozen=True)
class LabelGeometry:
    path: Path
    text_rect: Rect
    font: FontSpec
    font_color: str
    font_size: float


def pixel_size(point_size: float, logical_dpi_y: float | None) -> int:
    dpi = logical_dpi_y if logical_dpi_y and logical_dpi_y > 0 else DEFAULT_LOGICAL_DPI
    return max(1, int(point_size * 72.0 / dpi))


def split_lines(text: str) -> list[tuple[str, str]]:
    """Split label text into (line, justification) pairs, justification being c, l or r."""
    parts = _LINE_BREAK.split(text)
    lines: list[tuple[str, str]] = []
    for index in range(0, len(parts), 2):
        line = parts[index]
        terminator = parts[index + 1] if index + 1 < len(parts) else ""
        if not terminator and not line and lines:
            continue
        justification = {"\\l": "l", "\\r": "r"}.get(terminator, "c")
        lines.append((line, justification))
    return lines or [("", "c")]


def text_rect(
    lines: list[tuple[str, str]],
    metrics: FontMetrics,
    space: Rect,
    valign: VerticalAlignment,
) -> Rect:
    width = max(metrics.width(line) for line, _ in lines)
    height = (len(lines) - 1) * metrics.line_spacing + metrics.ascent + metrics.descent
    left = space.center.x - width / 2
    if valign is VerticalAlignment.TOP:
        top = space.top
    elif valign is VerticalAlignment.BOTTOM:
        top = space.bottom - height
    else:
        top = space.center.y - height / 2
    return Rect(left, top, width, height)


def layout_label(
    label: LabelMetadata | None,
    center: Point,
    fonts: FontEngine,
    logical_dpi_y: float | None,
) -> LabelGeometry | None:
    if label is None:
        return None
    font = FontSpec(label.font_name, pixel_size(label.font_size, logical_dpi_y))
    metrics = fonts.resolve(font.family, font.pixel_size)
    lines = split_lines(label.text)
    space = Rect(0.0, 0.0, label.space.width, label.space.height).with_center(center)
    rect = text_rect(lines, metrics, space, VerticalAlignment.from_code(label.valign))

    path = Path()
    for index, (line, justification) in enumerate(lines):
        if not line:
            continue
        advance = metrics.width(line)
        if justification == "l":
            x = rect.left
        elif justification == "r":
            x = rect.right - advance
        else:
            x = rect.center.x - advance / 2
        baseline = rect.top + metrics.ascent + index * metrics.line_spacing
        path.add_text(
            TextRun(
                origin=Point(x, baseline),
                text=line,
                font=font,
                ascent=metrics.ascent,
                descent=metrics.descent,
                advance=advance,
            )
        )
    logger.debug("Laid out label %r at %s", label.text, rect)
    return LabelGeometry(
        path=path,
        text_rect=rect,
        font=font,
        font_color=label.font_color,
        font_size=label.font_size,
    )
