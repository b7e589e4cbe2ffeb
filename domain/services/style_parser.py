from __future__ import annotations

from domain.models import DEFAULT_PEN_COLOR, TRANSPARENT, Pen, StyleFlag

_TOKENS: dict[str, StyleFlag] = {
    "filled": StyleFlag.FILLED,
    "invisible": StyleFlag.INVISIBLE,
    "invis": StyleFlag.INVISIBLE,
    "diagonals": StyleFlag.DIAGONALS,
    "rounded": StyleFlag.ROUNDED,
    "dashed": StyleFlag.DASHED,
    "dotted": StyleFlag.DOTTED,
    "solid": StyleFlag.SOLID,
    "bold": StyleFlag.BOLD,
}

DASH_PATTERNS: dict[StyleFlag, str] = {
    StyleFlag.DASHED: "5,2",
    StyleFlag.DOTTED: "1,5",
}
BOLD_WIDTH = 2.0


def parse_style(style: str) -> frozenset[StyleFlag]:
    flags = {_TOKENS[token] for token in (part.strip() for part in style.split(",")) if token in _TOKENS}
    return frozenset(flags)


def resolve_fill_color(
    styles: frozenset[StyleFlag],
    fillcolor: str,
    color: str,
    default: str = TRANSPARENT,
) -> str:
    if StyleFlag.FILLED not in styles:
        return default
    if fillcolor:
        return fillcolor
    if color:
        return color
    return default


def resolve_pen_color(color: str) -> str:
    return color or DEFAULT_PEN_COLOR


def pen_for(styles: frozenset[StyleFlag], color: str, base_width: float = 1.0) -> Pen:
    width = base_width * BOLD_WIDTH if StyleFlag.BOLD in styles else base_width
    dash = None
    for flag in (StyleFlag.DASHED, StyleFlag.DOTTED):
        if flag in styles:
            dash = DASH_PATTERNS[flag]
            break
    return Pen(color=resolve_pen_color(color), width=width, dash=dash)
