from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from domain.geometry import Path
from domain.models import Pen, Point, Rect


@dataclass(frozen=True)
class ColorizeEffect:
    color: str = "#0000c0"
    strength: float = 1.0


class DisplayDevice(Protocol):
    def logical_dpi_y(self) -> float | None: ...


class Painter(Protocol):
    def save(self) -> None: ...

    def restore(self) -> None: ...

    def translate(self, offset: Point) -> None: ...

    def set_pen(self, pen: Pen | None) -> None: ...

    def set_brush(self, color: str | None) -> None: ...

    def set_effect(self, effect: ColorizeEffect | None) -> None: ...

    def draw_path(self, path: Path) -> None: ...

    def draw_line(self, start: Point, end: Point) -> None: ...

    def draw_rect(self, rect: Rect) -> None: ...
