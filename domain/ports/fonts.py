from __future__ import annotations

from typing import Protocol


class FontMetrics(Protocol):
    @property
    def ascent(self) -> float: ...

    @property
    def descent(self) -> float: ...

    @property
    def line_spacing(self) -> float: ...

    def width(self, text: str) -> float: ...


class FontEngine(Protocol):
    def resolve(self, family: str, pixel_size: int) -> FontMetrics: ...
