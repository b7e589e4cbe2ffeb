from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from PIL import ImageFont

logger = logging.getLogger(__name__)

FONT_DIRS = [
    Path("/usr/share/fonts"),
    Path("/usr/local/share/fonts"),
    Path("~/.fonts").expanduser(),
    Path("~/.local/share/fonts").expanduser(),
    Path("/System/Library/Fonts"),
    Path("/System/Library/Fonts/Supplemental"),
    Path("/Library/Fonts"),
    Path("C:/Windows/Fonts"),
]

# PostScript family names used by Graphviz, mapped to common installed fonts
FAMILY_FALLBACKS: dict[str, list[str]] = {
    "times-roman": ["Times New Roman", "LiberationSerif-Regular", "DejaVuSerif"],
    "times": ["Times New Roman", "LiberationSerif-Regular", "DejaVuSerif"],
    "helvetica": ["Arial", "LiberationSans-Regular", "DejaVuSans"],
    "arial": ["Arial", "LiberationSans-Regular", "DejaVuSans"],
    "courier": ["Courier New", "LiberationMono-Regular", "DejaVuSansMono"],
    "courier-new": ["Courier New", "LiberationMono-Regular", "DejaVuSansMono"],
}
LAST_RESORT = "DejaVuSans.ttf"


@dataclass(frozen=True)
class PillowFontMetrics:
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont
    pixel_size: int
    ascent: float
    descent: float
    line_spacing: float

    def width(self, text: str) -> float:
        return float(self.font.getlength(text))


class PillowFontEngine:
    """Font metrics from Pillow, resolving Graphviz family names against installed fonts."""

    def __init__(self, font_dirs: list[Path] | None = None) -> None:
        self._font_dirs = font_dirs if font_dirs is not None else FONT_DIRS
        self._cache: dict[tuple[str, int], PillowFontMetrics] = {}
        self._paths: dict[str, str | None] = {}

    def resolve(self, family: str, pixel_size: int) -> PillowFontMetrics:
        size = max(1, int(pixel_size))
        key = (family.lower(), size)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        metrics = self._metrics(self._load(family, size), size)
        self._cache[key] = metrics
        return metrics

    def _load(self, family: str, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        candidates: list[str] = []
        for name in FAMILY_FALLBACKS.get(family.lower(), [family]):
            located = self._locate(name)
            if located:
                candidates.append(located)
        candidates.append(LAST_RESORT)
        for candidate in candidates:
            try:
                return ImageFont.truetype(candidate, size)
            except OSError:
                continue
        logger.debug("No font file for %r; using the Pillow default font", family)
        return ImageFont.load_default(size=size)

    @staticmethod
    def _metrics(
        font: ImageFont.FreeTypeFont | ImageFont.ImageFont, size: int
    ) -> PillowFontMetrics:
        if isinstance(font, ImageFont.FreeTypeFont):
            ascent, descent = font.getmetrics()
            return PillowFontMetrics(
                font=font,
                pixel_size=size,
                ascent=float(ascent),
                descent=float(descent),
                line_spacing=float(ascent + descent),
            )
        ascent = 0.8 * size
        descent = 0.2 * size
        return PillowFontMetrics(
            font=font, pixel_size=size, ascent=ascent, descent=descent, line_spacing=ascent + descent
        )

    def _locate(self, family: str) -> str | None:
        key = family.lower()
        if key in self._paths:
            return self._paths[key]
        normalized = re.sub(r"[^a-z0-9]+", "", key)
        best: tuple[int, str] | None = None
        for directory in self._font_dirs:
            if not normalized or not directory.exists():
                continue
            for pattern in ("*.ttf", "*.otf"):
                for path in directory.rglob(pattern):
                    stem = re.sub(r"[^a-z0-9]+", "", path.stem.lower())
                    if stem == normalized:
                        score = 0
                    elif stem.startswith(normalized):
                        score = 1
                    else:
                        continue
                    if best is None or score < best[0]:
                        best = (score, str(path))
        resolved = best[1] if best else None
        self._paths[key] = resolved
        return resolved
