from __future__ import annotations

from adapters.display.tk_display import FixedDisplayDevice, TkDisplayDevice
from adapters.fonts.pillow_fonts import PillowFontEngine
from adapters.graphviz.layout_engine import GraphvizLayoutEngine
from adapters.svg.renderer import SvgRenderer
from app.config import AppSettings
from domain.ports.display import DisplayDevice
from domain.ports.fonts import FontEngine
from domain.ports.layout import LayoutEngine
from domain.services.scene_canvas import SceneCanvas


def build_layout_engine(settings: AppSettings) -> LayoutEngine:
    return GraphvizLayoutEngine.from_settings(settings.graphviz)


def build_display_device(settings: AppSettings) -> DisplayDevice:
    if settings.display.logical_dpi_y is not None:
        return FixedDisplayDevice(settings.display.logical_dpi_y)
    if settings.display.probe_display:
        return TkDisplayDevice()
    return FixedDisplayDevice()


def build_font_engine(settings: AppSettings) -> FontEngine:
    return PillowFontEngine()


def build_renderer(settings: AppSettings) -> SvgRenderer:
    return SvgRenderer(background=settings.render.background, padding=settings.render.padding)


def build_canvas(
    source: str,
    settings: AppSettings,
    *,
    engine: LayoutEngine | None = None,
    fonts: FontEngine | None = None,
    display: DisplayDevice | None = None,
) -> SceneCanvas:
    canvas = SceneCanvas.from_dot(
        source,
        engine or build_layout_engine(settings),
        fonts or build_font_engine(settings),
        display or build_display_device(settings),
        attributes=settings.canvas.to_defaults(),
        algorithm=settings.graphviz.algorithm,
    )
    canvas.show_grid(settings.canvas.show_grid)
    return canvas
