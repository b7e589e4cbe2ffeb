from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from adapters.display.tk_display import FixedDisplayDevice
from app.config import AppSettings, CanvasSettings, GraphvizSettings
from domain.services.scene_canvas import SceneCanvas
from tests.helpers.fakes import CannedLayoutEngine, MonospaceFontEngine
from tests.helpers.graphviz_fixtures import CALL_TREE_DOT, call_tree_layout


def _clear_dotscene_env() -> None:
    for key in list(os.environ):
        if key.startswith("DOTSCENE_"):
            os.environ.pop(key, None)


_clear_dotscene_env()


@pytest.fixture(autouse=True)
def clear_dotscene_env() -> Generator[None, None, None]:
    _clear_dotscene_env()
    yield
    _clear_dotscene_env()


@pytest.fixture
def fonts() -> MonospaceFontEngine:
    return MonospaceFontEngine()


@pytest.fixture
def display() -> FixedDisplayDevice:
    return FixedDisplayDevice(96.0)


@pytest.fixture
def canned_engine() -> CannedLayoutEngine:
    return CannedLayoutEngine(call_tree_layout())


@pytest.fixture
def canvas_factory(
    canned_engine: CannedLayoutEngine,
    fonts: MonospaceFontEngine,
    display: FixedDisplayDevice,
) -> Generator[Callable[..., SceneCanvas], None, None]:
    created: list[SceneCanvas] = []

    def _factory(source: str = CALL_TREE_DOT, **kwargs: object) -> SceneCanvas:
        canvas = SceneCanvas.from_dot(source, canned_engine, fonts, display, **kwargs)  # type: ignore[arg-type]
        created.append(canvas)
        return canvas

    yield _factory
    for canvas in created:
        canvas.close()


@pytest.fixture
def call_tree_canvas(canvas_factory: Callable[..., SceneCanvas]) -> SceneCanvas:
    canvas = canvas_factory()
    assert canvas.update_layout()
    return canvas


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        graphviz=GraphvizSettings(timeout_seconds=5.0),
        canvas=CanvasSettings(node_attributes=[("fontname", "Times-Roman")]),
    )
