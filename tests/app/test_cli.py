from __future__ import annotations

from pathlib import Path

import orjson
import pytest
from typer.testing import CliRunner

from app import canvas_wiring
from app.cli import app
from tests.helpers.fakes import CannedLayoutEngine, MonospaceFontEngine
from tests.helpers.graphviz_fixtures import CALL_TREE_DOT, call_tree_layout

runner = CliRunner()


@pytest.fixture
def engine(monkeypatch: pytest.MonkeyPatch) -> CannedLayoutEngine:
    canned = CannedLayoutEngine(call_tree_layout())
    monkeypatch.setattr(canvas_wiring, "build_layout_engine", lambda _settings: canned)
    monkeypatch.setattr(canvas_wiring, "build_font_engine", lambda _settings: MonospaceFontEngine())
    return canned


@pytest.fixture
def dot_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "calls.dot"
    path.write_text(CALL_TREE_DOT, encoding="utf-8")
    return path


def test_render_writes_svg(engine: CannedLayoutEngine, dot_file: Path) -> None:
    result = runner.invoke(app, ["render", str(dot_file)])

    assert result.exit_code == 0, result.output
    svg = dot_file.with_suffix(".svg").read_text(encoding="utf-8")
    assert svg.startswith("<svg")
    assert ">main</text>" in svg
    assert engine.calls == [("G", "dot")]


def test_render_with_grid_and_selection(engine: CannedLayoutEngine, dot_file: Path) -> None:
    target = dot_file.parent / "out.svg"

    result = runner.invoke(
        app, ["render", str(dot_file), "-o", str(target), "--grid", "--select", "0", "--select", "zzz"]
    )

    assert result.exit_code == 0, result.output
    assert "No item named zzz" in result.output
    svg = target.read_text(encoding="utf-8")
    assert "<line" in svg
    assert "colorize-0" in svg


def test_export_writes_scene_json(engine: CannedLayoutEngine, dot_file: Path) -> None:
    result = runner.invoke(app, ["export", str(dot_file), "--select", "0->1"])

    assert result.exit_code == 0, result.output
    document = orjson.loads(dot_file.with_suffix(".scene.json").read_bytes())
    assert document["type"] == "graph-scene"
    assert len(document["nodes"]) == 5
    assert len(document["edges"]) == 4
    assert document["edges"][0]["selected"] is True


def test_inspect_prints_item_table(engine: CannedLayoutEngine, dot_file: Path) -> None:
    result = runner.invoke(app, ["inspect", str(dot_file)])

    assert result.exit_code == 0, result.output
    assert "260 x 252" in result.output
    assert "0->1" in result.output
    assert "node" in result.output


def test_validate_reports_counts(engine: CannedLayoutEngine, dot_file: Path) -> None:
    result = runner.invoke(app, ["validate", str(dot_file)])

    assert result.exit_code == 0, result.output
    assert "5 nodes, 4 edges" in result.output
    assert engine.calls == []


def test_missing_input_file_fails(engine: CannedLayoutEngine, dot_file: Path) -> None:
    result = runner.invoke(app, ["render", str(dot_file.parent / "absent.dot")])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_unparseable_input_fails(engine: CannedLayoutEngine, dot_file: Path) -> None:
    dot_file.write_text("digraph { a -> ", encoding="utf-8")

    render = runner.invoke(app, ["render", str(dot_file)])
    validate = runner.invoke(app, ["validate", str(dot_file)])

    assert render.exit_code == 1
    assert "Could not parse DOT source" in render.output
    assert validate.exit_code == 1
    assert "Validation failed" in validate.output


def test_layout_failure_exits_with_error(engine: CannedLayoutEngine, dot_file: Path) -> None:
    engine.succeed = False

    result = runner.invoke(app, ["export", str(dot_file)])

    assert result.exit_code == 1
    assert "Layout failed" in result.output
    assert not dot_file.with_suffix(".scene.json").exists()


def test_invalid_config_file_exits(engine: CannedLayoutEngine, dot_file: Path) -> None:
    config_path = dot_file.parent / "bad.yaml"
    config_path.write_text("graphviz:\n  timeout_seconds: -1\n", encoding="utf-8")

    result = runner.invoke(app, ["--config", str(config_path), "validate", str(dot_file)])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
