from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from adapters.filesystem.scene_repository import FileSystemSceneRepository
from app import canvas_wiring
from app.config import AppSettings, load_settings
from domain.services.scene_canvas import SceneCanvas
from domain.services.scene_export import SceneExporter

app = typer.Typer(no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    _configure_logging(verbose)
    try:
        ctx.obj = load_settings(config)
    except (FileNotFoundError, ValidationError) as exc:
        console.print(f"[red]Invalid configuration:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _settings(ctx: typer.Context) -> AppSettings:
    return ctx.obj if isinstance(ctx.obj, AppSettings) else load_settings()


def _read_source(input_path: Path) -> str:
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)
    return input_path.read_text(encoding="utf-8")


def _laid_out_canvas(input_path: Path, settings: AppSettings) -> SceneCanvas:
    canvas = canvas_wiring.build_canvas(_read_source(input_path), settings)
    if not canvas.parsed:
        canvas.close()
        console.print(f"[red]Could not parse DOT source:[/] {input_path}")
        raise typer.Exit(code=1)
    if not canvas.update_layout():
        canvas.close()
        console.print(f"[red]Layout failed:[/] {input_path}")
        raise typer.Exit(code=1)
    return canvas


def _apply_selection(canvas: SceneCanvas, names: list[str]) -> None:
    wanted = set(names)
    canvas.set_selection(item for item in canvas.items() if item.name in wanted)
    missing = wanted - {item.name for item in canvas.selected_items()}
    for name in sorted(missing):
        console.print(f"[yellow]No item named[/] {name}")


@app.command("render")
def render(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="DOT file to lay out."),
    output: Path | None = typer.Option(None, "--output", "-o", help="SVG file to write."),
    grid: bool = typer.Option(False, "--grid", help="Draw the background grid."),
    select: list[str] = typer.Option([], "--select", help="Item names to show as selected."),
) -> None:
    settings = _settings(ctx)
    canvas = _laid_out_canvas(input_path, settings)
    try:
        if grid:
            canvas.show_grid(True)
        _apply_selection(canvas, select)
        svg = canvas_wiring.build_renderer(settings).render(canvas)
        target_path = output or input_path.with_suffix(".svg")
        FileSystemSceneRepository().save_svg(svg, target_path)
    finally:
        canvas.close()
    console.print(f"[green]Wrote[/] {target_path}")


@app.command("export")
def export(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="DOT file to lay out."),
    output: Path | None = typer.Option(None, "--output", "-o", help="JSON scene file to write."),
    select: list[str] = typer.Option([], "--select", help="Item names to mark as selected."),
) -> None:
    settings = _settings(ctx)
    canvas = _laid_out_canvas(input_path, settings)
    try:
        _apply_selection(canvas, select)
        document = SceneExporter().export(canvas)
        target_path = output or input_path.with_suffix(".scene.json")
        FileSystemSceneRepository().save(document, target_path)
    finally:
        canvas.close()
    console.print(f"[green]Wrote[/] {target_path}")


@app.command("inspect")
def inspect_scene(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="DOT file to lay out."),
) -> None:
    settings = _settings(ctx)
    canvas = _laid_out_canvas(input_path, settings)
    try:
        rect = canvas.scene_rect
        table = Table(title=f"{canvas.graph.name} ({rect.width:g} x {rect.height:g})")
        table.add_column("Kind")
        table.add_column("Name")
        table.add_column("Position")
        table.add_column("Bounds")
        table.add_column("Visible")
        for item in canvas.items():
            bounds = item.scene_bounding_rect()
            table.add_row(
                item.kind,
                item.name,
                f"{item.position.x:.1f}, {item.position.y:.1f}",
                f"{bounds.x:.1f}, {bounds.y:.1f}, {bounds.width:.1f} x {bounds.height:.1f}",
                "yes" if item.is_visible else "no",
            )
        console.print(table)
    finally:
        canvas.close()


@app.command("validate")
def validate(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="DOT file to check."),
) -> None:
    settings = _settings(ctx)
    engine = canvas_wiring.build_layout_engine(settings)
    graph = engine.parse_graph(_read_source(input_path))
    if graph is None:
        console.print(f"[red]Validation failed:[/] {input_path}")
        raise typer.Exit(code=1)
    console.print(
        f"[green]Valid DOT graph[/] {graph.name}: {graph.node_count} nodes, {graph.edge_count} edges"
    )
    graph.release()


if __name__ == "__main__":
    app()
