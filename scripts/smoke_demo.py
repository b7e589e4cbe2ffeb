from __future__ import annotations

import argparse
import logging
from pathlib import Path

from adapters.display.tk_display import FixedDisplayDevice
from adapters.filesystem.scene_repository import FileSystemSceneRepository
from adapters.fonts.pillow_fonts import PillowFontEngine
from adapters.graphviz.layout_engine import GraphvizLayoutEngine
from adapters.svg.renderer import SvgRenderer
from domain.models import AttributeDefaults
from domain.services.scene_canvas import SceneCanvas
from domain.services.scene_export import SceneExporter

CALL_TREE = """digraph G {
0 [label="main", shape="square", file="mutatee.c", line="43", unit="mutatee"];
1 [label="work", file="mutatee.c", line="33", unit="mutatee"];
2 [label="f3", file="mutatee.c", line="24", unit="mutatee"];
3 [label="f2", file="mutatee.c", line="15", unit="mutatee"];
4 [label="f1", file="mutatee.c", line="6", unit="mutatee"];
0->1  [label="0"];
1->2  [label="50"];
1->3  [label="36.3636"];
1->4  [label="13.6364"];
}
"""

KERNELS = [
    "matrixMul_coalescing",
    "matrixMul_naive",
    "matrixMul_tiling",
    "matrixMul_noBankConflict",
    "matrixMul_compOpt",
    "matrixMul_prefetch",
    "matrixMul_unroll",
]


def build_canvas(manual: bool) -> SceneCanvas:
    engine = GraphvizLayoutEngine()
    fonts = PillowFontEngine()
    display = FixedDisplayDevice()
    attributes = AttributeDefaults(graph=[("nodesep", "0.4")])
    if not manual:
        return SceneCanvas.from_dot(CALL_TREE, engine, fonts, display, attributes)
    canvas = SceneCanvas.create("calltree", engine, fonts, display, attributes)
    main_node = canvas.add_node("main")
    run_test = canvas.add_node("runTest")
    canvas.add_edge("1", main_node, run_test)
    for kernel in KERNELS:
        canvas.add_edge("1", run_test, canvas.add_node(kernel))
    return canvas


def main() -> None:
    parser = argparse.ArgumentParser(description="Lay out and render the call-tree demo graph.")
    parser.add_argument("--manual", action="store_true", help="Build the graph item by item.")
    parser.add_argument("--grid", action="store_true", help="Draw the background grid.")
    parser.add_argument("--out-dir", type=Path, default=Path("data/demo"))
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    canvas = build_canvas(args.manual)
    try:
        canvas.show_grid(args.grid)
        if not canvas.update_layout():
            raise RuntimeError("Layout failed; is Graphviz installed?")
        if canvas.scene_rect.is_empty():
            raise RuntimeError("Layout produced an empty scene rectangle")
        empty_edges = [item.name for item in canvas.edge_items() if item.state.path.is_empty()]
        if empty_edges:
            raise RuntimeError(f"Edges without geometry: {', '.join(empty_edges)}")

        repository = FileSystemSceneRepository()
        svg_path = args.out_dir / f"{canvas.graph.name}.svg"
        json_path = args.out_dir / f"{canvas.graph.name}.scene.json"
        repository.save_svg(SvgRenderer().render(canvas), svg_path)
        repository.save(SceneExporter().export(canvas), json_path)
        print(
            f"Smoke test passed: {len(canvas.node_items())} nodes, "
            f"{len(canvas.edge_items())} edges -> {svg_path}, {json_path}"
        )
    finally:
        canvas.close()


if __name__ == "__main__":
    main()
