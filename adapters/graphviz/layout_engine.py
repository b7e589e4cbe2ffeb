from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Callable
from typing import Any

from adapters.graphviz.dot_reader import DotReader
from adapters.graphviz.dot_writer import write_dot
from adapters.graphviz.json_layout import JsonLayoutReader, LayoutOutputError, apply_layout
from domain.graph import Graph

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
_STDERR_LIMIT = 240

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class GraphvizLayoutEngine:
    """Layout through the Graphviz ``dot`` executable, writing results back into graph records."""

    def __init__(
        self,
        dot_path: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        runner: Runner | None = None,
    ) -> None:
        self._dot_path = dot_path
        self._timeout_seconds = timeout_seconds
        self._runner: Runner = runner or subprocess.run
        self._reader = DotReader()
        self._layout_reader = JsonLayoutReader()

    @classmethod
    def from_settings(cls, settings: Any) -> GraphvizLayoutEngine:
        return cls(dot_path=settings.dot_path, timeout_seconds=settings.timeout_seconds)

    @property
    def dot_path(self) -> str | None:
        return self._dot_path or shutil.which("dot")

    def open_graph(self, name: str) -> Graph:
        return Graph(name)

    def parse_graph(self, source: str) -> Graph | None:
        return self._reader.read(source)

    def layout(self, graph: Graph, algorithm: str = "dot") -> bool:
        if graph.released:
            logger.warning("Cannot lay out released graph %s", graph.name)
            return False
        dot_path = self.dot_path
        if not dot_path:
            logger.warning("Graphviz dot executable not found; layout skipped")
            return False
        source = write_dot(graph)
        try:
            proc = self._runner(
                [dot_path, f"-K{algorithm}", "-Tjson"],
                input=source,
                text=True,
                capture_output=True,
                check=False,
                timeout=self._timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            logger.warning(
                "Graphviz layout of %s timed out after %.1fs", graph.name, self._timeout_seconds
            )
            return False
        except OSError as exc:
            logger.warning("Failed to execute Graphviz for %s: %s", graph.name, exc)
            return False
        if proc.returncode != 0:
            detail = (proc.stderr or "").strip()
            if len(detail) > _STDERR_LIMIT:
                detail = detail[:_STDERR_LIMIT] + "..."
            logger.warning(
                "Graphviz failed for %s with algorithm %s: %s",
                graph.name,
                algorithm,
                detail or "unknown error",
            )
            return False
        try:
            result = self._layout_reader.read(proc.stdout, graph)
        except LayoutOutputError as exc:
            logger.warning("Unreadable Graphviz output for %s: %s", graph.name, exc)
            return False
        apply_layout(graph, result)
        logger.debug(
            "Laid out %s: %d nodes, %d edges", graph.name, len(result.nodes), len(result.edges)
        )
        return True
