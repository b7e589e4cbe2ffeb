from __future__ import annotations

from typing import Any

from domain.geometry import CubicTo, EllipseElement, LineTo, MoveTo, Path
from domain.models import Point, SceneDocument, rect_to_dict
from domain.services.scene_canvas import SceneCanvas
from domain.services.scene_items import EdgeItem, NodeItem


def _point(point: Point) -> list[float]:
    return [round(point.x, 3), round(point.y, 3)]


def path_commands(path: Path) -> list[dict[str, Any]]:
    commands: list[dict[str, Any]] = []
    for element in path.elements:
        if isinstance(element, MoveTo):
            commands.append({"op": "M", "points": [_point(element.point)]})
        elif isinstance(element, LineTo):
            commands.append({"op": "L", "points": [_point(element.point)]})
        elif isinstance(element, CubicTo):
            commands.append(
                {
                    "op": "C",
                    "points": [
                        _point(element.control1),
                        _point(element.control2),
                        _point(element.end),
                    ],
                }
            )
        elif isinstance(element, EllipseElement):
            commands.append({"op": "E", "rect": rect_to_dict(element.rect)})
        else:
            commands.append(
                {
                    "op": "T",
                    "points": [_point(element.origin)],
                    "text": element.text,
                    "font": {"family": element.font.family, "pixelSize": element.font.pixel_size},
                }
            )
    return commands


class SceneExporter:
    def export(self, canvas: SceneCanvas) -> SceneDocument:
        return SceneDocument(
            name=canvas.graph.name,
            scene_rect=canvas.scene_rect,
            nodes=[self._node(item) for item in canvas.node_items()],
            edges=[self._edge(item) for item in canvas.edge_items()],
        )

    def _node(self, item: NodeItem) -> dict[str, Any]:
        state = item.state
        payload: dict[str, Any] = {
            "name": item.name,
            "position": _point(state.position),
            "boundingRect": rect_to_dict(item.scene_bounding_rect()),
            "visible": item.is_visible,
            "selected": item.selected,
            "styles": sorted(flag.value for flag in state.styles),
            "penColor": state.pen_color,
            "fillColor": state.fill_color,
            "path": path_commands(state.path),
        }
        if state.label is not None:
            payload["label"] = {
                "text": item.attribute("label"),
                "rect": rect_to_dict(state.label.text_rect),
                "fontFamily": state.label.font.family,
                "pixelSize": state.label.font.pixel_size,
                "color": state.label.font_color,
                "path": path_commands(state.label.path),
            }
        return payload

    def _edge(self, item: EdgeItem) -> dict[str, Any]:
        state = item.state
        payload: dict[str, Any] = {
            "name": item.name,
            "tail": item.record.tail.name,
            "head": item.record.head.name,
            "key": item.record.key,
            "position": _point(state.position),
            "boundingRect": rect_to_dict(item.scene_bounding_rect()),
            "visible": item.is_visible,
            "selected": item.selected,
            "styles": sorted(flag.value for flag in state.styles),
            "pen": {"color": state.pen.color, "width": state.pen.width, "dash": state.pen.dash},
            "path": path_commands(state.path),
            "arrows": path_commands(state.arrow_path),
        }
        if state.label is not None:
            payload["label"] = {
                "text": item.attribute("label"),
                "color": state.font_color,
                "fontSize": state.font_size,
                "path": path_commands(state.label_path),
            }
        return payload
