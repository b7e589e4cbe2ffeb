from __future__ import annotations

import pytest

from domain.geometry import TextRun
from domain.models import LabelMetadata, Point, Rect, Size
from domain.services.label_layout import layout_label, pixel_size, split_lines
from tests.helpers.fakes import MonospaceFontEngine


def test_pixel_size_scales_points_by_logical_dpi() -> None:
    assert pixel_size(14.0, 96.0) == 10
    assert pixel_size(14.0, 72.0) == 14
    assert pixel_size(14.0, None) == 10
    assert pixel_size(1.0, 96.0) == 1


def test_split_lines_reads_justification_escapes() -> None:
    assert split_lines("a\\lb\\rc") == [("a", "l"), ("b", "r"), ("c", "c")]
    assert split_lines("one\\ntwo\\n") == [("one", "c"), ("two", "c")]
    assert split_lines("") == [("", "c")]


def test_single_line_label_is_centered(fonts: MonospaceFontEngine) -> None:
    label = LabelMetadata(text="main", space=Size(38.0, 46.0))

    geometry = layout_label(label, Point(0.0, 0.0), fonts, 96.0)

    assert geometry is not None
    assert geometry.text_rect == Rect(-12.0, -5.0, 24.0, 10.0)
    (run,) = geometry.path.text_runs()
    assert run.origin == Point(-12.0, 3.0)
    assert run.font.pixel_size == 10
    assert fonts.requests == [("Times-Roman", 10)]


@pytest.mark.parametrize(("valign", "top"), [("t", -23.0), ("b", 13.0), ("c", -5.0)])
def test_vertical_alignment_inside_label_space(
    fonts: MonospaceFontEngine, valign: str, top: float
) -> None:
    label = LabelMetadata(text="main", valign=valign, space=Size(38.0, 46.0))

    geometry = layout_label(label, Point(0.0, 0.0), fonts, 96.0)

    assert geometry is not None
    assert geometry.text_rect.top == top


def test_multiline_label_places_each_line(fonts: MonospaceFontEngine) -> None:
    label = LabelMetadata(text="ab\\lc")

    geometry = layout_label(label, Point(0.0, 0.0), fonts, 96.0)

    assert geometry is not None
    assert geometry.text_rect == Rect(-6.0, -10.0, 12.0, 20.0)
    first, second = geometry.path.text_runs()
    assert isinstance(first, TextRun)
    assert first.origin == Point(-6.0, -2.0)
    assert second.origin == Point(-3.0, 8.0)


def test_label_centered_on_given_point(fonts: MonospaceFontEngine) -> None:
    label = LabelMetadata(text="0", font_color="#000000")

    geometry = layout_label(label, Point(133.5, 76.5), fonts, 96.0)

    assert geometry is not None
    assert geometry.text_rect == Rect(130.5, 71.5, 6.0, 10.0)
    assert geometry.font_color == "#000000"


def test_missing_label_has_no_geometry(fonts: MonospaceFontEngine) -> None:
    assert layout_label(None, Point(0.0, 0.0), fonts, 96.0) is None
