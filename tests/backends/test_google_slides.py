"""Test conversion of Slides API responses"""

# tests/backends/test_google_slides.py
import pytest

from agenda_board.agenda.backends import ShapeGeometry, TextRun
from agenda_board.agenda.backends.google_slides import (
    GoogleSlidesBackend,
    convert_presentation,
    element_geometry,
    element_runs,
)
from agenda_board.agenda.errors import PresentationAccessError


def emu(points: float) -> int:
    return round(points * 12700)


def text_shape(object_id: str, x: float, y: float, width: float, height: float, text_elements) -> dict:
    return {
        "objectId": object_id,
        "size": {
            "width": {"magnitude": emu(width), "unit": "EMU"},
            "height": {"magnitude": emu(height), "unit": "EMU"},
        },
        "transform": {"scaleX": 1, "scaleY": 1, "translateX": emu(x), "translateY": emu(y), "unit": "EMU"},
        "shape": {"shapeType": "TEXT_BOX", "text": {"textElements": text_elements}},
    }


RESPONSE = {
    "presentationId": "deck-1",
    "title": "Algebra I",
    "slides": [
        {
            "objectId": "p1",
            "pageElements": [
                text_shape("label", 10, 10, 300, 40, [
                    {"paragraphMarker": {}},
                    {"textRun": {"content": "WEEK OF 9/1/2025\n", "style": {}}},
                ]),
                text_shape("turn_in", 43.5, 129.64, 153.17, 33.87, [
                    {"paragraphMarker": {}},
                    {"textRun": {"content": "Read ", "style": {"bold": True}}},
                    {"textRun": {"content": "Worksheet", "style": {"link": {"url": "https://example.com/ws"}}}},
                    {"textRun": {"content": "\n", "style": {}}},
                ]),
                {"objectId": "img", "image": {"contentUrl": "https://example.com/a.png"}},
            ],
        },
        {"objectId": "p2"},
    ],
}


def test_convert_presentation() -> None:
    presentation = convert_presentation(RESPONSE)

    assert (presentation.presentation_id, presentation.title) == ("deck-1", "Algebra I")
    assert [s.object_id for s in presentation.slides] == ["p1", "p2"]
    assert presentation.slides[1].shapes == []
    label, turn_in = presentation.slides[0].shapes
    assert label.text == "WEEK OF 9/1/2025\n"
    assert turn_in.runs == [TextRun("Read "), TextRun("Worksheet", "https://example.com/ws"), TextRun("\n")]
    assert turn_in.geometry.x == pytest.approx(43.5, abs=0.01)
    assert turn_in.geometry.height == pytest.approx(33.87, abs=0.01)


def test_geometry_applies_scale_and_point_units() -> None:
    element = {
        "size": {"width": {"magnitude": 100, "unit": "PT"}, "height": {"magnitude": emu(20), "unit": "EMU"}},
        "transform": {"scaleX": 1.5, "scaleY": 2, "translateX": 12, "translateY": 24, "unit": "PT"},
    }
    assert element_geometry(element) == ShapeGeometry(12.0, 24.0, 150.0, 40.0)


def test_geometry_defaults_when_transform_missing() -> None:
    assert element_geometry({}) == ShapeGeometry(0.0, 0.0, 0.0, 0.0)


def test_runs_include_auto_text() -> None:
    element = {"shape": {"text": {"textElements": [{"autoText": {"type": "SLIDE_NUMBER", "content": "3"}}]}}}
    assert element_runs(element) == [TextRun("3")]


def test_missing_credentials_raise_access_error(tmp_path) -> None:
    backend = GoogleSlidesBackend({"client_secret_path": str(tmp_path / "missing.json")})
    with pytest.raises(PresentationAccessError, match="client secret not found"):
        backend.open("deck-1")
