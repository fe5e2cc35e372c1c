"""Builders for in-memory presentations and a backend that serves them."""
from datetime import date
from typing import Dict, List, Optional, Union

from agenda_board.agenda.backends import (
    Presentation,
    PresentationBackend,
    Shape,
    ShapeGeometry,
    Slide,
    TextRun,
)
from agenda_board.agenda.errors import PresentationAccessError
from agenda_board.agenda.week_slide import format_week_date


def box_shape(box, text: Optional[str] = None, runs: Optional[List[TextRun]] = None,
              offset: float = 0.0, object_id: str = "shape") -> Shape:
    """Shape placed on box (optionally shifted by offset on every coordinate)."""
    if runs is None:
        runs = [TextRun(text or "")]
    geometry = ShapeGeometry(box.x + offset, box.y + offset, box.width + offset, box.height + offset)
    return Shape(object_id, geometry, runs)


def label_shape(text: str) -> Shape:
    """Title shape well away from every agenda box."""
    return Shape("title", ShapeGeometry(10.0, 10.0, 300.0, 40.0), [TextRun(text)])


def week_slide(monday: date, *shapes: Shape, template: str = "WEEK OF {date}",
               object_id: str = "slide") -> Slide:
    label = label_shape(template.format(date=format_week_date(monday)))
    return Slide(object_id, [label] + list(shapes))


def deck(presentation_id: str, *slides: Slide) -> Presentation:
    return Presentation(presentation_id, f"Deck {presentation_id}", list(slides))


class FakeBackend(PresentationBackend):
    """Serves presentations by id; an Exception value is raised on open."""

    def __init__(self, presentations: Dict[str, Union[Presentation, Exception]]):
        self.presentations = presentations
        self.opened: List[str] = []

    def open(self, document_id: str) -> Presentation:
        self.opened.append(document_id)
        value = self.presentations.get(document_id)
        if value is None:
            raise PresentationAccessError(f"Could not open presentation {document_id} (HTTP 404)")
        if isinstance(value, Exception):
            raise value
        return value
