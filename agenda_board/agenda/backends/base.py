"""
Base types and interface for presentation backends.
All backends return Presentation/Slide/Shape named tuples; geometry is in points.
"""
from abc import ABC, abstractmethod
from collections import namedtuple

EMU_PER_POINT = 12700

# A contiguous styled span of text; url is None when the run carries no link
TextRun = namedtuple("TextRun", ["text", "url"], defaults=(None,))

ShapeGeometry = namedtuple("ShapeGeometry", ["x", "y", "width", "height"])


class Shape(namedtuple("Shape", ["object_id", "geometry", "runs"])):
    __slots__ = ()

    @property
    def text(self) -> str:
        """Full text of the shape, runs concatenated in document order."""
        return "".join(run.text for run in self.runs)


Slide = namedtuple("Slide", ["object_id", "shapes"])

Presentation = namedtuple("Presentation", ["presentation_id", "title", "slides"])


def emu_to_points(value: float) -> float:
    return value / EMU_PER_POINT


class PresentationBackend(ABC):
    """Abstract backend: open one presentation by id."""

    @abstractmethod
    def open(self, document_id: str) -> Presentation:
        """Fetch the presentation with all slides and text shapes.
        Raises PresentationAccessError when it cannot be opened."""
        pass
