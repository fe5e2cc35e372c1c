"""
Local .pptx backend (python-pptx). document_id is a file path, relative to base_dir if set.
No network, no cache.
"""
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pptx
from pptx.exc import PackageNotFoundError

from agenda_board.agenda.backends.base import (
    Presentation,
    PresentationBackend,
    Shape,
    ShapeGeometry,
    Slide,
    TextRun,
    emu_to_points,
)
from agenda_board.agenda.errors import PresentationAccessError


def shape_runs(text_frame) -> List[TextRun]:
    """Runs of a text frame in order; paragraph breaks become newline runs."""
    runs: List[TextRun] = []
    for index, paragraph in enumerate(text_frame.paragraphs):
        if index:
            runs.append(TextRun("\n"))
        for run in paragraph.runs:
            runs.append(TextRun(run.text, run.hyperlink.address or None))
    return runs


def shape_geometry(shape) -> Optional[ShapeGeometry]:
    """Shape rectangle in points, or None if the shape has no explicit position."""
    values = (shape.left, shape.top, shape.width, shape.height)
    if any(v is None for v in values):
        return None
    return ShapeGeometry(*(emu_to_points(int(v)) for v in values))


class PptxFileBackend(PresentationBackend):
    """Reads .pptx decks from disk."""

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None):
        self.config = config or {}
        self.logger = logger or logging.getLogger(__name__)
        base_dir = self.config.get("base_dir")
        self.base_dir = Path(base_dir).expanduser() if base_dir else None

    def resolve(self, document_id: str) -> Path:
        path = Path(document_id).expanduser()
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        return path

    def open(self, document_id: str) -> Presentation:
        path = self.resolve(document_id)
        if path.suffix.lower() != ".pptx":
            raise PresentationAccessError(f"Expected a .pptx file, but got: {path.name}")
        if not path.is_file():
            raise PresentationAccessError(f"File not found: {path}")
        try:
            deck = pptx.Presentation(str(path))
        except (PackageNotFoundError, zipfile.BadZipFile, OSError, KeyError, ValueError) as e:
            raise PresentationAccessError(f"Could not open {path}: {e}") from e

        slides = []
        for slide in deck.slides:
            shapes = []
            for shape in slide.shapes:
                if not shape.has_text_frame:
                    continue
                geometry = shape_geometry(shape)
                if geometry is None:
                    continue
                shapes.append(Shape(shape.shape_id, geometry, shape_runs(shape.text_frame)))
            slides.append(Slide(slide.slide_id, shapes))

        self.logger.debug(f"Opened {path} with {len(slides)} slide(s)")
        return Presentation(presentation_id=document_id, title=path.stem, slides=slides)
