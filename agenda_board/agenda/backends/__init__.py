from typing import Any, Mapping

from .base import (
    Presentation,
    PresentationBackend,
    Shape,
    ShapeGeometry,
    Slide,
    TextRun,
)
from agenda_board.agenda.errors import ConfigurationError

__all__ = [
    "Presentation", "PresentationBackend", "Shape", "ShapeGeometry", "Slide", "TextRun",
    "get_backend",
]


def _google_slides(config, logger):
    from .google_slides import GoogleSlidesBackend
    return GoogleSlidesBackend(config, logger=logger)


def _pptx_file(config, logger):
    from .pptx_file import PptxFileBackend
    return PptxFileBackend(config, logger=logger)


_BACKENDS = {
    "google_slides": _google_slides,
    "pptx_file": _pptx_file,
}


def get_backend(config: Mapping[str, Any], logger=None) -> PresentationBackend:
    """Factory: return backend instance for config['type'] (default google_slides)."""
    backend_type = (config.get("type") or "google_slides").lower()
    factory = _BACKENDS.get(backend_type)
    if not factory:
        raise ConfigurationError(
            f"Unknown presentation backend '{backend_type}' (expected one of {sorted(_BACKENDS)})"
        )
    return factory(dict(config), logger)
