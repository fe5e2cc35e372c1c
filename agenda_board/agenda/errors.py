"""
Exceptions raised by the agenda pipeline.

Run-level errors (ConfigurationError, UnsupportedDayError) abort a run before
anything is written. RecordError subclasses are scoped to one source record
and are turned into an ERROR row by the extractor.
"""
from typing import Sequence


class AgendaError(Exception):
    """Base class for agenda pipeline errors."""


class ConfigurationError(AgendaError):
    """Required configuration or table is missing or invalid."""


class UnsupportedDayError(AgendaError):
    """No target boxes are configured for the requested day."""

    def __init__(self, day: str, explicit: bool = False):
        self.day = day
        self.explicit = explicit
        if explicit:
            message = f"The requested day '{day}' has no coordinates defined."
        else:
            message = f"Today is {day}. No agenda extraction scheduled for this day."
        super().__init__(message)


class RecordError(AgendaError):
    """Failure scoped to a single source record."""


class PresentationAccessError(RecordError):
    """Presentation could not be opened or has no slides."""


class SlideNotFoundError(RecordError):
    """No slide carries the current week's label."""

    def __init__(self, labels: Sequence[str]):
        self.labels = tuple(labels)
        quoted = " or ".join(f'"{label}"' for label in self.labels)
        super().__init__(f"Slide with text {quoted} not found.")


class DateParseError(AgendaError):
    """Value cannot be read as a calendar date. Never escapes the date normalizer."""
