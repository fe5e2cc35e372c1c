"""
Find the slide tagged with the current week's label ("WEEK OF 9/1/2025").
"""
import logging
from datetime import date, timedelta
from typing import Sequence, Tuple

from agenda_board.agenda.backends.base import Presentation, Slide
from agenda_board.agenda.errors import SlideNotFoundError
from agenda_board.agenda.settings import DEFAULT_WEEK_LABELS

logger = logging.getLogger(__name__)


def monday_of_week(today: date) -> date:
    """Monday on or before today; a Sunday maps to the Monday six days earlier."""
    weekday = (today.weekday() + 1) % 7  # Sunday = 0, Monday = 1, ..., Saturday = 6
    offset = -6 if weekday == 0 else 1 - weekday
    return today + timedelta(days=offset)


def format_week_date(monday: date) -> str:
    """M/D/YYYY without leading zeros."""
    return f"{monday.month}/{monday.day}/{monday.year}"


def week_labels(monday: date, templates: Sequence[str] = DEFAULT_WEEK_LABELS) -> Tuple[str, ...]:
    """Upper-cased label candidates for the week starting on monday."""
    formatted = format_week_date(monday)
    return tuple(template.format(date=formatted).upper() for template in templates)


class WeekSlideLocator:
    def __init__(self, templates: Sequence[str] = DEFAULT_WEEK_LABELS):
        self.templates = tuple(templates)

    def locate(self, presentation: Presentation, monday: date) -> Slide:
        """First slide (in order) with a shape whose text contains any week label."""
        labels = week_labels(monday, self.templates)
        logger.debug(f"Searching {presentation.presentation_id} for {labels}")
        slide = next(
            (
                slide for slide in presentation.slides
                if any(
                    label in shape.text.upper()
                    for shape in slide.shapes
                    for label in labels
                )
            ),
            None,
        )
        if slide is None:
            raise SlideNotFoundError(labels)
        return slide
