"""
Per-source-record agenda extraction.

For every source record: open the presentation, find this week's slide, match
its text shapes against the day's boxes and the upcoming box, and produce one
OutputRecord. A failing record produces an ERROR row; the batch continues.
"""
import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from agenda_board.agenda.backends.base import PresentationBackend, Slide
from agenda_board.agenda.errors import PresentationAccessError, RecordError, UnsupportedDayError
from agenda_board.agenda.geometry import classify, day_candidates
from agenda_board.agenda.records import NOT_AVAILABLE, OutputRecord, SourceRecord, error_record
from agenda_board.agenda.rich_text import extract_cell
from agenda_board.agenda.settings import BOX_ROLES, AgendaSettings
from agenda_board.agenda.week_slide import WeekSlideLocator, monday_of_week

logger = logging.getLogger(__name__)

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def day_name(day: date) -> str:
    return DAY_NAMES[day.weekday()]


class AgendaExtractor:
    def __init__(
        self,
        settings: AgendaSettings,
        backend: PresentationBackend,
        locator: Optional[WeekSlideLocator] = None,
    ):
        self.settings = settings
        self.backend = backend
        self.locator = locator or WeekSlideLocator(settings.week_labels)

    def run(
        self,
        day_of_week: Optional[str],
        source_records: Sequence[SourceRecord],
        today: date,
    ) -> List[OutputRecord]:
        """Extract one record per non-empty source record, in input order.

        day_of_week: explicit day name for manual runs; None uses today's weekday.
        Raises UnsupportedDayError before any presentation is opened.
        """
        explicit = bool(day_of_week)
        day = day_of_week or day_name(today)
        boxes = self.settings.boxes_for(day)
        if boxes is None:
            raise UnsupportedDayError(day, explicit=explicit)

        monday = monday_of_week(today)
        candidates = day_candidates(self.settings, boxes)
        logger.info(f"Running extraction for: {day} (week of {monday.isoformat()})")
        logger.info(f"Found {len(source_records)} presentation entries to process.")

        results = []
        for source in source_records:
            document_id = source.document_id.strip()
            if not document_id:
                logger.info("Skipping empty presentation ID row.")
                continue
            label = f"{source.teacher_last_name.strip()} - {source.class_name.strip()}"
            try:
                record = self._extract_one(source, document_id, day, monday, candidates)
            except RecordError as e:
                logger.error(f"Error processing presentation ID {document_id} ({label}): {e}")
                record = error_record(source, day, str(e))
            except Exception as e:
                logger.exception(f"Unexpected error processing presentation ID {document_id} ({label})")
                record = error_record(source, day, str(e) or e.__class__.__name__)
            else:
                logger.info(f"Processed: {label} for {day}")
            results.append(record)
        return results

    def _extract_one(self, source, document_id, day, monday, candidates) -> OutputRecord:
        presentation = self.backend.open(document_id)
        if not presentation.slides:
            raise PresentationAccessError("Presentation has no slides.")
        slide = self.locator.locate(presentation, monday)
        cells = self.match_cells(slide, candidates)
        return OutputRecord(
            teacher_last_name=source.teacher_last_name.strip(),
            class_name=source.class_name.strip(),
            day_of_week=day,
            grade_level=source.grade_level.strip(),
            **cells,
        )

    def match_cells(self, slide: Slide, candidates) -> Dict[str, str]:
        """Cell text per role; roles without a matching shape stay "N/A"."""
        cells = {role: NOT_AVAILABLE for role in BOX_ROLES}
        for shape in slide.shapes:
            if not shape.text.strip():
                continue
            role = classify(shape.geometry, candidates, self.settings.tolerance)
            if role is None:
                continue
            cells[role] = extract_cell(shape.runs, shape.text)
        return cells
