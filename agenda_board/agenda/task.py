"""
Background tasks: periodic agenda extraction and daily archival, with next_run persisted in DB.
"""
from typing import Any, Dict, Optional

from agenda_board.core.task import LOCAL_TIMEZONE, BaseTask, TaskType, parse_time_of_day
from agenda_board.agenda.backends import PresentationBackend
from agenda_board.agenda.errors import UnsupportedDayError
from agenda_board.agenda.pipeline import ExtractionResult, run_archival, run_extraction
from agenda_board.agenda.archive import ArchiveResult
from agenda_board.agenda.settings import AgendaSettings

EXTRACTION_TASK = "Agenda Extraction"
ARCHIVAL_TASK = "Agenda Archival"


class ExtractionTask(BaseTask):
    """Extract agendas from all presentations and rewrite the current-day table."""

    def __init__(self, settings: AgendaSettings, backend: Optional[PresentationBackend] = None):
        super().__init__(
            EXTRACTION_TASK,
            TaskType.INTERVAL_SECONDS,
            {"interval_seconds": settings.extract_interval},
        )
        self.backend = backend

    def execute(self, config_data: Dict[str, Any], **kwargs: Any) -> Optional[ExtractionResult]:
        settings = AgendaSettings.from_config(config_data.get("agenda"))
        try:
            result = run_extraction(settings, backend=self.backend)
        except UnsupportedDayError as e:
            # Weekends: nothing to extract, not a failure of the schedule
            self.logger.info(str(e))
            return None
        self.logger.info(
            f"Agenda Extraction: {result.row_count} row(s) for {result.day_of_week}, {result.error_count} error(s)"
        )
        return result


class ArchivalTask(BaseTask):
    """Archive today's current-day rows once per day, at archive_time in the agenda timezone."""

    def __init__(self, settings: AgendaSettings):
        super().__init__(
            ARCHIVAL_TASK,
            TaskType.DAILY,
            {
                "time": parse_time_of_day(settings.archive_time, default="23:00"),
                "timezone": settings.timezone or LOCAL_TIMEZONE,
            },
        )

    def execute(self, config_data: Dict[str, Any], **kwargs: Any) -> ArchiveResult:
        settings = AgendaSettings.from_config(config_data.get("agenda"))
        result = run_archival(settings)
        self.logger.info(
            f"Agenda Archival: {result.status} {result.date_key} ({result.archived_count} row(s) in {result.partition_name})"
        )
        return result
