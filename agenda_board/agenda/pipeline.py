"""
Entry points invoked by the scheduler, the CLI and the manual-run API routes.
"""
import logging
from collections import namedtuple
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from agenda_board.agenda import service
from agenda_board.agenda.archive import ArchivePartitioner, ArchiveResult
from agenda_board.agenda.backends import PresentationBackend, get_backend
from agenda_board.agenda.errors import ConfigurationError
from agenda_board.agenda.extractor import AgendaExtractor, day_name
from agenda_board.agenda.settings import AgendaSettings

logger = logging.getLogger(__name__)

ExtractionResult = namedtuple("ExtractionResult", ["day_of_week", "row_count", "error_count"])


def local_today(settings: AgendaSettings) -> date:
    """Today's date in the configured timezone (server local time when unset)."""
    if not settings.timezone:
        return date.today()
    try:
        tz = ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone '{settings.timezone}'") from e
    return datetime.now(tz).date()


def run_extraction(
    settings: AgendaSettings,
    backend: Optional[PresentationBackend] = None,
    day_of_week: Optional[str] = None,
    today: Optional[date] = None,
) -> ExtractionResult:
    """Extract agendas for every source record and replace the current-day table."""
    service.require_tables(service.SOURCE_TABLE, service.CURRENT_TABLE)
    today = today or local_today(settings)
    if backend is None:
        backend = get_backend(settings.backend)

    extractor = AgendaExtractor(settings, backend)
    sources = service.get_source_records()
    if not any(s.document_id.strip() for s in sources):
        logger.warning("No presentation IDs found in the source table.")

    records = extractor.run(day_of_week, sources, today)
    service.replace_current_rows(records)
    errors = sum(1 for r in records if r.error_note)
    day = day_of_week or day_name(today)
    logger.info(
        f"All text extraction complete: {len(records)} row(s) written to {service.CURRENT_TABLE}"
        f" ({errors} error row(s))"
    )
    return ExtractionResult(day, len(records), errors)


def run_archival(settings: AgendaSettings, today: Optional[date] = None) -> ArchiveResult:
    """Archive the current-day table under today's date key (no-op if already archived)."""
    service.require_tables(service.CURRENT_TABLE, *service.ARCHIVE_TABLES)
    today = today or local_today(settings)
    partitioner = ArchivePartitioner(settings.archive_prefix)
    return partitioner.archive_today(service.get_current_records(), today)
