"""
Read-only queries for the web front end.

get_current_agenda / get_archived_agenda never raise: they return either an
AgendaPayload or an AgendaFailure so the caller can render a message either way.
"""
import logging
from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict

from agenda_board.agenda import service
from agenda_board.agenda.archive import partition_name_for
from agenda_board.agenda.dates import ISO_DATE_RE
from agenda_board.agenda.settings import DEFAULT_ARCHIVE_PREFIX

logger = logging.getLogger(__name__)


class AgendaRecordResponse(BaseModel):
    """Pydantic view of one agenda row (current or archived, date column dropped)."""

    model_config = ConfigDict(from_attributes=True)

    teacher_last_name: str = ""
    class_name: str = ""
    day_of_week: str = ""
    turn_in: Optional[str] = None
    activities: Optional[str] = None
    practice_work: Optional[str] = None
    upcoming: Optional[str] = None
    grade_level: str = ""
    error_note: Optional[str] = None


class AgendaPayload(BaseModel):
    payload: List[AgendaRecordResponse]


class AgendaFailure(BaseModel):
    error: str


AgendaResult = Union[AgendaPayload, AgendaFailure]


def get_current_agenda() -> AgendaResult:
    """All rows of the current-day table, in order."""
    try:
        service.require_tables(service.CURRENT_TABLE)
        records = service.get_current_records()
    except Exception as e:
        logger.error(f"Error in get_current_agenda: {e}")
        return AgendaFailure(error=f"Failed to fetch agenda data: {e}")
    if not records:
        logger.info(f"No data found in {service.CURRENT_TABLE}.")
    return AgendaPayload(payload=[AgendaRecordResponse.model_validate(r._asdict()) for r in records])


def get_archived_agenda(date_key: str, prefix: str = DEFAULT_ARCHIVE_PREFIX) -> AgendaResult:
    """Archived rows for one date ("YYYY-MM-DD"); empty payload if nothing was archived."""
    try:
        if not isinstance(date_key, str) or not ISO_DATE_RE.match(date_key):
            return AgendaFailure(error=f"Invalid date '{date_key}': expected YYYY-MM-DD")
        day = date.fromisoformat(date_key)
        name = partition_name_for(day, prefix)
        if service.get_partition(name) is None:
            return AgendaPayload(payload=[])
        records = service.get_archived_records(name, date_key)
    except Exception as e:
        logger.error(f"Error retrieving archived data for {date_key}: {e}")
        return AgendaFailure(error=f"Failed to fetch archived data: {e}")
    return AgendaPayload(payload=[AgendaRecordResponse.model_validate(r._asdict()) for r in records])


def list_archived_dates(prefix: str = DEFAULT_ARCHIVE_PREFIX) -> List[str]:
    """Every archived date across partitions, sorted ascending; [] on failure."""
    try:
        return service.list_archived_date_keys(prefix)
    except Exception as e:
        logger.error(f"Error getting available archive dates: {e}")
        return []
