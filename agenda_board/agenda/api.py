"""
Agenda API. Mounted at /api/agenda/.
- GET /current: current-day table.
- GET /archive/dates: every archived date.
- GET /archive/{date_key}: archived rows for one date.
- POST /extract, POST /archive: manual runs (extract accepts ?day= for a named weekday).
"""
from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from agenda_board.agenda.errors import AgendaError, UnsupportedDayError
from agenda_board.agenda.queries import (
    AgendaFailure,
    AgendaPayload,
    get_archived_agenda,
    get_current_agenda,
    list_archived_dates,
)


class ExtractionResponse(BaseModel):
    day_of_week: str
    row_count: int
    error_count: int


class ArchiveResponse(BaseModel):
    status: str
    date_key: Optional[str] = None
    partition_name: str
    archived_count: int


def get_router(agenda_app) -> APIRouter:
    """Return router for the agenda endpoints; mounted with prefix /api/agenda."""
    router = APIRouter(tags=["Agenda"])

    @router.get("/current", response_model=Union[AgendaPayload, AgendaFailure])
    def current() -> Union[AgendaPayload, AgendaFailure]:
        """Current-day agenda rows ({payload} or {error})."""
        return get_current_agenda()

    @router.get("/archive/dates", response_model=List[str])
    def archive_dates() -> List[str]:
        """Archived dates, sorted ascending."""
        return list_archived_dates(agenda_app.settings_or_default().archive_prefix)

    @router.get("/archive/{date_key}", response_model=Union[AgendaPayload, AgendaFailure])
    def archived(date_key: str) -> Union[AgendaPayload, AgendaFailure]:
        """Archived agenda rows for one date ({payload} or {error})."""
        return get_archived_agenda(date_key, agenda_app.settings_or_default().archive_prefix)

    @router.post("/extract", response_model=ExtractionResponse)
    def extract(day: Optional[str] = None) -> ExtractionResponse:
        """Run extraction now, optionally as if it were the named weekday."""
        try:
            result = agenda_app.run_extraction(day)
        except UnsupportedDayError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except AgendaError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return ExtractionResponse(**result._asdict())

    @router.post("/archive", response_model=ArchiveResponse)
    def archive() -> ArchiveResponse:
        """Archive the current-day table under today's date (no-op if already archived)."""
        try:
            result = agenda_app.run_archival()
        except AgendaError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return ArchiveResponse(**result._asdict())

    return router
