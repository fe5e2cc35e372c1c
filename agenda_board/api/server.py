"""
FastAPI server for the agenda API. Run with run_api_server(app); blocks until shutdown.
Central endpoint: GET /api/tasks. Agenda routes are mounted from
agenda_board.agenda.api (get_router(agenda_app)) under /api/agenda/.
Docs when enabled: http://<host>:<port>/docs
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI
from pydantic import BaseModel, ConfigDict

from agenda_board.agenda.api import get_router
from agenda_board.core.models import get_all_task_schedule_records

logger = logging.getLogger(__name__)


def _serialize_datetime(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes so they serialize with an offset."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class TaskScheduleResponse(BaseModel):
    """Pydantic view of TaskSchedule for API; serializes from ORM."""

    model_config = ConfigDict(from_attributes=True)

    task_name: Optional[str] = None
    schedule_type: Optional[str] = None
    schedule_config: Optional[Dict[str, Any]] = None
    next_run_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None
    last_error: Optional[str] = None


class ActiveTimerResponse(BaseModel):
    """One active timer (in-memory; not from DB)."""

    name: str = ""
    next_run_at: Optional[datetime] = None


class TasksResponse(BaseModel):
    db_schedules: List[TaskScheduleResponse]
    active_timers: List[ActiveTimerResponse]


def create_app(agenda_app: Any) -> FastAPI:
    """Create FastAPI app with routes that use the given AgendaApp instance."""
    app = FastAPI(title="Agenda Board API", description="Current and archived class agendas")

    @app.get("/api/tasks", response_model=TasksResponse)
    def list_tasks() -> TasksResponse:
        """List scheduled tasks: DB schedules and active in-memory timers."""
        schedules = []
        for record in get_all_task_schedule_records():
            schedule = TaskScheduleResponse.model_validate(record)
            schedule.next_run_at = _serialize_datetime(schedule.next_run_at)
            schedule.last_run_at = _serialize_datetime(schedule.last_run_at)
            schedules.append(schedule)

        active_list = [
            ActiveTimerResponse(name=t["name"], next_run_at=t.get("next_run_at"))
            for t in agenda_app.task_manager.get_active_timers()
        ]
        return TasksResponse(db_schedules=schedules, active_timers=active_list)

    app.include_router(get_router(agenda_app), prefix="/api/agenda")
    return app


def run_api_server(agenda_app: Any) -> bool:
    """
    Serve the API in the calling thread if api.enabled is true. Returns False when disabled.
    Reads api.host (default 127.0.0.1) and api.port (default 8765) from config.
    """
    api_config = agenda_app.config.get_section("api")
    enabled = api_config.get("enabled", False)
    logger.info(
        f"API config: enabled={enabled}, config_file={agenda_app.config.config_file}, api section={list(api_config.keys())}"
    )
    if not enabled:
        logger.info("API server not started: set api.enabled to true in your config file to enable.")
        return False
    host = api_config.get("host", "127.0.0.1")
    port = int(api_config.get("port", 8765))
    fastapi_app = create_app(agenda_app)
    logger.info(f"API server listening at http://{host}:{port} (docs at /docs)")
    uvicorn.run(fastapi_app, host=host, port=port, log_config=None)
    return True
