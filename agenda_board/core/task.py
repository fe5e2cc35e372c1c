"""
Base task type and abstract BaseTask with next_run persistence in DB.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from agenda_board.core.db import session_scope
from agenda_board.core.models import TaskSchedule

logger = logging.getLogger(__name__)


class TaskType:
    """Schedule kind for tasks."""
    DAILY = "daily"
    INTERVAL_SECONDS = "interval_seconds"


# schedule_config["timezone"] value for the server's own local time
LOCAL_TIMEZONE = "local"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_time_of_day(time_str: Any, default: str = "00:00") -> str:
    """Normalize "H:MM" / "HH:MM" to "HH:MM"; falls back to default on bad input."""
    try:
        parts = str(time_str).strip().split(":")
        hour = int(parts[0]) if parts else 0
        minute = int(parts[1]) if len(parts) > 1 else 0
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise ValueError(time_str)
        return f"{hour:02d}:{minute:02d}"
    except (ValueError, IndexError):
        return default


def compute_next_run(
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    last_run: Optional[datetime],
) -> datetime:
    """Compute next run datetime from schedule_type, schedule_config, and last_run."""
    if last_run is None:
        last_run = _utc_now()

    if schedule_type == TaskType.DAILY and schedule_config:
        time_str = parse_time_of_day(schedule_config.get("time", "00:00"))
        hour, minute = (int(p) for p in time_str.split(":"))
        tz_name = schedule_config.get("timezone")
        if not tz_name:
            next_run = last_run.replace(hour=hour, minute=minute, second=0, microsecond=0)
            if next_run <= last_run:
                next_run += timedelta(days=1)
            return next_run
        # Wall-clock time in tz_name ("local" = server time); stored back as naive UTC
        zone = None if tz_name == LOCAL_TIMEZONE else ZoneInfo(tz_name)
        local_last = last_run.replace(tzinfo=timezone.utc).astimezone(zone)
        next_run = local_last.replace(hour=hour, minute=minute, second=0, microsecond=0)
        if next_run <= local_last:
            next_run += timedelta(days=1)
        return next_run.astimezone(timezone.utc).replace(tzinfo=None)

    if schedule_type == TaskType.INTERVAL_SECONDS and schedule_config:
        sec = int(schedule_config.get("interval_seconds", 86400))
        return last_run + timedelta(seconds=sec)

    return last_run + timedelta(days=1)


def get_next_run_from_db(task_name: str) -> Optional[datetime]:
    """Read next_run_at for task from DB. Returns None if no row or next_run_at is null (task will run immediately)."""
    try:
        with session_scope() as session:
            row = session.get(TaskSchedule, task_name)
            if row is not None:
                return row.next_run_at
    except Exception as e:
        logger.debug(f"get_next_run_from_db {task_name}: {e}")
    return None


def upsert_task_schedule(
    task_name: str,
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    next_run_at: Optional[datetime] = None,
) -> None:
    """Create or update TaskSchedule row.
    A new row keeps next_run_at null (run immediately) unless one is given; an existing row
    keeps its next_run_at unless the schedule changed or one is given."""
    with session_scope() as session:
        row = session.get(TaskSchedule, task_name)
        now = _utc_now()
        if row:
            if row.schedule_type != schedule_type or row.schedule_config != schedule_config:
                # Schedule changed in config: recompute from the last run instead of the stale next run
                row.next_run_at = compute_next_run(schedule_type, schedule_config, row.last_run_at)
            row.schedule_type = schedule_type
            row.schedule_config = schedule_config
            if next_run_at is not None:
                row.next_run_at = next_run_at
            row.updated_at = now
        else:
            session.add(TaskSchedule(
                task_name=task_name,
                schedule_type=schedule_type,
                schedule_config=schedule_config,
                next_run_at=next_run_at,
                created_at=now,
                updated_at=now,
            ))


def update_after_run(task_name: str, error: Optional[str] = None) -> None:
    """Update last_run_at, last_error and next_run_at in DB after a run (successful or not)."""
    with session_scope() as session:
        row = session.get(TaskSchedule, task_name)
        if not row:
            return
        now = _utc_now()
        row.last_run_at = now
        row.last_error = error
        row.next_run_at = compute_next_run(row.schedule_type, row.schedule_config, now)
        row.updated_at = now


class BaseTask(ABC):
    """
    Abstract base for scheduled background tasks. Subclasses implement execute();
    run() wraps it and persists last_run/next_run (and last_error) in DB.
    """

    def __init__(self, task_name: str, schedule_type: str, schedule_config: Optional[Dict[str, Any]] = None):
        self.task_name = task_name
        self.schedule_type = schedule_type
        self.schedule_config = schedule_config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def get_next_run(self, last_run: Optional[datetime] = None) -> datetime:
        """Compute next run time from schedule_type and schedule_config."""
        return compute_next_run(self.schedule_type, self.schedule_config, last_run)

    def ensure_scheduled(self, next_run_at: Optional[datetime] = None) -> None:
        """Ensure TaskSchedule row exists so next run survives restarts."""
        upsert_task_schedule(
            self.task_name,
            self.schedule_type,
            self.schedule_config,
            next_run_at=next_run_at,
        )

    def run(self, config_data: Dict[str, Any], **kwargs: Any) -> Any:
        """Execute the task and record the outcome. Errors are recorded, logged and re-raised."""
        try:
            result = self.execute(config_data, **kwargs)
        except Exception as e:
            self.logger.exception(f"{self.task_name} failed: {e}")
            update_after_run(self.task_name, error=str(e))
            raise
        update_after_run(self.task_name)
        return result

    @abstractmethod
    def execute(self, config_data: Dict[str, Any], **kwargs: Any) -> Any:
        """Do the work for one scheduled run."""
        pass
