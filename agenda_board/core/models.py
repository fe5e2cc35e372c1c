"""
Core DB models: task schedule (next_run persistence).
"""
from datetime import datetime, timezone
from typing import List

from sqlalchemy import Column, String, DateTime, Text, JSON, select

from agenda_board.core.db import Base, session_scope


def _utc_now() -> datetime:
    """UTC now as naive datetime for DateTime(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TaskSchedule(Base):
    """Per-task schedule: next_run_at and last_run_at so scheduling survives restarts."""
    __tablename__ = "task_schedules"

    task_name = Column(String(255), primary_key=True)
    schedule_type = Column(String(64), nullable=False)  # daily, interval_seconds
    schedule_config = Column(JSON, nullable=True)  # e.g. {"time": "23:00"}, {"interval_seconds": 3600}
    next_run_at = Column(DateTime(timezone=False), nullable=True)  # null = run immediately (e.g. new DB)
    last_run_at = Column(DateTime(timezone=False), nullable=True)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)


def get_all_task_schedule_records() -> List[TaskSchedule]:
    """Return all TaskSchedule ORM rows (for API serialization via Pydantic from_attributes)."""
    with session_scope() as session:
        return list(session.execute(select(TaskSchedule)).scalars().all())
