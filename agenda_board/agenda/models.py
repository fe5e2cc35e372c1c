"""
SQLAlchemy models for agenda data.

- PresentationSource: configured teacher/class/presentation entries (extraction input).
- CurrentAgendaRow: current-day table; fully replaced on every extraction run.
- ArchivePartition / ArchiveRow: monthly append-only archive ("Archive_2025_09").
- ArchiveBatch: one row per archived date key; primary key makes archival idempotent.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, Integer, JSON, ForeignKey

from agenda_board.core.db import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PresentationSource(Base):
    """One source record. position fixes processing order."""
    __tablename__ = "presentation_sources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    position = Column(Integer, nullable=False, default=0, index=True)
    document_id = Column(String(512), nullable=False, default="")
    teacher_last_name = Column(String(255), nullable=False, default="")
    class_name = Column(String(255), nullable=False, default="")
    grade_level = Column(String(64), nullable=False, default="")


class _AgendaColumns:
    """The eight agenda columns plus the ad hoc error note."""
    teacher_last_name = Column(String(255), nullable=False, default="")
    class_name = Column(String(255), nullable=False, default="")
    day_of_week = Column(String(16), nullable=False, default="")
    turn_in = Column(Text, nullable=True)
    activities = Column(Text, nullable=True)
    practice_work = Column(Text, nullable=True)
    upcoming = Column(Text, nullable=True)
    grade_level = Column(String(64), nullable=False, default="")
    error_note = Column(Text, nullable=True)


class CurrentAgendaRow(_AgendaColumns, Base):
    """Current-day agenda row. position preserves source record order."""
    __tablename__ = "current_day_agendas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    position = Column(Integer, nullable=False, index=True)
    extracted_at = Column(DateTime(timezone=False), nullable=False, default=_utc_now)


class ArchivePartition(Base):
    """Monthly archive container. header is the column header written on creation."""
    __tablename__ = "archive_partitions"

    name = Column(String(64), primary_key=True)  # e.g. Archive_2025_09
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    header = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=False), nullable=False, default=_utc_now)


class ArchiveRow(_AgendaColumns, Base):
    """One archived agenda row. date_key is stored as written; match through the date normalizer."""
    __tablename__ = "archive_rows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    partition_name = Column(String(64), ForeignKey("archive_partitions.name"), nullable=False, index=True)
    position = Column(Integer, nullable=False)  # order within the partition
    date_key = Column(String(32), nullable=True, index=True)
    archived_at = Column(DateTime(timezone=False), nullable=False, default=_utc_now)


class ArchiveBatch(Base):
    """Marker for an archived date. Inserted in the same transaction as its rows."""
    __tablename__ = "archive_batches"

    date_key = Column(String(10), primary_key=True)
    partition_name = Column(String(64), nullable=False)
    row_count = Column(Integer, nullable=False)
    archived_at = Column(DateTime(timezone=False), nullable=False, default=_utc_now)
