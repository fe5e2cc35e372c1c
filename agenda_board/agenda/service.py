"""
Service layer: source records, current-day table and archive reads.
Archive writes live in agenda_board.agenda.archive (the only writer of partitions).
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, select

from agenda_board.core.db import missing_tables, session_scope
from agenda_board.agenda.dates import normalize
from agenda_board.agenda.errors import ConfigurationError
from agenda_board.agenda.models import (
    ArchivePartition,
    ArchiveRow,
    CurrentAgendaRow,
    PresentationSource,
)
from agenda_board.agenda.records import OutputRecord, SourceRecord

logger = logging.getLogger(__name__)

SOURCE_TABLE = PresentationSource.__tablename__
CURRENT_TABLE = CurrentAgendaRow.__tablename__
ARCHIVE_TABLES = (ArchivePartition.__tablename__, ArchiveRow.__tablename__)


def require_tables(*table_names: str) -> None:
    """Raise ConfigurationError if any of the tables is missing."""
    missing = missing_tables(table_names)
    if missing:
        raise ConfigurationError(f"Required table(s) not found: {', '.join(missing)}")


# --- Source records ---

def get_source_records() -> List[SourceRecord]:
    """All configured source records in processing order."""
    with session_scope() as session:
        rows = session.execute(
            select(PresentationSource).order_by(PresentationSource.position, PresentationSource.id)
        ).scalars().all()
        return [
            SourceRecord(
                document_id=r.document_id or "",
                teacher_last_name=r.teacher_last_name or "",
                class_name=r.class_name or "",
                grade_level=r.grade_level or "",
            )
            for r in rows
        ]


def replace_source_records(records: Iterable[SourceRecord]) -> int:
    """Replace the source table with records (in the given order). Returns the count."""
    records = list(records)
    with session_scope() as session:
        session.execute(delete(PresentationSource))
        for position, record in enumerate(records):
            session.add(
                PresentationSource(
                    position=position,
                    document_id=record.document_id,
                    teacher_last_name=record.teacher_last_name,
                    class_name=record.class_name,
                    grade_level=record.grade_level,
                )
            )
    return len(records)


def _source_from_config(entry: Any) -> Optional[SourceRecord]:
    if isinstance(entry, (list, tuple)):
        values = [str(v) if v is not None else "" for v in entry][:4]
        if not values or not values[0].strip():
            return None
        return SourceRecord(*(values + [""] * (4 - len(values))))
    if isinstance(entry, dict):
        return SourceRecord(
            document_id=str(entry.get("document_id") or entry.get("presentation_id") or ""),
            teacher_last_name=str(entry.get("teacher_last_name") or entry.get("teacher") or ""),
            class_name=str(entry.get("class_name") or entry.get("class") or ""),
            grade_level=str(entry.get("grade_level") or entry.get("grade") or ""),
        )
    return None


def sync_sources_from_config(agenda_config: Optional[Dict[str, Any]]) -> Optional[int]:
    """Replace source records with agenda.sources from config, if that key is present.
    Returns the number of records written, or None when config does not manage sources."""
    if not agenda_config or "sources" not in agenda_config:
        return None
    entries = agenda_config.get("sources") or []
    if not isinstance(entries, list):
        raise ConfigurationError("'agenda.sources' must be a list")
    records = []
    for entry in entries:
        record = _source_from_config(entry)
        if record is None:
            logger.warning(f"Ignoring malformed source entry: {entry!r}")
            continue
        records.append(record)
    count = replace_source_records(records)
    logger.info(f"Synced {count} presentation source(s) from config")
    return count


# --- Current-day table ---

def _to_record(row: Any) -> OutputRecord:
    return OutputRecord(*(getattr(row, name) for name in OutputRecord._fields))


def replace_current_rows(records: Iterable[OutputRecord]) -> int:
    """Clear the current-day table and append records in order, in one transaction."""
    records = list(records)
    with session_scope() as session:
        session.execute(delete(CurrentAgendaRow))
        for position, record in enumerate(records):
            session.add(CurrentAgendaRow(position=position, **record._asdict()))
    return len(records)


def get_current_rows() -> List[CurrentAgendaRow]:
    """Current-day rows in table order (for API serialization)."""
    with session_scope() as session:
        return list(
            session.execute(
                select(CurrentAgendaRow).order_by(CurrentAgendaRow.position, CurrentAgendaRow.id)
            ).scalars().all()
        )


def get_current_records() -> List[OutputRecord]:
    return [_to_record(r) for r in get_current_rows()]


# --- Archive reads ---

def get_partition(name: str) -> Optional[ArchivePartition]:
    with session_scope() as session:
        return session.get(ArchivePartition, name)


def get_partition_rows(name: str) -> List[ArchiveRow]:
    """All rows of a partition in append order."""
    with session_scope() as session:
        return list(
            session.execute(
                select(ArchiveRow)
                .where(ArchiveRow.partition_name == name)
                .order_by(ArchiveRow.position, ArchiveRow.id)
            ).scalars().all()
        )


def get_archived_records(partition_name: str, date_key: str) -> List[OutputRecord]:
    """Rows of the partition whose date normalizes to date_key, without the date column."""
    return [
        _to_record(r)
        for r in get_partition_rows(partition_name)
        if normalize(r.date_key) == date_key
    ]


def list_partition_names(prefix: str) -> List[str]:
    with session_scope() as session:
        names = session.execute(select(ArchivePartition.name).order_by(ArchivePartition.name)).scalars().all()
        return [n for n in names if n.startswith(prefix)]


def list_archived_date_keys(prefix: str) -> List[str]:
    """Sorted, deduplicated, normalized dates across all partitions with the prefix."""
    names = list_partition_names(prefix)
    if not names:
        return []
    with session_scope() as session:
        raw = session.execute(
            select(ArchiveRow.date_key).where(ArchiveRow.partition_name.in_(names)).distinct()
        ).scalars().all()
    keys = {normalize(value) for value in raw if value}
    keys.discard(None)
    return sorted(keys)

