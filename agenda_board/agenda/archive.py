"""
Once-per-day archival of the current-day table into monthly partitions.

The partition for a date is "{prefix}{year}_{MM}". Archiving a date twice is a
no-op: existing partition rows are scanned for the date key, and an
ArchiveBatch row keyed by the date is inserted in the same transaction so a
concurrent second run fails its insert instead of writing a duplicate batch.
"""
import logging
from collections import namedtuple
from datetime import date
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from agenda_board.core.db import session_scope
from agenda_board.agenda.dates import normalize
from agenda_board.agenda.models import ArchiveBatch, ArchivePartition, ArchiveRow
from agenda_board.agenda.records import ARCHIVE_HEADER, OutputRecord
from agenda_board.agenda.settings import DEFAULT_ARCHIVE_PREFIX

logger = logging.getLogger(__name__)


class ArchiveStatus:
    ARCHIVED = "archived"
    SKIPPED = "skipped"  # date already archived
    EMPTY = "empty"  # nothing in the current-day table


ArchiveResult = namedtuple("ArchiveResult", ["status", "date_key", "partition_name", "archived_count"])


def partition_name_for(day: date, prefix: str = DEFAULT_ARCHIVE_PREFIX) -> str:
    return f"{prefix}{day.year}_{day.month:02d}"


class ArchivePartitioner:
    def __init__(self, prefix: str = DEFAULT_ARCHIVE_PREFIX):
        self.prefix = prefix

    def partition_name(self, day: date) -> str:
        return partition_name_for(day, self.prefix)

    def _get_or_create_partition(self, session, name: str, day: date) -> ArchivePartition:
        partition = session.get(ArchivePartition, name)
        if partition is None:
            partition = ArchivePartition(name=name, year=day.year, month=day.month, header=list(ARCHIVE_HEADER))
            session.add(partition)
            session.flush()
            logger.info(f"Created new archive partition: {name}")
        return partition

    def _already_archived(self, session, name: str, date_key: str) -> bool:
        if session.get(ArchiveBatch, date_key) is not None:
            return True
        stored = session.execute(
            select(ArchiveRow.date_key).where(ArchiveRow.partition_name == name).distinct()
        ).scalars().all()
        return any(normalize(value) == date_key for value in stored)

    def archive_today(self, current_rows: Sequence[OutputRecord], today: date) -> ArchiveResult:
        """Append current_rows to today's partition unless today is already archived."""
        date_key = normalize(today)
        name = self.partition_name(today)
        rows = list(current_rows)

        if not rows:
            logger.info("No data to archive (current-day table is empty).")
            return ArchiveResult(ArchiveStatus.EMPTY, date_key, name, 0)

        try:
            with session_scope() as session:
                if self._already_archived(session, name, date_key):
                    logger.info(f"{date_key} already archived; skipping")
                    return ArchiveResult(ArchiveStatus.SKIPPED, date_key, name, 0)
                self._get_or_create_partition(session, name, today)

                session.add(ArchiveBatch(date_key=date_key, partition_name=name, row_count=len(rows)))
                session.flush()

                last = session.execute(
                    select(ArchiveRow.position)
                    .where(ArchiveRow.partition_name == name)
                    .order_by(ArchiveRow.position.desc())
                    .limit(1)
                ).scalar()
                start = 0 if last is None else last + 1
                for offset, record in enumerate(rows):
                    session.add(
                        ArchiveRow(
                            partition_name=name,
                            position=start + offset,
                            date_key=date_key,
                            **record._asdict(),
                        )
                    )
        except IntegrityError:
            # Another run archived this date (or created the partition) first
            logger.info(f"{date_key} was archived concurrently; skipping")
            return ArchiveResult(ArchiveStatus.SKIPPED, date_key, name, 0)

        logger.info(f"Archived {len(rows)} rows to {name} for {date_key}")
        return ArchiveResult(ArchiveStatus.ARCHIVED, date_key, name, len(rows))
