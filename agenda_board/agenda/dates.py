"""
Canonical YYYY-MM-DD date keys for archive partitions and row matching.
"""
import logging
import math
import re
from datetime import date, timedelta
from typing import Any, Optional

from dateutil import parser as dateutil_parser

from agenda_board.agenda.errors import DateParseError

logger = logging.getLogger(__name__)

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Day 0 of spreadsheet serial dates
SERIAL_EPOCH = date(1899, 12, 30)


def format_date_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def _from_serial(value: float) -> date:
    if isinstance(value, float) and not math.isfinite(value):
        raise DateParseError(f"Not a finite serial number: {value}")
    try:
        return SERIAL_EPOCH + timedelta(days=math.floor(value))
    except OverflowError as e:
        raise DateParseError(f"Serial number out of range: {value}") from e


def _from_string(value: str) -> date:
    text = value.strip()
    if not text:
        raise DateParseError("Empty date string")
    try:
        return dateutil_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise DateParseError(f"Unparseable date: {value!r}") from e


def _to_date(value: Any) -> date:
    # datetime is a date subclass; calendar fields are used as-is (no tz conversion)
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise DateParseError(f"Not a date: {value!r}")
    if isinstance(value, (int, float)):
        return _from_serial(value)
    if isinstance(value, str):
        return _from_string(value)
    raise DateParseError(f"Unsupported date value: {type(value).__name__}")


def normalize(value: Any) -> Optional[str]:
    """Return value as "YYYY-MM-DD", or None when it is not a readable date.

    Strings already in YYYY-MM-DD form are returned unchanged. None means
    "exclude this row from matching"; callers must not treat it as an error.
    """
    if value is None:
        return None
    if isinstance(value, str) and ISO_DATE_RE.match(value):
        return value
    try:
        return format_date_key(_to_date(value))
    except DateParseError as e:
        logger.debug(f"Date not normalized: {e}")
        return None
