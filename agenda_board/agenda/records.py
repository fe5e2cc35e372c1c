"""
Record types for the agenda tables. All are named tuples; no dicts.
"""
from collections import namedtuple

NOT_AVAILABLE = "N/A"
ERROR_VALUE = "ERROR"

# Header rows as they appear in the current-day table and archive partitions
CURRENT_HEADER = (
    "Teacher Last Name", "Class Name", "Day of Week", "Turn In", "Activities",
    "Practice Work", "Upcoming", "Grade Level",
)
ARCHIVE_HEADER = ("Date",) + CURRENT_HEADER

# One configured teacher/class/presentation entry
SourceRecord = namedtuple(
    "SourceRecord",
    ["document_id", "teacher_last_name", "class_name", "grade_level"],
    defaults=("", "", ""),
)

AGENDA_FIELDS = (
    "teacher_last_name",
    "class_name",
    "day_of_week",
    "turn_in",
    "activities",
    "practice_work",
    "upcoming",
    "grade_level",
)

# One row of the current-day table; error_note is set on ERROR rows only
OutputRecord = namedtuple(
    "OutputRecord",
    AGENDA_FIELDS + ("error_note",),
    defaults=(None,),
)

ArchiveRecord = namedtuple(
    "ArchiveRecord",
    ("date_key",) + AGENDA_FIELDS + ("error_note",),
    defaults=(None,),
)


def error_record(source: SourceRecord, day_of_week: str, message: str) -> OutputRecord:
    """Row emitted in place of a normal one when a source record fails."""
    return OutputRecord(
        teacher_last_name=source.teacher_last_name.strip(),
        class_name=source.class_name.strip(),
        day_of_week=day_of_week,
        turn_in=ERROR_VALUE,
        activities=ERROR_VALUE,
        practice_work=ERROR_VALUE,
        upcoming=ERROR_VALUE,
        grade_level=source.grade_level.strip(),
        error_note=f"Error: {message}",
    )
