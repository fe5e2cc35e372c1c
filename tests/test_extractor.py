"""Test per-record agenda extraction"""

# tests/test_extractor.py
import logging
from datetime import date

import pytest

from agenda_board.agenda.backends import TextRun
from agenda_board.agenda.errors import PresentationAccessError, UnsupportedDayError
from agenda_board.agenda.extractor import AgendaExtractor, day_name
from agenda_board.agenda.records import ERROR_VALUE, NOT_AVAILABLE, SourceRecord
from tests import helpers

MONDAY = date(2025, 9, 1)


def full_week_deck(settings, presentation_id: str, day: str = "Wednesday"):
    boxes = settings.boxes_for(day)
    slide = helpers.week_slide(
        MONDAY,
        helpers.box_shape(boxes.turn_in, "Lab report"),
        helpers.box_shape(boxes.activities, runs=[
            TextRun("Warm-up\n"),
            TextRun("Cell diagram", "https://example.com/cells"),
        ]),
        helpers.box_shape(boxes.practice_work, "Finish p. 12", offset=3.0),
        helpers.box_shape(settings.upcoming, "Quiz Friday"),
    )
    return helpers.deck(presentation_id, slide)


def test_day_name() -> None:
    assert day_name(date(2025, 9, 3)) == "Wednesday"
    assert day_name(date(2025, 9, 7)) == "Sunday"


# region happy path
def test_extracts_all_boxes_for_today(settings, wednesday, source_records) -> None:
    backend = helpers.FakeBackend({
        "deck-smith": full_week_deck(settings, "deck-smith"),
        "deck-garcia": full_week_deck(settings, "deck-garcia"),
    })
    records = AgendaExtractor(settings, backend).run(None, source_records, wednesday)

    assert [r.teacher_last_name for r in records] == ["Smith", "Garcia"]
    smith = records[0]
    assert smith.class_name == "Algebra I"
    assert smith.grade_level == "9"
    assert smith.day_of_week == "Wednesday"
    assert smith.turn_in == "Lab report"
    assert smith.activities == 'Warm-up\n=HYPERLINK("https://example.com/cells", "Cell diagram")'
    assert smith.practice_work == "Finish p. 12"
    assert smith.upcoming == "Quiz Friday"
    assert smith.error_note is None


def test_unmatched_boxes_are_not_available(settings, wednesday) -> None:
    """Shapes that match no box (or are blank) leave their role as N/A."""
    boxes = settings.boxes_for("Wednesday")
    slide = helpers.week_slide(
        MONDAY,
        helpers.box_shape(boxes.turn_in, "Outside tolerance", offset=5.0),
        helpers.box_shape(boxes.activities, "   "),
        helpers.box_shape(settings.boxes_for("Monday").turn_in, "Monday's box"),
    )
    backend = helpers.FakeBackend({"d": helpers.deck("d", slide)})
    [record] = AgendaExtractor(settings, backend).run(None, [SourceRecord("d", "Lee", "Art", "11")], wednesday)

    assert (record.turn_in, record.activities, record.practice_work, record.upcoming) == (NOT_AVAILABLE,) * 4
    assert record.error_note is None


def test_explicit_day_uses_that_days_boxes(settings, wednesday) -> None:
    backend = helpers.FakeBackend({"d": full_week_deck(settings, "d", day="Monday")})
    [record] = AgendaExtractor(settings, backend).run("Monday", [SourceRecord("d", "Lee", "Art", "11")], wednesday)
    assert record.day_of_week == "Monday"
    assert record.turn_in == "Lab report"


def test_source_fields_are_trimmed(settings, wednesday) -> None:
    backend = helpers.FakeBackend({"d": full_week_deck(settings, "d")})
    [record] = AgendaExtractor(settings, backend).run(
        None, [SourceRecord("  d  ", " Lee ", " Art ", " 11 ")], wednesday
    )
    assert (record.teacher_last_name, record.class_name, record.grade_level) == ("Lee", "Art", "11")
    assert backend.opened == ["d"]


def test_empty_document_ids_are_skipped(settings, wednesday) -> None:
    backend = helpers.FakeBackend({"d": full_week_deck(settings, "d")})
    sources = [SourceRecord("", "Blank", "Row", ""), SourceRecord("   "), SourceRecord("d", "Lee", "Art", "11")]
    records = AgendaExtractor(settings, backend).run(None, sources, wednesday)
    assert [r.teacher_last_name for r in records] == ["Lee"]
    assert backend.opened == ["d"]


# endregion


# region per-record errors
def test_failures_become_error_rows_and_batch_continues(
    settings, wednesday, caplog: pytest.LogCaptureFixture
) -> None:
    backend = helpers.FakeBackend({
        "no-access": PresentationAccessError("Could not open presentation no-access (HTTP 403)"),
        "old-week": helpers.deck("old-week", helpers.week_slide(date(2025, 8, 25))),
        "empty": helpers.deck("empty"),
        "boom": RuntimeError("unexpected payload"),
        "good": full_week_deck(settings, "good"),
    })
    sources = [
        SourceRecord("no-access", "A", "One", "9"),
        SourceRecord("old-week", "B", "Two", "9"),
        SourceRecord("empty", "C", "Three", "9"),
        SourceRecord("boom", "D", "Four", "9"),
        SourceRecord("good", "E", "Five", "9"),
    ]
    with caplog.at_level(logging.ERROR):
        records = AgendaExtractor(settings, backend).run(None, sources, wednesday)

    assert [r.teacher_last_name for r in records] == ["A", "B", "C", "D", "E"]
    for record in records[:4]:
        assert (record.turn_in, record.activities, record.practice_work, record.upcoming) == (ERROR_VALUE,) * 4
        assert record.day_of_week == "Wednesday"
    assert records[0].error_note == "Error: Could not open presentation no-access (HTTP 403)"
    assert records[1].error_note == 'Error: Slide with text "WEEK OF 9/1/2025" or "SEMANA DE 9/1/2025" not found.'
    assert records[2].error_note == "Error: Presentation has no slides."
    assert records[3].error_note == "Error: unexpected payload"
    assert records[4].error_note is None
    assert records[4].turn_in == "Lab report"
    assert "no-access" in caplog.text


# endregion


# region unsupported days
def test_weekend_raises_before_opening_anything(settings, source_records) -> None:
    backend = helpers.FakeBackend({})
    with pytest.raises(UnsupportedDayError, match="Today is Saturday"):
        AgendaExtractor(settings, backend).run(None, source_records, date(2025, 9, 6))
    assert backend.opened == []


def test_unknown_explicit_day(settings, wednesday, source_records) -> None:
    backend = helpers.FakeBackend({})
    with pytest.raises(UnsupportedDayError) as excinfo:
        AgendaExtractor(settings, backend).run("Funday", source_records, wednesday)
    assert excinfo.value.explicit
    assert str(excinfo.value) == "The requested day 'Funday' has no coordinates defined."
    assert backend.opened == []


# endregion
