"""Test cell serialization of text runs"""

# tests/test_rich_text.py
from agenda_board.agenda.backends import TextRun
from agenda_board.agenda.records import NOT_AVAILABLE
from agenda_board.agenda.rich_text import extract_cell, hyperlink_formula


def test_empty_text_is_not_available() -> None:
    assert extract_cell([]) == NOT_AVAILABLE
    assert extract_cell([TextRun("  \n ")]) == NOT_AVAILABLE


def test_plain_run_is_trimmed() -> None:
    assert extract_cell([TextRun("  Read chapter 3\n")]) == "Read chapter 3"


def test_linked_run_becomes_hyperlink_formula() -> None:
    runs = [TextRun("Worksheet", "https://example.com/ws")]
    assert extract_cell(runs) == '=HYPERLINK("https://example.com/ws", "Worksheet")'


def test_quotes_in_link_text_are_doubled() -> None:
    assert hyperlink_formula("https://x.test", 'Read "Dune"') == '=HYPERLINK("https://x.test", "Read ""Dune""")'


def test_segments_joined_with_newlines_in_run_order() -> None:
    """Blank runs are dropped; each remaining run is its own line."""
    runs = [
        TextRun("Bring notebook "),
        TextRun(" "),
        TextRun("Quiz review", "https://example.com/quiz"),
        TextRun("\n"),
        TextRun("p. 42"),
    ]
    assert extract_cell(runs) == (
        'Bring notebook\n=HYPERLINK("https://example.com/quiz", "Quiz review")\np. 42'
    )


def test_falls_back_to_full_text_when_no_segment() -> None:
    """Runs that are all blank after trimming fall back to the trimmed full text."""
    assert extract_cell([TextRun("   ")], full_text="  Lab day  ") == "Lab day"
