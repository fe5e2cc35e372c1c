"""
Serialize a shape's text runs into one spreadsheet-style cell value.

Runs that carry a link become =HYPERLINK("url", "text") formulas so the link
survives; plain runs are kept as trimmed text. Segments are newline-joined.
"""
from typing import Optional, Sequence

from agenda_board.agenda.records import NOT_AVAILABLE


def hyperlink_formula(url: str, text: str) -> str:
    """Spreadsheet HYPERLINK formula; double quotes in the label are doubled."""
    label = text.replace('"', '""')
    return f'=HYPERLINK("{url}", "{label}")'


def extract_cell(runs: Sequence, full_text: Optional[str] = None) -> str:
    """Cell value for a shape given its runs (each with .text and .url).

    Empty text gives "N/A". If every run is blank after trimming but the full
    text is not, the trimmed full text is returned unchanged.
    """
    if full_text is None:
        full_text = "".join(run.text for run in runs)
    full = full_text.strip()
    if not full:
        return NOT_AVAILABLE

    segments = []
    for run in runs:
        text = run.text.strip()
        if not text:
            continue
        if run.url:
            segments.append(hyperlink_formula(run.url, text))
        else:
            segments.append(text)

    if not segments:
        return full
    return "\n".join(segments)
