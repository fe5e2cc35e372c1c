"""
Match observed shape rectangles against target boxes.

Candidates are tried in the order given and the first match wins. When two
boxes lie within tolerance of each other the result depends on that order;
the default table has no such overlap.
"""
from typing import Optional, Sequence, Tuple

from agenda_board.agenda.settings import DEFAULT_TOLERANCE, BOX_ROLES, AgendaSettings, DayBoxes


def matches(observed, target, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """True iff x, y, width and height each deviate from target by strictly less than tolerance."""
    return (
        abs(observed.x - target.x) < tolerance
        and abs(observed.y - target.y) < tolerance
        and abs(observed.width - target.width) < tolerance
        and abs(observed.height - target.height) < tolerance
    )


def classify(observed, candidates: Sequence[Tuple[str, object]], tolerance: float = DEFAULT_TOLERANCE) -> Optional[str]:
    """Return the role of the first candidate box the shape matches, or None."""
    return next(
        (role for role, target in candidates if matches(observed, target, tolerance)),
        None,
    )


def day_candidates(settings: AgendaSettings, boxes: DayBoxes) -> Tuple[Tuple[str, object], ...]:
    """The day's three boxes plus the upcoming box, in match order."""
    targets = tuple(boxes) + (settings.upcoming,)
    return tuple(zip(BOX_ROLES, targets))
