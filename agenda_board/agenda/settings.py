"""
Immutable agenda settings: target boxes, tolerance, week labels, archive naming.

Built once per run from the `agenda` config section and passed to each component.
"""
from collections import namedtuple
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from agenda_board.agenda.errors import ConfigurationError

DEFAULT_TOLERANCE = 5.0
DEFAULT_ARCHIVE_PREFIX = "Archive_"
DEFAULT_WEEK_LABELS = ("WEEK OF {date}", "SEMANA DE {date}")
UPCOMING_KEY = "Upcoming"

# Rectangle in points
TargetBox = namedtuple("TargetBox", ["x", "y", "width", "height"])

# The day's three boxes, in match order
DayBoxes = namedtuple("DayBoxes", ["turn_in", "activities", "practice_work"])

# Roles in the order shapes are matched against them
BOX_ROLES = ("turn_in", "activities", "practice_work", "upcoming")

# Config keys accepted for each day box (top/middle/bottom as laid out on the slide)
_ROLE_ALIASES = {
    "turn_in": ("turn_in", "top"),
    "activities": ("activities", "middle"),
    "practice_work": ("practice_work", "bottom"),
}

# Measured from the agenda slide template. Treated as data: do not adjust without the template owner.
DEFAULT_BOX_COORDINATES: Dict[str, Any] = {
    "Monday": {
        "top": {"x": 43.50, "y": 129.64, "width": 153.17, "height": 33.87},
        "middle": {"x": 43.50, "y": 198.31, "width": 153.17, "height": 101.06},
        "bottom": {"x": 42.71, "y": 334.90, "width": 153.17, "height": 45.14},
    },
    "Tuesday": {
        "top": {"x": 212.61, "y": 129.64, "width": 157.58, "height": 33.87},
        "middle": {"x": 212.61, "y": 198.31, "width": 157.58, "height": 101.06},
        "bottom": {"x": 211.82, "y": 334.90, "width": 157.58, "height": 45.14},
    },
    "Wednesday": {
        "top": {"x": 383.29, "y": 129.64, "width": 157.58, "height": 33.87},
        "middle": {"x": 383.29, "y": 198.31, "width": 157.58, "height": 101.06},
        "bottom": {"x": 382.50, "y": 334.90, "width": 157.58, "height": 45.14},
    },
    "Thursday": {
        "top": {"x": 553.98, "y": 129.64, "width": 157.58, "height": 34.72},
        "middle": {"x": 553.98, "y": 198.31, "width": 157.58, "height": 101.06},
        "bottom": {"x": 553.19, "y": 334.90, "width": 157.58, "height": 45.14},
    },
    "Friday": {
        "top": {"x": 727.50, "y": 129.64, "width": 161.06, "height": 34.72},
        "middle": {"x": 727.50, "y": 198.31, "width": 161.06, "height": 101.06},
        "bottom": {"x": 726.71, "y": 334.90, "width": 161.06, "height": 45.14},
    },
    UPCOMING_KEY: {"x": 148.66, "y": 392.40, "width": 709.13, "height": 31.23},
}


def _parse_box(raw: Any, where: str) -> TargetBox:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Box '{where}' must be a mapping with x, y, width, height")
    try:
        return TargetBox(*(float(raw[key]) for key in TargetBox._fields))
    except KeyError as e:
        raise ConfigurationError(f"Box '{where}' is missing {e.args[0]}") from e
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Box '{where}' has a non-numeric value: {e}") from e


def _parse_day(raw: Any, day: str) -> DayBoxes:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Boxes for '{day}' must be a mapping")
    boxes = {}
    for role, aliases in _ROLE_ALIASES.items():
        key = next((alias for alias in aliases if alias in raw), None)
        if key is None:
            raise ConfigurationError(f"Boxes for '{day}' are missing '{aliases[-1]}'")
        boxes[role] = _parse_box(raw[key], f"{day}.{key}")
    return DayBoxes(**boxes)


def parse_box_coordinates(raw: Any) -> Tuple[Mapping[str, DayBoxes], TargetBox]:
    """Turn the box coordinate table into per-day boxes plus the upcoming box."""
    if not isinstance(raw, dict):
        raise ConfigurationError("box_coordinates must be a mapping of day -> boxes")
    if UPCOMING_KEY not in raw:
        raise ConfigurationError(f"box_coordinates has no '{UPCOMING_KEY}' box")
    upcoming = _parse_box(raw[UPCOMING_KEY], UPCOMING_KEY)
    days = {day: _parse_day(value, day) for day, value in raw.items() if day != UPCOMING_KEY}
    return MappingProxyType(days), upcoming


@dataclass(frozen=True)
class AgendaSettings:
    day_boxes: Mapping[str, DayBoxes]
    upcoming: TargetBox
    tolerance: float = DEFAULT_TOLERANCE
    week_labels: Tuple[str, ...] = DEFAULT_WEEK_LABELS
    archive_prefix: str = DEFAULT_ARCHIVE_PREFIX
    timezone: Optional[str] = None
    extract_interval: int = 3600
    archive_time: str = "23:00"
    backend: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def boxes_for(self, day: str) -> Optional[DayBoxes]:
        """Boxes configured for a weekday name, or None."""
        return self.day_boxes.get(day)

    @classmethod
    def default(cls, **overrides: Any) -> "AgendaSettings":
        day_boxes, upcoming = parse_box_coordinates(DEFAULT_BOX_COORDINATES)
        return cls(day_boxes=day_boxes, upcoming=upcoming, **overrides)

    @classmethod
    def from_config(cls, agenda_config: Optional[Dict[str, Any]]) -> "AgendaSettings":
        """Validate the `agenda` config section. Raises ConfigurationError."""
        if agenda_config is None:
            raise ConfigurationError("Config has no 'agenda' section")
        if not isinstance(agenda_config, dict):
            raise ConfigurationError("'agenda' config section must be a mapping")

        day_boxes, upcoming = parse_box_coordinates(
            agenda_config.get("box_coordinates") or DEFAULT_BOX_COORDINATES
        )

        try:
            tolerance = float(agenda_config.get("tolerance", DEFAULT_TOLERANCE))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid tolerance: {agenda_config.get('tolerance')}") from e
        if tolerance <= 0:
            raise ConfigurationError(f"Tolerance must be positive, got {tolerance}")

        labels = agenda_config.get("week_labels") or DEFAULT_WEEK_LABELS
        if isinstance(labels, str):
            labels = [labels]
        labels = tuple(str(label) for label in labels)
        for label in labels:
            if "{date}" not in label:
                raise ConfigurationError(f"Week label '{label}' has no {{date}} placeholder")

        prefix = agenda_config.get("archive_prefix") or DEFAULT_ARCHIVE_PREFIX

        try:
            extract_interval = max(60, int(agenda_config.get("extract_interval", 3600)))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid extract_interval: {agenda_config.get('extract_interval')}"
            ) from e

        timezone = agenda_config.get("timezone") or None
        if timezone is not None:
            try:
                ZoneInfo(str(timezone))
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ConfigurationError(f"Unknown timezone '{timezone}'") from e

        backend = agenda_config.get("backend") or {}
        if not isinstance(backend, dict):
            raise ConfigurationError("'agenda.backend' must be a mapping")

        return cls(
            day_boxes=day_boxes,
            upcoming=upcoming,
            tolerance=tolerance,
            week_labels=labels,
            archive_prefix=str(prefix),
            timezone=str(timezone) if timezone is not None else None,
            extract_interval=extract_interval,
            archive_time=str(agenda_config.get("archive_time", "23:00")),
            backend=MappingProxyType(dict(backend)),
        )
