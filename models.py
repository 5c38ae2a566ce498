"""
models.py - Data structures for Timekeeper

Plain dataclasses, one per table, plus the small helpers the GUI needs to
show and edit durations.

Records compare by their database identity only. Two Project objects with
the same id are the same project even if one of them has an edited name
that hasn't been written yet.
"""

import datetime as dt
import re
from dataclasses import dataclass
from typing import Optional


# Storage formats, shared by the database layer and the history window
DATE_FORMAT = "%Y-%m-%d"
DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
TIME_FORMAT = "%H:%M:%S"
DAY_WEEK_FORMAT = "%Y-%m-%d %a"

_HMS_PATTERN = re.compile(r'^(\d+):([0-5]?\d):([0-5]?\d)$')


@dataclass(frozen=True)
class Color:
    """An RGB colour with channels in 0..255."""

    r: int
    g: int
    b: int

    def __post_init__(self):
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"Color channel out of range: {channel}")

    @classmethod
    def from_hex(cls, value: str) -> 'Color':
        """Build a colour from '#rrggbb'."""
        value = value.lstrip("#")
        if len(value) != 6:
            raise ValueError(f"Expected #rrggbb, got {value!r}")
        return cls(int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))

    @property
    def hex(self) -> str:
        """Tk-compatible '#rrggbb' string."""
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    @property
    def mean(self) -> int:
        """Integer average of the three channels."""
        return (self.r + self.g + self.b) // 3


WHITE = Color(255, 255, 255)
BLACK = Color(0, 0, 0)


@dataclass(eq=False)
class Project:
    """
    A named task the user tracks time against.

    id is None (or negative, while only a placeholder in the settings
    dialog) until the project is written to the database.
    """

    id: Optional[int] = None
    name: str = ""
    autostart: bool = False
    visible: bool = True
    position: int = 0

    @property
    def is_persisted(self) -> bool:
        return self.id is not None and self.id >= 0

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, Project):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


@dataclass(eq=False)
class HistoryData:
    """
    Seconds spent on one project on one day.

    The hash changes when a save assigns the id, so an unsaved row must not
    sit in a set or be used as a dict key across a save. HistoryDay and
    TimerRegistry hold rows as values, keyed by project and by timer.
    """

    id: Optional[int] = None
    project: Optional[Project] = None
    date: Optional[dt.date] = None
    time: int = 0

    def __post_init__(self):
        if self.time < 0:
            raise ValueError("time must not be negative")

    def _identity(self):
        # Unsaved rows have no id yet; (project, date) is the logical key
        if self.id is None:
            return (None, self.project, self.date)
        return (self.id,)

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, HistoryData):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self):
        return hash(self._identity())


@dataclass(eq=False)
class DailyLog:
    """Start and end of the tracked work session on one day."""

    id: Optional[int] = None
    date: Optional[dt.date] = None
    start: Optional[dt.datetime] = None
    end: Optional[dt.datetime] = None

    @classmethod
    def starting_now(cls) -> 'DailyLog':
        """A fresh, unsaved log for today with start == end == now."""
        now = dt.datetime.now().replace(microsecond=0)
        return cls(id=None, date=now.date(), start=now, end=now)

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, DailyLog):
            return NotImplemented
        return self.id is not None and self.id == other.id

    def __hash__(self):
        return hash(self.id)


def sort_by_position(projects: list[Project]) -> None:
    """Sort in place by manual position, ties broken by id."""
    projects.sort(key=lambda p: (p.position, p.id if p.id is not None else 0))


def max_position(projects: list[Project]) -> int:
    """Largest position in use, 0 for an empty list."""
    return max((p.position for p in projects), default=0)


def format_hms(seconds: int) -> str:
    """
    Format a duration as HH:MM:SS.

    Hours are not wrapped at 24, so a (theoretical) 25 hour day shows
    as 25:00:00 rather than 01:00:00.
    """
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_hms(text: Optional[str]) -> int:
    """
    Parse HH:MM:SS back into seconds.

    Empty input means zero. Anything else that doesn't match raises
    ValueError so the caller can keep the previous value.
    """
    if text is None or not text.strip():
        return 0
    match = _HMS_PATTERN.match(text.strip())
    if not match:
        raise ValueError(f"Invalid duration: {text!r}, expected HH:MM:SS")
    hours, minutes, secs = (int(g) for g in match.groups())
    return hours * 3600 + minutes * 60 + secs
