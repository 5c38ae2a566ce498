"""
history_day.py - One calendar day of tracked time across all projects

The history window shows one HistoryDay per row. Cells can be edited, so
each day remembers the times it was loaded with and can tell whether
anything needs writing back.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import TYPE_CHECKING, Optional

from errors import StorageError
from models import DailyLog, HistoryData, Project

if TYPE_CHECKING:
    from db import HistoryStore, Stores

logger = logging.getLogger(__name__)


class HistoryDay:
    """
    Aggregated time entries of one day.

    Args:
        day: The calendar day
        entries: Time per project; projects without time that day may be absent
        daily_log: Start/end bracket of the day, if one was recorded
    """

    def __init__(self, day: date, entries: dict[Project, HistoryData],
                 daily_log: Optional[DailyLog] = None):
        self.day = day
        self.daily_log = daily_log
        self._entries: dict[Project, HistoryData] = dict(entries)

        # project -> seconds as loaded, and as currently edited
        self._original: dict[Project, int] = {}
        self._current: dict[Project, int] = {}
        for project, data in self._entries.items():
            self._original[project] = data.time
            self._current[project] = data.time

        self.total = 0
        self.max_time = 0
        self._recompute()

    def _recompute(self):
        values = self._current.values()
        self.total = sum(values)
        self.max_time = max(values, default=0)

    @property
    def entries(self) -> dict[Project, HistoryData]:
        return dict(self._entries)

    def time_for(self, project: Project) -> int:
        """Seconds recorded for project, 0 if it has no entry."""
        data = self._entries.get(project)
        return data.time if data else 0

    def set_time(self, project: Project, milliseconds: int):
        """
        Replace the time of one project.

        The value arrives in milliseconds and is truncated to whole
        seconds, the only precision the table displays.

        Raises:
            ValueError: If milliseconds is negative
        """
        if milliseconds < 0:
            raise ValueError("time must not be negative")
        seconds = int(milliseconds) // 1000

        data = self._entries.get(project)
        if data is None:
            data = HistoryData(id=None, project=project, date=self.day, time=seconds)
            self._entries[project] = data
            # Nothing was stored for this project, so the baseline is zero
            self._original[project] = 0
        else:
            data.time = seconds
        self._current[project] = seconds

        self._recompute()

    def has_changed(self) -> bool:
        """True if any entry differs from the time it was loaded with."""
        return any(data.time != self._original[project]
                   for project, data in self._entries.items())

    def persist(self, history_store: 'HistoryStore'):
        """Write every entry, changed or not. StorageError propagates."""
        for data in self._entries.values():
            history_store.save(data)

    def __repr__(self):
        return f"HistoryDay({self.day}, total={self.total}, entries={len(self._entries)})"


def load_history_days(stores: 'Stores', exclude: Optional[date] = None) -> list[HistoryDay]:
    """
    Group all stored history into days, oldest first.

    Args:
        stores: Database access
        exclude: A day to leave out, normally today (still being tracked)

    Returns:
        One HistoryDay per date that has at least one record

    Raises:
        StorageError: If the history itself can't be read
    """
    by_day: dict[date, dict[Project, HistoryData]] = defaultdict(dict)
    for data in stores.history.get_all():
        if data.date == exclude:
            continue
        by_day[data.date][data.project] = data

    days = []
    for day in sorted(by_day):
        try:
            daily_log = stores.daily_logs.get_for_date(day)
        except StorageError as e:
            # The bracket is decoration; the day's times are still usable
            logger.warning("Could not load daily log for %s: %s", day, e)
            daily_log = None
        days.append(HistoryDay(day, by_day[day], daily_log))
    return days
