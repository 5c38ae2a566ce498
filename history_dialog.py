#!/usr/bin/env python3
"""
history_dialog.py - Past days as a heat-mapped table

One row per day (today excluded, it's still being tracked), one column
per project, then the day's start, end and sum. Cell colours come from a
white-to-black gradient over [0, largest daily total].

Project cells can be edited. Days that changed are written back when the
window closes.
"""

import logging
from datetime import date
from typing import TYPE_CHECKING, Optional

import customtkinter as ctk

import themes
from ctk_table import Cell, HeatTable
from dialogs import CTkDurationDialog, CTkMessagebox
from errors import StorageError
from gradient import Gradient
from history_day import HistoryDay, load_history_days
from models import DAY_WEEK_FORMAT, TIME_FORMAT, Project, format_hms, parse_hms, sort_by_position

if TYPE_CHECKING:
    from db import Stores

logger = logging.getLogger(__name__)

# Column layout: date, projects..., start, end, sum
FIRST_PROJECT_COLUMN = 1


def build_gradient(days: list[HistoryDay]) -> Gradient:
    """Gradient spanning 0 .. the largest daily total."""
    max_total = max((day.total for day in days), default=0)
    return Gradient.build(themes.HISTORY_GRADIENT_ANCHORS, themes.HISTORY_GRADIENT_STEPS, 0, max_total)


def heat_cell(seconds: int, gradient: Gradient, editable: bool = False) -> Cell:
    return Cell(
        text=format_hms(seconds),
        background=gradient.color(seconds).hex,
        foreground=gradient.text_color(seconds).hex,
        editable=editable
    )


class HistoryDialog:
    """
    Window listing tracked time per project per day.

    Use open_history() rather than constructing this directly; it shows
    a message instead when there is no history yet.
    """

    def __init__(self, parent, stores: 'Stores', projects: list[Project], days: list[HistoryDay]):
        self.parent = parent
        self.stores = stores
        self.projects = projects
        self.days = days
        self.gradient = build_gradient(days)

        self.window = ctk.CTkToplevel(parent)
        self.window.title("History")
        self.window.configure(fg_color=themes.get_colors()["bg_dark"])
        self.window.transient(parent)
        self.window.protocol("WM_DELETE_WINDOW", self.close)

        self._build_ui()
        self.refresh()

    def _build_ui(self):
        columns = ["Date"] + [p.name for p in self.projects] + ["Start", "End", "Sum"]
        widths = [120] + [max(90, 9 * len(p.name)) for p in self.projects] + [80, 80, 90]

        self.table = HeatTable(self.window, columns, widths, on_cell_click=self._on_cell_click)
        self.table.pack(fill=ctk.BOTH, expand=True, padx=10, pady=10)

        # Half the screen at most, like a secondary window should be
        width = min(sum(widths) + 60, self.window.winfo_screenwidth() // 2)
        height = min(80 + 30 * (len(self.days) + 1), self.window.winfo_screenheight() // 2)
        self.window.geometry(f"{max(width, 400)}x{max(height, 200)}")

    def _row(self, day: HistoryDay) -> list[Cell]:
        cells = [Cell(day.day.strftime(DAY_WEEK_FORMAT))]
        for project in self.projects:
            cells.append(heat_cell(day.time_for(project), self.gradient, editable=True))

        log = day.daily_log
        cells.append(Cell(log.start.strftime(TIME_FORMAT) if log and log.start else ""))
        cells.append(Cell(log.end.strftime(TIME_FORMAT) if log and log.end else ""))
        cells.append(heat_cell(day.total, self.gradient))
        return cells

    def refresh(self):
        self.table.set_rows([self._row(day) for day in self.days])
        self.table.scroll_to_end()

    def _on_cell_click(self, row_index: int, column: int):
        project_index = column - FIRST_PROJECT_COLUMN
        if not 0 <= project_index < len(self.projects):
            return
        day = self.days[row_index]
        project = self.projects[project_index]

        text = CTkDurationDialog(self.window, f"{project.name}, {day.day}",
                                 format_hms(day.time_for(project))).get_result()
        if text is None:
            return
        try:
            seconds = parse_hms(text)
        except ValueError as e:
            logger.debug("Ignoring edit: %s", e)
            return

        day.set_time(project, seconds * 1000)
        # A new largest total shifts every colour
        self.gradient.max_value = max(d.total for d in self.days)
        self.refresh()

    def close(self):
        """Write back changed days, then close."""
        for day in self.days:
            if day.has_changed():
                try:
                    day.persist(self.stores.history)
                except StorageError as e:
                    logger.error("Could not save history for %s: %s", day.day, e)
        self.window.destroy()


def open_history(parent, stores: 'Stores', today: Optional[date] = None) -> Optional[HistoryDialog]:
    """
    Show the history window, or an information box if there's nothing yet.

    Returns:
        The dialog, or None if it wasn't opened
    """
    today = today or date.today()
    try:
        projects = stores.projects.get_all()
        days = load_history_days(stores, exclude=today)
    except StorageError as e:
        logger.error("Could not load history: %s", e)
        return None

    if not days:
        CTkMessagebox(parent, "History", "There is no history yet. Come back tomorrow!")
        return None

    sort_by_position(projects)
    return HistoryDialog(parent, stores, projects, days)
