#!/usr/bin/env python3
"""
gui.py - Main window of Timekeeper

One card per visible project with its time for today and a Start button.
Only one timer runs at a time. Times are written to the database every
five minutes, whenever the view is rebuilt and when the window closes.

Run with: python gui.py
"""

import logging
import sys
import tkinter as tk
from datetime import date, datetime
from typing import Optional

import customtkinter as ctk

import themes
from db import Stores
from dialogs import CTkDurationDialog, CTkMessagebox
from errors import StorageError
from history_dialog import open_history
from log_setup import configure_logging
from models import DailyLog, HistoryData, Project, format_hms, parse_hms, sort_by_position
from settings import MAX_OPACITY, PROPERTIES_PATH, Settings, migrate_legacy_file
from settings_dialog import SettingsDialog
from timers import Timer, TimerRegistry, TkScheduler

__version__ = "1.0.0"

logger = logging.getLogger(__name__)

APP_TITLE = "Timekeeper"
# Autosave period
WRITE_INTERVAL_MS = 300_000


class ProjectCard(ctk.CTkFrame):
    """Name, elapsed time and Start button of one project."""

    def __init__(self, parent, timer: Timer, on_start, on_edit):
        colors = themes.get_colors()
        super().__init__(parent, fg_color=colors["card_bg"], corner_radius=8)
        self.timer = timer

        ctk.CTkLabel(
            self,
            text=timer.project.name,
            font=themes.font(13, "bold"),
            text_color=colors["text_primary"]
        ).pack(padx=12, pady=(10, 0))

        self.time_label = ctk.CTkLabel(
            self,
            text=format_hms(timer.elapsed_seconds),
            font=themes.font(22),
            text_color=colors["text_primary"],
            cursor="hand2"
        )
        self.time_label.pack(padx=12, pady=4)
        self.time_label.bind("<Button-1>", lambda _: on_edit(timer))

        self.button = ctk.CTkButton(self, text="Start", width=110, command=lambda: on_start(timer))
        self.button.pack(padx=12, pady=(0, 10))

    def refresh(self):
        colors = themes.get_colors()
        self.time_label.configure(text=format_hms(self.timer.elapsed_seconds))
        if self.timer.running:
            self.configure(fg_color=colors["running_bg"])
            self.button.configure(text="Running", state="disabled")
        else:
            self.configure(fg_color=colors["card_bg"])
            self.button.configure(text="Start", state="normal")


class TimekeeperApp:
    """Main application window and owner of the timers."""

    def __init__(self, stores: Stores, settings: Settings):
        self.stores = stores
        self.settings = settings

        self.root = ctk.CTk()
        self.root.title(APP_TITLE)
        self.root.minsize(260, 160)
        self.root.configure(fg_color=themes.get_colors()["bg_dark"])
        self.root.attributes("-topmost", True)
        self._apply_opacity()

        self.scheduler = TkScheduler(self.root)
        self.registry = TimerRegistry(on_tick=self._on_tick, on_state_change=self._on_state_change)
        self.cards: dict[Timer, ProjectCard] = {}
        self.today: Optional[DailyLog] = None

        self._create_menu()
        self.content = ctk.CTkScrollableFrame(self.root, fg_color="transparent", orientation="horizontal")
        self.content.pack(fill=ctk.BOTH, expand=True, padx=5, pady=5)

        self.scheduler.call_later(WRITE_INTERVAL_MS, self._autosave)

        # Handle window close
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    def _create_menu(self):
        """Create application menu bar."""
        menubar = tk.Menu(self.root)
        self.root.config(menu=menubar)

        file_menu = tk.Menu(menubar, tearoff=0)
        menubar.add_cascade(label="File", menu=file_menu)
        file_menu.add_command(label="Stop All", command=self.registry.stop_all)
        file_menu.add_command(label="History...", command=self._show_history)
        file_menu.add_command(label="Settings...", command=self.open_settings)
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self._on_close)

        help_menu = tk.Menu(menubar, tearoff=0)
        menubar.add_cascade(label="Help", menu=help_menu)
        help_menu.add_command(label="About", command=self._show_about)

    def _apply_opacity(self):
        self.root.attributes("-alpha", self.settings.opacity / MAX_OPACITY)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _load_daily_log(self):
        try:
            stored = self.stores.daily_logs.get_for_date(date.today())
        except StorageError as e:
            logger.error("Could not load today's log: %s", e)
            stored = None
        if stored is not None:
            self.today = stored
        elif self.today is None or self.today.date != date.today():
            self.today = DailyLog.starting_now()

    def reload(self):
        """Rebuild the project cards from the database."""
        self._load_daily_log()

        # Save what the current timers counted before throwing them away
        self.write_all()
        self.registry.clear()
        for card in self.cards.values():
            card.destroy()
        self.cards.clear()

        try:
            projects = [p for p in self.stores.projects.get_all() if p.visible]
            today_data = self.stores.history.get_all_for_date(date.today())
        except StorageError as e:
            logger.error("Could not load projects: %s", e)
            return
        sort_by_position(projects)

        if not projects:
            self.open_settings()
            return

        for column, project in enumerate(projects):
            data = today_data.get(project) or HistoryData(id=None, project=project, date=date.today(), time=0)
            timer = self.registry.add(Timer(project, self.scheduler, elapsed=data.time), data)
            card = ProjectCard(self.content, timer, on_start=self._start, on_edit=self._edit_time)
            card.grid(row=0, column=column, padx=5, pady=5, sticky="n")
            self.cards[timer] = card

        self.registry.start_autostart()

        self._refresh_cards()
        self._update_title(self.registry.total_seconds())

    # -------------------------------------------------------------------------
    # Timers
    # -------------------------------------------------------------------------

    def _start(self, timer: Timer):
        self.registry.start_exclusive(timer.project.id)

    def _edit_time(self, timer: Timer):
        text = CTkDurationDialog(self.root, timer.project.name, format_hms(timer.elapsed_seconds)).get_result()
        if text is None:
            return
        try:
            timer.set_elapsed(parse_hms(text))
        except ValueError as e:
            logger.debug("Ignoring edit: %s", e)
            return
        self._refresh_cards()

    def _on_tick(self, total_seconds: int):
        self._update_title(total_seconds)
        running = self.registry.running_timer()
        if running in self.cards:
            self.cards[running].refresh()

    def _on_state_change(self, timer: Timer):
        card = self.cards.get(timer)
        if card:
            card.refresh()

    def _refresh_cards(self):
        for card in self.cards.values():
            card.refresh()

    def _update_title(self, total_seconds: int):
        self.root.title(f"{APP_TITLE} [{format_hms(total_seconds)}]")

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    def write_all(self):
        """Save today's log and every timer's count. Errors are only logged."""
        if self.today is not None:
            self.today.end = datetime.now().replace(microsecond=0)
            try:
                self.stores.daily_logs.save(self.today)
            except StorageError as e:
                logger.error("Could not save today's log: %s", e)

        self.registry.sync()
        for timer, data in self.registry.items():
            try:
                self.stores.history.save(data)
            except StorageError as e:
                logger.error("Could not save time for %r: %s", timer.project.name, e)

    def _autosave(self):
        logger.debug("Autosaving")
        self.write_all()
        self.scheduler.call_later(WRITE_INTERVAL_MS, self._autosave)

    # -------------------------------------------------------------------------
    # Menu actions
    # -------------------------------------------------------------------------

    def _show_history(self):
        # The history window reads from the database, so flush first
        self.write_all()
        open_history(self.root, self.stores)

    def open_settings(self):
        dialog = SettingsDialog(self.root, self.stores, self.settings)
        if dialog.result:
            try:
                self.settings.store(PROPERTIES_PATH)
            except OSError as e:
                logger.error("Could not save settings: %s", e)
            self._apply_opacity()
            self.reload()
            return

        # Nothing to track and the user declined to add anything
        try:
            has_projects = bool(self.stores.projects.get_all())
        except StorageError:
            has_projects = False
        if not has_projects:
            self._on_close()

    def _show_about(self):
        CTkMessagebox(
            self.root,
            f"About {APP_TITLE}",
            f"{APP_TITLE} v{__version__}\n\n"
            "Per-project timers with a daily history.\n\n"
            f"Data stored in: {self.stores.database.path}"
        )

    def _on_close(self):
        """Save everything, then quit."""
        self.registry.stop_all()
        self.write_all()
        self.root.destroy()

    def run(self):
        """Start the application main loop."""
        self.root.after(0, self.reload)
        self.root.mainloop()


def main():
    configure_logging()
    migrate_legacy_file()
    settings = Settings.load(PROPERTIES_PATH)

    try:
        stores = Stores.open(read_only=settings.read_only)
    except StorageError as e:
        logger.critical("Cannot open the database: %s", e)
        sys.exit(1)
    if settings.read_only:
        logger.warning("Read-only mode: nothing will be saved")

    themes.apply_theme()
    TimekeeperApp(stores, settings).run()


if __name__ == "__main__":
    main()
