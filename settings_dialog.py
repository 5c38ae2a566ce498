#!/usr/bin/env python3
"""
settings_dialog.py - Preferences and project list editing

Edits happen on copies; nothing is written until OK. On OK every project
is written with its new position and projects that were removed from the
list are deleted together with their history.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

import customtkinter as ctk

import themes
from errors import StorageError
from models import Project, max_position, sort_by_position
from settings import MAX_OPACITY, MIN_OPACITY, Settings, UpdateInterval

if TYPE_CHECKING:
    from db import Stores

logger = logging.getLogger(__name__)


def next_placeholder(projects: list[Project]) -> Project:
    """
    A new, unsaved project.

    Gets a negative id (so it can't clash with stored rows, and so
    ProjectStore.save inserts it) and a 'Project N' name.
    """
    number = max((abs(p.id) for p in projects if p.id is not None), default=0) + 1
    return Project(
        id=-number,
        name=f"Project {number}",
        autostart=False,
        visible=True,
        position=max_position(projects) + 1
    )


def apply_project_changes(stores: 'Stores', edited: list[Project]):
    """
    Write the edited project list back.

    Positions follow list order. Stored projects missing from the list are
    deleted along with their history.
    """
    stored = stores.projects.get_all()
    for index, project in enumerate(edited):
        project.position = index
        stores.projects.save(project)

    kept_ids = {p.id for p in edited}
    for project in stored:
        if project.id not in kept_ids:
            logger.info("Deleting project %r and its history", project.name)
            stores.delete_project(project)


class SettingsDialog:
    """Modal settings window. After it closes, `result` is True on OK."""

    def __init__(self, parent, stores: 'Stores', settings: Settings):
        self.parent = parent
        self.stores = stores
        self.settings = settings
        self.result = False

        try:
            self.projects = [replace(p) for p in stores.projects.get_all()]
        except StorageError as e:
            logger.error("Could not load projects: %s", e)
            self.projects = []
        sort_by_position(self.projects)

        autostart = next((p for p in self.projects if p.autostart), None)
        self.autostart_var = ctk.StringVar(value=str(autostart.id) if autostart else "")
        self.opacity_var = ctk.IntVar(value=settings.opacity)
        self.interval_var = ctk.StringVar(value=settings.update_interval.value)
        self._name_entries: list[ctk.CTkEntry] = []
        self._visible_vars: list[ctk.BooleanVar] = []

        self.dialog = ctk.CTkToplevel(parent)
        self.dialog.title("Settings")
        self.dialog.geometry("460x520")
        self.dialog.minsize(360, 400)
        self.dialog.configure(fg_color=themes.get_colors()["bg_dark"])
        self.dialog.transient(parent)
        self.dialog.protocol("WM_DELETE_WINDOW", self._cancel)

        self._build_ui()
        self._rebuild_rows()

        self.dialog.grab_set()
        self.dialog.wait_window()

    def _build_ui(self):
        colors = themes.get_colors()

        # Opacity
        opacity_frame = ctk.CTkFrame(self.dialog, fg_color=colors["card_bg"], corner_radius=8)
        opacity_frame.pack(fill=ctk.X, padx=10, pady=(10, 5))

        ctk.CTkLabel(opacity_frame, text="Opacity", font=themes.font(13, "bold")).pack(anchor="w", padx=12, pady=(8, 0))
        row = ctk.CTkFrame(opacity_frame, fg_color="transparent")
        row.pack(fill=ctk.X, padx=12, pady=(0, 8))
        ctk.CTkSlider(
            row,
            from_=MIN_OPACITY,
            to=MAX_OPACITY,
            number_of_steps=MAX_OPACITY - MIN_OPACITY,
            variable=self.opacity_var,
            command=self._preview_opacity
        ).pack(side=ctk.LEFT, fill=ctk.X, expand=True)
        ctk.CTkLabel(row, textvariable=self.opacity_var, width=40).pack(side=ctk.LEFT, padx=(8, 0))

        # Update interval
        interval_frame = ctk.CTkFrame(self.dialog, fg_color=colors["card_bg"], corner_radius=8)
        interval_frame.pack(fill=ctk.X, padx=10, pady=5)
        ctk.CTkLabel(interval_frame, text="Check for updates", font=themes.font(13, "bold")).pack(side=ctk.LEFT, padx=12, pady=8)
        ctk.CTkOptionMenu(
            interval_frame,
            variable=self.interval_var,
            values=[interval.value for interval in UpdateInterval]
        ).pack(side=ctk.RIGHT, padx=12, pady=8)

        # Projects
        projects_frame = ctk.CTkFrame(self.dialog, fg_color=colors["card_bg"], corner_radius=8)
        projects_frame.pack(fill=ctk.BOTH, expand=True, padx=10, pady=5)

        header = ctk.CTkFrame(projects_frame, fg_color="transparent")
        header.pack(fill=ctk.X, padx=12, pady=(8, 0))
        ctk.CTkLabel(header, text="Projects", font=themes.font(13, "bold")).pack(side=ctk.LEFT)
        ctk.CTkLabel(header, text="autostart / name / visible", text_color=colors["text_secondary"]).pack(side=ctk.RIGHT)

        self.rows_frame = ctk.CTkScrollableFrame(projects_frame, fg_color="transparent")
        self.rows_frame.pack(fill=ctk.BOTH, expand=True, padx=6, pady=5)

        ctk.CTkButton(projects_frame, text="Add Project", command=self._add).pack(anchor="w", padx=12, pady=(0, 8))

        # OK / Cancel
        btn_frame = ctk.CTkFrame(self.dialog, fg_color="transparent")
        btn_frame.pack(fill=ctk.X, padx=10, pady=10)
        ctk.CTkButton(btn_frame, text="Cancel", width=90, command=self._cancel).pack(side=ctk.RIGHT, padx=5)
        self.ok_button = ctk.CTkButton(btn_frame, text="OK", width=90, command=self._ok)
        self.ok_button.pack(side=ctk.RIGHT, padx=5)

    def _rebuild_rows(self):
        """Redraw the project list from self.projects (capture edits first)."""
        for child in self.rows_frame.winfo_children():
            child.destroy()
        self._name_entries.clear()
        self._visible_vars.clear()

        for index, project in enumerate(self.projects):
            row = ctk.CTkFrame(self.rows_frame, fg_color="transparent")
            row.pack(fill=ctk.X, pady=2)

            ctk.CTkRadioButton(
                row, text="", width=24, variable=self.autostart_var, value=str(project.id)
            ).pack(side=ctk.LEFT)

            entry = ctk.CTkEntry(row, width=180)
            entry.insert(0, project.name)
            entry.pack(side=ctk.LEFT, padx=4)
            self._name_entries.append(entry)

            visible_var = ctk.BooleanVar(value=project.visible)
            ctk.CTkCheckBox(row, text="", width=24, variable=visible_var).pack(side=ctk.LEFT, padx=4)
            self._visible_vars.append(visible_var)

            for text, command in (("▲", lambda i=index: self._move(i, -1)),
                                  ("▼", lambda i=index: self._move(i, 1)),
                                  ("✕", lambda i=index: self._delete(i))):
                ctk.CTkButton(row, text=text, width=28, command=command).pack(side=ctk.LEFT, padx=1)

        # Closing with an empty list would leave nothing to track
        self.ok_button.configure(state="normal" if self.projects else "disabled")

    def _capture_edits(self):
        """Copy entry/checkbox state back into the project copies."""
        for project, entry, visible_var in zip(self.projects, self._name_entries, self._visible_vars):
            project.name = entry.get().strip() or project.name
            project.visible = visible_var.get()

    def _add(self):
        self._capture_edits()
        self.projects.append(next_placeholder(self.projects))
        self._rebuild_rows()
        self._name_entries[-1].focus_set()
        self._name_entries[-1].select_range(0, ctk.END)

    def _delete(self, index: int):
        self._capture_edits()
        del self.projects[index]
        self._rebuild_rows()

    def _move(self, index: int, direction: int):
        target = index + direction
        if not 0 <= target < len(self.projects):
            return
        self._capture_edits()
        self.projects[index], self.projects[target] = self.projects[target], self.projects[index]
        self._rebuild_rows()

    def _preview_opacity(self, value):
        self.parent.attributes("-alpha", int(value) / MAX_OPACITY)

    def _ok(self):
        self._capture_edits()
        autostart_id = self.autostart_var.get()
        for project in self.projects:
            project.autostart = str(project.id) == autostart_id

        self.settings.opacity = int(self.opacity_var.get())
        self.settings.update_interval = UpdateInterval.parse(self.interval_var.get())

        try:
            apply_project_changes(self.stores, self.projects)
        except StorageError as e:
            logger.error("Could not save projects: %s", e)

        self.result = True
        self.dialog.destroy()

    def _cancel(self):
        self.parent.attributes("-alpha", self.settings.opacity / MAX_OPACITY)
        self.dialog.destroy()
