"""
ctk_table.py - Grid table with per-cell colours for the Timekeeper GUI

Tk's Treeview can only colour whole rows, but the history heat map needs
every cell coloured on its own. HeatTable lays out CTkLabels in a grid
inside a scrollable frame instead.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import customtkinter as ctk

import themes

ROW_HEIGHT = 28


@dataclass
class Cell:
    """Content and colours of one table cell."""

    text: str = ""
    background: Optional[str] = None   # None keeps the table background
    foreground: Optional[str] = None   # None uses the theme text colour
    editable: bool = False


class HeatTable(ctk.CTkFrame):
    """
    A scrollable table whose cells carry their own colours.

    Usage:
        table = HeatTable(parent, columns=["Date", "Sum"], widths=[120, 80],
                          on_cell_click=handle_click)
        table.set_rows([[Cell("2024-01-15 Mon"), Cell("01:00:00", "#808080", "#ffffff")]])

    Clicks on editable cells call on_cell_click(row_index, column_index).
    """

    def __init__(
        self,
        parent,
        columns: list[str],
        widths: list[int],
        on_cell_click: Optional[Callable[[int, int], None]] = None,
        **kwargs
    ):
        colors = themes.get_colors()
        super().__init__(parent, fg_color=colors["bg_dark"], corner_radius=6, **kwargs)

        if len(columns) != len(widths):
            raise ValueError("columns and widths must have the same length")

        self.columns = columns
        self.widths = widths
        self.on_cell_click = on_cell_click
        self._labels: list[list[ctk.CTkLabel]] = []

        self._build_header()

        self.body = ctk.CTkScrollableFrame(
            self,
            fg_color=colors["bg_medium"],
            corner_radius=0,
            scrollbar_button_color=colors["bg_light"],
            scrollbar_button_hover_color=colors["separator"]
        )
        self.body.pack(fill=ctk.BOTH, expand=True, padx=2, pady=(0, 2))

    def _build_header(self):
        colors = themes.get_colors()
        header = ctk.CTkFrame(self, fg_color=colors["bg_light"], corner_radius=0)
        header.pack(fill=ctk.X, padx=2, pady=(2, 0))
        for column, (title, width) in enumerate(zip(self.columns, self.widths)):
            ctk.CTkLabel(
                header,
                text=title,
                width=width,
                height=ROW_HEIGHT,
                anchor="w",
                font=themes.font(12, "bold"),
                text_color=colors["text_primary"]
            ).grid(row=0, column=column, padx=(4, 0), sticky="w")

    def clear(self):
        for row in self._labels:
            for label in row:
                label.destroy()
        self._labels.clear()

    def set_rows(self, rows: list[list[Cell]]):
        """Replace the whole table body."""
        self.clear()
        for row_index, cells in enumerate(rows):
            labels = []
            for column, (cell, width) in enumerate(zip(cells, self.widths)):
                label = ctk.CTkLabel(
                    self.body,
                    width=width,
                    height=ROW_HEIGHT,
                    anchor="w",
                    corner_radius=0,
                    font=themes.font(12)
                )
                label.grid(row=row_index, column=column, padx=(4, 0), pady=(0, 1), sticky="nsew")
                if cell.editable and self.on_cell_click:
                    label.bind("<Button-1>", lambda _, r=row_index, c=column: self.on_cell_click(r, c))
                    label.configure(cursor="hand2")
                labels.append(label)
                self._apply(label, cell)
            self._labels.append(labels)

    def _apply(self, label: ctk.CTkLabel, cell: Cell):
        colors = themes.get_colors()
        label.configure(
            text=cell.text,
            fg_color=cell.background or "transparent",
            text_color=cell.foreground or colors["text_primary"]
        )

    def scroll_to_end(self):
        """Show the last (newest) rows."""
        self.body.update_idletasks()
        self.body._parent_canvas.yview_moveto(1.0)
