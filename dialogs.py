#!/usr/bin/env python3
"""
dialogs.py - Shared dialog components for Timekeeper
"""

import customtkinter as ctk

import themes


def _center_on(dialog: ctk.CTkToplevel, parent, width: int, height: int):
    dialog.update_idletasks()
    x = parent.winfo_x() + (parent.winfo_width() - width) // 2
    y = parent.winfo_y() + (parent.winfo_height() - height) // 2
    dialog.geometry(f"{width}x{height}+{max(x, 0)}+{max(y, 0)}")


class CTkMessagebox:
    """Modal message box; blocks until closed."""

    def __init__(self, parent, title: str, message: str):
        self.dialog = ctk.CTkToplevel(parent)
        self.dialog.title(title)
        self.dialog.configure(fg_color=themes.get_colors()["bg_dark"])
        self.dialog.transient(parent)
        _center_on(self.dialog, parent, 360, 160)
        self.dialog.grab_set()

        main_frame = ctk.CTkFrame(self.dialog, fg_color="transparent")
        main_frame.pack(fill=ctk.BOTH, expand=True, padx=20, pady=20)

        ctk.CTkLabel(main_frame, text=message, wraplength=310, font=themes.font()).pack(pady=(10, 20))
        ctk.CTkButton(main_frame, text="OK", command=self.dialog.destroy, width=100).pack()

        self.dialog.wait_window()


class CTkDurationDialog:
    """
    Ask for a duration as HH:MM:SS.

    get_result() returns the raw text, or None if the dialog was cancelled.
    Validation is left to the caller.
    """

    def __init__(self, parent, title: str, initial: str):
        self.result = None
        self.dialog = ctk.CTkToplevel(parent)
        self.dialog.title(title)
        self.dialog.configure(fg_color=themes.get_colors()["bg_dark"])
        self.dialog.transient(parent)
        _center_on(self.dialog, parent, 300, 150)
        self.dialog.grab_set()

        main_frame = ctk.CTkFrame(self.dialog, fg_color="transparent")
        main_frame.pack(fill=ctk.BOTH, expand=True, padx=20, pady=15)

        ctk.CTkLabel(main_frame, text="Time (HH:MM:SS):", font=themes.font()).pack(anchor="w")

        self.entry = ctk.CTkEntry(main_frame, width=260)
        self.entry.insert(0, initial)
        self.entry.pack(pady=(5, 10))
        self.entry.bind("<Return>", lambda _: self._ok())
        self.entry.bind("<Escape>", lambda _: self.dialog.destroy())
        self.entry.focus_set()

        btn_frame = ctk.CTkFrame(main_frame, fg_color="transparent")
        btn_frame.pack()
        ctk.CTkButton(btn_frame, text="OK", command=self._ok, width=80).pack(side=ctk.LEFT, padx=10)
        ctk.CTkButton(btn_frame, text="Cancel", command=self.dialog.destroy, width=80).pack(side=ctk.LEFT, padx=10)

        self.dialog.wait_window()

    def _ok(self):
        self.result = self.entry.get()
        self.dialog.destroy()

    def get_result(self):
        return self.result
