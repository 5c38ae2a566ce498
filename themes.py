"""
themes.py - Colours and fonts for the Timekeeper GUI

Every window asks get_colors() for its palette instead of hard-coding
hex strings. The heat map's anchor colours live here too.
"""

from dataclasses import asdict, dataclass

import customtkinter as ctk

from models import BLACK, WHITE, Color


FONT_FAMILY = "Segoe UI"

# History heat map: light for little time, dark for a lot
HISTORY_GRADIENT_ANCHORS: tuple[Color, ...] = (WHITE, BLACK)
HISTORY_GRADIENT_STEPS = 10


@dataclass(frozen=True)
class Palette:
    """Widget colours of the always-on-top tracker window and its dialogs."""

    bg_dark: str            # window background
    bg_medium: str          # table body
    bg_light: str           # table header, scrollbar
    text_primary: str
    text_secondary: str     # hints next to section titles
    separator: str
    card_bg: str            # idle project card
    running_bg: str         # card whose timer is counting


PALETTE = Palette(
    bg_dark="#eef1f4",
    bg_medium="#fbfcfd",
    bg_light="#dde3e9",
    text_primary="#20252b",
    text_secondary="#6b7480",
    separator="#c4ccd4",
    card_bg="#fbfcfd",
    running_bg="#cdebd6",
)

APPEARANCE_MODE = "Light"


def get_colors() -> dict[str, str]:
    return asdict(PALETTE)


def font(size: int = 12, weight: str = "normal") -> ctk.CTkFont:
    return ctk.CTkFont(family=FONT_FAMILY, size=size, weight=weight)


def apply_theme():
    """Configure CustomTkinter globally. Must run before the root window exists."""
    ctk.set_appearance_mode(APPEARANCE_MODE)
    ctk.set_default_color_theme("green")
