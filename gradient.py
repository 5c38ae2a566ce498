"""
gradient.py - Discrete colour ramps for the history heat map

A gradient is a precomputed list of colours. Values are mapped onto it
by normalising them into [min, max] and picking the matching bucket.
"""

import math
from typing import Sequence

from models import BLACK, WHITE, Color


def _create_gradient(one: Color, two: Color, steps: int) -> list[Color]:
    """Linear interpolation from one to two, excluding two itself."""
    gradient = []
    for i in range(steps):
        norm = i / steps  # 0 <= norm < 1
        gradient.append(Color(
            int(one.r + norm * (two.r - one.r)),
            int(one.g + norm * (two.g - one.g)),
            int(one.b + norm * (two.b - one.b)),
        ))
    return gradient


def create_multi_gradient(colors: Sequence[Color], steps: int) -> list[Color]:
    """
    Build a ramp of exactly `steps` colours through all anchor colours.

    The ramp is split into len(colors) - 1 equal sections, each a linear
    interpolation between two neighbouring anchors. When steps doesn't
    divide evenly, the leftover slots at the end repeat the last anchor.

    Args:
        colors: Anchor colours, lowest value first
        steps: Total number of colours in the result

    Returns:
        List of `steps` colours

    Raises:
        ValueError: If fewer than two anchor colours or no steps are given
    """
    if colors is None or len(colors) < 2:
        raise ValueError("A gradient needs at least 2 colors")
    if steps < 1:
        raise ValueError("A gradient needs at least 1 step")

    sections = len(colors) - 1
    per_section = steps // sections

    gradient: list[Color] = []
    for section in range(sections):
        gradient.extend(_create_gradient(colors[section], colors[section + 1], per_section))

    # Rounding left some slots empty; pad with the final anchor
    while len(gradient) < steps:
        gradient.append(colors[-1])

    # The top bucket is always the last anchor, even when nothing was padded
    gradient[-1] = colors[-1]

    return gradient


def _index_for(value: float, min_value: float, max_value: float, size: int) -> int:
    norm = (value - min_value) / (max_value - min_value)
    index = math.floor(norm * (size - 1))
    return max(0, min(index, size - 1))


def color_for(value: float, min_value: float, max_value: float, ramp: Sequence[Color]) -> Color:
    """Bucket colour for value; white when the range is empty."""
    if max_value == min_value:
        return WHITE
    return ramp[_index_for(value, min_value, max_value, len(ramp))]


def text_color_for(value: float, min_value: float, max_value: float, ramp: Sequence[Color]) -> Color:
    """
    Readable text colour on top of color_for(value).

    Black on light buckets (channel mean above 128), white otherwise. This
    is a plain RGB average, not perceptual luminance.
    """
    if max_value == min_value:
        return BLACK
    background = ramp[_index_for(value, min_value, max_value, len(ramp))]
    return BLACK if background.mean > 128 else WHITE


class Gradient:
    """A prepared ramp plus the value range it currently covers."""

    def __init__(self, colors: Sequence[Color], min_value: float, max_value: float):
        if colors is None or len(colors) < 2:
            raise ValueError("A gradient needs at least 2 colors")
        self.colors = list(colors)
        self.min_value = min_value
        self.max_value = max_value

    @classmethod
    def build(cls, anchors: Sequence[Color], steps: int, min_value: float, max_value: float) -> 'Gradient':
        return cls(create_multi_gradient(anchors, steps), min_value, max_value)

    def color(self, value: float) -> Color:
        return color_for(value, self.min_value, self.max_value, self.colors)

    def text_color(self, value: float) -> Color:
        return text_color_for(value, self.min_value, self.max_value, self.colors)

    def __repr__(self):
        return f"Gradient(steps={len(self.colors)}, min={self.min_value}, max={self.max_value})"
