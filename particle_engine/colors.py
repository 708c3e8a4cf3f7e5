"""Hex color parsing and blending for particle appearance."""
from __future__ import annotations

import math
import string
from typing import NamedTuple, Optional

_HEX_DIGITS = frozenset(string.hexdigits)


class RGBA(NamedTuple):
    """8-bit color channels with a real-valued alpha in [0, 1]."""
    r: int
    g: int
    b: int
    a: float

    def to_css(self) -> str:
        return f"rgba({self.r}, {self.g}, {self.b}, {self.a})"


WHITE = RGBA(255, 255, 255, 1.0)


def parse_color(value: Optional[str]) -> RGBA:
    """
    Parse ``#RRGGBB`` or ``#RRGGBBAA`` into channels.

    The leading ``#`` is optional. Six digits give an opaque color; with
    eight, the last pair is alpha scaled to [0, 1]. Anything else, including
    None and the empty string, gives opaque white.

    Args:
        value: Hex color string

    Returns:
        Parsed color
    """
    if not value or not isinstance(value, str):
        return WHITE

    digits = value[1:] if value.startswith("#") else value
    if len(digits) not in (6, 8) or not set(digits) <= _HEX_DIGITS:
        return WHITE

    r = int(digits[0:2], 16)
    g = int(digits[2:4], 16)
    b = int(digits[4:6], 16)
    a = int(digits[6:8], 16) / 255 if len(digits) == 8 else 1.0
    return RGBA(r, g, b, a)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation"""
    return a + (b - a) * t


def lerp_color(start: RGBA, end: RGBA, t: float) -> RGBA:
    """Blend two colors; r/g/b are rounded, alpha is not."""
    return RGBA(
        _round_half_up(lerp(start.r, end.r, t)),
        _round_half_up(lerp(start.g, end.g, t)),
        _round_half_up(lerp(start.b, end.b, t)),
        lerp(start.a, end.a, t),
    )
