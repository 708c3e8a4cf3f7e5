"""Preset emission templates for common scene effects."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional


class Shape(str, Enum):
    """How a particle is drawn."""
    CIRCLE = "circle"
    LINE = "line"  # Elongated streak, e.g. rain
    STAR = "star"  # Square rotated 45 degrees


@dataclass(frozen=True)
class ValueRange:
    """Closed interval sampled uniformly at spawn time."""
    min: float
    max: float


@dataclass(frozen=True)
class SizeRange:
    """Particle size at birth and at death."""
    start: float
    end: float


@dataclass(frozen=True)
class ColorRange:
    """Hex colors (#RRGGBB or #RRGGBBAA) at birth and at death."""
    start: str
    end: str


@dataclass(frozen=True)
class Preset:
    """A named emission template."""
    name: str
    icon: str
    emit_rate: float              # particles per second
    lifetime: ValueRange          # seconds
    speed: ValueRange             # units per second
    direction: ValueRange         # degrees, clockwise from "up" (-Y)
    gravity: float                # units per second squared, +Y is down
    size: SizeRange
    color: ColorRange
    shape: Shape = Shape.CIRCLE


# ============================================================================
# Preset Definitions
# ============================================================================

FIRE = Preset(
    name="Fire",
    icon="🔥",
    emit_rate=30,
    lifetime=ValueRange(0.5, 1.5),
    speed=ValueRange(50, 150),
    direction=ValueRange(-30, 30),
    gravity=-50,
    size=SizeRange(20, 5),
    color=ColorRange("#ff6600", "#ff000033"),
    shape=Shape.CIRCLE,
)

SMOKE = Preset(
    name="Smoke",
    icon="💨",
    emit_rate=15,
    lifetime=ValueRange(2, 4),
    speed=ValueRange(20, 50),
    direction=ValueRange(-20, 20),
    gravity=-30,
    size=SizeRange(10, 40),
    color=ColorRange("#666666aa", "#99999900"),
    shape=Shape.CIRCLE,
)

# Falls almost straight down, drawn as streaks
RAIN = Preset(
    name="Rain",
    icon="🌧️",
    emit_rate=100,
    lifetime=ValueRange(0.5, 1),
    speed=ValueRange(400, 600),
    direction=ValueRange(170, 180),
    gravity=200,
    size=SizeRange(2, 2),
    color=ColorRange("#88bbffaa", "#88bbff88"),
    shape=Shape.LINE,
)

SNOW = Preset(
    name="Snow",
    icon="❄️",
    emit_rate=40,
    lifetime=ValueRange(3, 6),
    speed=ValueRange(20, 60),
    direction=ValueRange(160, 200),
    gravity=20,
    size=SizeRange(4, 4),
    color=ColorRange("#ffffffcc", "#ffffff66"),
    shape=Shape.CIRCLE,
)

DUST = Preset(
    name="Dust",
    icon="✨",
    emit_rate=10,
    lifetime=ValueRange(2, 5),
    speed=ValueRange(5, 20),
    direction=ValueRange(0, 360),
    gravity=5,
    size=SizeRange(3, 1),
    color=ColorRange("#d4a57466", "#d4a57400"),
    shape=Shape.CIRCLE,
)

MAGIC = Preset(
    name="Magic",
    icon="✨",
    emit_rate=25,
    lifetime=ValueRange(1, 2),
    speed=ValueRange(30, 80),
    direction=ValueRange(0, 360),
    gravity=-10,
    size=SizeRange(8, 2),
    color=ColorRange("#ff88ffff", "#8888ff00"),
    shape=Shape.STAR,
)

BUBBLES = Preset(
    name="Bubbles",
    icon="🫧",
    emit_rate=8,
    lifetime=ValueRange(2, 4),
    speed=ValueRange(30, 60),
    direction=ValueRange(-30, 30),
    gravity=-40,
    size=SizeRange(6, 12),
    color=ColorRange("#aaddff66", "#aaddff00"),
    shape=Shape.CIRCLE,
)

SPARKS = Preset(
    name="Sparks",
    icon="⚡",
    emit_rate=50,
    lifetime=ValueRange(0.2, 0.5),
    speed=ValueRange(100, 300),
    direction=ValueRange(0, 360),
    gravity=150,
    size=SizeRange(3, 1),
    color=ColorRange("#ffff00ff", "#ff880000"),
    shape=Shape.CIRCLE,
)


# ============================================================================
# Preset Registry
# ============================================================================

PRESETS: Dict[str, Preset] = {
    "fire": FIRE,
    "smoke": SMOKE,
    "rain": RAIN,
    "snow": SNOW,
    "dust": DUST,
    "magic": MAGIC,
    "bubbles": BUBBLES,
    "sparks": SPARKS,
}


class PresetLibrary:
    """Read-only catalog of presets keyed by name.

    The catalog is copied on construction, so later changes to the mapping
    passed in are not seen. Tests build their own libraries and hand them to
    ``apply_preset``/``icon_for`` instead of relying on the default one.
    """

    def __init__(self, presets: Mapping[str, Preset]):
        self._presets = MappingProxyType(dict(presets))

    def get(self, name: Optional[str]) -> Optional[Preset]:
        """Return the preset called ``name``, or None."""
        if name is None:
            return None
        return self._presets.get(name)

    def names(self) -> List[str]:
        return list(self._presets.keys())

    def list(self) -> List[Preset]:
        return list(self._presets.values())

    def items(self):
        return self._presets.items()

    def __contains__(self, name: object) -> bool:
        return name in self._presets

    def __iter__(self) -> Iterator[str]:
        return iter(self._presets)

    def __len__(self) -> int:
        return len(self._presets)


DEFAULT_LIBRARY = PresetLibrary(PRESETS)


def list_presets() -> List[Preset]:
    """Return list of all available presets."""
    return DEFAULT_LIBRARY.list()


def get_preset(name: str) -> Preset:
    """Get preset by name."""
    preset = DEFAULT_LIBRARY.get(name)
    if preset is None:
        raise ValueError(f"Unknown preset '{name}'. Available: {DEFAULT_LIBRARY.names()}")
    return preset
