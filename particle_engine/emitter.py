"""Emitter records and the preset configuration contract."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .presets import (
    DEFAULT_LIBRARY,
    FIRE,
    ColorRange,
    Preset,
    PresetLibrary,
    Shape,
    SizeRange,
    ValueRange,
)

logger = logging.getLogger(__name__)

FALLBACK_ICON = "✨"


@dataclass
class Emitter:
    """
    One particle source placed in a scene.

    Holds its own copy of every emission field, so editing an emitter never
    touches the preset it came from. Particles spawn inside a width x height
    rectangle centred on (x, y).
    """
    id: str
    name: str = "Particles"
    x: float = 0.0
    y: float = 0.0
    width: float = 50.0
    height: float = 50.0
    enabled: bool = True
    blend_mode: str = "normal"  # Passed through to the renderer
    preset: Optional[str] = None  # Last preset applied, if any

    # Emission
    emit_rate: float = FIRE.emit_rate
    lifetime: ValueRange = FIRE.lifetime
    speed: ValueRange = FIRE.speed
    direction: ValueRange = FIRE.direction
    gravity: float = FIRE.gravity
    size: SizeRange = FIRE.size
    color: ColorRange = FIRE.color
    shape: Shape = FIRE.shape

    @classmethod
    def from_preset(cls, id: str, preset: Preset, **placement: Any) -> "Emitter":
        """Create an emitter whose emission fields come from ``preset``."""
        emitter = cls(id=id, **placement)
        _copy_emission(emitter, preset)
        return emitter

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["shape"] = self.shape.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Emitter":
        """Create an Emitter from a dictionary like the one ``to_dict`` makes."""
        data = dict(data)
        for key in ("lifetime", "speed", "direction"):
            if isinstance(data.get(key), dict):
                data[key] = ValueRange(**data[key])
        if isinstance(data.get("size"), dict):
            data["size"] = SizeRange(**data["size"])
        if isinstance(data.get("color"), dict):
            data["color"] = ColorRange(**data["color"])
        if "shape" in data:
            data["shape"] = Shape(data["shape"])
        return cls(**data)


def _copy_emission(emitter: Emitter, preset: Preset) -> None:
    # Range types are frozen, so sharing them with the catalog is safe
    emitter.emit_rate = preset.emit_rate
    emitter.lifetime = preset.lifetime
    emitter.speed = preset.speed
    emitter.direction = preset.direction
    emitter.gravity = preset.gravity
    emitter.size = preset.size
    emitter.color = preset.color
    emitter.shape = preset.shape


def apply_preset(
    emitter: Emitter,
    preset_name: Optional[str],
    library: PresetLibrary = DEFAULT_LIBRARY,
) -> bool:
    """
    Overwrite the emitter's emission fields with a preset's values.

    Position, spawn area, enabled flag, name and blend mode are left alone,
    and particles already alive keep the appearance they were born with.
    An unknown name leaves the emitter unchanged.

    Args:
        emitter: Emitter to modify in place
        preset_name: Key in the preset library
        library: Catalog to look the preset up in

    Returns:
        True if the preset was found and applied
    """
    preset = library.get(preset_name)
    if preset is None:
        logger.debug("Ignoring unknown preset %r for emitter %s", preset_name, emitter.id)
        return False

    emitter.preset = preset_name
    _copy_emission(emitter, preset)
    return True


def icon_for(preset_name: Optional[str], library: PresetLibrary = DEFAULT_LIBRARY) -> str:
    """Return the preset's icon, or a generic sparkle for unknown names."""
    preset = library.get(preset_name)
    return preset.icon if preset is not None else FALLBACK_ICON


@dataclass
class Scene:
    """Ordered emitters of one scene; iteration order is step order."""
    emitters: List[Emitter] = field(default_factory=list)

    def __iter__(self) -> Iterator[Emitter]:
        return iter(self.emitters)

    def __len__(self) -> int:
        return len(self.emitters)

    def get(self, emitter_id: str) -> Optional[Emitter]:
        for emitter in self.emitters:
            if emitter.id == emitter_id:
                return emitter
        return None

    def add(self, emitter: Emitter) -> None:
        if self.get(emitter.id) is not None:
            raise ValueError(f"Emitter '{emitter.id}' already in scene")
        self.emitters.append(emitter)

    def remove(self, emitter_id: str) -> Optional[Emitter]:
        emitter = self.get(emitter_id)
        if emitter is not None:
            self.emitters.remove(emitter)
        return emitter

    def ids(self) -> List[str]:
        return [emitter.id for emitter in self.emitters]
