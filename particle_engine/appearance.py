"""Map live particles to the attributes a renderer draws."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .colors import RGBA, lerp, lerp_color, parse_color
from .emitter import Emitter
from .presets import Shape
from .simulation import Particle, ParticleEngine

LINE_STRETCH = 4.0  # Height multiplier for streak particles
STAR_ROTATION = 45.0


@dataclass(frozen=True)
class VisualAttributes:
    """Resolved look of one particle for the current frame."""
    x: float
    y: float
    width: float
    height: float
    color: RGBA
    rotation: float  # degrees

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "color": self.color._asdict(),
            "rotation": self.rotation,
        }


@dataclass(frozen=True)
class FrameLayer:
    """One emitter's resolved particles plus its compositing hint."""
    emitter_id: str
    blend_mode: str
    shape: Shape
    particles: List[VisualAttributes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emitter_id": self.emitter_id,
            "blend_mode": self.blend_mode,
            "shape": self.shape.value,
            "particles": [p.to_dict() for p in self.particles],
        }


def resolve(particle: Particle, shape: Shape) -> VisualAttributes:
    """
    Compute size, color, and footprint of a particle at its current age.

    Size and color move linearly from their start to end values as the
    particle ages. Line particles are four times taller than wide, and stars
    are drawn rotated by 45 degrees.

    Args:
        particle: Live particle
        shape: Shape of the emitter that spawned it

    Returns:
        Attributes for the renderer
    """
    progress = particle.progress
    size = lerp(particle.size.start, particle.size.end, progress)
    color = lerp_color(
        parse_color(particle.color.start),
        parse_color(particle.color.end),
        progress,
    )

    height = size * LINE_STRETCH if shape == Shape.LINE else size
    rotation = STAR_ROTATION if shape == Shape.STAR else 0.0

    return VisualAttributes(
        x=particle.x,
        y=particle.y,
        width=size,
        height=height,
        color=color,
        rotation=rotation,
    )


def resolve_emitter(engine: ParticleEngine, emitter: Emitter) -> FrameLayer:
    """Resolve every live particle of one emitter, oldest first."""
    return FrameLayer(
        emitter_id=emitter.id,
        blend_mode=emitter.blend_mode,
        shape=emitter.shape,
        particles=[resolve(p, emitter.shape) for p in engine.particles(emitter.id)],
    )


def resolve_scene(engine: ParticleEngine, emitters) -> List[FrameLayer]:
    """Resolve all emitters in scene order."""
    return [resolve_emitter(engine, emitter) for emitter in emitters]
