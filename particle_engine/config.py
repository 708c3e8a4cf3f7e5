"""Simple configuration for the particle engine."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    """Configuration for particle emission and the frame loop."""

    # Population
    max_particles: int = 500  # Per emitter, oldest evicted first

    # Lifetimes
    min_lifetime: float = 0.001  # Floor used when clamping bad ranges
    strict_lifetimes: bool = __debug__  # Raise on bad ranges instead of clamping

    # Frame loop
    max_delta: float = 0.25  # Longest step taken for a single tick
    frame_interval: float = 1.0 / 60.0  # Time between WebSocket frames

    # Randomness
    seed: Optional[int] = None

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from ``PARTICLE_ENGINE_*`` environment variables."""
        config = cls()
        seed = os.getenv("PARTICLE_ENGINE_SEED")
        if seed:
            config.seed = int(seed)
        max_particles = os.getenv("PARTICLE_ENGINE_MAX_PARTICLES")
        if max_particles:
            config.max_particles = int(max_particles)
        strict = os.getenv("PARTICLE_ENGINE_STRICT")
        if strict:
            config.strict_lifetimes = _env_flag(strict)
        frame_interval = os.getenv("PARTICLE_ENGINE_FRAME_INTERVAL")
        if frame_interval:
            config.frame_interval = float(frame_interval)
        return config


DEFAULT_CONFIG = EngineConfig()
