"""Continuous-time particle emission and integration, one pool per emitter."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .config import DEFAULT_CONFIG, EngineConfig
from .emitter import Emitter
from .presets import ColorRange, SizeRange, ValueRange

logger = logging.getLogger(__name__)


class InvalidLifetimeError(ValueError):
    """Raised when an emitter's lifetime range cannot produce live particles."""


def validate_lifetime(
    lifetime: ValueRange,
    *,
    strict: bool,
    min_lifetime: float,
) -> ValueRange:
    """
    Check that a lifetime range only yields positive lifetimes.

    In strict mode a bad range raises. Otherwise inverted bounds are swapped
    and both bounds are raised to at least ``min_lifetime``.

    Args:
        lifetime: Range configured on the emitter
        strict: Raise instead of clamping
        min_lifetime: Smallest lifetime a clamped range may produce

    Returns:
        A range with ``0 < min <= max``
    """
    lo, hi = lifetime.min, lifetime.max
    valid = (
        math.isfinite(lo) and math.isfinite(hi)
        and lo > 0.0 and hi >= lo
    )
    if valid:
        return lifetime
    if strict:
        raise InvalidLifetimeError(
            f"Lifetime range must satisfy 0 < min <= max, got min={lo}, max={hi}"
        )

    if not math.isfinite(lo):
        lo = min_lifetime
    if not math.isfinite(hi):
        hi = lo
    if hi < lo:
        lo, hi = hi, lo
    lo = max(lo, min_lifetime)
    hi = max(hi, lo)
    return ValueRange(lo, hi)


@dataclass
class Particle:
    """A single live particle. Size and color ranges are fixed at spawn."""
    x: float
    y: float
    vx: float
    vy: float
    life: float
    max_life: float
    size: SizeRange
    color: ColorRange

    @property
    def progress(self) -> float:
        """Normalized age, 0 at spawn and 1 at death."""
        return 1.0 - self.life / self.max_life


class ParticlePool:
    """
    Live particles of one emitter, oldest first.

    Each step spawns, then integrates every particle (new ones included),
    then evicts from the front until the pool fits ``max_particles``.
    """

    def __init__(self, emitter_id: str, config: EngineConfig, rng: np.random.Generator):
        self.emitter_id = emitter_id
        self.config = config
        self.rng = rng
        self.particles: List[Particle] = []

        # Diagnostics
        self.spawned_total = 0
        self.evicted_total = 0
        self._warned_lifetime = False

    def __len__(self) -> int:
        return len(self.particles)

    def clear(self) -> None:
        self.particles = []

    def step(self, emitter: Emitter, dt: float) -> None:
        """Advance the pool by ``dt`` seconds."""
        if not emitter.enabled:
            self.clear()
            return

        count = self._spawn_count(emitter.emit_rate * dt)
        # Spawns beyond the cap would be evicted below in this same step
        skipped = max(0, count - self.config.max_particles)
        if skipped:
            self.spawned_total += skipped
            self.evicted_total += skipped
            count -= skipped
        if count:
            self._spawn(emitter, count)

        self._integrate(emitter.gravity, dt)
        self._evict()

    def _spawn_count(self, expected: float) -> int:
        """Stochastic rounding: floor(n), plus one with probability frac(n)."""
        if not math.isfinite(expected) or expected <= 0.0:
            return 0
        whole = math.floor(expected)
        fraction = expected - whole
        if fraction > 0.0 and self.rng.random() < fraction:
            whole += 1
        return int(whole)

    def _lifetime_range(self, emitter: Emitter) -> ValueRange:
        lifetime = validate_lifetime(
            emitter.lifetime,
            strict=self.config.strict_lifetimes,
            min_lifetime=self.config.min_lifetime,
        )
        if lifetime is not emitter.lifetime and not self._warned_lifetime:
            logger.warning(
                "Emitter %s has lifetime range %s; clamped to %s",
                emitter.id, emitter.lifetime, lifetime,
            )
            self._warned_lifetime = True
        return lifetime

    def _spawn(self, emitter: Emitter, count: int) -> None:
        lifetime = self._lifetime_range(emitter)
        rng = self.rng

        half_w = emitter.width / 2.0
        half_h = emitter.height / 2.0
        xs = rng.uniform(emitter.x - half_w, emitter.x + half_w, count)
        ys = rng.uniform(emitter.y - half_h, emitter.y + half_h, count)

        # 0 degrees points up (-Y), angles grow clockwise
        angles = np.radians(rng.uniform(emitter.direction.min, emitter.direction.max, count))
        speeds = rng.uniform(emitter.speed.min, emitter.speed.max, count)
        lifetimes = rng.uniform(lifetime.min, lifetime.max, count)

        vxs = np.sin(angles) * speeds
        vys = -np.cos(angles) * speeds

        # Emission fields are frozen dataclasses, so the particle keeps the
        # envelope it was born with even if the emitter is edited later
        size = emitter.size
        color = emitter.color
        for i in range(count):
            life = float(lifetimes[i])
            self.particles.append(Particle(
                x=float(xs[i]),
                y=float(ys[i]),
                vx=float(vxs[i]),
                vy=float(vys[i]),
                life=life,
                max_life=life,
                size=size,
                color=color,
            ))
        self.spawned_total += count

    def _integrate(self, gravity: float, dt: float) -> None:
        alive: List[Particle] = []
        for p in self.particles:
            p.x += p.vx * dt
            p.y += p.vy * dt
            p.vy += gravity * dt
            p.life -= dt
            if p.life > 0.0:
                alive.append(p)
        self.particles = alive

    def _evict(self) -> None:
        excess = len(self.particles) - self.config.max_particles
        if excess > 0:
            del self.particles[:excess]
            self.evicted_total += excess


def _check_delta(dt: float) -> None:
    if not math.isfinite(dt) or dt < 0.0:
        raise ValueError(f"deltaTime must be finite and non-negative, got {dt}")


class ParticleEngine:
    """
    Particle pools for every emitter in a scene.

    Pools are created on the first step for an emitter id and dropped by
    ``remove``, ``prune`` or ``reset``. Emitters never interact.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self._pools: Dict[str, ParticlePool] = {}

    def __contains__(self, emitter_id: object) -> bool:
        return emitter_id in self._pools

    def pool(self, emitter_id: str) -> ParticlePool:
        """Get the pool for an emitter, creating it if needed."""
        pool = self._pools.get(emitter_id)
        if pool is None:
            pool = ParticlePool(emitter_id, self.config, self.rng)
            self._pools[emitter_id] = pool
            logger.debug("Created particle pool for emitter %s", emitter_id)
        return pool

    def step(self, emitter: Emitter, dt: float) -> None:
        """Advance one emitter's particles by ``dt`` seconds."""
        _check_delta(dt)
        self.pool(emitter.id).step(emitter, dt)

    def step_all(self, emitters: Iterable[Emitter], dt: float) -> None:
        """Advance every emitter, in the order given."""
        _check_delta(dt)
        for emitter in emitters:
            self.pool(emitter.id).step(emitter, dt)

    def particles(self, emitter_id: str) -> Tuple[Particle, ...]:
        """Snapshot of an emitter's live particles, oldest first."""
        pool = self._pools.get(emitter_id)
        return tuple(pool.particles) if pool is not None else ()

    def count(self, emitter_id: str) -> int:
        pool = self._pools.get(emitter_id)
        return len(pool) if pool is not None else 0

    def clear(self, emitter_id: Optional[str] = None) -> None:
        """Drop live particles of one emitter, or of all emitters."""
        if emitter_id is None:
            for pool in self._pools.values():
                pool.clear()
        elif emitter_id in self._pools:
            self._pools[emitter_id].clear()

    def remove(self, emitter_id: str) -> None:
        """Destroy an emitter's pool, e.g. after the emitter was deleted."""
        if self._pools.pop(emitter_id, None) is not None:
            logger.debug("Removed particle pool for emitter %s", emitter_id)

    def prune(self, live_ids: Iterable[str]) -> None:
        """Remove pools whose emitter is no longer in the scene."""
        keep = set(live_ids)
        for emitter_id in [eid for eid in self._pools if eid not in keep]:
            self.remove(emitter_id)

    def reset(self) -> None:
        self._pools.clear()

    def stats(self) -> Dict[str, Dict[str, int]]:
        """Live, spawned and evicted counts per emitter."""
        return {
            emitter_id: {
                "live": len(pool),
                "spawned": pool.spawned_total,
                "evicted": pool.evicted_total,
            }
            for emitter_id, pool in self._pools.items()
        }
