#!/usr/bin/env python3
"""Direct run of the engine to check emission rate and population caps."""

import numpy as np
from particle_engine.config import EngineConfig
from particle_engine.emitter import Emitter, apply_preset
from particle_engine.simulation import ParticleEngine

config = EngineConfig(seed=42)
engine = ParticleEngine(config, rng=np.random.default_rng(42))

# Rain emits 100/s and lives up to 1s, so it settles well under the cap
rain = Emitter(id="rain", x=400.0, y=0.0, width=800.0, height=10.0)
apply_preset(rain, "rain")

# Flood emitter to exercise eviction
flood = Emitter(id="flood", x=400.0, y=300.0)
apply_preset(flood, "smoke")
flood.emit_rate = 2000.0

dt = 1.0 / 60.0
for i in range(300):
    engine.step(rain, dt)
    engine.step(flood, dt)
    if i % 60 == 59:
        print(f"t={(i + 1) * dt:.2f}s rain={engine.count('rain')} flood={engine.count('flood')}")

stats = engine.stats()
elapsed = 300 * dt
print(f"\nAfter {elapsed:.1f}s:")
for emitter_id, counts in stats.items():
    rate = counts["spawned"] / elapsed
    print(f"  {emitter_id}: live={counts['live']} spawned={counts['spawned']} "
          f"evicted={counts['evicted']} rate={rate:.1f}/s")

lives = np.array([p.life for p in engine.particles("rain")])
print(f"\nRain life: mean={lives.mean():.3f} min={lives.min():.3f} max={lives.max():.3f}")
