"""Pytest configuration and fixtures for particle engine tests."""

import numpy as np
import pytest

from particle_engine.config import EngineConfig
from particle_engine.simulation import ParticleEngine


@pytest.fixture
def rng():
    """Provide a deterministic RNG for tests."""
    return np.random.default_rng(42)


@pytest.fixture
def engine(rng):
    """A fresh engine with strict lifetime checks and a seeded RNG."""
    return ParticleEngine(EngineConfig(strict_lifetimes=True), rng=rng)
