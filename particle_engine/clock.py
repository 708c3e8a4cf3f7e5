"""Start/stop control and elapsed-time bookkeeping for the frame loop."""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Iterable, List, Optional

from .emitter import Emitter
from .simulation import ParticleEngine

logger = logging.getLogger(__name__)


class ClockState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class SimulationClock:
    """
    Turns driver ticks into simulation steps.

    The clock owns no timer or thread. Whatever drives the frame loop (a
    display refresh callback, an asyncio task, a pygame loop) calls ``tick``
    with a timestamp, or ``advance`` with a precomputed delta. Every emitter
    returned by ``emitters`` is stepped in order, then ``on_frame`` is
    called with the delta that was used.
    """

    def __init__(
        self,
        engine: ParticleEngine,
        emitters: Callable[[], Iterable[Emitter]],
        on_frame: Optional[Callable[[float], None]] = None,
        time_source: Callable[[], float] = time.perf_counter,
    ):
        self.engine = engine
        self.emitters = emitters
        self.on_frame = on_frame
        self.time_source = time_source

        self._state = ClockState.STOPPED
        self._last_time: Optional[float] = None
        self.frame = 0
        self.elapsed = 0.0

    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is ClockState.RUNNING

    def start(self) -> None:
        """Begin advancing. The next tick sets the reference time."""
        if self.running:
            return
        self._state = ClockState.RUNNING
        self._last_time = None
        logger.debug("Simulation clock started at frame %d", self.frame)

    def stop(self) -> None:
        """Stop advancing. Safe to call while already stopped."""
        if not self.running:
            return
        self._state = ClockState.STOPPED
        self._last_time = None
        logger.debug("Simulation clock stopped at frame %d", self.frame)

    def tick(self, now: Optional[float] = None) -> Optional[float]:
        """
        Step the scene by the time elapsed since the previous tick.

        The first tick after ``start`` only records the reference time and
        steps with a zero delta. Deltas are clamped to
        ``[0, config.max_delta]`` so a stalled host does not produce a burst.

        Args:
            now: Timestamp in seconds; read from ``time_source`` if omitted

        Returns:
            The delta that was simulated, or None while stopped
        """
        if not self.running:
            return None

        if now is None:
            now = self.time_source()

        if self._last_time is None:
            dt = 0.0
        else:
            dt = min(max(now - self._last_time, 0.0), self.engine.config.max_delta)
        self._last_time = now

        self._step(dt)
        return dt

    def advance(self, dt: float) -> Optional[float]:
        """Step the scene by an explicit delta, for drivers that supply one."""
        if not self.running:
            return None
        self._step(dt)
        return dt

    def reset(self) -> None:
        """Stop and drop every live particle."""
        self.stop()
        self.engine.reset()
        self.frame = 0
        self.elapsed = 0.0

    def _step(self, dt: float) -> None:
        emitters: List[Emitter] = list(self.emitters())
        self.engine.step_all(emitters, dt)
        self.engine.prune(emitter.id for emitter in emitters)

        self.frame += 1
        self.elapsed += dt

        if self.on_frame is not None:
            self.on_frame(dt)
