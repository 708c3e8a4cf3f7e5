import pytest

from particle_engine.clock import ClockState, SimulationClock
from particle_engine.emitter import Emitter
from particle_engine.presets import ValueRange


class FakeTime:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def make_clock(engine, emitters, frames=None):
    time_source = FakeTime()
    on_frame = frames.append if frames is not None else None
    clock = SimulationClock(engine, lambda: emitters, on_frame=on_frame, time_source=time_source)
    return clock, time_source


def make_emitter(emitter_id="e1", rate=100.0):
    return Emitter(
        id=emitter_id,
        emit_rate=rate,
        lifetime=ValueRange(5.0, 5.0),
    )


def test_clock_starts_stopped_and_ignores_ticks(engine):
    frames = []
    clock, _ = make_clock(engine, [make_emitter()], frames)

    assert clock.state is ClockState.STOPPED
    assert clock.tick(1.0) is None
    assert clock.advance(0.1) is None
    assert frames == []
    assert "e1" not in engine


def test_first_tick_after_start_has_zero_delta(engine):
    frames = []
    clock, _ = make_clock(engine, [make_emitter()], frames)

    clock.start()
    assert clock.running

    assert clock.tick(10.0) == 0.0
    assert engine.count("e1") == 0
    assert frames == [0.0]

    assert clock.tick(10.1) == pytest.approx(0.1)
    assert engine.count("e1") > 0
    assert clock.frame == 2
    assert clock.elapsed == pytest.approx(0.1)


def test_tick_reads_time_source_when_no_timestamp_given(engine):
    clock, time_source = make_clock(engine, [make_emitter()])
    clock.start()

    time_source.now = 3.0
    clock.tick()
    time_source.now = 3.2

    assert clock.tick() == pytest.approx(0.2)


def test_large_gaps_are_capped(engine):
    clock, _ = make_clock(engine, [make_emitter()])
    clock.start()
    clock.tick(0.0)

    dt = clock.tick(30.0)

    assert dt == engine.config.max_delta


def test_backwards_time_steps_nothing(engine):
    clock, _ = make_clock(engine, [make_emitter()])
    clock.start()
    clock.tick(5.0)

    assert clock.tick(4.0) == 0.0


def test_stop_is_idempotent_and_halts_stepping(engine):
    frames = []
    clock, _ = make_clock(engine, [make_emitter()], frames)
    clock.start()
    clock.tick(0.0)
    clock.tick(0.1)
    count = engine.count("e1")

    clock.stop()
    clock.stop()

    assert clock.state is ClockState.STOPPED
    assert clock.tick(0.2) is None
    assert engine.count("e1") == count
    assert len(frames) == 2


def test_restart_does_not_burst(engine):
    clock, _ = make_clock(engine, [make_emitter()])
    clock.start()
    clock.tick(0.0)
    clock.stop()

    clock.start()
    # Time spent stopped is not simulated
    assert clock.tick(100.0) == 0.0


def test_start_twice_keeps_reference_time(engine):
    clock, _ = make_clock(engine, [make_emitter()])
    clock.start()
    clock.tick(1.0)

    clock.start()

    assert clock.tick(1.05) == pytest.approx(0.05)


def test_emitters_are_stepped_in_scene_order(engine):
    emitters = [make_emitter("b"), make_emitter("c"), make_emitter("a")]
    clock, _ = make_clock(engine, emitters)
    clock.start()

    clock.advance(0.1)

    assert list(engine.stats()) == ["b", "c", "a"]


def test_removed_emitters_lose_their_pool(engine):
    emitters = [make_emitter("a"), make_emitter("b")]
    clock, _ = make_clock(engine, emitters)
    clock.start()
    clock.advance(0.1)

    emitters.pop(0)
    clock.advance(0.1)

    assert "a" not in engine
    assert "b" in engine


def test_advance_over_one_second(engine):
    emitter = Emitter(id="e1", emit_rate=100.0, lifetime=ValueRange(0.5, 0.5))
    clock, _ = make_clock(engine, [emitter])
    clock.start()

    for _ in range(10):
        clock.advance(0.1)

    assert clock.frame == 10
    assert clock.elapsed == pytest.approx(1.0)
    assert engine.stats()["e1"]["spawned"] == 100
    assert 50 <= engine.count("e1") <= 60


def test_disabling_mid_run_clears_on_next_tick(engine):
    emitter = make_emitter()
    clock, _ = make_clock(engine, [emitter])
    clock.start()
    clock.advance(0.1)
    assert engine.count("e1") > 0

    emitter.enabled = False
    clock.advance(0.1)

    assert engine.count("e1") == 0


def test_reset_stops_and_clears(engine):
    clock, _ = make_clock(engine, [make_emitter()])
    clock.start()
    clock.advance(0.1)

    clock.reset()

    assert clock.state is ClockState.STOPPED
    assert clock.frame == 0
    assert clock.elapsed == 0.0
    assert engine.stats() == {}
