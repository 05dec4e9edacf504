"""Tests for the 60 Hz timers."""

import numpy as np
import pytest
from octavm import TimerClock, SoundEvent, tick_timers, advance_timers, create_state
from octavm.state import pause
from octavm.timers import sound_event


def with_timers(delay, sound):
    state = create_state()
    return state.replace(
        delay_timer=state.delay_timer + delay,
        sound_timer=state.sound_timer + sound,
    )


class TestTimerClock:
    """Wall-clock to tick conversion."""

    def test_one_second_in_chunks(self):
        clock = TimerClock()
        total = 0
        for _ in range(10):
            clock, ticks = clock.advance(0.1)
            total += ticks
        assert total == 60

    def test_remainder_is_kept(self):
        clock, ticks = TimerClock().advance(1 / 120)
        assert ticks == 0
        clock, ticks = clock.advance(1 / 120)
        assert ticks == 1

    def test_negative_elapsed(self):
        with pytest.raises(ValueError):
            TimerClock().advance(-0.1)


class TestAdvanceTimers:
    """Timer decrements through advance_timers/tick_timers."""

    def test_one_second_chunked(self):
        state = with_timers(200, 0)
        clock = TimerClock()
        for _ in range(10):
            state, clock = advance_timers(state, clock, 0.1)
        assert state.delay_timer == 140

    @pytest.mark.parametrize("chunks", [
        [0.013, 0.2, 0.0071, 0.3, 0.1799, 0.25, 0.05],
        [1 / 7] * 7,
        [0.5, 0.25, 0.125, 0.0625, 0.0625],
    ])
    def test_one_second_irregular_chunks(self, chunks):
        state = with_timers(200, 0)
        clock = TimerClock()
        for elapsed in chunks:
            state, clock = advance_timers(state, clock, elapsed)
        assert state.delay_timer == 140

    @pytest.mark.parametrize("seed", range(5))
    def test_one_second_random_chunks(self, seed):
        cuts = np.sort(np.random.default_rng(seed).uniform(0.0, 1.0, size=30))
        chunks = np.diff(np.concatenate([[0.0], cuts, [1.0]]))

        clock = TimerClock()
        total = 0
        for elapsed in chunks:
            clock, ticks = clock.advance(float(elapsed))
            total += ticks
        assert total == 60

    def test_timers_floor_at_zero(self):
        state = tick_timers(with_timers(3, 1), 10)
        assert state.delay_timer == 0
        assert state.sound_timer == 0

    def test_long_gap_is_clamped(self):
        state, _ = advance_timers(with_timers(255, 255), TimerClock(), 3600.0)
        assert state.delay_timer == 0
        assert state.sound_timer == 0

    def test_paused_machine_does_not_tick(self):
        state = pause(with_timers(10, 10))
        clock = TimerClock()

        new_state, new_clock = advance_timers(state, clock, 1.0)

        assert new_state.delay_timer == 10
        assert new_state.sound_timer == 10
        assert new_clock.accumulator == 0.0

    def test_tick_timers_ignores_paused(self):
        state = tick_timers(pause(with_timers(10, 10)), 5)
        assert state.delay_timer == 10


class TestSoundEvent:
    """Edges of the sound timer."""

    def test_start(self):
        assert sound_event(with_timers(0, 0), with_timers(0, 4)) == SoundEvent.START

    def test_stop(self):
        before = with_timers(0, 1)
        after = tick_timers(before, 1)
        assert sound_event(before, after) == SoundEvent.STOP

    def test_no_edge(self):
        assert sound_event(with_timers(0, 5), with_timers(0, 4)) == SoundEvent.NONE
        assert sound_event(with_timers(0, 0), with_timers(0, 0)) == SoundEvent.NONE
