"""60 Hz delay/sound timer advancement."""

from enum import IntEnum

import jax
import jax.numpy as jnp
from flax.struct import dataclass

from octavm.constants import TIMER_FREQUENCY, RunState
from octavm.state import EmulatorState, is_running

TIMER_INTERVAL = 1.0 / TIMER_FREQUENCY
# Absorbs float drift when elapsed times that sum to a whole interval are
# reported in pieces (e.g. ten chunks of 0.1 s).
_TOLERANCE = 1e-9


class SoundEvent(IntEnum):
    NONE = 0
    START = 1
    STOP = 2


@dataclass
class TimerClock:
    """Wall-clock accumulator carried between timer advances.

    ``accumulator`` holds the time already seen but not yet converted into
    whole 1/60 s ticks.
    """
    accumulator: float = 0.0

    def advance(self, elapsed: float) -> tuple["TimerClock", int]:
        """Add ``elapsed`` seconds and split out the whole ticks."""
        if elapsed < 0:
            raise ValueError(f"elapsed time must be non-negative, got {elapsed}")
        accumulated = self.accumulator + elapsed
        ticks = int((accumulated + _TOLERANCE) // TIMER_INTERVAL)
        remainder = max(0.0, accumulated - ticks * TIMER_INTERVAL)
        return self.replace(accumulator=remainder), ticks


@jax.jit
def tick_timers(state: EmulatorState, ticks) -> EmulatorState:
    """Apply ``ticks`` 60 Hz decrements to both timers, clamped at zero."""
    ticks = jnp.where(state.run_state == int(RunState.RUNNING), jnp.asarray(ticks, dtype=jnp.int32), 0)

    def _decrement(timer):
        return jnp.astype(jnp.maximum(jnp.astype(timer, jnp.int32) - ticks, 0), jnp.uint8)

    return state.replace(
        delay_timer=_decrement(state.delay_timer),
        sound_timer=_decrement(state.sound_timer),
    )


def advance_timers(
    state: EmulatorState, clock: TimerClock, elapsed: float
) -> tuple[EmulatorState, TimerClock]:
    """Advance both timers by ``elapsed`` wall-clock seconds.

    Time does not accumulate while the machine is paused or stopped, so a
    resumed machine does not burst through the ticks it missed.
    """
    if not is_running(state):
        return state, clock
    clock, ticks = clock.advance(elapsed)
    if ticks == 0:
        return state, clock
    # Every timer is at zero after 255 ticks; clamping keeps the count in int32.
    return tick_timers(state, min(ticks, 255)), clock


def sound_event(before: EmulatorState, after: EmulatorState) -> SoundEvent:
    """Classify the sound timer edge between two states."""
    was_on = int(before.sound_timer) > 0
    is_on = int(after.sound_timer) > 0
    if is_on and not was_on:
        return SoundEvent.START
    if was_on and not is_on:
        return SoundEvent.STOP
    return SoundEvent.NONE
