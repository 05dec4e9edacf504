"""Host-side driver owning a single emulator state."""

from typing import Callable, Iterable, List, Optional

import jax
import jax.numpy as jnp

from octavm.constants import MEMORY_SIZE, NUM_KEYS, FATAL_FAULTS, Fault, RunState, StepOutcome
from octavm.emulator import step, read_rom, load_rom_bytes
from octavm.logging import EmulatorLogger, format_fault
from octavm.state import EmulatorState, create_state, pause, resume, halt, fail
from octavm.timers import TimerClock, SoundEvent, advance_timers, sound_event

SoundListener = Callable[[SoundEvent], None]


class Machine:
    """Runs the interpreter and reports what it does.

    The machine is the only writer of its state: front-ends feed it key
    presses and elapsed time, read ``display`` back, and subscribe to sound
    events. Faults recorded by the engine are forwarded to ``logger``, which
    only needs ``warning`` and ``error`` methods.
    """

    def __init__(
        self,
        seed: int = 0,
        logger=None,
        shift_quirk: bool = False,
        load_store_quirk: bool = False,
        jump_quirk: bool = False,
    ):
        self.seed = seed
        self.logger = logger if logger is not None else EmulatorLogger()
        self.quirks = dict(
            shift_quirk=shift_quirk,
            load_store_quirk=load_store_quirk,
            jump_quirk=jump_quirk,
        )
        self._sound_listeners: List[SoundListener] = []
        self._rom: Optional[bytes] = None
        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle

    def reset(self):
        """Recreate the initial state, reloading the current ROM if any."""
        before = getattr(self, "_state", None)
        state = create_state(jax.random.PRNGKey(self.seed), **self.quirks)
        if self._rom is not None:
            state = load_rom_bytes(state, self._rom)
        self._state = state
        self.clock = TimerClock()
        self.instructions_executed = 0
        self.last_fault = Fault.NONE
        if before is not None:
            self._publish_sound(before, self._state)

    def load_rom(self, path):
        """Load a ROM file; on failure the current state is left untouched."""
        data = read_rom(path)
        self.load_rom_bytes(data)
        if hasattr(self.logger, "log_rom_loaded"):
            self.logger.log_rom_loaded(path, len(data))
        else:
            self.logger.info(f"Loaded ROM {path} ({len(data)} bytes)")

    def load_rom_bytes(self, data: bytes):
        self._state = load_rom_bytes(self._state, data)
        self._rom = bytes(data)

    # ------------------------------------------------------------------
    # Execution

    @property
    def state(self) -> EmulatorState:
        return self._state

    @property
    def run_state(self) -> RunState:
        return RunState(int(self._state.run_state))

    @property
    def running(self) -> bool:
        return self.run_state == RunState.RUNNING

    @property
    def display(self) -> jnp.ndarray:
        return self._state.display

    def step(self) -> StepOutcome:
        """Execute one instruction and report any fault it raised."""
        before = self._state
        pc = int(before.pc)
        self._state, outcome = step(before)
        outcome = StepOutcome(int(outcome))

        if outcome == StepOutcome.IDLE:
            return outcome
        self.instructions_executed += 1
        self._report_fault(before, pc)
        self._publish_sound(before, self._state)
        return outcome

    def run(self, n: int) -> StepOutcome:
        """Execute up to ``n`` instructions, stopping early once halted."""
        outcome = StepOutcome.IDLE
        for _ in range(n):
            outcome = self.step()
            if outcome in (StepOutcome.HALTED, StepOutcome.IDLE):
                break
        return outcome

    def advance_timers(self, elapsed: float):
        """Advance the 60 Hz timers by ``elapsed`` wall-clock seconds."""
        before = self._state
        self._state, self.clock = advance_timers(before, self.clock, elapsed)
        self._publish_sound(before, self._state)

    def _report_fault(self, before: EmulatorState, pc: int):
        fault = Fault(int(self._state.fault))
        self.last_fault = fault
        if fault == Fault.NONE:
            return
        opcode = None
        if pc + 1 < MEMORY_SIZE:
            opcode = (int(before.memory[pc]) << 8) | int(before.memory[pc + 1])
        if hasattr(self.logger, "log_fault"):
            self.logger.log_fault(fault, opcode, pc)
        elif fault in FATAL_FAULTS:
            self.logger.error(format_fault(fault, opcode, pc))
        else:
            self.logger.warning(format_fault(fault, opcode, pc))

    # ------------------------------------------------------------------
    # Run state

    def pause(self):
        self._state = pause(self._state)

    def resume(self):
        self._state = resume(self._state)

    def toggle_pause(self):
        if self.run_state == RunState.PAUSED:
            self.resume()
        else:
            self.pause()

    def stop(self):
        self._state = halt(self._state)

    def fail(self):
        """Mark the machine ERRORED after a host-side failure."""
        self._state = fail(self._state)

    # ------------------------------------------------------------------
    # Input

    def set_key(self, key: int, pressed: bool):
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"key must be in 0x0..0xF, got {key}")
        self._state = self._state.replace(keypad=self._state.keypad.at[key].set(pressed))

    def set_keys(self, pressed: Iterable[int]):
        """Replace the whole keypad with the given set of pressed keys."""
        keypad = [False] * NUM_KEYS
        for key in pressed:
            if not 0 <= key < NUM_KEYS:
                raise ValueError(f"key must be in 0x0..0xF, got {key}")
            keypad[key] = True
        self._state = self._state.replace(keypad=jnp.array(keypad, dtype=jnp.bool_))

    # ------------------------------------------------------------------
    # Sound

    def subscribe_sound(self, listener: SoundListener):
        self._sound_listeners.append(listener)

    def _publish_sound(self, before: EmulatorState, after: EmulatorState):
        event = sound_event(before, after)
        if event == SoundEvent.NONE:
            return
        for listener in self._sound_listeners:
            listener(event)
