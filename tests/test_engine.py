"""Tests for the fetch/execute cycle and run states."""

import jax.numpy as jnp
import pytest
from octavm import step, run_n_instruction, Fault, RunState, StepOutcome
from octavm.state import pause, resume, halt, fail
from conftest import rom_state


def outcome_of(outcome):
    return StepOutcome(int(outcome))


class TestStep:
    """Single steps through small programs."""

    def test_set_then_add(self):
        state = rom_state([0x6005, 0x7003])

        state, first = step(state)
        state, second = step(state)

        assert state.V[0] == 8
        assert state.pc == 0x204
        assert outcome_of(first) == StepOutcome.EXECUTED
        assert outcome_of(second) == StepOutcome.EXECUTED

    def test_call_returns_after_call_site(self):
        state = rom_state([0x2206, 0x6101, 0x1204, 0x00EE])

        state, _ = step(state)
        assert state.pc == 0x206
        state, _ = step(state)
        assert state.pc == 0x202
        state, _ = step(state)

        assert state.V[1] == 1
        assert state.stack.pointer == 0

    def test_seventeenth_call_stops(self):
        state = rom_state([0x2200])  # calls itself forever

        for _ in range(16):
            state, outcome = step(state)
            assert outcome_of(outcome) == StepOutcome.EXECUTED
        assert state.stack.pointer == 16

        state, outcome = step(state)

        assert outcome_of(outcome) == StepOutcome.HALTED
        assert state.stack.pointer == 16
        assert int(state.run_state) == RunState.STOPPED
        assert int(state.fault) == Fault.STACK_OVERFLOW

    def test_wait_for_key_spins_until_pressed(self):
        state = rom_state([0xF30A, 0x1202])

        for _ in range(3):
            state, outcome = step(state)
            assert outcome_of(outcome) == StepOutcome.WAITING
            assert state.pc == 0x200

        state = state.replace(keypad=state.keypad.at[3].set(True))
        state, outcome = step(state)

        assert outcome_of(outcome) == StepOutcome.EXECUTED
        assert state.V[3] == 3
        assert state.pc == 0x202

    def test_pc_out_of_bounds_stops(self):
        state = rom_state([0x1FFF])

        state, _ = step(state)
        assert state.pc == 0xFFF

        state, outcome = step(state)

        assert outcome_of(outcome) == StepOutcome.HALTED
        assert int(state.run_state) == RunState.STOPPED
        assert int(state.fault) == Fault.PC_OUT_OF_BOUNDS

    def test_unknown_opcode_is_soft(self):
        state = rom_state([0xFFFF, 0x6007])

        state, outcome = step(state)
        assert outcome_of(outcome) == StepOutcome.EXECUTED
        assert int(state.fault) == Fault.UNKNOWN_OPCODE
        assert int(state.run_state) == RunState.RUNNING
        assert state.pc == 0x202

        state, _ = step(state)
        assert int(state.fault) == Fault.NONE
        assert state.V[0] == 7

    def test_skip_over_instruction(self):
        state = rom_state([0x3000, 0x6101, 0x6202])

        state, _ = step(state)
        state, _ = step(state)

        assert state.V[1] == 0
        assert state.V[2] == 2
        assert state.pc == 0x206

    def test_quirks_survive_step(self):
        state = rom_state([0x6001], shift_quirk=True)
        state, _ = step(state)
        assert state.shift_quirk


class TestRunStates:
    """Run state transitions and their effect on step."""

    def test_paused_machine_is_idle(self):
        state = pause(rom_state([0x6005]))

        stepped, outcome = step(state)

        assert outcome_of(outcome) == StepOutcome.IDLE
        assert stepped.pc == 0x200
        assert stepped.V[0] == 0

    def test_resume_continues(self):
        state = resume(pause(rom_state([0x6005])))
        state, outcome = step(state)

        assert outcome_of(outcome) == StepOutcome.EXECUTED
        assert state.V[0] == 5

    def test_stopped_is_terminal(self):
        state = halt(rom_state([0x6005]))

        assert int(resume(state).run_state) == RunState.STOPPED
        assert int(pause(state).run_state) == RunState.STOPPED
        assert int(fail(state).run_state) == RunState.STOPPED
        _, outcome = step(state)
        assert outcome_of(outcome) == StepOutcome.IDLE

    def test_errored_is_terminal(self):
        state = fail(rom_state([0x6005]))

        assert int(state.run_state) == RunState.ERRORED
        assert int(resume(state).run_state) == RunState.ERRORED
        assert int(halt(state).run_state) == RunState.ERRORED

    def test_halt_from_pause(self):
        state = halt(pause(rom_state([0x6005])))
        assert int(state.run_state) == RunState.STOPPED


class TestRunN:
    """Compiled multi-step loop."""

    def test_run_n_instruction(self):
        state = rom_state([0x7001, 0x1200])

        state, outcomes = run_n_instruction(state, 10)

        assert outcomes.shape == (10,)
        assert state.V[0] == 5
        assert jnp.all(outcomes == int(StepOutcome.EXECUTED))

    def test_run_n_stops_on_halt(self):
        state = rom_state([0x2200])

        state, outcomes = run_n_instruction(state, 20)

        assert int(outcomes[16]) == StepOutcome.HALTED
        assert jnp.all(outcomes[17:] == int(StepOutcome.IDLE))
        assert int(state.run_state) == RunState.STOPPED
