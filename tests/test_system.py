"""Tests for system instructions (0xxx)."""

import jax.numpy as jnp
from octavm import execute, Fault, RunState


def test_execute_clear_screen(fresh_state):
    """00E0 - Clear display."""
    state = fresh_state.replace(display=fresh_state.display.at[0, 0].set(True))

    state = execute(state, 0x00E0)

    assert jnp.sum(state.display) == 0


def test_execute_call_and_return(fresh_state):
    """2NNN and 00EE together."""
    state = fresh_state
    initial_pc = state.pc

    state = execute(state, 0x2300)
    assert state.pc == 0x300
    assert state.stack.data[state.stack.pointer - 1] == initial_pc

    state = execute(state, 0x00EE)
    assert state.pc == initial_pc


def test_return_with_empty_stack(fresh_state):
    """00EE on an empty stack is reported and otherwise ignored."""
    state = execute(fresh_state, 0x00EE)

    assert state.pc == fresh_state.pc
    assert state.stack.pointer == 0
    assert int(state.fault) == Fault.STACK_UNDERFLOW
    assert int(state.run_state) == RunState.RUNNING


def test_machine_code_routine_is_unknown(fresh_state):
    """0NNN is not executed."""
    state = execute(fresh_state, 0x0123)

    assert state.pc == fresh_state.pc
    assert int(state.fault) == Fault.UNKNOWN_OPCODE


def test_unknown_key_selector(fresh_state):
    state = execute(fresh_state, 0xE0FF)

    assert state.pc == fresh_state.pc
    assert int(state.fault) == Fault.UNKNOWN_OPCODE
