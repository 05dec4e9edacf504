"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from octavm.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, MEMORY_SIZE, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS, RunState, Fault,
)


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    The display is stored row-major as ``display[y, x]`` so that a flattened
    view gives cell ``y * 64 + x``. Quirk flags are static: changing one
    produces a differently compiled step function.
    """
    rng: jax.Array
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=jnp.bool_))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    run_state: jnp.ndarray = field(default_factory=lambda: jnp.asarray(int(RunState.RUNNING), dtype=jnp.uint8))
    fault: jnp.ndarray = field(default_factory=lambda: jnp.asarray(int(Fault.NONE), dtype=jnp.uint8))
    shift_quirk: bool = field(pytree_node=False, default=False)
    load_store_quirk: bool = field(pytree_node=False, default=False)
    jump_quirk: bool = field(pytree_node=False, default=False)


def create_state(
    rng: jax.Array = jax.random.PRNGKey(0),
    shift_quirk: bool = False,
    load_store_quirk: bool = False,
    jump_quirk: bool = False,
) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    state = EmulatorState(
        rng,
        shift_quirk=shift_quirk,
        load_store_quirk=load_store_quirk,
        jump_quirk=jump_quirk,
    )
    font = jnp.array(FONT_DATA, dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(font))


def with_fault_if(state: EmulatorState, condition, fault: Fault) -> EmulatorState:
    """Record ``fault`` when ``condition`` holds, keep the current fault otherwise."""
    code = jnp.where(condition, jnp.uint8(int(fault)), state.fault)
    return state.replace(fault=jnp.astype(code, jnp.uint8))


def with_fault(state: EmulatorState, fault: Fault) -> EmulatorState:
    return state.replace(fault=jnp.asarray(int(fault), dtype=jnp.uint8))


def halt(state: EmulatorState, fault: Fault = Fault.NONE) -> EmulatorState:
    """Move a running machine to STOPPED, recording why."""
    stopped = transition(state, RunState.STOPPED, allowed_from=(RunState.RUNNING, RunState.PAUSED))
    return with_fault_if(stopped, fault != Fault.NONE, fault)


def transition(state: EmulatorState, target: RunState, allowed_from) -> EmulatorState:
    """Set ``run_state`` to ``target`` if the current state is in ``allowed_from``."""
    allowed = jnp.isin(state.run_state, jnp.array([int(s) for s in allowed_from], dtype=jnp.uint8))
    new_state = jnp.where(allowed, jnp.uint8(int(target)), state.run_state)
    return state.replace(run_state=jnp.astype(new_state, jnp.uint8))


def pause(state: EmulatorState) -> EmulatorState:
    return transition(state, RunState.PAUSED, allowed_from=(RunState.RUNNING,))


def resume(state: EmulatorState) -> EmulatorState:
    return transition(state, RunState.RUNNING, allowed_from=(RunState.PAUSED,))


def fail(state: EmulatorState) -> EmulatorState:
    """Mark the machine ERRORED after a host-side failure."""
    return transition(state, RunState.ERRORED, allowed_from=(RunState.RUNNING, RunState.PAUSED))


def is_running(state: EmulatorState) -> bool:
    return int(state.run_state) == RunState.RUNNING
