"""Main CHIP-8 emulator execution engine."""

import os
from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from octavm.state import EmulatorState, halt
from octavm.decode import decode
from octavm.constants import PROGRAM_START, MEMORY_SIZE, MAX_ROM_SIZE, RunState, Fault, StepOutcome
from octavm.instructions.system import execute_system_instruction
from octavm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_jump_with_offset_quirk, execute_key_instruction
)
from octavm.instructions.alu import execute_alu_operation
from octavm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from octavm.instructions.display import execute_display
from octavm.instructions.misc import execute_misc_instruction


class RomLoadError(ValueError):
    """ROM image could not be loaded into memory."""


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single, already fetched CHIP-8 instruction."""
    decoded_instruction = decode(instruction)

    return jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset_quirk if state.jump_quirk else execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_key_instruction,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory."""
    instruction = _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])
    return state.replace(pc=state.pc + 2), instruction


def _outcome(value: StepOutcome) -> jnp.ndarray:
    return jnp.asarray(int(value), dtype=jnp.uint8)


def _cycle(state: EmulatorState) -> tuple[EmulatorState, jnp.ndarray]:
    state, instruction = fetch(state)
    state = execute(state, instruction)

    waiting = ((instruction & 0xF0FF) == 0xF00A) & ~jnp.any(state.keypad)
    halted = state.run_state != int(RunState.RUNNING)
    outcome = jnp.where(
        halted,
        _outcome(StepOutcome.HALTED),
        jnp.where(waiting, _outcome(StepOutcome.WAITING), _outcome(StepOutcome.EXECUTED))
    )
    return state, outcome


def _guarded_cycle(state: EmulatorState) -> tuple[EmulatorState, jnp.ndarray]:
    in_bounds = jnp.astype(state.pc, jnp.int32) + 1 < MEMORY_SIZE
    return jax.lax.cond(
        in_bounds,
        _cycle,
        lambda state: (halt(state, Fault.PC_OUT_OF_BOUNDS), _outcome(StepOutcome.HALTED)),
        state
    )


@jax.jit
def step(state: EmulatorState) -> tuple[EmulatorState, jnp.ndarray]:
    """Fetch, decode and execute one instruction if the machine is running.

    Returns the new state and a ``StepOutcome`` code. ``state.fault`` holds
    the diagnostic raised by this step, if any.
    """
    state = state.replace(fault=jnp.zeros((), dtype=jnp.uint8))
    return jax.lax.cond(
        state.run_state == int(RunState.RUNNING),
        _guarded_cycle,
        lambda state: (state, _outcome(StepOutcome.IDLE)),
        state
    )


def run_instruction(state, _):
    state, outcome = step(state)
    return state, outcome


@partial(jax.jit, static_argnums=1)
def run_n_instruction(state: EmulatorState, n: int) -> tuple[EmulatorState, jnp.ndarray]:
    """Run ``n`` steps in one compiled loop, returning the per-step outcomes.

    Faults raised by intermediate steps are not kept; use ``Machine`` when
    diagnostics matter.
    """
    return jax.lax.scan(run_instruction, state, length=n)


def load_rom_bytes(state: EmulatorState, rom_data: bytes) -> EmulatorState:
    """Copy a ROM image into memory starting at 0x200."""
    if len(rom_data) == 0:
        raise RomLoadError("ROM image is empty")
    if len(rom_data) > MAX_ROM_SIZE:
        raise RomLoadError(
            f"ROM image is {len(rom_data)} bytes, at most {MAX_ROM_SIZE} fit in memory"
        )
    rom_array = jnp.array(list(rom_data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_data)].set(rom_array)
    return state.replace(memory=new_memory)


def read_rom(filename: str | os.PathLike) -> bytes:
    """Read a ROM file, reading at most one byte more than fits in memory."""
    try:
        with open(filename, 'rb') as f:
            return f.read(MAX_ROM_SIZE + 1)
    except OSError as exc:
        raise RomLoadError(f"Cannot read ROM file {filename}: {exc}") from exc


def load_rom(state: EmulatorState, filename: str | os.PathLike) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    return load_rom_bytes(state, read_rom(filename))
