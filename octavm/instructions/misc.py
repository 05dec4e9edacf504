"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from octavm.state import EmulatorState, with_fault_if
from octavm.decode import DecodedInstruction
from octavm.constants import (
    FONT_START, FONT_GLYPH_SIZE, INDEX_MASK, MEMORY_SIZE, NUM_REGISTERS, Fault,
)
from octavm.instructions.system import execute_unknown


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register (16-bit wrap, VF untouched)."""
    new_i = (jnp.astype(state.I, jnp.int32) + jnp.astype(state.V[instruction.x], jnp.int32)) & INDEX_MASK
    return state.replace(I=jnp.astype(new_i, jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    Without a pressed key the pc is moved back onto this instruction so the
    next step executes it again.
    """
    def key_pressed_action(state):
        pressed_key = jnp.astype(jnp.argmax(state.keypad), jnp.uint8)
        return state.replace(V=state.V.at[instruction.x].set(pressed_key))

    def wait_action(state):
        return state.replace(pc=state.pc - 2)

    return jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.int32) * FONT_GLYPH_SIZE
    return state.replace(I=jnp.astype(font_address, jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + jnp.astype(state.I, jnp.int32)
    new_memory = state.memory.at[indices].set(digits, mode="drop")
    state = state.replace(memory=new_memory)
    return with_fault_if(state, jnp.any(indices >= MEMORY_SIZE), Fault.MEMORY_OUT_OF_BOUNDS)


def _register_block(state: EmulatorState, instruction: DecodedInstruction):
    """Mask of V0..VX and the memory addresses they map to."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    return register_mask, base_indices


def _advance_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    if not state.load_store_quirk:
        return state
    new_i = (jnp.astype(state.I, jnp.int32) + instruction.x + 1) & INDEX_MASK
    return state.replace(I=jnp.astype(new_i, jnp.uint16))


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask, base_indices = _register_block(state, instruction)
    in_bounds = base_indices < MEMORY_SIZE
    current_memory_values = state.memory[jnp.clip(base_indices, 0, MEMORY_SIZE - 1)]
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[base_indices].set(new_memory_values, mode="drop")

    state = state.replace(memory=new_memory)
    state = with_fault_if(state, jnp.any(register_mask & ~in_bounds), Fault.MEMORY_OUT_OF_BOUNDS)
    return _advance_index(state, instruction)


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask, base_indices = _register_block(state, instruction)
    in_bounds = base_indices < MEMORY_SIZE
    memory_values = state.memory[jnp.clip(base_indices, 0, MEMORY_SIZE - 1)]
    new_V = jnp.where(register_mask & in_bounds, memory_values, state.V)

    state = state.replace(V=new_V)
    state = with_fault_if(state, jnp.any(register_mask & ~in_bounds), Fault.MEMORY_OUT_OF_BOUNDS)
    return _advance_index(state, instruction)


def execute_misc_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch misc instructions using arithmetic switch."""
    is_0x07 = instruction.kk == 0x07
    is_0x0A = instruction.kk == 0x0A
    is_0x15 = instruction.kk == 0x15
    is_0x18 = instruction.kk == 0x18
    is_0x1E = instruction.kk == 0x1E
    is_0x29 = instruction.kk == 0x29
    is_0x33 = instruction.kk == 0x33
    is_0x55 = instruction.kk == 0x55
    is_0x65 = instruction.kk == 0x65

    switch_index = (
        is_0x07 * 0 +
        is_0x0A * 1 +
        is_0x15 * 2 +
        is_0x18 * 3 +
        is_0x1E * 4 +
        is_0x29 * 5 +
        is_0x33 * 6 +
        is_0x55 * 7 +
        is_0x65 * 8 +
        (~(is_0x07 | is_0x0A | is_0x15 | is_0x18 | is_0x1E | is_0x29 | is_0x33 | is_0x55 | is_0x65)) * 9
    )

    return jax.lax.switch(
        switch_index,
        [
            execute_get_delay_timer,
            execute_wait_for_key,
            execute_set_delay_timer,
            execute_set_sound_timer,
            execute_add_to_index,
            execute_font_character,
            execute_bcd_conversion,
            execute_store_registers,
            execute_load_registers,
            execute_unknown,
        ],
        state, instruction
    )
