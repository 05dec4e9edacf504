"""CHIP-8 display operations."""

import jax.numpy as jnp
from octavm.state import EmulatorState, with_fault_if
from octavm.decode import DecodedInstruction
from octavm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, MEMORY_SIZE, FLAG_REGISTER, Fault

# Pre-computed coordinate grids for display operations, indexed [y, x]
yy, xx = jnp.meshgrid(jnp.arange(SCREEN_HEIGHT), jnp.arange(SCREEN_WIDTH), indexing='ij')


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    The anchor wraps around the screen, the sprite itself is clipped at the
    right and bottom edges. Rows that would be read past the end of memory
    are skipped and reported.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT
    index = jnp.astype(state.I, jnp.int32)

    row_offset = yy - sprite_y
    col_offset = xx - sprite_x
    addresses = index + row_offset
    in_sprite = (col_offset >= 0) & (col_offset < 8) & (row_offset >= 0) & (row_offset < instruction.n)
    readable = addresses < MEMORY_SIZE

    sprite_bytes = state.memory[jnp.clip(addresses, 0, MEMORY_SIZE - 1)]
    bits = (sprite_bytes >> (7 - jnp.clip(col_offset, 0, 7))) & 1
    sprite = (bits == 1) & in_sprite & readable

    collision = jnp.any(state.display & sprite)
    state = state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )
    return with_fault_if(state, index + instruction.n > MEMORY_SIZE, Fault.MEMORY_OUT_OF_BOUNDS)
