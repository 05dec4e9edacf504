"""CHIP-8 ALU operations (8xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from octavm.constants import FLAG_REGISTER, Fault
from octavm.state import EmulatorState, with_fault
from octavm.decode import DecodedInstruction


def _no_flag() -> jnp.ndarray:
    return jnp.zeros((), dtype=jnp.uint8)


def alu_set(vx: int, vy: int) -> tuple[int, int]:
    """8XY0 - Set: VX = VY."""
    return vy, _no_flag()


def alu_or(vx: int, vy: int) -> tuple[int, int]:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, _no_flag()


def alu_and(vx: int, vy: int) -> tuple[int, int]:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, _no_flag()


def alu_xor(vx: int, vy: int) -> tuple[int, int]:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, _no_flag()


def alu_add(vx: int, vy: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    carry = jnp.astype(result > 255, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx: int, vy: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, set borrow flag."""
    borrow_flag = jnp.astype(vx >= vy, jnp.uint8)
    result = (jnp.astype(vx, jnp.int32) - jnp.astype(vy, jnp.int32)) & 0xFF
    return jnp.astype(result, jnp.uint8), borrow_flag


def alu_shift_right(vx: int, vy: int) -> tuple[int, int]:
    """8XY6 - Shift right: VX >>= 1."""
    shifted_bit = jnp.astype(vx & 1, jnp.uint8)
    result = jnp.astype(vx >> 1, jnp.uint8)
    return result, shifted_bit


def alu_shift_left(vx: int, vy: int) -> tuple[int, int]:
    """8XYE - Shift left: VX <<= 1."""
    shifted_bit = jnp.astype((vx >> 7) & 1, jnp.uint8)
    result = (jnp.astype(vx, jnp.int32) << 1) & 0xFF
    return jnp.astype(result, jnp.uint8), shifted_bit


def alu_sub_yx(vx: int, vy: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, set borrow flag."""
    borrow_flag = jnp.astype(vy >= vx, jnp.uint8)
    result = (jnp.astype(vy, jnp.int32) - jnp.astype(vx, jnp.int32)) & 0xFF
    return jnp.astype(result, jnp.uint8), borrow_flag


# Low nibble -> index into the operation table, -1 for undefined selectors.
ALU_SELECTORS = (0, 1, 2, 3, 4, 5, 6, 7, -1, -1, -1, -1, -1, -1, 8, -1)
# Table entries from here on write VF; the logical ones leave it alone.
FIRST_FLAG_OPERATION = 4


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher."""
    vx = state.V[instruction.x]
    vy = state.V[instruction.y]

    def _alu_shift_left(vx: int, vy: int) -> tuple[int, int]:
        if state.shift_quirk:
            vx = vy
        return alu_shift_left(vx, vy)

    def _alu_shift_right(vx: int, vy: int) -> tuple[int, int]:
        if state.shift_quirk:
            vx = vy
        return alu_shift_right(vx, vy)

    selector = jnp.array(ALU_SELECTORS, dtype=jnp.int32)[instruction.n]

    def _apply(state: EmulatorState) -> EmulatorState:
        result, vf = jax.lax.switch(
            selector,
            [alu_set, alu_or, alu_and, alu_xor, alu_add,
             alu_sub_xy, _alu_shift_right, alu_sub_yx, _alu_shift_left],
            vx, vy
        )
        new_V = state.V.at[instruction.x].set(result)
        # VF is written after VX, so a flag-producing op targeting VF keeps the flag
        vf = jnp.where(selector >= FIRST_FLAG_OPERATION, vf, new_V[FLAG_REGISTER])
        new_V = new_V.at[FLAG_REGISTER].set(vf)
        return state.replace(V=new_V)

    return jax.lax.cond(
        selector >= 0,
        _apply,
        lambda state: with_fault(state, Fault.UNKNOWN_OPCODE),
        state
    )
