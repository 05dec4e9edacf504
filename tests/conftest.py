"""Test configuration and fixtures for octavm tests."""

import pytest
import jax.numpy as jnp
from octavm import create_state, load_rom_bytes


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state with every quirk off."""
    return create_state()


@pytest.fixture
def quirk_state():
    """Provide a fresh state with every quirk on."""
    return create_state(shift_quirk=True, load_store_quirk=True, jump_quirk=True)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def rom_state(words, **quirks):
    """Fresh state with the given 16-bit instruction words loaded at 0x200."""
    data = b"".join(word.to_bytes(2, "big") for word in words)
    return load_rom_bytes(create_state(**quirks), data)
