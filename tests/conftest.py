"""Test configuration and fixtures for CHIP-8 machine tests."""

import pytest
import jax.numpy as jnp
from chipvm import create_state, Machine
from chipvm.logging import ConsoleLogger


@pytest.fixture
def fresh_state():
    """Provide a fresh machine state for each test."""
    return create_state()


@pytest.fixture
def quiet_logger():
    return ConsoleLogger(log_level="CRITICAL", use_colors=False)


@pytest.fixture
def machine(quiet_logger):
    """Machine recording every frame and tone it emits."""
    frames = []
    tones = []
    m = Machine(draw=frames.append, beep=tones.append, logger=quiet_logger)
    m.frames = frames
    m.tones = tones
    return m


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def set_registers(state, **registers):
    """Helper setting registers by name, e.g. set_registers(state, V1=0x10, VF=1)."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)


def program(*words):
    """Assemble 16-bit instruction words (or raw byte lists) into a program image."""
    image = bytearray()
    for word in words:
        if isinstance(word, (bytes, bytearray, list)):
            image.extend(word)
        else:
            image.extend(word.to_bytes(2, "big"))
    return bytes(image)
