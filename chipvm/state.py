"""CHIP-8 machine state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chipvm.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS, NO_SOUND,
)


def _zeros(shape, dtype):
    return field(default_factory=lambda: jnp.zeros(shape, dtype=dtype))


def _scalar(value, dtype):
    return field(default_factory=lambda: jnp.asarray(value, dtype=dtype))


@dataclass(frozen=True)
class StackState:
    """Return address stack for subroutine calls."""
    data: jnp.ndarray = _zeros(STACK_SIZE, jnp.uint16)
    pointer: jnp.ndarray = _scalar(0, jnp.int32)


class MachineState(PyTreeNode):
    """Complete CHIP-8 machine state.

    The framebuffer and its pending-clear shadow are indexed ``[x, y]``.
    ``sound_request`` holds the tone duration in milliseconds asked for by the
    last FX18, or ``NO_SOUND`` once the request has been handed out.
    """
    rng: jax.Array
    memory: jnp.ndarray = _zeros(MEMORY_SIZE, jnp.uint8)
    pc: jnp.ndarray = _scalar(PROGRAM_START, jnp.uint16)
    display: jnp.ndarray = _zeros((SCREEN_WIDTH, SCREEN_HEIGHT), jnp.bool_)
    pending_clear: jnp.ndarray = _zeros((SCREEN_WIDTH, SCREEN_HEIGHT), jnp.bool_)
    needs_redraw: jnp.ndarray = _scalar(True, jnp.bool_)
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = _scalar(0, jnp.uint8)
    sound_request: jnp.ndarray = _scalar(NO_SOUND, jnp.int32)
    keypad: jnp.ndarray = _zeros(NUM_KEYS, jnp.bool_)
    V: jnp.ndarray = _zeros(NUM_REGISTERS, jnp.uint8)
    I: jnp.ndarray = _scalar(0, jnp.uint16)


def create_state(rng: jax.Array = jax.random.PRNGKey(0)) -> MachineState:
    """Create power-on machine state with the font glyphs loaded."""
    state = MachineState(rng)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))
