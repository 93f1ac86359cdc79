"""CHIP-8 display operations.

Erasing is deferred by one draw call: a pixel that XORs to zero is only
marked in ``pending_clear`` and actually switched off at the start of the
next DXYN. Games that erase and redraw a sprite every frame therefore never
present a frame with the sprite missing.
"""

import jax.numpy as jnp
from chipvm.state import MachineState
from chipvm.decode import DecodedInstruction
from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, FLAG_REGISTER

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def commit_pending_clears(state: MachineState) -> MachineState:
    """Switch off every pixel marked by the previous draw call."""
    erased_visible = jnp.any(state.pending_clear & state.display)
    return state.replace(
        display=state.display & ~state.pending_clear,
        pending_clear=jnp.zeros_like(state.pending_clear),
        needs_redraw=state.needs_redraw | erased_visible,
    )


def sprite_mask(state: MachineState, instruction: DecodedInstruction) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Return (area, bits) grids for the sprite addressed by I at (VX, VY).

    ``area`` marks the 8xN cells the sprite covers after wrapping around the
    screen edges, ``bits`` the lit sprite pixels within it.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32)
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32)

    col_offset = (xx - sprite_x) % SCREEN_WIDTH
    row_offset = (yy - sprite_y) % SCREEN_HEIGHT
    area = (col_offset < SPRITE_WIDTH) & (row_offset < instruction.n)

    sprite_rows = state.memory[jnp.astype(state.I, jnp.int32) + row_offset]
    shift = jnp.where(area, SPRITE_WIDTH - 1 - col_offset, 0)
    bits = ((jnp.astype(sprite_rows, jnp.int32) >> shift) & 1).astype(jnp.bool_) & area
    return area, bits


def execute_display(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """DXYN - Draw sprite at (VX, VY) with height N, VF = collision."""
    state = commit_pending_clears(state)
    area, bits = sprite_mask(state, instruction)

    old = state.display
    new = old ^ bits

    collision = jnp.any(old & bits)
    switched_on = jnp.any(bits & ~old)

    return state.replace(
        display=old | (area & new),
        pending_clear=area & ~new,
        needs_redraw=state.needs_redraw | switched_on,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8)),
    )
