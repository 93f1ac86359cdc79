"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import MachineState
from chipvm.decode import DecodedInstruction
from chipvm.stack import pop


def no_op(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """No operation."""
    return state


def execute_clear_screen(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """00E0 - Clear display.

    Raises the redraw flag when any pixel was lit, so the blank screen reaches
    the host on the next tick instead of waiting for the next DXYN.
    """
    return state.replace(
        display=jnp.zeros_like(state.display),
        needs_redraw=state.needs_redraw | jnp.any(state.display),
    )


def execute_return(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """00EE - Return from subroutine."""
    stack, address = pop(state.stack)
    return state.replace(stack=stack, pc=address)


def execute_system_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Dispatch system instructions on NN; other 0NNN words are ignored."""
    index = jnp.where(instruction.nn == 0xE0, 1, jnp.where(instruction.nn == 0xEE, 2, 0))
    return jax.lax.switch(
        index,
        [no_op, execute_clear_screen, execute_return],
        state, instruction
    )
