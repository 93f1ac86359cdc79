"""Main CHIP-8 execution engine.

Everything here is a pure function of ``MachineState`` and can be wrapped
in ``jax.jit``; ``chipvm.machine.Machine`` adds validation and callbacks.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import MachineState
from chipvm.decode import decode
from chipvm.constants import PROGRAM_START, MAX_PROGRAM_SIZE, NO_SOUND
from chipvm.errors import OutOfBoundsError
from chipvm.instructions.system import execute_system_instruction
from chipvm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset, execute_skip_if_key
)
from chipvm.instructions.alu import execute_alu_operation
from chipvm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipvm.instructions.display import execute_display
from chipvm.instructions.misc import execute_misc_instruction

INSTRUCTION_TABLE = [
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
    execute_jump_with_offset,
    execute_random,
    execute_display,
    execute_skip_if_key,
    execute_misc_instruction,
]


def execute(state: MachineState, instruction: int) -> MachineState:
    """Execute single CHIP-8 instruction."""
    decoded_instruction = decode(instruction)
    return jax.lax.switch(decoded_instruction.family, INSTRUCTION_TABLE, state, decoded_instruction)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: MachineState) -> tuple[MachineState, jnp.uint16]:
    """Fetch next instruction from memory and advance PC past it."""
    instruction = _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])
    return state.replace(pc=state.pc + jnp.uint16(2)), instruction


def cycle(state: MachineState) -> MachineState:
    """Fetch and execute one instruction."""
    state, instruction = fetch(state)
    return execute(state, instruction)


def tick(state: MachineState) -> MachineState:
    """60 Hz timer tick: count the delay timer down and acknowledge a redraw."""
    delay = jnp.where(state.delay_timer > 0, state.delay_timer - jnp.uint8(1), state.delay_timer)
    return state.replace(delay_timer=delay, needs_redraw=jnp.zeros((), dtype=jnp.bool_))


def clear_sound_request(state: MachineState) -> MachineState:
    """Mark the pending FX18 tone as delivered."""
    return state.replace(sound_request=jnp.asarray(NO_SOUND, dtype=jnp.int32))


def load_program(state: MachineState, program: bytes) -> MachineState:
    """Copy a program image into memory starting at 0x200."""
    if len(program) > MAX_PROGRAM_SIZE:
        raise OutOfBoundsError(
            f"Program is {len(program)} bytes, at most {MAX_PROGRAM_SIZE} fit above 0x{PROGRAM_START:03X}",
            address=PROGRAM_START,
        )
    if not program:
        return state
    program_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(program_array)
    return state.replace(memory=new_memory)


def load_program_file(filename: str) -> bytes:
    """Read a program image from disk."""
    with open(filename, 'rb') as f:
        return f.read()
