"""CHIP-8 ALU operations (8xxx).

Flagged operations write VF from the original operands first and only then
compute the result, reading the registers again. With X or Y equal to F the
result therefore uses the fresh flag value, as the reference machine does.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import MachineState
from chipvm.decode import DecodedInstruction
from chipvm.constants import FLAG_REGISTER


def _set_flag(V: jnp.ndarray, condition) -> jnp.ndarray:
    return V.at[FLAG_REGISTER].set(jnp.astype(condition, jnp.uint8))


def alu_set(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY0 - Set: VX = VY."""
    return V.at[x].set(V[y])


def alu_or(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY1 - Binary OR: VX |= VY."""
    return V.at[x].set(V[x] | V[y])


def alu_and(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY2 - Binary AND: VX &= VY."""
    return V.at[x].set(V[x] & V[y])


def alu_xor(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY3 - Logical XOR: VX ^= VY."""
    return V.at[x].set(V[x] ^ V[y])


def alu_add(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY4 - Add: VX += VY, VF = carry."""
    total = jnp.astype(V[x], jnp.int32) + jnp.astype(V[y], jnp.int32)
    V = _set_flag(V, total > 0xFF)
    return V.at[x].set(V[x] + V[y])


def alu_sub_xy(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY5 - Subtract: VX -= VY, VF = 1 when VX > VY."""
    V = _set_flag(V, V[x] > V[y])
    return V.at[x].set(V[x] - V[y])


def alu_shift_right(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY6 - Shift right: VX //= 2, VF = bit shifted out."""
    V = _set_flag(V, V[x] & 1)
    return V.at[x].set(V[x] // 2)


def alu_sub_yx(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XY7 - Subtract: VY = VY - VX, VF = 1 when VY > VX. Writes Y, not X."""
    V = _set_flag(V, V[y] > V[x])
    return V.at[y].set(V[y] - V[x])


def alu_shift_left(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """8XYE - Shift left: VX *= 2, VF = old bit 7."""
    V = _set_flag(V, (V[x] & 0x80) != 0)
    return V.at[x].set(V[x] * 2)


def alu_undefined(V: jnp.ndarray, x, y) -> jnp.ndarray:
    """Undefined ALU operation, ignored."""
    return V


ALU_TABLE = [
    alu_set, alu_or, alu_and, alu_xor,
    alu_add, alu_sub_xy, alu_shift_right, alu_sub_yx,
    alu_undefined, alu_undefined, alu_undefined, alu_undefined,
    alu_undefined, alu_undefined, alu_shift_left, alu_undefined,
]


def execute_alu_operation(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """8XYN - ALU operations dispatcher."""
    new_V = jax.lax.switch(instruction.n, ALU_TABLE, state.V, instruction.x, instruction.y)
    return state.replace(V=new_V)
