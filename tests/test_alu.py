"""Tests for ALU operations (8xxx)."""

import jax
import jax.numpy as jnp
import pytest
from chipvm import execute
from chipvm.instructions.alu import alu_add
from conftest import set_registers


class TestBasicALU:
    """Test basic ALU operations."""

    def test_alu_set_basic(self, fresh_state):
        """8XY0 - Set VX = VY."""
        state = set_registers(fresh_state, V1=0x42, V2=0x99)

        state = execute(state, 0x8120)  # V1 = V2

        assert state.V[1] == 0x99
        assert state.V[2] == 0x99

    def test_alu_or_basic(self, fresh_state):
        """8XY1 - OR operation."""
        state = set_registers(fresh_state, V1=0xF0, V2=0x0F)

        state = execute(state, 0x8121)  # V1 |= V2

        assert state.V[1] == 0xFF
        assert state.V[15] == 0

    def test_alu_and_basic(self, fresh_state):
        """8XY2 - AND operation."""
        state = set_registers(fresh_state, V1=0xF0, V2=0xF1)

        state = execute(state, 0x8122)  # V1 &= V2

        assert state.V[1] == 0xF0

    def test_alu_xor_basic(self, fresh_state):
        """8XY3 - XOR operation."""
        state = set_registers(fresh_state, V1=0xFF, V2=0xF0)

        state = execute(state, 0x8123)  # V1 ^= V2

        assert state.V[1] == 0x0F

    def test_logic_ops_leave_vf_alone(self, fresh_state):
        """8XY0-8XY3 never touch VF."""
        for op in (0x0, 0x1, 0x2, 0x3):
            state = set_registers(fresh_state, V1=0x0F, V2=0xF0, VF=0x07)
            state = execute(state, 0x8120 | op)
            assert state.V[15] == 0x07, f"8XY{op:X} changed VF"


class TestALUArithmetic:
    """Test arithmetic ALU operations."""

    def test_alu_add_no_carry(self, fresh_state):
        """8XY4 - Add without carry."""
        state = set_registers(fresh_state, V1=0x10, V2=0x20)

        state = execute(state, 0x8124)  # V1 += V2

        assert state.V[1] == 0x30
        assert state.V[15] == 0

    def test_alu_add_with_carry(self, fresh_state):
        """8XY4 - Add with carry."""
        state = set_registers(fresh_state, V1=0xFF, V2=0x01)

        state = execute(state, 0x8124)  # V1 += V2

        assert state.V[1] == 0x00  # 256 wraps to 0
        assert state.V[15] == 1  # Carry set

    def test_alu_add_carry_for_all_byte_pairs(self):
        """8XY4 - Carry iff a + b > 255 and VX = (a + b) mod 256, for every pair."""
        a, b = jnp.meshgrid(jnp.arange(256), jnp.arange(256), indexing='ij')
        a, b = a.ravel(), b.ravel()
        registers = jnp.zeros((a.size, 16), dtype=jnp.uint8)
        registers = registers.at[:, 1].set(a.astype(jnp.uint8)).at[:, 2].set(b.astype(jnp.uint8))

        result = jax.vmap(lambda V: alu_add(V, 1, 2))(registers)

        assert jnp.all(result[:, 1] == (a + b) % 256)
        assert jnp.all(result[:, 15] == (a + b > 255))

    def test_alu_sub_xy_no_borrow(self, fresh_state):
        """8XY5 - Subtract VX - VY, no borrow."""
        state = set_registers(fresh_state, V1=0x30, V2=0x10)

        state = execute(state, 0x8125)  # V1 -= V2

        assert state.V[1] == 0x20
        assert state.V[15] == 1  # VX > VY

    def test_alu_sub_xy_with_borrow(self, fresh_state):
        """8XY5 - Subtract VX - VY, with borrow."""
        state = set_registers(fresh_state, V3=0x10, V4=0x30)

        state = execute(state, 0x8345)  # V3 -= V4

        assert state.V[3] == 0xE0  # 16 - 48 = -32 → 224
        assert state.V[15] == 0

    def test_alu_sub_xy_equal_operands(self, fresh_state):
        """8XY5 - Equal operands count as a borrow (strictly greater required)."""
        state = set_registers(fresh_state, V1=0x42, V2=0x42)

        state = execute(state, 0x8125)

        assert state.V[1] == 0
        assert state.V[15] == 0

    def test_alu_sub_yx_writes_y(self, fresh_state):
        """8XY7 - VY = VY - VX; the result lands in Y, X is untouched."""
        state = set_registers(fresh_state, V1=0x10, V2=0x30)

        state = execute(state, 0x8127)

        assert state.V[2] == 0x20  # 48 - 16 = 32
        assert state.V[1] == 0x10
        assert state.V[15] == 1  # VY > VX

    def test_alu_sub_yx_with_borrow(self, fresh_state):
        """8XY7 - Borrow when VY < VX."""
        state = set_registers(fresh_state, V1=0x30, V2=0x10)

        state = execute(state, 0x8127)

        assert state.V[2] == 0xE0
        assert state.V[15] == 0


class TestALUShifts:
    """Test shift operations."""

    def test_shift_right_odd(self, fresh_state):
        """8XY6 - 0x93 shifts to 0x49 with the low bit in VF."""
        state = set_registers(fresh_state, V1=0x93, V2=0xFF)  # V2 ignored

        state = execute(state, 0x8126)

        assert state.V[1] == 0x49
        assert state.V[15] == 1
        assert state.V[2] == 0xFF

    def test_shift_right_even(self, fresh_state):
        """8XY6 - Shift right, even number."""
        state = set_registers(fresh_state, V3=0x04)

        state = execute(state, 0x8346)

        assert state.V[3] == 0x02
        assert state.V[15] == 0

    def test_shift_left_overflow(self, fresh_state):
        """8XYE - Shift left, with overflow."""
        state = set_registers(fresh_state, V3=0x81, V4=0xFF)  # V4 ignored

        state = execute(state, 0x834E)

        assert state.V[3] == 0x02  # 129 * 2 = 258 → 2
        assert state.V[15] == 1  # Bit 7 was set

    def test_shift_left_low_bits_do_not_set_flag(self, fresh_state):
        """8XYE - Only bit 7 feeds VF."""
        state = set_registers(fresh_state, V3=0x0F)

        state = execute(state, 0x834E)

        assert state.V[3] == 0x1E
        assert state.V[15] == 0


class TestALUFlagOrdering:
    """VF is written before the result is computed."""

    def test_add_into_vf(self, fresh_state):
        """8F14 - The sum uses the freshly written carry as VF's value."""
        state = set_registers(fresh_state, VF=0xFF, V1=0x02)

        state = execute(state, 0x8F14)

        # carry = 1 (0xFF + 0x02 > 0xFF), then VF = 1 + 2
        assert state.V[15] == 3

    def test_add_from_vf(self, fresh_state):
        """81F4 - VF as source is overwritten by the flag before it is read."""
        state = set_registers(fresh_state, VF=0x42, V1=0x10)

        state = execute(state, 0x81F4)

        assert state.V[15] == 0
        assert state.V[1] == 0x10

    def test_shift_vf_itself(self, fresh_state):
        """8FF6 - Shifting VF shifts the flag value."""
        state = set_registers(fresh_state, VF=0x03)

        state = execute(state, 0x8FF6)

        # flag = 1, then VF = 1 // 2
        assert state.V[15] == 0


class TestALUEdgeCases:
    """Test edge cases and comprehensive scenarios."""

    @pytest.mark.parametrize("op", [0x8, 0x9, 0xA, 0xB, 0xC, 0xD, 0xF])
    def test_alu_undefined_operations(self, fresh_state, op):
        """Undefined 8XYN operations change nothing."""
        state = set_registers(fresh_state, V1=0x42, V2=0x99, VF=0x07)

        state = execute(state, 0x8120 | op)

        assert state.V[1] == 0x42, f"Undefined op {op:X} changed VX"
        assert state.V[2] == 0x99
        assert state.V[15] == 0x07, f"Undefined op {op:X} changed VF"

    def test_alu_self_operations(self, fresh_state):
        """Test operations where VX and VY are the same register."""
        state = set_registers(fresh_state, V5=0xAA)

        state = execute(state, 0x8553)  # V5 ^= V5
        assert state.V[5] == 0x00, "Self XOR should result in 0"

        state = set_registers(state, V5=0x80)
        state = execute(state, 0x8554)  # V5 += V5
        assert state.V[5] == 0x00, "Self ADD should wrap on overflow"
        assert state.V[15] == 1, "Self ADD should set carry flag"
