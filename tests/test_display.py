"""Tests for display operations (DXYN) and the deferred clear."""

import jax.numpy as jnp
from chipvm import execute, tick
from conftest import setup_sprite_in_memory


def _prepare(state, sprite, x, y, address=0x300):
    state = setup_sprite_in_memory(state, address, sprite)
    state = execute(state, 0x6000 | x)  # V0 = x
    state = execute(state, 0x6100 | y)  # V1 = y
    state = execute(state, 0xA000 | address)
    return tick(state)  # acknowledge the power-on redraw


class TestBasicSprites:
    """Test basic sprite drawing."""

    def test_basic_sprite_draw(self, fresh_state):
        """Test basic sprite drawing without collision."""
        state = _prepare(fresh_state, [0xC0, 0xC0], 10, 5)

        state = execute(state, 0xD012)

        assert state.display[10, 5]
        assert state.display[11, 5]
        assert state.display[10, 6]
        assert state.display[11, 6]
        assert not state.display[12, 5]
        assert state.V[15] == 0
        assert state.needs_redraw

    def test_different_sprite_heights(self, fresh_state):
        """Only N rows are drawn."""
        state = _prepare(fresh_state, [0x80, 0x40, 0x20, 0x10, 0x08], 10, 8)

        state = execute(state, 0xD013)

        assert state.display[10, 8]
        assert state.display[11, 9]
        assert state.display[12, 10]
        assert not state.display[13, 11]

    def test_font_glyph_draw(self, fresh_state):
        """FX29 + DXY5 draws the built-in glyph for 0."""
        state = execute(fresh_state, 0x6200)  # V2 = 0
        state = execute(state, 0xF229)  # I = glyph 0
        state = execute(state, 0xD015)

        # "0" is F0 90 90 90 F0
        assert all(bool(state.display[x, 0]) for x in range(4))
        assert state.display[0, 1] and state.display[3, 1] and not state.display[1, 1]

    def test_zero_height_draws_nothing(self, fresh_state):
        state = _prepare(fresh_state, [0xFF], 0, 0)

        state = execute(state, 0xD010)

        assert jnp.sum(state.display) == 0
        assert state.V[15] == 0
        assert not state.needs_redraw


class TestDeferredClear:
    """Pixels XORed off are only cleared by the next draw call."""

    def test_collision_marks_pending_clear(self, fresh_state):
        state = _prepare(fresh_state, [0x80], 20, 10)

        state = execute(state, 0xD011)
        assert state.display[20, 10]
        assert state.V[15] == 0
        state = tick(state)

        state = execute(state, 0xD011)
        assert state.V[15] == 1  # Collision detected
        assert state.display[20, 10]  # Still lit until the next draw
        assert state.pending_clear[20, 10]
        assert not state.needs_redraw

    def test_next_draw_commits_clear(self, fresh_state):
        state = _prepare(fresh_state, [0x80], 0, 0)
        state = execute(state, 0xD011)
        state = execute(state, 0xD011)
        state = tick(state)

        state = execute(state, 0x600A)  # V0 = 10, draw somewhere else
        state = execute(state, 0xD011)

        assert not state.display[0, 0]
        assert not state.pending_clear[0, 0]
        assert state.display[10, 0]
        assert state.V[15] == 0
        assert state.needs_redraw

    def test_redraw_at_same_position_never_shows_gap(self, fresh_state):
        """Erase then redraw in place: the commit and the redraw happen in one call."""
        state = _prepare(fresh_state, [0x80], 0, 0)

        state = execute(state, 0xD011)  # on
        state = execute(state, 0xD011)  # erase (deferred)
        state = tick(state)
        state = execute(state, 0xD011)  # commit erase, draw again

        assert state.display[0, 0]
        assert state.V[15] == 0
        assert state.needs_redraw

    def test_xor_behavior(self, fresh_state):
        """Drawing twice then committing erases the whole sprite."""
        state = _prepare(fresh_state, [0xF0], 8, 15)

        state = execute(state, 0xD011)
        state = execute(state, 0xD011)
        assert state.V[15] == 1
        state = execute(state, 0xD010)  # zero-height draw just commits

        assert jnp.sum(state.display) == 0

    def test_clear_screen_keeps_pending_grid(self, fresh_state):
        """00E0 clears lit pixels immediately and flags a redraw."""
        state = _prepare(fresh_state, [0x80], 0, 0)
        state = execute(state, 0xD011)
        state = tick(state)

        state = execute(state, 0x00E0)

        assert jnp.sum(state.display) == 0
        assert state.needs_redraw


class TestScreenWrapping:
    """Sprites wrap around the screen edges instead of clipping."""

    def test_horizontal_wrap(self, fresh_state):
        state = _prepare(fresh_state, [0xFF], 60, 0)

        state = execute(state, 0xD011)

        for x in (60, 61, 62, 63, 0, 1, 2, 3):
            assert state.display[x, 0], f"column {x} not drawn"
        assert not state.display[4, 0]
        assert jnp.sum(state.display) == 8

    def test_vertical_wrap(self, fresh_state):
        state = _prepare(fresh_state, [0x80, 0x80, 0x80], 0, 30)

        state = execute(state, 0xD013)

        assert state.display[0, 30]
        assert state.display[0, 31]
        assert state.display[0, 0]

    def test_coordinate_wrapping(self, fresh_state):
        """Start coordinates beyond the screen wrap too."""
        state = _prepare(fresh_state, [0x80], 70, 37)  # 70 % 64 = 6, 37 % 32 = 5

        state = execute(state, 0xD011)

        assert state.display[6, 5]

    def test_vf_cleared_without_collision(self, fresh_state):
        state = _prepare(fresh_state, [0x80], 5, 5)
        state = execute(state, 0x6F01)  # VF = 1

        state = execute(state, 0xD011)

        assert state.V[15] == 0
