"""Stateful CHIP-8 machine.

``Machine`` owns a ``MachineState`` and drives the pure engine in
``chipvm.emulator``. Callers use ``load``, ``step``, ``tick_timers``,
``key_down`` and ``key_up``; frames and sounds come back through callbacks::

    machine = Machine(draw=show_frame, beep=play_tone)
    machine.load(program)
    while running:
        machine.step()          # as fast as the host likes
        ...
        machine.tick_timers()   # exactly 60 times per second

A rejected instruction raises a ``MachineError`` from ``step`` and leaves the
state exactly as it was before the call. Not thread safe: confine a Machine
to one thread.
"""

from typing import Callable, Optional

import jax
import numpy as np

from chipvm.constants import NUM_KEYS, NO_SOUND
from chipvm.decode import decode
from chipvm.emulator import cycle, tick, clear_sound_request, load_program
from chipvm.errors import MachineError, UnknownOpcodeError
from chipvm.logging import ConsoleLogger, log_instruction, log_machine_error
from chipvm.state import MachineState, create_state
from chipvm.validation import check_fetch, check_instruction, unknown_opcode

DrawCallback = Callable[[np.ndarray], None]
BeepCallback = Callable[[int], None]
UnknownOpcodeCallback = Callable[[UnknownOpcodeError], None]

_jit_cycle = jax.jit(cycle)
_jit_tick = jax.jit(tick)


class Machine:
    """A CHIP-8 interpreter with host callbacks.

    Args:
        draw: Receives a (64, 32) boolean framebuffer copy, indexed [x, y],
            from ``tick_timers`` whenever the screen changed.
        beep: Receives a tone duration in milliseconds after FX18 runs.
        on_unknown_opcode: Receives an ``UnknownOpcodeError`` for every
            skipped FXNN sub-code. Execution is not affected.
        seed: Seed for the CXNN random source.
        strict: Reject sprite, BCD and register block transfers reaching
            past the end of memory. Stack checks are always on.
        logger: Console logger; a default INFO logger is created if omitted.
    """

    def __init__(
        self,
        draw: Optional[DrawCallback] = None,
        beep: Optional[BeepCallback] = None,
        on_unknown_opcode: Optional[UnknownOpcodeCallback] = None,
        seed: int = 0,
        strict: bool = True,
        logger: Optional[ConsoleLogger] = None,
    ):
        self.draw = draw
        self.beep = beep
        self.on_unknown_opcode = on_unknown_opcode
        self.seed = seed
        self.strict = strict
        self.logger = logger or ConsoleLogger()
        self.program = b""
        self.instruction_count = 0
        self.state: MachineState = create_state(jax.random.PRNGKey(seed))

    def load(self, program: bytes):
        """Copy ``program`` into memory at 0x200."""
        program = bytes(program)
        self.state = load_program(self.state, program)
        self.program = program
        self.logger.info(f"Loaded {len(program)} byte program")

    def reset(self):
        """Return to power-on state and reload the last program."""
        self.state = create_state(jax.random.PRNGKey(self.seed))
        self.instruction_count = 0
        if self.program:
            self.state = load_program(self.state, self.program)
        self.logger.info("Machine reset")

    def step(self):
        """Execute exactly one instruction."""
        state = self.state
        address = int(state.pc)
        try:
            check_fetch(address)
            memory = np.asarray(state.memory)
            opcode = (int(memory[address]) << 8) | int(memory[address + 1])
            instruction = decode(opcode)
            check_instruction(state, instruction, address, strict=self.strict)
        except MachineError as error:
            log_machine_error(self.logger, error, state)
            raise

        if self.logger.is_enabled_for("DEBUG"):
            log_instruction(self.logger, address, opcode)

        skipped = unknown_opcode(instruction, address)
        if skipped is not None:
            self.logger.debug(str(skipped))
            if self.on_unknown_opcode is not None:
                self.on_unknown_opcode(skipped)

        state = _jit_cycle(state)
        self.instruction_count += 1

        duration_ms = int(state.sound_request)
        if duration_ms != NO_SOUND:
            state = clear_sound_request(state)
            if self.beep is not None:
                self.beep(duration_ms)
        self.state = state

    def tick_timers(self):
        """Advance the delay timer and push the framebuffer if it changed."""
        redraw = bool(self.state.needs_redraw)
        self.state = _jit_tick(self.state)
        if redraw and self.draw is not None:
            self.draw(self.framebuffer())

    def key_down(self, code: int):
        self._set_key(code, True)

    def key_up(self, code: int):
        self._set_key(code, False)

    def _set_key(self, code: int, pressed: bool):
        if not 0 <= code < NUM_KEYS:
            raise ValueError(f"Key code must be in 0x0-0xF, got {code!r}")
        self.state = self.state.replace(keypad=self.state.keypad.at[code].set(pressed))

    def framebuffer(self) -> np.ndarray:
        """Copy of the framebuffer, shape (64, 32), indexed [x, y]."""
        return np.array(self.state.display, dtype=np.bool_)

    @property
    def pc(self) -> int:
        return int(self.state.pc)

    @property
    def index(self) -> int:
        return int(self.state.I)

    @property
    def registers(self) -> tuple[int, ...]:
        return tuple(int(v) for v in np.asarray(self.state.V))

    @property
    def delay_timer(self) -> int:
        return int(self.state.delay_timer)

    @property
    def stack(self) -> tuple[int, ...]:
        """Return addresses, oldest first."""
        depth = int(self.state.stack.pointer)
        return tuple(int(a) for a in np.asarray(self.state.stack.data)[:depth])

    @property
    def pressed_keys(self) -> frozenset[int]:
        return frozenset(int(k) for k in np.flatnonzero(np.asarray(self.state.keypad)))

    @property
    def needs_redraw(self) -> bool:
        return bool(self.state.needs_redraw)
