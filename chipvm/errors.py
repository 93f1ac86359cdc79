"""Errors raised by the CHIP-8 machine."""

from typing import Optional


class MachineError(Exception):
    """An instruction or program the machine refused to run.

    Carries the address and opcode of the rejected instruction when there is
    one, so a host can report it, reset or halt.
    """

    def __init__(self, message: str, address: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.address = address
        self.opcode = opcode

    def __str__(self) -> str:
        location = []
        if self.address is not None:
            location.append(f"at 0x{self.address:03X}")
        if self.opcode is not None:
            location.append(f"opcode {self.opcode:04X}")
        if not location:
            return self.message
        return f"{self.message} ({', '.join(location)})"


class OutOfBoundsError(MachineError):
    """A program or memory access does not fit in the 4 KiB address space."""


class StackOverflowError(MachineError):
    """Subroutine call with all 16 stack entries in use."""


class StackUnderflowError(MachineError):
    """Return with an empty stack."""


class UnknownOpcodeError(MachineError):
    """Unrecognised FXNN sub-code.

    Never raised by ``Machine.step``; instances are handed to the
    ``on_unknown_opcode`` hook for diagnostics only.
    """
