"""Pre-execution checks for a single instruction.

The JAX handlers in ``chipvm.instructions`` cannot raise, so the Machine
inspects the concrete state before running an instruction and rejects the
ones that would corrupt the stack or touch memory past 0xFFF.
"""

from typing import Optional

from chipvm.constants import MEMORY_SIZE, STACK_SIZE
from chipvm.decode import DecodedInstruction
from chipvm.errors import (
    OutOfBoundsError, StackOverflowError, StackUnderflowError, UnknownOpcodeError,
)
from chipvm.instructions.misc import is_known_misc_subcode
from chipvm.state import MachineState


def check_fetch(pc: int) -> None:
    if pc + 1 >= MEMORY_SIZE:
        raise OutOfBoundsError("Instruction fetch past end of memory", address=pc)


def _memory_span(index: int, length: int) -> Optional[str]:
    if index + length > MEMORY_SIZE:
        return f"I=0x{index:04X} spans {length} bytes past end of memory"
    return None


def check_instruction(
    state: MachineState, instruction: DecodedInstruction, address: int, strict: bool = True
) -> None:
    """Raise a ``MachineError`` if ``instruction`` must not run on ``state``.

    ``address`` is where the instruction was fetched from. Stack checks always
    apply; memory span checks only when ``strict`` is set.
    """
    family = int(instruction.family)
    opcode = int(instruction.raw)

    if family == 0x0 and int(instruction.nn) == 0xEE and int(state.stack.pointer) == 0:
        raise StackUnderflowError("Return with empty stack", address=address, opcode=opcode)
    if family == 0x2 and int(state.stack.pointer) >= STACK_SIZE:
        raise StackOverflowError(
            f"Call with {STACK_SIZE} return addresses already on the stack", address=address, opcode=opcode
        )
    if not strict:
        return

    problem = None
    index = int(state.I)
    nn = int(instruction.nn)
    if family == 0xD and int(instruction.n) > 0:
        problem = _memory_span(index, int(instruction.n))
    elif family == 0xF and nn == 0x33:
        problem = _memory_span(index, 3)
    elif family == 0xF and nn in (0x55, 0x65):
        problem = _memory_span(index, int(instruction.x) + 1)
    if problem is not None:
        raise OutOfBoundsError(problem, address=address, opcode=opcode)


def unknown_opcode(instruction: DecodedInstruction, address: int) -> Optional[UnknownOpcodeError]:
    """Describe an FXNN sub-code the machine will silently skip, if any."""
    if int(instruction.family) == 0xF and not is_known_misc_subcode(instruction.nn):
        return UnknownOpcodeError(
            f"Unknown FX{int(instruction.nn):02X} instruction ignored", address=address, opcode=int(instruction.raw)
        )
    return None
