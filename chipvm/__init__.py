"""CHIP-8 virtual machine package."""

from chipvm.state import MachineState, StackState, create_state
from chipvm.emulator import execute, fetch, cycle, tick, load_program, load_program_file
from chipvm.decode import DecodedInstruction, decode, describe
from chipvm.constants import *
from chipvm.errors import (
    MachineError, OutOfBoundsError, StackOverflowError, StackUnderflowError, UnknownOpcodeError,
)
from chipvm.machine import Machine
from chipvm.rendering import chip8_display_to_rgb, create_color_scheme, save_frame

__all__ = [
    "MachineState",
    "StackState",
    "create_state",
    "fetch",
    "execute",
    "cycle",
    "tick",
    "load_program",
    "load_program_file",
    "DecodedInstruction",
    "decode",
    "describe",
    "Machine",
    "MachineError",
    "OutOfBoundsError",
    "StackOverflowError",
    "StackUnderflowError",
    "UnknownOpcodeError",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "chip8_display_to_rgb",
    "create_color_scheme",
    "save_frame",
]
