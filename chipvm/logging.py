"""Console logging utilities for the CHIP-8 machine and its host.

Provides a levelled console logger, register dumps for error reports and a
tqdm progress bar for headless runs.
"""

import time
import sys
from typing import Optional

from tqdm import tqdm

from chipvm.decode import describe

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConsoleLogger:
    """Console logger with level filtering, timestamps and colours."""

    def __init__(
        self,
        name: str = "chipvm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        if log_level.upper() not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")
        self.name = name
        self.log_level = log_level.upper()
        self.use_colors = (
            use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {k: "" for k in LEVELS + ("RESET",)}
        )

        self.level_order = {level: order for order, level in enumerate(LEVELS)}

    def is_enabled_for(self, level: str) -> bool:
        """Check if messages at ``level`` pass the current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self.is_enabled_for(level):
            formatted = self._format_message(level, message)
            print(formatted, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


def format_registers(state) -> list[str]:
    """Render PC, I, timers, stack depth and V0-VF as log lines."""
    lines = [
        f"PC: 0x{int(state.pc):03X}  I: 0x{int(state.I):03X}  "
        f"Delay: {int(state.delay_timer)}  SP: {int(state.stack.pointer)}"
    ]
    for row in range(0, 16, 4):
        lines.append("  ".join(f"V{reg:X}: {int(state.V[reg]):02X}" for reg in range(row, row + 4)))
    return lines


def log_instruction(logger: ConsoleLogger, address: int, opcode: int):
    logger.debug(f"0x{address:03X}: {describe(opcode)}")


def log_machine_error(logger: ConsoleLogger, error: Exception, state=None):
    """Report a rejected instruction with a register dump."""
    logger.error(f"Execution halted: {error}")
    if state is not None:
        for line in format_registers(state):
            logger.error(f"  {line}")


def build_progress_bar(n: int, desc: Optional[str] = None, **kwargs) -> tqdm:
    """Progress bar counting executed instructions."""
    if desc is None:
        desc = f"Running ({n:,} instructions)"
    for kwarg in ("total", "unit"):
        kwargs.pop(kwarg, None)
    return tqdm(total=n, desc=desc, unit="instr", **kwargs)
