"""Run a CHIP-8 program: ``python -m chipvm rom=game.ch8 [headless=true ...]``."""

import os
import sys

import hydra
from omegaconf import DictConfig, OmegaConf

from chipvm.emulator import load_program_file
from chipvm.errors import MachineError
from chipvm.host import run_headless, run_window
from chipvm.logging import ConsoleLogger
from chipvm.machine import Machine
from chipvm.rendering import save_frame


def run(cfg: DictConfig) -> int:
    """Load and run the configured program, returning a process exit status."""
    logger = ConsoleLogger(log_level=cfg.log_level)
    logger.debug(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    try:
        program = load_program_file(cfg.rom)
    except OSError as e:
        logger.error(f"Cannot read program '{cfg.rom}': {e}")
        return 1

    machine = Machine(seed=cfg.seed, strict=cfg.strict, logger=logger)
    try:
        machine.load(program)
    except MachineError as e:
        logger.error(str(e))
        return 1

    title = f"chipvm - {os.path.basename(cfg.rom)}"
    if not cfg.headless:
        run_window(machine, cfg.cpu_hz, cfg.timer_hz, cfg.scale, cfg.color_scheme, cfg.beep_hz, title)
        return 0

    status = 0
    try:
        executed = run_headless(machine, cfg.max_cycles, cfg.cpu_hz, cfg.timer_hz)
        logger.info(f"Executed {executed} instructions, PC=0x{machine.pc:03X}")
    except MachineError:
        status = 1
    if cfg.screenshot:
        save_frame(machine.framebuffer(), cfg.screenshot, cfg.scale, cfg.color_scheme)
        logger.info(f"Saved screenshot to {cfg.screenshot}")
    return status


@hydra.main(version_base=None, config_path="conf", config_name="config")
def main(cfg: DictConfig) -> None:
    status = run(cfg)
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
