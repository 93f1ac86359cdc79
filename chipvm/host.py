"""Host side of the emulator: pacing, pygame window, keyboard and sound."""

import math
import time
from typing import Optional

import numpy as np
import pygame

from chipvm.constants import TIMER_HZ
from chipvm.errors import MachineError
from chipvm.logging import ConsoleLogger, build_progress_bar
from chipvm.machine import Machine
from chipvm.rendering import chip8_display_to_rgb, create_color_scheme

# 4x4 keypad on the left of a QWERTY keyboard:
#   1 2 3 C        1 2 3 4
#   4 5 6 D   <-   Q W E R
#   7 8 9 E        A S D F
#   A 0 B F        Z X C V
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}


class Scheduler:
    """Decides how many instructions and timer ticks are due at a given time.

    Counts are derived from the total time since ``start`` minus the work
    already handed out, so rounding never accumulates into drift. After a
    stall longer than ``max_lag`` seconds the backlog is dropped instead of
    being replayed in one burst.
    """

    def __init__(self, cpu_hz: float = 700, timer_hz: float = TIMER_HZ, start: float = 0.0, max_lag: float = 0.25):
        if cpu_hz <= 0 or timer_hz <= 0:
            raise ValueError("cpu_hz and timer_hz must be positive")
        self.cpu_hz = cpu_hz
        self.timer_hz = timer_hz
        self.max_lag = max_lag
        self.resync(start)

    def resync(self, now: float):
        """Forget any backlog; count from ``now``."""
        self.start = now
        self.steps_done = 0
        self.ticks_done = 0

    def advance(self, now: float) -> tuple[int, int]:
        """Return (instructions, timer ticks) due since the last call."""
        elapsed = now - self.start
        steps_due = math.floor(elapsed * self.cpu_hz) - self.steps_done
        ticks_due = math.floor(elapsed * self.timer_hz) - self.ticks_done

        if ticks_due > self.max_lag * self.timer_hz:
            self.resync(now)
            return 0, 0

        steps_due = max(0, steps_due)
        ticks_due = max(0, ticks_due)
        self.steps_done += steps_due
        self.ticks_done += ticks_due
        return steps_due, ticks_due


class PygameDisplay:
    """Display callback drawing framebuffer snapshots onto a pygame surface."""

    def __init__(self, surface, scale: int = 8, color_scheme: str = "classic"):
        self.surface = surface
        self.scale = scale
        self.on_color, self.off_color = create_color_scheme(color_scheme)

    def __call__(self, frame: np.ndarray):
        rgb = chip8_display_to_rgb(frame, self.scale, self.on_color, self.off_color)
        # surfarray wants (width, height, 3)
        image = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))
        self.surface.blit(image, (0, 0))
        pygame.display.flip()


class PygameBeeper:
    """Audio callback playing a square wave for the requested duration."""

    def __init__(self, frequency: int = 500, volume: float = 0.2, logger: Optional[ConsoleLogger] = None):
        self.logger = logger or ConsoleLogger()
        self.sound = None
        try:
            if pygame.mixer.get_init() is None:
                pygame.mixer.init(frequency=44100, size=-16, channels=1)
            sample_rate, _, channels = pygame.mixer.get_init()
        except pygame.error as e:
            self.logger.warning(f"Audio unavailable, running silent: {e}")
            return

        samples = square_wave(frequency, sample_rate, volume)
        if channels > 1:
            samples = np.repeat(samples[:, None], channels, axis=1)
        self.sound = pygame.sndarray.make_sound(np.ascontiguousarray(samples))

    def __call__(self, milliseconds: int):
        if self.sound is None or milliseconds <= 0:
            return
        self.sound.play(maxtime=milliseconds)


def square_wave(frequency: int, sample_rate: int, volume: float = 0.2, seconds: float = 1.0) -> np.ndarray:
    """One buffer of signed 16-bit square wave samples."""
    t = np.arange(int(sample_rate * seconds))
    high = (t * 2 * frequency // sample_rate) % 2 == 0
    amplitude = int(32767 * volume)
    return np.where(high, amplitude, -amplitude).astype(np.int16)


def run_headless(machine: Machine, max_cycles: int, cpu_hz: float = 700, timer_hz: float = TIMER_HZ,
                 show_progress: bool = True) -> int:
    """Run ``max_cycles`` instructions as fast as possible.

    Timer ticks are interleaved at the ``cpu_hz``/``timer_hz`` ratio so
    programs observe the same timing as in the window. Returns the number of
    instructions executed; a ``MachineError`` propagates after being logged.
    """
    bar = build_progress_bar(max_cycles, disable=not show_progress)
    ticks_done = 0
    executed = 0
    try:
        for executed in range(1, max_cycles + 1):
            machine.step()
            ticks_due = math.floor(executed * timer_hz / cpu_hz)
            while ticks_done < ticks_due:
                machine.tick_timers()
                ticks_done += 1
            if executed % 1000 == 0:
                bar.update(1000)
        bar.update(executed % 1000)
    finally:
        bar.close()
    return executed


def run_window(machine: Machine, cpu_hz: float = 700, timer_hz: float = TIMER_HZ, scale: int = 8,
               color_scheme: str = "classic", beep_hz: int = 500, title: str = "chipvm"):
    """Interactive pygame loop. Esc quits, P pauses, F5 resets."""
    pygame.init()
    screen = pygame.display.set_mode((64 * scale, 32 * scale))
    pygame.display.set_caption(title)
    machine.draw = PygameDisplay(screen, scale, color_scheme)
    machine.beep = PygameBeeper(beep_hz, logger=machine.logger)

    scheduler = Scheduler(cpu_hz, timer_hz, time.perf_counter())
    running = True
    paused = False
    machine.logger.info("Controls: Esc=Quit, P=Pause, F5=Reset")

    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_p:
                        paused = not paused
                        scheduler.resync(time.perf_counter())
                        machine.logger.info("Paused" if paused else "Resumed")
                    elif event.key == pygame.K_F5:
                        machine.reset()
                        paused = False
                        scheduler.resync(time.perf_counter())
                    elif event.key in KEY_MAP:
                        machine.key_down(KEY_MAP[event.key])
                elif event.type == pygame.KEYUP:
                    if event.key in KEY_MAP:
                        machine.key_up(KEY_MAP[event.key])

            if not paused:
                steps, ticks = scheduler.advance(time.perf_counter())
                try:
                    for _ in range(ticks):
                        machine.tick_timers()
                    for _ in range(steps):
                        machine.step()
                except MachineError:
                    # Already reported with a register dump by the machine.
                    paused = True
                    machine.logger.warning("Paused after error, F5 resets")

            pygame.time.wait(1)
    finally:
        pygame.quit()
