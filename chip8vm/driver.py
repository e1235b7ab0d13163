"""
Frame pacing for the CHIP-8 CPU.

One frame runs a fixed number of instructions, then lets the timers catch up
with the time that has passed. The caller decides when frames happen and
presents the screen when a frame reports that something was drawn.
"""

import logging

from .cpu import Chip8CPU

logger = logging.getLogger(__name__)

# Timer ticks made up in one frame before the backlog is dropped (after a
# pause or a stalled window)
MAX_CATCH_UP_TICKS = 4


class SimulatedClock:
    """Clock that only moves when told to, for runs without real pacing"""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FrameRunner:
    """Runs the CPU in fixed-size frames"""

    def __init__(self, cpu: Chip8CPU, ips: int = 500, fps: int = 60):
        if ips <= 0 or fps <= 0:
            raise ValueError(f"ips and fps must be positive (got {ips}, {fps})")
        self.cpu = cpu
        self.ips = ips
        self.fps = fps
        self.steps_per_frame = max(1, ips // fps)
        self.paused = False
        self.frames = 0
        logger.debug("%d instructions per frame at %d FPS", self.steps_per_frame, fps)

    @property
    def frame_interval(self) -> float:
        """Seconds per frame"""
        return 1.0 / self.fps

    def run_frame(self) -> bool:
        """Execute one frame, return True if the screen changed"""
        if self.paused:
            return False

        drawn = False
        for _ in range(self.steps_per_frame):
            self.cpu.step()
            drawn = drawn or self.cpu.has_drawn_this_step()
        self.tick_timers()
        self.frames += 1
        return drawn

    def tick_timers(self) -> int:
        """
        Tick the timers once per whole quantum elapsed since the last tick.

        Each tick is stamped at the end of its own quantum, so frames slightly
        shorter than a quantum do not lose time. Returns the number of ticks.
        """
        cpu = self.cpu
        quantum = cpu.config.timer_quantum
        now = cpu.clock()

        ticks = 0
        while ticks < MAX_CATCH_UP_TICKS and cpu.tick_timers(min(now, cpu.last_tick + quantum)):
            ticks += 1

        if now - cpu.last_tick >= quantum:
            logger.debug("Dropping %.3fs of timer backlog", now - cpu.last_tick)
            cpu.last_tick = now
        return ticks

    def run(self, frames: int) -> bool:
        """Run several frames back to back, return True if any drew"""
        drawn = False
        for _ in range(frames):
            drawn = self.run_frame() or drawn
        return drawn

    def toggle_pause(self):
        self.paused = not self.paused
        logger.info("Paused" if self.paused else "Resumed")
