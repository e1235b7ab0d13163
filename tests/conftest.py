"""Shared fixtures for the CHIP-8 tests."""

import pytest

from chip8vm import Chip8CPU, FrameBuffer


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def screen():
    return FrameBuffer()


@pytest.fixture
def make_cpu(screen, clock):
    """Build a CPU on the shared screen and clock with `program` loaded at 0x200."""
    def factory(program=b"", **kwargs):
        cpu = Chip8CPU(display=screen, clock=clock, **kwargs)
        cpu.load(bytes(program))
        return cpu
    return factory


