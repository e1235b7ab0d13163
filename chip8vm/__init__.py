"""
chip8vm - CHIP-8 virtual machine.

The interpreter core (:class:`Chip8CPU`) runs against any :class:`Display`;
:class:`FrameBuffer` is the in-memory one. The Tkinter front-end lives in
``chip8vm.gui`` and is imported only when a window is needed.
"""

from .config import EmulatorConfig
from .cpu import Chip8CPU, Chip8Error, KeyWait, KeyWaitState, RomLoadError, read_rom
from .display import Display, FrameBuffer
from .driver import FrameRunner, SimulatedClock

__version__ = "0.1.0"

__all__ = [
    "Chip8CPU",
    "Chip8Error",
    "Display",
    "EmulatorConfig",
    "FrameBuffer",
    "FrameRunner",
    "KeyWait",
    "KeyWaitState",
    "RomLoadError",
    "SimulatedClock",
    "read_rom",
]
