"""
Display capability consumed by the CHIP-8 CPU.

The CPU only ever talks to the screen and keypad through the four operations
of :class:`Display`. :class:`FrameBuffer` is the in-memory implementation,
used headless and as the base of the Tkinter front-end.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .config import DISPLAY_WIDTH, DISPLAY_HEIGHT, NUM_KEYS


class Display(ABC):
    """Pixel buffer and keypad as seen by the CPU"""

    @abstractmethod
    def clear(self) -> None:
        """Turn every pixel off."""

    @abstractmethod
    def draw_pixel(self, x: int, y: int, bit: int) -> int:
        """XOR `bit` into the pixel at (x, y) and return its previous value."""

    @abstractmethod
    def is_key_down(self, key: int) -> bool:
        """Return True while hex key `key` (0-F) is held."""

    @abstractmethod
    def get_any_key_down(self) -> Optional[int]:
        """Return the lowest key currently held, or None."""


class FrameBuffer(Display):
    """In-memory 64x32 monochrome screen and 16-key keypad"""

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        self.width = width
        self.height = height
        self.pixels = [[0] * width for _ in range(height)]
        self.keys = [False] * NUM_KEYS

    def clear(self) -> None:
        for row in self.pixels:
            for x in range(self.width):
                row[x] = 0

    def draw_pixel(self, x: int, y: int, bit: int) -> int:
        prev = self.pixels[y][x]
        self.pixels[y][x] = prev ^ bit
        return prev

    def is_key_down(self, key: int) -> bool:
        return self.keys[key]

    def get_any_key_down(self) -> Optional[int]:
        for key, down in enumerate(self.keys):
            if down:
                return key
        return None

    # ==================== KEYPAD ====================

    def press(self, key: int):
        """Mark a key as held"""
        self.keys[key] = True

    def release(self, key: int):
        """Mark a key as released"""
        self.keys[key] = False

    def set_key(self, key: int, pressed: bool):
        """Key change callback for input sources"""
        self.keys[key] = pressed

    # ==================== INSPECTION ====================

    def pixel(self, x: int, y: int) -> int:
        return self.pixels[y][x]

    def lit_count(self) -> int:
        """Number of pixels currently on"""
        return sum(sum(row) for row in self.pixels)

    def to_text(self, on: str = '#', off: str = '.') -> str:
        """Render the screen as one text line per row"""
        lines: List[str] = []
        for row in self.pixels:
            lines.append(''.join(on if p else off for p in row))
        return '\n'.join(lines)
