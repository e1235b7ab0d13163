"""
Configuration and constants for the CHIP-8 virtual machine.
"""

from dataclasses import dataclass

# ============================================================================
# MACHINE CONSTANTS
# ============================================================================

MEMORY_SIZE = 4096
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
NUM_REGISTERS = 16
NUM_KEYS = 16
PROGRAM_START = 0x200
FONT_START = 0x050
FONT_GLYPH_SIZE = 5

# ============================================================================
# CHIP-8 FONT
# ============================================================================

# Standard 4x5 font (0-F) - 80 bytes at 0x050
FONT_4X5 = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])

# Keyboard mapping (keyboard key -> CHIP-8 key)
KEYBOARD_MAP = {
    '1': 0x1, '2': 0x2, '3': 0x3, '4': 0xC,
    'q': 0x4, 'w': 0x5, 'e': 0x6, 'r': 0xD,
    'a': 0x7, 's': 0x8, 'd': 0x9, 'f': 0xE,
    'z': 0xA, 'x': 0x0, 'c': 0xB, 'v': 0xF,
}

# Colors
COLORS = {
    'bg': '#000000',
    'pixel_on': '#FFFFFF',
    'status_bg': '#1E1E1E',
    'status_fg': '#707070',
}


@dataclass
class EmulatorConfig:
    """Emulator configuration settings"""
    # Memory
    memory_size: int = MEMORY_SIZE
    program_start: int = PROGRAM_START
    font_start: int = FONT_START

    # Display
    display_width: int = DISPLAY_WIDTH
    display_height: int = DISPLAY_HEIGHT

    # Timing
    cpu_frequency: int = 500      # Instructions per second
    frame_rate: int = 60          # Frames presented per second
    timer_frequency: int = 60     # Timer decrement rate (Hz)

    # Window
    scale: int = 12               # Screen pixels per CHIP-8 pixel
    fade_step: int = 80           # Brightness lost per frame by erased pixels

    @property
    def timer_quantum(self) -> float:
        """Seconds between two timer decrements"""
        return 1.0 / self.timer_frequency
