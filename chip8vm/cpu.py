"""
CHIP-8 CPU core.

Implements the 35 original CHIP-8 opcodes with the quirks of the original
interpreter that real ROMs depend on:

- 8XY1/8XY2/8XY3 reset VF to 0
- 8XY6/8XYE shift VY (not VX) into VX
- BNNN jumps to NNN + V0
- FX55/FX65 leave I advanced past the last register
- the call stack lives in main memory, starting at address 0

The CPU never drives timing or presentation. A driver calls :meth:`step`
some number of times per frame and :meth:`tick_timers` once per frame.
"""

import logging
import random
import time
from enum import Enum, auto
from typing import Callable, Optional

from .config import EmulatorConfig, FONT_4X5, FONT_GLYPH_SIZE, NUM_REGISTERS
from .display import Display, FrameBuffer

logger = logging.getLogger(__name__)

# Float slack when comparing elapsed time against the timer quantum
TIMER_EPSILON = 1e-9


class Chip8Error(Exception):
    """Base class for CHIP-8 errors"""


class RomLoadError(Chip8Error):
    """ROM file could not be read"""


def read_rom(path: str) -> bytes:
    """Read a raw ROM image, raising RomLoadError when unreadable"""
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise RomLoadError(f"Failed to load ROM {path}: {e}") from e


class KeyWaitState(Enum):
    """FX0A progress"""
    IDLE = auto()
    AWAITING_RELEASE = auto()


class KeyWait:
    """
    State machine behind FX0A (wait for key).

    A key only counts once it has been pressed *and* released. Each call to
    :meth:`poll` advances the machine by one observation of the keypad and
    returns the key when the cycle is complete, None otherwise.
    """

    def __init__(self):
        self.state = KeyWaitState.IDLE
        self.pending_key: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.state is not KeyWaitState.IDLE

    def reset(self):
        self.state = KeyWaitState.IDLE
        self.pending_key = None

    def poll(self, display: Display) -> Optional[int]:
        if self.state is KeyWaitState.IDLE:
            key = display.get_any_key_down()
            if key is not None:
                self.pending_key = key
                self.state = KeyWaitState.AWAITING_RELEASE
            return None

        if display.is_key_down(self.pending_key):
            return None

        key = self.pending_key
        self.reset()
        return key


class Chip8CPU:
    """CHIP-8 CPU core with all 35 opcodes"""

    def __init__(self, display: Optional[Display] = None,
                 config: Optional[EmulatorConfig] = None,
                 clock: Callable[[], float] = time.monotonic,
                 rng: Optional[random.Random] = None):
        self.config = config or EmulatorConfig()
        if display is None:
            display = FrameBuffer(self.config.display_width, self.config.display_height)
        self.display = display
        self._clock = clock
        self._rng = rng or random.Random()
        self.reset()

    def reset(self):
        """Reset CPU to initial power-on state"""
        cfg = self.config

        # Main memory (4KB), also holds the call stack
        self.memory = bytearray(cfg.memory_size)

        # 16 general-purpose 8-bit registers V0-VF
        self.v = [0] * NUM_REGISTERS

        # 16-bit index register
        self.i = 0

        # Program counter (starts at 0x200)
        self.pc = cfg.program_start

        # Stack cursor into main memory
        self.sp = 0

        # Timers (decrement at 60Hz when non-zero)
        self.delay_timer = 0
        self.sound_timer = 0
        self.last_tick = self._clock()

        # FX0A blocking state
        self.key_wait = KeyWait()

        # Screen changed during the last step
        self.draw_flag = False

        self._stack_warned = False

    # ==================== LOADING ====================

    def load(self, data: bytes) -> int:
        """Load the font and a ROM image into memory, return bytes loaded"""
        cfg = self.config
        self.memory[cfg.font_start:cfg.font_start + len(FONT_4X5)] = FONT_4X5

        max_size = cfg.memory_size - cfg.program_start
        if len(data) > max_size:
            logger.warning("ROM too large: %d bytes (max %d), truncating", len(data), max_size)
            data = data[:max_size]

        self.memory[cfg.program_start:cfg.program_start + len(data)] = data
        logger.info("Loaded %d bytes", len(data))
        return len(data)

    def load_rom_file(self, path: str) -> int:
        """Read a ROM from disk and load it"""
        return self.load(read_rom(path))

    # ==================== EXECUTION ====================

    def step(self):
        """Fetch, decode and execute one instruction"""
        self.draw_flag = False
        address = self.pc
        opcode = self._fetch()
        logger.debug("0x%03X: %04X", address, opcode)
        self._execute(opcode)

    def _fetch(self) -> int:
        """Read the big-endian opcode at PC and advance PC"""
        opcode = (self._read(self.pc) << 8) | self._read(self.pc + 1)
        self.pc = (self.pc + 2) & 0xFFFF
        return opcode

    def _read(self, address: int) -> int:
        return self.memory[address % len(self.memory)]

    def _write(self, address: int, value: int):
        self.memory[address % len(self.memory)] = value

    def _skip_if(self, condition: bool):
        if condition:
            self.pc = (self.pc + 2) & 0xFFFF

    def _unknown(self, opcode: int):
        logger.warning("Unknown opcode 0x%04X at 0x%03X", opcode, (self.pc - 2) & 0xFFFF)

    def _execute(self, opcode: int):
        """Decode and execute opcode"""
        # Extract common parts
        nnn = opcode & 0x0FFF  # 12-bit address
        nn = opcode & 0x00FF   # 8-bit constant
        n = opcode & 0x000F    # 4-bit constant
        x = (opcode >> 8) & 0x0F  # Register X
        y = (opcode >> 4) & 0x0F  # Register Y

        first = opcode >> 12

        if first == 0x0:
            if nn == 0xE0:
                # 00E0: Clear screen
                self.display.clear()
                self.draw_flag = True
            elif nn == 0xEE:
                # 00EE: Return from subroutine
                self._ret()
            else:
                self._unknown(opcode)

        elif first == 0x1:
            # 1NNN: Jump to NNN
            self.pc = nnn

        elif first == 0x2:
            # 2NNN: Call subroutine at NNN
            self._call(nnn)

        elif first == 0x3:
            # 3XNN: Skip if VX == NN
            self._skip_if(self.v[x] == nn)

        elif first == 0x4:
            # 4XNN: Skip if VX != NN
            self._skip_if(self.v[x] != nn)

        elif first == 0x5:
            # 5XY0: Skip if VX == VY
            self._skip_if(self.v[x] == self.v[y])

        elif first == 0x6:
            # 6XNN: VX = NN
            self.v[x] = nn

        elif first == 0x7:
            # 7XNN: VX += NN (no carry)
            self.v[x] = (self.v[x] + nn) & 0xFF

        elif first == 0x8:
            self._execute_8xxx(opcode, x, y, n)

        elif first == 0x9:
            # 9XY0: Skip if VX != VY
            self._skip_if(self.v[x] != self.v[y])

        elif first == 0xA:
            # ANNN: I = NNN
            self.i = nnn

        elif first == 0xB:
            # BNNN: Jump to NNN + V0
            self.pc = (nnn + self.v[0]) & 0xFFFF

        elif first == 0xC:
            # CXNN: VX = random & NN
            self.v[x] = self._rng.randint(0, 255) & nn

        elif first == 0xD:
            # DXYN: Draw sprite
            self._draw_sprite(x, y, n)

        elif first == 0xE:
            key = self.v[x] & 0x0F
            if nn == 0x9E:
                # EX9E: Skip if key VX pressed
                self._skip_if(self.display.is_key_down(key))
            elif nn == 0xA1:
                # EXA1: Skip if key VX not pressed
                self._skip_if(not self.display.is_key_down(key))
            else:
                self._unknown(opcode)

        else:
            self._execute_fxxx(opcode, x, nn)

    def _execute_8xxx(self, opcode: int, x: int, y: int, n: int):
        """Execute 8xxx opcodes (ALU operations)"""
        v = self.v
        if n == 0x0:
            # 8XY0: VX = VY
            v[x] = v[y]
        elif n == 0x1:
            # 8XY1: VX |= VY
            v[x] |= v[y]
            v[0xF] = 0  # Quirk: VF reset
        elif n == 0x2:
            # 8XY2: VX &= VY
            v[x] &= v[y]
            v[0xF] = 0  # Quirk: VF reset
        elif n == 0x3:
            # 8XY3: VX ^= VY
            v[x] ^= v[y]
            v[0xF] = 0  # Quirk: VF reset
        elif n == 0x4:
            # 8XY4: VX += VY with carry
            result = v[x] + v[y]
            v[x] = result & 0xFF
            v[0xF] = 1 if result > 0xFF else 0
        elif n == 0x5:
            # 8XY5: VX -= VY, VF = no borrow
            flag = 1 if v[x] >= v[y] else 0
            v[x] = (v[x] - v[y]) & 0xFF
            v[0xF] = flag
        elif n == 0x6:
            # 8XY6: VX = VY >> 1
            flag = v[y] & 0x01
            v[x] = v[y] >> 1
            v[0xF] = flag
        elif n == 0x7:
            # 8XY7: VX = VY - VX, VF = no borrow
            flag = 1 if v[y] >= v[x] else 0
            v[x] = (v[y] - v[x]) & 0xFF
            v[0xF] = flag
        elif n == 0xE:
            # 8XYE: VX = VY << 1
            flag = (v[y] >> 7) & 0x01
            v[x] = (v[y] << 1) & 0xFF
            v[0xF] = flag
        else:
            self._unknown(opcode)

    def _execute_fxxx(self, opcode: int, x: int, nn: int):
        """Execute Fxxx opcodes"""
        if nn == 0x07:
            # FX07: VX = delay timer
            self.v[x] = self.delay_timer
        elif nn == 0x0A:
            # FX0A: Wait for key press and release
            key = self.key_wait.poll(self.display)
            if key is None:
                self.pc = (self.pc - 2) & 0xFFFF
            else:
                self.v[x] = key
        elif nn == 0x15:
            # FX15: delay timer = VX
            self.delay_timer = self.v[x]
        elif nn == 0x18:
            # FX18: sound timer = VX
            self.sound_timer = self.v[x]
        elif nn == 0x1E:
            # FX1E: I += VX
            self.i = (self.i + self.v[x]) & 0xFFFF
        elif nn == 0x29:
            # FX29: I = font sprite for VX
            self.i = self.config.font_start + (self.v[x] & 0x0F) * FONT_GLYPH_SIZE
        elif nn == 0x33:
            # FX33: Store BCD of VX at I, I+1, I+2
            value = self.v[x]
            self._write(self.i, value // 100)
            self._write(self.i + 1, (value // 10) % 10)
            self._write(self.i + 2, value % 10)
        elif nn == 0x55:
            # FX55: Store V0-VX at I, I ends past VX
            for reg in range(x + 1):
                self._write(self.i, self.v[reg])
                self.i = (self.i + 1) & 0xFFFF
        elif nn == 0x65:
            # FX65: Load V0-VX from I, I ends past VX
            for reg in range(x + 1):
                self.v[reg] = self._read(self.i)
                self.i = (self.i + 1) & 0xFFFF
        else:
            self._unknown(opcode)

    def _call(self, address: int):
        """2NNN: push PC (low byte, then high byte) at SP and jump"""
        self._write(self.sp, self.pc & 0xFF)
        self.sp = (self.sp + 1) & 0xFFFF
        self._write(self.sp, self.pc >> 8)
        self.sp = (self.sp + 1) & 0xFFFF

        if self.sp > self.config.font_start and not self._stack_warned:
            logger.warning("Stack pointer 0x%03X has reached the font table", self.sp)
            self._stack_warned = True

        self.pc = address

    def _ret(self):
        """00EE: pop high byte, then low byte, into PC"""
        self.sp = (self.sp - 1) & 0xFFFF
        high = self._read(self.sp)
        self.sp = (self.sp - 1) & 0xFFFF
        self.pc = (high << 8) | self._read(self.sp)

        if self.sp <= self.config.font_start:
            self._stack_warned = False

    def _draw_sprite(self, x: int, y: int, n: int):
        """Draw sprite at (VX, VY) with height N, clipped at the screen edge"""
        width = self.config.display_width
        height = self.config.display_height
        px = self.v[x] % width
        py = self.v[y] % height
        self.v[0xF] = 0

        for row in range(n):
            if py + row >= height:
                break
            sprite_byte = self._read(self.i + row)

            for col in range(8):
                if px + col >= width:
                    break
                bit = (sprite_byte >> (7 - col)) & 0x01
                prev = self.display.draw_pixel(px + col, py + row, bit)
                if prev and bit:
                    self.v[0xF] = 1  # Collision

        self.draw_flag = True

    # ==================== TIMERS ====================

    def tick_timers(self, now: Optional[float] = None) -> bool:
        """
        Decrement delay and sound timers once a full quantum has elapsed.

        `now` defaults to the CPU clock. Returns True if the timers ticked.
        """
        if now is None:
            now = self._clock()
        if now - self.last_tick < self.config.timer_quantum - TIMER_EPSILON:
            return False

        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1
        self.last_tick = now
        return True

    def clock(self) -> float:
        """Current time on the CPU clock"""
        return self._clock()

    # ==================== DRIVER OUTPUTS ====================

    def has_drawn_this_step(self) -> bool:
        return self.draw_flag

    def sound_timer_value(self) -> int:
        return self.sound_timer
