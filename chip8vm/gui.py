"""
Tkinter front-end: window, renderer, keyboard and gamepad input.

Everything runs on the Tk event loop. Each scheduled frame polls the
gamepad, runs one CPU frame and presents the screen if it changed.
"""

import logging
import os
import time
import tkinter as tk
from tkinter import filedialog, messagebox
from typing import Optional

from .config import COLORS, KEYBOARD_MAP, EmulatorConfig
from .controller import Chip8Controller
from .cpu import Chip8CPU, RomLoadError, read_rom
from .display import FrameBuffer
from .driver import FrameRunner

logger = logging.getLogger(__name__)

STATUS_BAR_HEIGHT = 32


class TkDisplay(FrameBuffer):
    """
    Frame buffer rendered onto a Tk canvas.

    Pixels erased by a sprite collision fade out over a few frames instead
    of vanishing at once, which hides the flicker of XOR-drawn sprites.
    """

    def __init__(self, canvas: tk.Canvas, config: EmulatorConfig):
        super().__init__(config.display_width, config.display_height)
        self.canvas = canvas
        self.scale = config.scale
        self.fade_step = config.fade_step
        self.fade = [[0] * self.width for _ in range(self.height)]
        self.pixel_rects = {}
        self._colors = {}

        # Pre-create pixel rectangles for efficiency
        self._create_pixels()

    def _create_pixels(self):
        """Pre-create all pixel rectangles"""
        self.canvas.delete("all")
        self.pixel_rects = {}
        self._colors = {}

        for y in range(self.height):
            for x in range(self.width):
                x1 = x * self.scale
                y1 = y * self.scale
                rect = self.canvas.create_rectangle(
                    x1, y1, x1 + self.scale, y1 + self.scale,
                    fill=COLORS['bg'], outline=""
                )
                self.pixel_rects[(x, y)] = rect
                self._colors[(x, y)] = COLORS['bg']

    def draw_pixel(self, x: int, y: int, bit: int) -> int:
        prev = super().draw_pixel(x, y, bit)
        if prev and bit:
            self.fade[y][x] = 255
        return prev

    def is_fading(self) -> bool:
        return any(any(row) for row in self.fade)

    def present(self, force: bool = False) -> bool:
        """Redraw the canvas if something changed, return True if redrawn"""
        if not force and not self.is_fading():
            return False

        for row in self.fade:
            for x, level in enumerate(row):
                if level:
                    row[x] = max(0, level - self.fade_step)

        for y in range(self.height):
            for x in range(self.width):
                if self.pixels[y][x]:
                    color = COLORS['pixel_on']
                else:
                    level = self.fade[y][x]
                    color = f"#{level:02x}{level:02x}{level:02x}" if level else COLORS['bg']
                # Only touch rectangles whose colour changed
                if self._colors[(x, y)] != color:
                    self.canvas.itemconfig(self.pixel_rects[(x, y)], fill=color)
                    self._colors[(x, y)] = color
        return True


class Chip8GUI:
    """Main application GUI"""

    def __init__(self, config: Optional[EmulatorConfig] = None):
        self.config = config or EmulatorConfig()
        cfg = self.config

        self.root = tk.Tk()
        self.root.title("CHIP-8")
        self.root.resizable(False, False)
        self.root.configure(bg=COLORS['bg'])

        # Create UI
        self._create_ui()

        # Components
        self.display = TkDisplay(self.canvas, cfg)
        self.cpu = Chip8CPU(display=self.display, config=cfg)
        self.runner = FrameRunner(self.cpu, cfg.cpu_frequency, cfg.frame_rate)

        # Create controller
        self.controller = Chip8Controller(self.display.set_key)
        self.controller.on_reset = self._reset
        self.controller.on_pause_toggle = self._toggle_pause

        # Bind keyboard
        self._bind_keys()

        # ROM info
        self.rom_data: Optional[bytes] = None
        self.rom_name = ""

        # State
        self._running = False
        self.fps = 0
        self.frame_count = 0
        self.last_fps_time = time.time()

    def _create_ui(self):
        """Create UI components"""
        cfg = self.config
        width = cfg.display_width * cfg.scale
        height = cfg.display_height * cfg.scale

        # Main canvas for display
        self.canvas = tk.Canvas(
            self.root,
            width=width,
            height=height,
            bg=COLORS['bg'],
            highlightthickness=0
        )
        self.canvas.pack(side=tk.TOP)

        # Status bar
        self.status_frame = tk.Frame(
            self.root,
            height=STATUS_BAR_HEIGHT,
            bg=COLORS['status_bg']
        )
        self.status_frame.pack(side=tk.BOTTOM, fill=tk.X)
        self.status_frame.pack_propagate(False)

        self.rom_label = self._status_label("No ROM", tk.LEFT)
        self.fps_label = self._status_label("FPS: 0", tk.LEFT)
        self.controller_label = self._status_label("Controller: None", tk.LEFT)
        self.state_label = self._status_label("Stopped", tk.RIGHT)

    def _status_label(self, text: str, side: str) -> tk.Label:
        label = tk.Label(
            self.status_frame,
            text=text,
            fg=COLORS['status_fg'],
            bg=COLORS['status_bg'],
            font=("Courier", 10)
        )
        label.pack(side=side, padx=10)
        return label

    def _bind_keys(self):
        """Bind keyboard events"""
        self.root.bind("<KeyPress>", self._on_key_down)
        self.root.bind("<KeyRelease>", self._on_key_up)
        self.root.bind("<Button-1>", self._on_click)

        # Control keys
        self.root.bind("<Control-r>", lambda e: self._reset())
        self.root.bind("<space>", lambda e: self._toggle_pause())
        self.root.bind("<Escape>", lambda e: self._on_close())

    def _on_key_down(self, event):
        """Handle key press"""
        key = event.keysym.lower()
        if key in KEYBOARD_MAP:
            self.display.press(KEYBOARD_MAP[key])

    def _on_key_up(self, event):
        """Handle key release"""
        key = event.keysym.lower()
        if key in KEYBOARD_MAP:
            self.display.release(KEYBOARD_MAP[key])

    def _on_click(self, event):
        """Show file dialog if no ROM loaded"""
        if self.rom_data is None:
            filepath = filedialog.askopenfilename(
                title="Select CHIP-8 ROM",
                filetypes=[("CHIP-8 ROM", "*.ch8"), ("All files", "*.*")]
            )
            if filepath:
                self._open_rom(filepath)

    # ==================== ROM HANDLING ====================

    def load_rom(self, data: bytes, name: str = ""):
        """Reset the machine and start running `data`"""
        self.rom_data = data
        self.rom_name = name or "Unknown"
        self.cpu.reset()
        self.display.clear()
        self.cpu.load(data)
        self.display.present(force=True)
        self.rom_label.config(text=f"ROM: {self.rom_name}")
        self._start_emulation()

    def _open_rom(self, filepath: str):
        """Load ROM from file chosen in the UI"""
        try:
            data = read_rom(filepath)
        except RomLoadError as e:
            logger.error("%s", e)
            messagebox.showerror("Error", str(e))
            return
        self.load_rom(data, os.path.basename(filepath))

    # ==================== EMULATION LOOP ====================

    def _start_emulation(self):
        """Start the frame loop"""
        self.runner.paused = False
        self._update_status()
        if self._running:
            return
        self._running = True
        self._frame_loop()

    def _frame_loop(self):
        """Run one frame and schedule the next"""
        if not self._running:
            return
        start = time.perf_counter()

        self.controller.poll()
        drawn = self.runner.run_frame()
        self.display.present(force=drawn)

        # Update FPS counter
        self.frame_count += 1
        now = time.time()
        if now - self.last_fps_time >= 1.0:
            self.fps = self.frame_count
            self.frame_count = 0
            self.last_fps_time = now
            self.fps_label.config(text=f"FPS: {self.fps}")
            self.controller_label.config(text=f"Controller: {self.controller.name}")

        # Schedule next frame
        elapsed = time.perf_counter() - start
        delay_ms = max(1, int((self.runner.frame_interval - elapsed) * 1000))
        self.root.after(delay_ms, self._frame_loop)

    def _update_status(self):
        """Update status display"""
        if self.rom_data is None:
            text = "Stopped"
        elif self.runner.paused:
            text = "Paused"
        else:
            text = "Running"
        self.state_label.config(text=text)

    def _reset(self):
        """Reset emulator and reload the current ROM"""
        if self.rom_data is not None:
            logger.info("Reset")
            self.load_rom(self.rom_data, self.rom_name)

    def _toggle_pause(self):
        """Toggle pause state"""
        self.runner.toggle_pause()
        self._update_status()

    def run(self):
        """Run the application"""
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)
        self.root.mainloop()

    def _on_close(self):
        """Handle window close"""
        self._running = False
        self.controller.close()
        self.root.destroy()
