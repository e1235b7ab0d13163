"""
Gamepad input for the CHIP-8 keypad via pygame joysticks.

Polled once per frame from the front-end loop; no threads.
"""

import logging
import os
from typing import Callable, Dict, Optional, Set, Tuple

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame

logger = logging.getLogger(__name__)


class Chip8Controller:
    """Controller input handler mapping buttons and D-pad to CHIP-8 keys"""

    # Controller button numbers (PS/Xbox style layout)
    BUTTON_SQUARE = 0
    BUTTON_CIRCLE = 1
    BUTTON_CROSS = 2
    BUTTON_TRIANGLE = 3
    BUTTON_L1 = 4
    BUTTON_R1 = 5
    BUTTON_L2 = 6
    BUTTON_R2 = 7
    BUTTON_SHARE = 8
    BUTTON_OPTIONS = 9

    # D-Pad (as hat)
    HAT_UP = (0, 1)
    HAT_DOWN = (0, -1)
    HAT_LEFT = (-1, 0)
    HAT_RIGHT = (1, 0)

    BUTTON_TO_KEY: Dict[int, int] = {
        BUTTON_CROSS: 0x5,
        BUTTON_CIRCLE: 0x6,
        BUTTON_SQUARE: 0x4,
        BUTTON_TRIANGLE: 0x1,
        BUTTON_L1: 0x7,
        BUTTON_R1: 0x9,
        BUTTON_L2: 0xA,
        BUTTON_R2: 0xB,
    }

    # Keypad 2/8/4/6 form the usual direction cross
    HAT_TO_KEY: Dict[Tuple[int, int], int] = {
        HAT_UP: 0x2,
        HAT_DOWN: 0x8,
        HAT_LEFT: 0x4,
        HAT_RIGHT: 0x6,
    }

    def __init__(self, on_key_change: Callable[[int, bool], None]):
        self.on_key_change = on_key_change
        self.joystick: Optional["pygame.joystick.JoystickType"] = None
        self.connected = False
        self.name = "None"
        self._hat_key: Optional[int] = None
        self._held_keys: Set[int] = set()

        # Special action callbacks
        self.on_reset: Optional[Callable[[], None]] = None
        self.on_pause_toggle: Optional[Callable[[], None]] = None

        pygame.init()
        pygame.joystick.init()

    def poll(self):
        """Pump pygame events and forward them as key changes"""
        self._check_connection()
        if not self.connected:
            return

        for event in pygame.event.get():
            if event.type == pygame.JOYBUTTONDOWN:
                self._handle_button(event.button, True)
            elif event.type == pygame.JOYBUTTONUP:
                self._handle_button(event.button, False)
            elif event.type == pygame.JOYHATMOTION:
                self._handle_hat(event.value)

    def close(self):
        pygame.joystick.quit()
        pygame.quit()

    def _check_connection(self):
        """Check for controller connection/disconnection"""
        pygame.event.pump()
        joystick_count = pygame.joystick.get_count()

        if joystick_count > 0 and not self.connected:
            # Connect to first available controller
            self.joystick = pygame.joystick.Joystick(0)
            self.joystick.init()
            self.connected = True
            self.name = self.joystick.get_name()
            logger.info("Controller connected: %s", self.name)

        elif joystick_count == 0 and self.connected:
            self._disconnect()

    def _disconnect(self):
        """Forget the controller and release every key it was holding"""
        logger.info("Controller disconnected: %s", self.name)
        self.connected = False
        self.joystick = None
        self.name = "None"
        for key in sorted(self._held_keys):
            self.on_key_change(key, False)
        self._held_keys.clear()
        if self._hat_key is not None:
            self.on_key_change(self._hat_key, False)
            self._hat_key = None

    def _handle_button(self, button: int, pressed: bool):
        """Handle button press or release"""
        if pressed and button == self.BUTTON_SHARE:
            if self.on_reset:
                self.on_reset()
        elif pressed and button == self.BUTTON_OPTIONS:
            if self.on_pause_toggle:
                self.on_pause_toggle()

        if button in self.BUTTON_TO_KEY:
            key = self.BUTTON_TO_KEY[button]
            if pressed:
                self._held_keys.add(key)
            else:
                self._held_keys.discard(key)
            self.on_key_change(key, pressed)

    def _handle_hat(self, value: Tuple[int, int]):
        """Handle D-pad input, one direction at a time"""
        key = self.HAT_TO_KEY.get(tuple(value))
        if key == self._hat_key:
            return
        if self._hat_key is not None:
            self.on_key_change(self._hat_key, False)
        if key is not None:
            self.on_key_change(key, True)
        self._hat_key = key
