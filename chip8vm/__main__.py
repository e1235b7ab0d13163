"""
Command line entry point.

    python -m chip8vm ROM [--ips 500] [--fps 60] [--scale 12] [--headless]
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .config import EmulatorConfig
from .cpu import Chip8CPU, RomLoadError, read_rom
from .driver import FrameRunner, SimulatedClock

logger = logging.getLogger("chip8vm")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8vm", description="CHIP-8 interpreter")
    parser.add_argument("rom", help="path to the ROM file to load into memory")
    parser.add_argument("-i", "--ips", type=int, default=500,
                        help="instructions executed per second (default: 500)")
    parser.add_argument("--fps", type=int, default=60,
                        help="frames per second (default: 60)")
    parser.add_argument("--scale", type=int, default=12,
                        help="window pixels per CHIP-8 pixel (default: 12)")
    parser.add_argument("--headless", action="store_true",
                        help="run without a window and print the final screen")
    parser.add_argument("--frames", type=int, default=60,
                        help="frames to run in headless mode (default: 60)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="enable per-instruction debug logging")
    return parser


def run_headless(config: EmulatorConfig, data: bytes, frames: int) -> Chip8CPU:
    """Run `frames` frames as fast as possible, no window, on simulated time"""
    clock = SimulatedClock()
    cpu = Chip8CPU(config=config, clock=clock)
    cpu.load(data)
    runner = FrameRunner(cpu, config.cpu_frequency, config.frame_rate)
    for _ in range(frames):
        clock.advance(runner.frame_interval)
        runner.run_frame()
    return cpu


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.ips <= 0 or args.fps <= 0 or args.scale <= 0:
        logger.error("--ips, --fps and --scale must be positive")
        return 2

    config = EmulatorConfig(cpu_frequency=args.ips, frame_rate=args.fps, scale=args.scale)

    try:
        data = read_rom(args.rom)
    except RomLoadError as e:
        logger.error("%s", e)
        return 1

    if args.headless:
        cpu = run_headless(config, data, args.frames)
        print(cpu.display.to_text())
        return 0

    # Tk is only needed with a window
    from .gui import Chip8GUI

    app = Chip8GUI(config)
    app.load_rom(data, os.path.basename(args.rom))
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
