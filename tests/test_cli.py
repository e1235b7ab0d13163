"""
Command line tests (headless mode only).
"""

import logging

from chip8vm.__main__ import build_parser, main


class TestCli:
    """Argument handling and headless runs."""

    def test_defaults(self):
        args = build_parser().parse_args(["game.ch8"])
        assert args.rom == "game.ch8"
        assert args.ips == 500
        assert args.fps == 60
        assert not args.headless

    def test_missing_rom_exits_with_error(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            code = main([str(tmp_path / "missing.ch8"), "--headless"])
        assert code == 1
        assert "Failed to load ROM" in caplog.text

    def test_bad_rate_is_rejected(self, tmp_path):
        assert main([str(tmp_path / "x.ch8"), "--ips", "0", "--headless"]) == 2

    def test_headless_prints_screen(self, tmp_path, capsys):
        rom = tmp_path / "zero.ch8"
        # Draw font glyph 0 at (0, 0), then loop forever
        rom.write_bytes(bytes([0x60, 0x00, 0xF0, 0x29, 0xD0, 0x05, 0x12, 0x06]))
        assert main([str(rom), "--headless", "--frames", "2"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("####.")
        assert lines[1].startswith("#..#.")
        assert len(lines) == 32
