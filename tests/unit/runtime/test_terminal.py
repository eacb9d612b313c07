"""Tests for terminal mode switching with the tty calls patched out."""

from __future__ import annotations

import unittest
from unittest import mock

from updraft.runtime import terminal
from updraft.runtime.terminal import TerminalController


class TerminalControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch.object(terminal.termios, "tcgetattr", return_value=["saved"])
        patcher.start()
        self.addCleanup(patcher.stop)
        self.writes: list[bytes] = []
        fake_os = mock.patch.object(terminal, "os")
        fake_os.start().write.side_effect = lambda fd, data: self.writes.append(data)
        self.addCleanup(fake_os.stop)

    def test_raw_mode_restores_saved_attributes_after_error(self) -> None:
        controller = TerminalController(0, 1)
        with mock.patch.object(terminal.tty, "setraw") as setraw, mock.patch.object(
            terminal.termios, "tcsetattr"
        ) as tcsetattr:
            with self.assertRaises(RuntimeError):
                with controller.raw_mode():
                    raise RuntimeError("boom")

        setraw.assert_called_once_with(0, terminal.termios.TCSAFLUSH)
        tcsetattr.assert_called_once_with(0, terminal.termios.TCSAFLUSH, ["saved"])
        self.assertEqual(self.writes, [b"\x1b[?1049h\x1b[?25l", b"\x1b[?25h\x1b[?1049l"])

    def test_bell_and_write_go_to_stdout(self) -> None:
        controller = TerminalController(0, 1)
        controller.bell()
        controller.write("é")
        self.assertEqual(self.writes, [b"\x07", "é".encode("utf-8")])


if __name__ == "__main__":
    unittest.main()
