"""Terminal control for the viewer session.

Owns raw-mode lifecycle, alternate-screen switching, and the bell used as
audible feedback for commands that did nothing.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty


class TerminalController:
    """Raw-mode and alternate-screen control over a pair of tty descriptors.

    The tty attributes in effect at construction are what
    ``disable_tui_mode`` restores.
    """

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    def enable_tui_mode(self) -> None:
        """Switch stdin to raw input and draw on the alternate screen."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        # Enter alternate screen and hide cursor.
        os.write(self.stdout_fd, b"\x1b[?1049h\x1b[?25l")

    def disable_tui_mode(self) -> None:
        """Undo ``enable_tui_mode``."""
        # Show cursor and restore the main screen buffer.
        os.write(self.stdout_fd, b"\x1b[?25h\x1b[?1049l")
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def write(self, text: str) -> None:
        os.write(self.stdout_fd, text.encode("utf-8", errors="replace"))

    def bell(self) -> None:
        """Ring the terminal bell."""
        os.write(self.stdout_fd, b"\x07")

    def size(self) -> tuple[int, int]:
        """Return ``(columns, lines)`` of the controlling terminal."""
        term = shutil.get_terminal_size((80, 24))
        return max(1, term.columns), max(2, term.lines)

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that keeps the terminal in TUI mode for its body."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()
