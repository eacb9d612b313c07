"""Main interactive event loop for the terminal viewer.

One cooperative loop handles input, redraws, and the debounced save timer.
Key dispatch is a plain function over the session so it can be unit tested
without a terminal.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from ..document.model import DIRECTION_HORIZONTAL
from ..view.navigation import MarkMode
from ..view.surface import AUTO_FIT, SCALE_STEP
from .render import build_frame
from .session import ViewerSession

STATUS_MESSAGE_SECONDS = 2.0
IDLE_POLL_MS = 250
COLUMN_SCROLL_STEP = 4


@dataclass
class LoopState:
    """Transient UI state that is never persisted."""

    count_buffer: str = ""
    status_message: str = ""
    status_message_until: float = 0.0
    dirty: bool = True
    quit_requested: bool = False


class FeedbackSink:
    """Status-line message plus bell for commands that did nothing."""

    def __init__(
        self,
        state: LoopState,
        bell: Callable[[], None],
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.state = state
        self._bell = bell
        self._monotonic = monotonic

    def __call__(self, message: str) -> None:
        self.state.status_message = message
        self.state.status_message_until = self._monotonic() + STATUS_MESSAGE_SECONDS
        self.state.dirty = True
        self._bell()


def _take_count(state: LoopState) -> int | None:
    if not state.count_buffer:
        return None
    count = int(state.count_buffer)
    state.count_buffer = ""
    return count


def handle_viewer_key(key: str, session: ViewerSession, state: LoopState) -> None:
    """Dispatch one key against the active window."""
    window = session.active_window
    if window is None:
        state.quit_requested = True
        return
    surface = window.surface
    navigation = window.navigation
    state.dirty = True

    if navigation.mark_mode is not MarkMode.IDLE:
        state.count_buffer = ""
        navigation.handle_key(key)
        return

    if key.isdigit() and len(key) == 1 and (key != "0" or state.count_buffer):
        state.count_buffer += key
        return

    count = _take_count(state)
    repeat = count if count is not None else 1

    if navigation.handle_key(key):
        return
    if key in {"q", "CTRL_C"}:
        state.quit_requested = True
    elif key in {"j", "DOWN"}:
        surface.scroll_lines(repeat)
    elif key in {"k", "UP"}:
        surface.scroll_lines(-repeat)
    elif key in {" ", "PAGE_DOWN"}:
        surface.scroll_lines(repeat * max(1, surface.viewport_rows - 1))
    elif key in {"b", "PAGE_UP"}:
        surface.scroll_lines(-repeat * max(1, surface.viewport_rows - 1))
    elif key == "n":
        surface.step_page(repeat)
    elif key == "p":
        surface.step_page(-repeat)
    elif key in {"LEFT", "RIGHT"}:
        delta = -repeat if key == "LEFT" else repeat
        if surface.layout_direction == DIRECTION_HORIZONTAL:
            surface.step_page(delta)
        else:
            surface.scroll_columns(delta * COLUMN_SCROLL_STEP)
    elif key == "g":
        navigation.go_to_page((count or 1) - 1)
    elif key == "G":
        navigation.go_to_page(surface.page_count() - 1 if count is None else count - 1)
    elif key in {"ALT_LEFT", "CTRL_O", "["}:
        navigation.go_back()
    elif key in {"ALT_RIGHT", "]"}:
        navigation.go_forward()
    elif key == "+":
        surface.zoom_by(SCALE_STEP)
    elif key == "-":
        surface.zoom_by(1 / SCALE_STEP)
    elif key == "=":
        surface.set_zoom(AUTO_FIT)
    elif key == "L":
        surface.cycle_layout_mode()
    elif key == "D":
        surface.toggle_direction()
    elif key == "P":
        surface.toggle_paired_pages()
    elif key == "o":
        session.open_in_new_window(window)
    elif key == "TAB":
        session.focus_next_window()
    elif key == "w":
        session.close_window(window)
        if not session.windows:
            state.quit_requested = True
    else:
        state.dirty = False


def run_main_loop(
    session: ViewerSession,
    terminal,
    read_key: Callable[[int | None], str],
    state: LoopState,
    monotonic: Callable[[], float] = time.monotonic,
) -> None:
    """Run until quit is requested or the last window closes.

    Termination handling is left to the caller so it runs even if the loop
    raises.
    """
    with terminal.raw_mode():
        while not state.quit_requested and session.windows:
            window = session.active_window
            columns, lines = terminal.size()
            window.surface.resize(lines - 1, columns)

            now = monotonic()
            if state.status_message and now >= state.status_message_until:
                state.status_message = ""
                state.dirty = True
            if state.dirty:
                terminal.write(
                    build_frame(
                        window.surface,
                        window.title,
                        session.active_index + 1,
                        len(session.windows),
                        columns,
                        lines,
                        state.status_message,
                    )
                )
                state.dirty = False

            timeout_ms = IDLE_POLL_MS
            due = session.scheduler.seconds_until_due()
            if due is not None:
                timeout_ms = min(timeout_ms, int(due * 1000) + 1)
            key = read_key(timeout_ms)
            if key:
                handle_viewer_key(key, session, state)
            session.scheduler.poll()
