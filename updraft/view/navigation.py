"""Navigation primitives: jump locations, history, and letter marks.

Each surface gets its own ``NavigationCore``; marks never live in module or
process state, so two documents can both have a mark ``a``.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass

from ..document.model import BookmarkState, PagePoint
from .surface import ViewingSurface

MAX_JUMP_HISTORY = 256

MARK_SET_KEY = "m"
MARK_JUMP_KEY = "'"
CANCEL_KEY = "ESC"


@dataclass(frozen=True)
class JumpLocation:
    """A page plus an optional page-local point."""

    page_index: int = 0
    point: PagePoint | None = None

    def normalized(self) -> JumpLocation:
        """Return a non-negative variant safe for history and persistence."""
        return JumpLocation(page_index=max(0, self.page_index), point=self.point)

    def as_bookmark(self) -> BookmarkState:
        return BookmarkState(page_index=self.page_index, point=self.point)

    @classmethod
    def from_bookmark(cls, mark: BookmarkState) -> JumpLocation:
        return cls(page_index=mark.page_index, point=mark.point)


def is_mark_letter(key: object) -> bool:
    """Return whether ``key`` names a mark: one ASCII letter."""
    return isinstance(key, str) and len(key) == 1 and key.isascii() and key.isalpha()


class JumpList:
    """Back and forward stacks of visited locations.

    Each stack keeps at most ``max_entries`` locations, dropping the oldest.
    """

    def __init__(self, max_entries: int = MAX_JUMP_HISTORY) -> None:
        self.max_entries = max(1, max_entries)
        self.back: list[JumpLocation] = []
        self.forward: list[JumpLocation] = []

    def _push(self, stack: list[JumpLocation], location: JumpLocation) -> None:
        stack.append(location.normalized())
        if len(stack) > self.max_entries:
            del stack[0]

    def record(self, origin: JumpLocation) -> None:
        """A plain navigation left ``origin``: push it and forget the forward path."""
        self._push(self.back, origin)
        self.forward.clear()

    def go_back(self, current: JumpLocation) -> JumpLocation | None:
        """Pop the back stack, parking ``current`` on the forward stack."""
        if not self.back:
            return None
        target = self.back.pop()
        self._push(self.forward, current)
        return target

    def go_forward(self, current: JumpLocation) -> JumpLocation | None:
        if not self.forward:
            return None
        target = self.forward.pop()
        self._push(self.back, current)
        return target


class MarkMode(enum.Enum):
    IDLE = "idle"
    AWAITING_SET = "awaiting_set"
    AWAITING_JUMP = "awaiting_jump"


class NavigationCore:
    """Mark commands and jump list for one surface.

    ``on_marks_changed`` fires whenever the mark map changes so the owner can
    schedule a save. ``feedback`` receives a short message for every command
    that did nothing (empty stack, bad letter, unknown mark).
    """

    def __init__(
        self,
        surface: ViewingSurface,
        *,
        on_marks_changed: Callable[[], None] | None = None,
        feedback: Callable[[str], None] | None = None,
        max_history: int = MAX_JUMP_HISTORY,
    ) -> None:
        self.surface = surface
        self.marks: dict[str, BookmarkState] = {}
        self.history = JumpList(max_history)
        self.mark_mode = MarkMode.IDLE
        self._on_marks_changed = on_marks_changed
        self._feedback = feedback

    def _report(self, message: str) -> None:
        if self._feedback is not None:
            self._feedback(message)

    def _marks_changed(self) -> None:
        if self._on_marks_changed is not None:
            self._on_marks_changed()

    def current_location(self) -> JumpLocation:
        page_index = self.surface.current_page_index()
        return JumpLocation(
            page_index=page_index if page_index is not None else 0,
            point=self.surface.current_point_in_page(),
        )

    def _clamped_page(self, page_index: int) -> int:
        return max(0, min(page_index, max(0, self.surface.page_count() - 1)))

    def apply_location(self, location: JumpLocation) -> None:
        """Navigate to ``location`` with its page clamped to the document."""
        self.surface.navigate_to(self._clamped_page(location.page_index), location.point)

    # Mark command state machine

    def handle_key(self, key: str) -> bool:
        """Feed one key to the mark command; return whether it was consumed."""
        if self.mark_mode is MarkMode.IDLE:
            if key == MARK_SET_KEY:
                self.mark_mode = MarkMode.AWAITING_SET
                return True
            if key == MARK_JUMP_KEY:
                self.mark_mode = MarkMode.AWAITING_JUMP
                return True
            return False

        mode = self.mark_mode
        self.mark_mode = MarkMode.IDLE
        if key == CANCEL_KEY:
            return True
        if not is_mark_letter(key):
            self._report(f"Invalid mark: {key!r}")
            return True
        if mode is MarkMode.AWAITING_SET:
            self.set_mark(key)
        else:
            self.jump_to_mark(key)
        return True

    def set_mark(self, letter: str) -> bool:
        """Store the current location under ``letter``, replacing any previous mark."""
        if not is_mark_letter(letter):
            self._report(f"Invalid mark: {letter!r}")
            return False
        self.marks[letter] = self.current_location().as_bookmark()
        self._marks_changed()
        return True

    def jump_to_mark(self, letter: str) -> bool:
        """Jump to mark ``letter`` and record the origin in the jump list."""
        mark = self.marks.get(letter) if is_mark_letter(letter) else None
        if mark is None:
            self._report(f"Mark not set: {letter!r}")
            return False
        self.navigate(JumpLocation.from_bookmark(mark))
        return True

    # Jump list

    def navigate(self, target: JumpLocation) -> bool:
        """Plain in-document navigation: record the origin, clear forward, move."""
        origin = self.current_location()
        clamped = JumpLocation(self._clamped_page(target.page_index), target.point)
        if clamped == origin:
            return False
        self.history.record(origin)
        self.apply_location(clamped)
        return True

    def go_to_page(self, page_index: int) -> bool:
        return self.navigate(JumpLocation(page_index=page_index))

    def go_back(self) -> bool:
        target = self.history.go_back(self.current_location())
        if target is None:
            self._report("Already at oldest location")
            return False
        self.apply_location(target)
        return True

    def go_forward(self) -> bool:
        target = self.history.go_forward(self.current_location())
        if target is None:
            self._report("Already at newest location")
            return False
        self.apply_location(target)
        return True

    # Persistence surface

    def export_marks(self) -> dict[str, BookmarkState]:
        return dict(self.marks)

    def import_marks(self, saved: dict[str, BookmarkState] | None, fingerprint_ok: bool) -> None:
        """Replace marks with ``saved``; drop page-local points when the file changed."""
        restored: dict[str, BookmarkState] = {}
        for letter, mark in (saved or {}).items():
            if not is_mark_letter(letter):
                continue
            restored[letter] = mark if fingerprint_ok else mark.without_point()
        self.marks = restored
