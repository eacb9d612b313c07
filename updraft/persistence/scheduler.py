"""Debounced, lifecycle-aware save scheduling.

The scheduler lives on the same loop as input handling. ``schedule_save``
only moves a deadline; the loop calls ``poll`` every iteration and the save
runs there once the deadline passes. Bursts of changes therefore produce a
single write, timed from the last change.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..errors import UpdraftError

logger = logging.getLogger(__name__)

DEFAULT_SAVE_DEBOUNCE_SECONDS = 0.5


class SaveScheduler:
    """Coalesce state-changed signals into bounded-rate saves.

    ``save`` is the callable that captures and persists the current windows.
    Once ``begin_termination`` has run, every later trigger is ignored so the
    termination flush stays the last write of the process.
    """

    def __init__(
        self,
        save: Callable[[], object],
        *,
        delay_seconds: float = DEFAULT_SAVE_DEBOUNCE_SECONDS,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._save = save
        self.delay_seconds = delay_seconds if delay_seconds > 0 else DEFAULT_SAVE_DEBOUNCE_SECONDS
        self._monotonic = monotonic
        self.deadline: float | None = None
        self.terminating = False
        self.save_count = 0

    @property
    def pending(self) -> bool:
        return self.deadline is not None

    def schedule_save(self) -> None:
        """(Re)start the debounce window from now."""
        if self.terminating:
            return
        self.deadline = self._monotonic() + self.delay_seconds

    def cancel(self) -> None:
        self.deadline = None

    def seconds_until_due(self) -> float | None:
        """Time left before the pending save fires, or ``None`` when idle."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._monotonic())

    def poll(self) -> bool:
        """Run the pending save if its deadline has passed; return whether it ran."""
        if self.deadline is None or self.terminating:
            return False
        if self._monotonic() < self.deadline:
            return False
        self.deadline = None
        self._run_save()
        return True

    def flush_now(self) -> None:
        """Save immediately and drop any pending deadline."""
        self.deadline = None
        self._run_save()

    def window_closed(self) -> None:
        """A window closed outside teardown: the archive should shrink right away."""
        if self.terminating:
            return
        self.flush_now()

    def begin_termination(self) -> None:
        """Flush while every window is still open, then suppress later triggers."""
        if self.terminating:
            return
        self.flush_now()
        self.terminating = True

    def _run_save(self) -> None:
        self.save_count += 1
        try:
            self._save()
        except (OSError, UpdraftError):
            # In-memory windows stay authoritative; the next save catches up.
            logger.warning("Session save failed", exc_info=True)
