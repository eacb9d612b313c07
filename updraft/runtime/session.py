"""Window registry and lifecycle coordination.

``ViewerSession`` owns the open windows and the persistence collaborators.
Each window's surface reports to a per-window observer through a
subscription taken on open and cancelled on close.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from ..document.identity import IdentityResolver
from ..document.model import FrameRect, WindowState
from ..errors import IdentityError
from ..persistence.scheduler import DEFAULT_SAVE_DEBOUNCE_SECONDS, SaveScheduler
from ..persistence.store import PersistentStore, SaveOutcome
from ..view.codec import ViewStateCodec
from ..view.navigation import JumpLocation, NavigationCore
from ..view.surface import Subscription, ViewingSurface
from .restore import RestoreFailure, RestoreMode, RestorePlan, RestorePolicy

logger = logging.getLogger(__name__)


class ViewerWindow:
    """One open window: a surface, its navigation state, and its frame."""

    def __init__(
        self,
        window_id: int,
        path: Path,
        surface: ViewingSurface,
        navigation: NavigationCore,
        frame: FrameRect | None = None,
    ) -> None:
        self.window_id = window_id
        self.path = path
        self.surface = surface
        self.navigation = navigation
        self.frame = frame
        self.subscription: Subscription | None = None
        self.closed = False

    @property
    def title(self) -> str:
        return self.path.name


class _WindowObserver:
    """Forwards one surface's notifications into the session."""

    def __init__(self, session: ViewerSession, window: ViewerWindow) -> None:
        self._session = session
        self._window = window

    def on_view_state_changed(self) -> None:
        self._session.scheduler.schedule_save()

    def on_window_closing(self) -> None:
        self._session._window_closing(self._window)

    def on_window_frame_changed(self, frame: FrameRect) -> None:
        self._window.frame = frame
        self._session.scheduler.schedule_save()


class ViewerSession:
    """Open windows plus the store, scheduler, and codec that persist them."""

    def __init__(
        self,
        store: PersistentStore,
        resolver: IdentityResolver,
        surface_factory: Callable[[Path], ViewingSurface],
        *,
        save_delay_seconds: float = DEFAULT_SAVE_DEBOUNCE_SECONDS,
        monotonic: Callable[[], float] = time.monotonic,
        feedback: Callable[[str], None] | None = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.codec = ViewStateCodec(resolver)
        self.surface_factory = surface_factory
        self.scheduler = SaveScheduler(self._save, delay_seconds=save_delay_seconds, monotonic=monotonic)
        self.feedback = feedback
        self.windows: list[ViewerWindow] = []
        self.active_index = 0
        self.launched = False
        self.pending_requests: list[Path] = []
        self.last_save: SaveOutcome | None = None
        self._retired: list[WindowState] = []
        self._next_window_id = 1

    # Persistence

    def collect_window_states(self) -> list[WindowState]:
        states: list[WindowState] = []
        for window in self.windows:
            state = self.codec.capture_window(window.surface, window.navigation, window.frame)
            if state is not None:
                states.append(state)
        return states

    def _save(self) -> SaveOutcome:
        retired, self._retired = self._retired, []
        self.last_save = self.store.save_session(self.collect_window_states(), retired)
        return self.last_save

    def _report(self, message: str) -> None:
        if self.feedback is not None:
            self.feedback(message)

    # Window lifecycle

    def open_document(
        self,
        path: Path | str,
        window_state: WindowState | None = None,
        fingerprint_ok: bool = True,
    ) -> ViewerWindow:
        """Open a window on ``path``, restoring ``window_state`` when given.

        Raises ``IdentityError`` when the document cannot be read.
        """
        target = Path(path)
        try:
            surface = self.surface_factory(target)
        except OSError as exc:
            raise IdentityError(target, exc.strerror or exc.__class__.__name__) from exc

        navigation = NavigationCore(
            surface,
            on_marks_changed=self.scheduler.schedule_save,
            feedback=self._report,
        )
        window = ViewerWindow(self._next_window_id, target, surface, navigation)
        self._next_window_id += 1
        if window_state is not None:
            self.codec.restore(surface, window_state, fingerprint_ok, window.navigation)
            window.frame = window_state.frame

        window.subscription = surface.subscribe(_WindowObserver(self, window))
        self.windows.append(window)
        self.scheduler.schedule_save()
        return window

    def open_in_new_window(self, source: ViewerWindow, location: JumpLocation | None = None) -> ViewerWindow:
        """Open ``source``'s document again, keeping its zoom and layout.

        This is not a navigation within ``source``, so neither window's jump
        list changes.
        """
        window = self.open_document(source.path)
        surface = window.surface
        surface.set_layout(source.surface.layout_mode, source.surface.layout_direction, source.surface.paired_pages)
        surface.set_zoom(source.surface.current_zoom())
        target = location if location is not None else source.navigation.current_location()
        window.navigation.apply_location(target)
        self.active_index = len(self.windows) - 1
        return window

    def close_window(self, window: ViewerWindow) -> None:
        if window.closed:
            return
        if window.subscription is not None and window.subscription.active:
            window.surface.notify_closing()
        if not window.closed:
            self._window_closing(window)

    def _window_closing(self, window: ViewerWindow) -> None:
        if window.closed:
            return
        if not self.scheduler.terminating:
            final_state = self.codec.capture_window(window.surface, window.navigation, window.frame)
            if final_state is not None:
                self._retired.append(final_state)
        window.closed = True
        if window.subscription is not None:
            window.subscription.cancel()
        if window in self.windows:
            idx = self.windows.index(window)
            self.windows.remove(window)
            if idx < self.active_index or self.active_index >= len(self.windows):
                self.active_index = max(0, self.active_index - 1)
        self.scheduler.window_closed()

    def request_termination(self) -> None:
        """Flush with every window still open, then tear windows down silently."""
        self.scheduler.begin_termination()
        for window in list(self.windows):
            self.close_window(window)
        self.store.close()

    # Startup

    def request_open(self, path: Path | str, policy: RestorePolicy) -> list[ViewerWindow]:
        """Handle an external open request; queued until launch completes."""
        if not self.launched:
            self.pending_requests.append(Path(path))
            return []
        try:
            openings = policy.plan_document(path)
        except IdentityError as exc:
            self._report(f"Cannot open {path}: {exc.reason or exc}")
            return []
        plan = RestorePlan(mode=RestoreMode.REQUESTED_FILES, openings=openings)
        return self.execute(plan)

    def launch(self, policy: RestorePolicy, explicit_path: Path | str | None = None) -> RestorePlan:
        """Run the restore policy once and open everything it selects."""
        plan = policy.plan(explicit_path, list(self.pending_requests))
        self.pending_requests.clear()
        self.execute(plan)
        self.launched = True
        return plan

    def execute(self, plan: RestorePlan) -> list[ViewerWindow]:
        """Open every window in ``plan``; failures are recorded, never raised."""
        opened: list[ViewerWindow] = []
        for opening in plan.openings:
            try:
                opened.append(self.open_document(opening.path, opening.window, opening.fingerprint_ok))
            except IdentityError as exc:
                logger.warning("Could not open %s: %s", opening.path, exc)
                plan.failures.append(RestoreFailure(opening.path, exc))
        return opened

    # Active window

    @property
    def active_window(self) -> ViewerWindow | None:
        if not self.windows:
            return None
        self.active_index = max(0, min(self.active_index, len(self.windows) - 1))
        return self.windows[self.active_index]

    def focus_next_window(self) -> None:
        if self.windows:
            self.active_index = (self.active_index + 1) % len(self.windows)
