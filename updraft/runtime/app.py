"""Viewer bootstrap: build collaborators, restore, run, and tear down.

Owns the process-level initialization/teardown boundary for the store. The
termination flush always runs before any window is closed, including when
the loop exits with an exception.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from ..config import Settings, state_dir
from ..document.identity import IdentityResolver
from ..errors import UpdraftError
from ..persistence.blobs import BlobStore
from ..persistence.store import PersistentStore
from ..view.surface import PagedTextSurface
from .input import KeyReader
from .loop import FeedbackSink, LoopState, run_main_loop
from .restore import RestorePlan, RestorePolicy
from .session import ViewerSession
from .terminal import TerminalController

logger = logging.getLogger(__name__)


class StartupError(UpdraftError):
    """Nothing could be opened and there is no session to fall back on."""


def build_session(settings: Settings, directory: Path | None = None) -> tuple[ViewerSession, RestorePolicy]:
    """Create the store, session, and restore policy sharing one resolver."""
    resolver = IdentityResolver()
    store = PersistentStore(
        BlobStore(directory if directory is not None else state_dir()),
        resolver,
        capacity=settings.archive_capacity,
        touch_on_update=settings.touch_on_update,
    )

    def surface_factory(path: Path) -> PagedTextSurface:
        return PagedTextSurface.open(path, lines_per_page=settings.lines_per_page)

    session = ViewerSession(
        store,
        resolver,
        surface_factory,
        save_delay_seconds=settings.save_debounce_seconds,
    )
    return session, RestorePolicy(store, resolver)


def launch_session(
    session: ViewerSession,
    policy: RestorePolicy,
    explicit_path: Path | None,
    requested_paths: Sequence[Path] = (),
) -> RestorePlan:
    """Queue early open requests, run the restore policy, and validate the result.

    Raises ``StartupError`` when an explicit path failed and nothing opened.
    """
    for requested in requested_paths:
        session.request_open(requested, policy)
    plan = session.launch(policy, explicit_path)
    logger.info("restored %d window(s) via %s", len(session.windows), plan.mode.name)
    if explicit_path is not None and not session.windows:
        reason = plan.failures[0].error if plan.failures else "no windows opened"
        raise StartupError(f"Failed to open document: {explicit_path} ({reason})")
    return plan


def run_viewer(
    settings: Settings,
    explicit_path: Path | None = None,
    requested_paths: Sequence[Path] = (),
) -> int:
    """Restore windows and run the interactive loop; returns a process exit code."""
    session, policy = build_session(settings)
    try:
        plan = launch_session(session, policy, explicit_path, requested_paths)
    except StartupError as exc:
        session.store.close()
        raise SystemExit(str(exc)) from exc

    if not session.windows:
        session.store.close()
        sys.stderr.write("Usage: updraft /path/to/document (no previous session to restore)\n")
        return 0

    terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    reader = KeyReader(sys.stdin.fileno())
    state = LoopState()
    session.feedback = FeedbackSink(state, terminal.bell)
    for failure in plan.failures:
        session.feedback(f"Skipped {failure.path}: {failure.error}")
    try:
        run_main_loop(session, terminal, reader.read_key, state)
    finally:
        session.request_termination()
    return 0

