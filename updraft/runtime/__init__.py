"""Interactive runtime: restore policy, window session, and terminal loop."""

from .app import StartupError, build_session, launch_session, run_viewer
from .restore import RestoreFailure, RestoreMode, RestorePlan, RestorePolicy, WindowOpening
from .session import ViewerSession, ViewerWindow

__all__ = [
    "RestoreFailure",
    "RestoreMode",
    "RestorePlan",
    "RestorePolicy",
    "StartupError",
    "ViewerSession",
    "ViewerWindow",
    "WindowOpening",
    "build_session",
    "launch_session",
    "run_viewer",
]
