"""Command-line front door for updraft.

Parses CLI options, configures logging, and either dumps persisted state or
dispatches into the interactive viewer runtime.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import config
from .config import LOG_LEVELS
from .inspect_state import render_state
from .log import configure_logging
from .runtime import run_viewer


def _log_level(value: str) -> str:
    """argparse type for case-insensitive log level names."""
    normalized = value.strip().upper()
    if normalized not in LOG_LEVELS:
        raise argparse.ArgumentTypeError(f"invalid log level: {value!r} (choose from {', '.join(LOG_LEVELS)})")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="updraft",
        description="Page through documents in the terminal, resuming exactly where you left off.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Document to open. Without it the previous session is restored.",
    )
    parser.add_argument("--log-level", type=_log_level, default=None, help="Override the configured log level.")
    parser.add_argument("--show-state", action="store_true", help="Print the persisted session and archive, then exit.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and launch the viewer.

    Extra positional arguments beyond the first path are ignored.
    """
    parser = build_parser()
    args, extra = parser.parse_known_args(argv)
    unknown_options = [item for item in extra if item.startswith("-")]
    if unknown_options:
        parser.error(f"unrecognized arguments: {' '.join(unknown_options)}")

    settings = config.load_settings()
    configure_logging(args.log_level or settings.log_level, config.log_path())

    if args.show_state:
        color = not args.no_color and sys.stdout.isatty()
        sys.stdout.write(render_state(config.state_dir(), color))
        return 0

    explicit_path = Path(args.path).expanduser() if args.path is not None else None
    return run_viewer(settings, explicit_path, config.requested_open_files())
