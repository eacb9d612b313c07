"""Logging setup.

The terminal UI owns stdout/stderr while it runs, so records go to a file.
"""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str, log_path: Path) -> logging.Handler | None:
    """Attach one file handler to the ``updraft`` logger.

    Returns the handler, or ``None`` when the log file cannot be opened;
    logging is then left unconfigured rather than failing startup.
    """
    root = logging.getLogger("updraft")
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        return None
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    for existing in list(root.handlers):
        if isinstance(existing, logging.FileHandler):
            root.removeHandler(existing)
            existing.close()
    root.addHandler(handler)
    return handler
