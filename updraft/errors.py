"""Error taxonomy for document identity and session persistence.

Every failure is contained at the operation that produced it; these types
exist so lower layers can raise precisely and boundaries can catch narrowly.
"""

from __future__ import annotations

from pathlib import Path


class UpdraftError(Exception):
    """Base class for all updraft failures."""


class IdentityError(UpdraftError):
    """A file could not be stat'd or given a durable locator."""

    def __init__(self, path: Path | str, reason: str = "") -> None:
        self.path = Path(path)
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"cannot derive document identity for {self.path}{detail}")


class UnresolvableLocator(UpdraftError):
    """A stored locator no longer points at an openable file."""

    def __init__(self, last_known_path: Path | None = None) -> None:
        self.last_known_path = last_known_path
        where = str(last_known_path) if last_known_path is not None else "<unknown>"
        super().__init__(f"document is no longer reachable: {where}")


class DeserializationFailure(UpdraftError):
    """A persisted blob is missing, unreadable, or malformed."""


class PersistenceWriteFailure(UpdraftError):
    """A persisted blob could not be written."""
