"""Keyed JSON blobs on disk.

Each key maps to ``<directory>/<key>.json``. Writes go through a temporary
file in the same directory and ``os.replace`` so a crash mid-write leaves the
previous blob intact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from ..errors import DeserializationFailure, PersistenceWriteFailure

logger = logging.getLogger(__name__)

SESSION_BLOB = "session"
DOCUMENTS_BLOB = "documents"


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Atomically replace ``path`` with ``data``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_name, exc_info=True)


class BlobStore:
    """Read and write JSON documents by key under one directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> object:
        """Return the decoded JSON for ``key``.

        Raises ``DeserializationFailure`` when the blob is absent, unreadable,
        or not valid JSON.
        """
        path = self.path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise DeserializationFailure(f"{path} does not exist") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise DeserializationFailure(f"{path} is unreadable: {exc}") from exc
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise DeserializationFailure(f"{path} is not valid JSON: {exc}") from exc

    def write(self, key: str, data: object) -> None:
        """Persist ``data`` for ``key``; raises ``PersistenceWriteFailure`` on any error."""
        path = self.path_for(key)
        try:
            encoded = (json.dumps(data, indent=2) + "\n").encode("utf-8")
            atomic_write_bytes(path, encoded)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceWriteFailure(f"could not write {path}: {exc}") from exc
