"""Two-tier persisted state: the latest session and a capped document archive.

The session blob is "everything open at the last save" and is overwritten on
every save. The documents blob remembers each document's windows even after
it leaves the session, so reopening a file by path restores its own history.
The two blobs are independent failure domains: one failing to write never
prevents the other.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from ..document.identity import IdentityResolver, LocatorToken
from ..document.model import (
    DEFAULT_ARCHIVE_CAPACITY,
    DocumentArchive,
    DocumentArchiveEntry,
    DocumentKey,
    SessionSnapshot,
    WindowState,
)
from ..errors import DeserializationFailure, IdentityError, PersistenceWriteFailure, UnresolvableLocator
from .blobs import DOCUMENTS_BLOB, SESSION_BLOB, BlobStore
from .serialize import decode_archive, decode_session, encode_archive, encode_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveOutcome:
    session_written: bool
    archive_written: bool

    @property
    def ok(self) -> bool:
        return self.session_written and self.archive_written


def group_by_document(windows: Sequence[WindowState]) -> list[tuple[DocumentKey, list[WindowState]]]:
    """Group windows by document key, ordered by each key's first appearance."""
    groups: dict[DocumentKey, list[WindowState]] = {}
    for window in windows:
        groups.setdefault(window.document, []).append(window)
    return list(groups.items())


class PersistentStore:
    """Owns the session snapshot and document archive and their blobs.

    Created once at process start and passed to whoever needs it;
    ``close()`` marks the teardown boundary after which saves are ignored.
    """

    def __init__(
        self,
        blobs: BlobStore,
        resolver: IdentityResolver,
        *,
        capacity: int = DEFAULT_ARCHIVE_CAPACITY,
        touch_on_update: bool = False,
    ) -> None:
        self.blobs = blobs
        self.resolver = resolver
        self.capacity = max(1, int(capacity))
        self.touch_on_update = touch_on_update
        self._archive: DocumentArchive | None = None
        self.closed = False

    @property
    def archive(self) -> DocumentArchive:
        """The in-memory archive, decoded from disk on first access."""
        if self._archive is None:
            self._archive = self._load_archive()
        return self._archive

    def _load_archive(self) -> DocumentArchive:
        try:
            data = self.blobs.read(DOCUMENTS_BLOB)
            return decode_archive(data, capacity=self.capacity, touch_on_update=self.touch_on_update)
        except DeserializationFailure as exc:
            logger.debug("Starting with an empty document archive: %s", exc)
            return DocumentArchive(capacity=self.capacity, touch_on_update=self.touch_on_update)

    def save_session(
        self,
        windows: Sequence[WindowState],
        retired: Sequence[WindowState] = (),
    ) -> SaveOutcome:
        """Replace the session snapshot and fold ``windows`` into the archive.

        Each document's window list replaces its archived list wholesale.
        ``retired`` holds final states of windows closed since the last save;
        they reach the archive only for documents with no window left open.
        Write failures are logged and reported in the outcome, never raised.
        """
        if self.closed:
            logger.debug("Ignoring save after store teardown")
            return SaveOutcome(session_written=False, archive_written=False)

        snapshot = SessionSnapshot(windows=tuple(windows))
        session_written = self._write(SESSION_BLOB, encode_session(snapshot))

        archive = self.archive
        open_groups = group_by_document(snapshot.windows)
        open_keys = {key for key, _group in open_groups}
        retired_groups = [(key, group) for key, group in group_by_document(retired) if key not in open_keys]
        for key, group in open_groups + retired_groups:
            archive.upsert(key, group)
        archive_written = self._write(DOCUMENTS_BLOB, encode_archive(archive))

        return SaveOutcome(session_written=session_written, archive_written=archive_written)

    def _write(self, key: str, data: dict[str, object]) -> bool:
        try:
            self.blobs.write(key, data)
        except PersistenceWriteFailure as exc:
            logger.warning("Persisting %s failed: %s", key, exc)
            return False
        return True

    def load_session(self) -> SessionSnapshot:
        """Return the last saved snapshot, or an empty one if it is missing or corrupt."""
        try:
            return decode_session(self.blobs.read(SESSION_BLOB))
        except DeserializationFailure as exc:
            logger.debug("No usable session snapshot: %s", exc)
            return SessionSnapshot()

    def load_archived_windows(self, path: Path | str) -> list[WindowState]:
        """Return the archived windows for the document at ``path``.

        Lookup order: exact key; then the first entry with the same
        fingerprint whose locator is unresolvable or resolves to ``path``;
        then the most recently created entry whose locator resolves to
        ``path`` (the file changed since it was saved). Never raises.
        """
        try:
            key = self.resolver.resolve(path)
        except IdentityError as exc:
            logger.debug("No archive lookup for %s: %s", path, exc)
            return []
        entry = self.lookup_entry(key)
        return list(entry.windows) if entry is not None else []

    def lookup_entry(self, key: DocumentKey) -> DocumentArchiveEntry | None:
        archive = self.archive
        exact = archive.find_exact(key)
        if exact is not None:
            return exact

        target = self.resolver.try_locator_of(key)
        located: dict[bytes, Path | None] = {}

        def locate(entry: DocumentArchiveEntry) -> Path | None:
            locator = entry.document.locator
            if locator not in located:
                located[locator] = self.resolver.try_locator_of(entry.document)
            return located[locator]

        for entry in archive.entries:
            if entry.document.fingerprint != key.fingerprint:
                continue
            path = locate(entry)
            if path is None or path == target:
                return entry

        if target is None:
            return None
        # A locator only ever resolves inside its recorded directory.
        for entry in reversed(archive.entries):
            try:
                recorded = LocatorToken.decode(entry.document.locator).path
            except UnresolvableLocator:
                continue
            if recorded.parent == target.parent and locate(entry) == target:
                return entry
        return None

    def close(self) -> None:
        self.closed = True
