"""Durable document identity.

A ``DocumentKey`` pairs a locator token (where the file was, plus enough to
find it again after a rename) with a ``FileFingerprint`` (size + mtime) used to
decide whether fine-grained positions saved against it can still be trusted.
"""

from __future__ import annotations

import json
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from ..errors import IdentityError, UnresolvableLocator
from .model import DocumentKey, FileFingerprint

logger = logging.getLogger(__name__)


def fingerprint_of(path: Path) -> FileFingerprint | None:
    """Return the current fingerprint for ``path``, or ``None`` if it cannot be stat'd."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    return FileFingerprint(size=int(st.st_size), mod_time=float(st.st_mtime))


@dataclass(frozen=True)
class LocatorToken:
    """Last-known path plus the device/inode pair of the file it named.

    An inode of ``0`` means the platform gave us nothing durable and the
    token is a plain path.
    """

    path: Path
    device: int = 0
    inode: int = 0

    def encode(self) -> bytes:
        payload = {"path": str(self.path), "device": self.device, "inode": self.inode}
        return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")

    @classmethod
    def decode(cls, raw: bytes) -> LocatorToken:
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise UnresolvableLocator() from exc
        if not isinstance(payload, dict):
            raise UnresolvableLocator()
        raw_path = payload.get("path")
        if not isinstance(raw_path, str) or not raw_path:
            raise UnresolvableLocator()
        device = payload.get("device", 0)
        inode = payload.get("inode", 0)
        return cls(
            path=Path(raw_path),
            device=device if isinstance(device, int) and not isinstance(device, bool) else 0,
            inode=inode if isinstance(inode, int) and not isinstance(inode, bool) else 0,
        )

    @property
    def is_durable(self) -> bool:
        return self.inode != 0


def _absolute(path: Path | str) -> Path:
    candidate = Path(path).expanduser()
    try:
        return candidate.resolve()
    except (OSError, RuntimeError):
        return Path(os.path.abspath(candidate))


class IdentityResolver:
    """Derive and resolve durable document keys for file paths."""

    def resolve(self, path: Path | str) -> DocumentKey:
        """Build a ``DocumentKey`` for ``path``.

        Raises ``IdentityError`` when the file cannot be stat'd or is not a
        regular file.
        """
        target = _absolute(path)
        try:
            st = os.stat(target)
        except OSError as exc:
            raise IdentityError(target, exc.strerror or exc.__class__.__name__) from exc
        if not stat.S_ISREG(st.st_mode):
            raise IdentityError(target, "not a regular file")
        if not os.access(target, os.R_OK):
            raise IdentityError(target, "permission denied")

        token = LocatorToken(path=target, device=int(st.st_dev), inode=int(st.st_ino))
        return DocumentKey(
            locator=token.encode(),
            fingerprint=FileFingerprint(size=int(st.st_size), mod_time=float(st.st_mtime)),
        )

    def locator_of(self, key: DocumentKey) -> Path:
        """Turn a key's locator back into an openable path.

        The recorded path wins when it still exists, even if an editor
        replaced the file in place. Otherwise a durable token is matched by
        device/inode against the recorded parent directory, which covers a
        rename. Raises ``UnresolvableLocator`` when neither works.
        """
        token = LocatorToken.decode(key.locator)
        if token.path.is_file():
            return token.path
        if not token.is_durable:
            raise UnresolvableLocator(token.path)

        renamed = self._find_by_inode(token)
        if renamed is None:
            raise UnresolvableLocator(token.path)
        logger.debug("Locator for %s followed rename to %s", token.path, renamed)
        return renamed

    def try_locator_of(self, key: DocumentKey) -> Path | None:
        try:
            return self.locator_of(key)
        except UnresolvableLocator:
            return None

    def fingerprint_matches(self, key: DocumentKey, path: Path | str) -> bool:
        """Compare the file's current fingerprint with the one stored in ``key``.

        A file that cannot be stat'd has nothing to contradict the stored
        fingerprint, so it counts as a match.
        """
        current = fingerprint_of(_absolute(path))
        if current is None:
            return True
        return current == key.fingerprint

    def _find_by_inode(self, token: LocatorToken) -> Path | None:
        parent = token.path.parent
        try:
            entries = list(os.scandir(parent))
        except OSError:
            return None
        for entry in entries:
            try:
                if entry.inode() != token.inode:
                    continue
                st = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            if int(st.st_dev) == token.device and stat.S_ISREG(st.st_mode):
                return Path(entry.path)
        return None
