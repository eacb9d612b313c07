"""Document identity and the persisted viewing-state model."""

from .identity import IdentityResolver, LocatorToken, fingerprint_of
from .model import (
    DEFAULT_ARCHIVE_CAPACITY,
    LAYOUT_DIRECTIONS,
    LAYOUT_MODES,
    BookmarkState,
    DocumentArchive,
    DocumentArchiveEntry,
    DocumentKey,
    DocumentViewState,
    FileFingerprint,
    FrameRect,
    PagePoint,
    SessionSnapshot,
    WindowState,
    default_paired_pages,
)

__all__ = [
    "DEFAULT_ARCHIVE_CAPACITY",
    "LAYOUT_DIRECTIONS",
    "LAYOUT_MODES",
    "BookmarkState",
    "DocumentArchive",
    "DocumentArchiveEntry",
    "DocumentKey",
    "DocumentViewState",
    "FileFingerprint",
    "FrameRect",
    "IdentityResolver",
    "LocatorToken",
    "PagePoint",
    "SessionSnapshot",
    "WindowState",
    "default_paired_pages",
    "fingerprint_of",
]
