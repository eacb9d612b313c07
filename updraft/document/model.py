"""Persisted viewing-state model.

All types here are plain values owned by ``PersistentStore``. Surfaces and
navigation code build them during capture and read them during restore, but
never keep references to them afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_ARCHIVE_CAPACITY = 500

LAYOUT_SINGLE_PAGE = "single_page"
LAYOUT_SINGLE_PAGE_CONTINUOUS = "single_page_continuous"
LAYOUT_TWO_UP = "two_up"
LAYOUT_TWO_UP_CONTINUOUS = "two_up_continuous"
LAYOUT_MODES = (
    LAYOUT_SINGLE_PAGE,
    LAYOUT_SINGLE_PAGE_CONTINUOUS,
    LAYOUT_TWO_UP,
    LAYOUT_TWO_UP_CONTINUOUS,
)
DEFAULT_LAYOUT_MODE = LAYOUT_SINGLE_PAGE_CONTINUOUS

DIRECTION_VERTICAL = "vertical"
DIRECTION_HORIZONTAL = "horizontal"
LAYOUT_DIRECTIONS = (DIRECTION_VERTICAL, DIRECTION_HORIZONTAL)
DEFAULT_LAYOUT_DIRECTION = DIRECTION_VERTICAL


def is_side_by_side(layout_mode: str) -> bool:
    return layout_mode in {LAYOUT_TWO_UP, LAYOUT_TWO_UP_CONTINUOUS}


def default_paired_pages(layout_mode: str) -> bool:
    """Book-style pairing is on by default only for side-by-side layouts."""
    return is_side_by_side(layout_mode)


@dataclass(frozen=True)
class FileFingerprint:
    """Weak identity signal: byte size plus modification time in seconds."""

    size: int
    mod_time: float


@dataclass(frozen=True)
class DocumentKey:
    """Durable document key.

    Equality covers both the locator token and the fingerprint. Lookups that
    need looser matching go through ``PersistentStore.lookup_entry``.
    """

    locator: bytes
    fingerprint: FileFingerprint


@dataclass(frozen=True)
class PagePoint:
    x: float
    y: float


@dataclass(frozen=True)
class FrameRect:
    """Window frame in screen coordinates."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class BookmarkState:
    """One letter-keyed mark."""

    page_index: int
    point: PagePoint | None = None

    def __post_init__(self) -> None:
        if self.page_index < 0:
            object.__setattr__(self, "page_index", 0)

    def without_point(self) -> BookmarkState:
        return BookmarkState(page_index=self.page_index, point=None)


@dataclass(frozen=True)
class DocumentViewState:
    """Where one window was looking: page, point, zoom, and marks.

    ``uses_auto_scale`` and ``scale_factor`` are mutually exclusive; an
    auto-fit state never carries a scale factor, and a non-positive scale
    factor is dropped.
    """

    page_index: int
    point: PagePoint | None = None
    scale_factor: float | None = None
    uses_auto_scale: bool = True
    marks: dict[str, BookmarkState] | None = None

    def __post_init__(self) -> None:
        if self.page_index < 0:
            object.__setattr__(self, "page_index", 0)
        if self.uses_auto_scale or (self.scale_factor is not None and self.scale_factor <= 0):
            object.__setattr__(self, "scale_factor", None)
        if not self.uses_auto_scale and self.scale_factor is None:
            object.__setattr__(self, "uses_auto_scale", True)
        if self.marks is not None and not self.marks:
            object.__setattr__(self, "marks", None)


@dataclass(frozen=True)
class WindowState:
    document: DocumentKey
    view: DocumentViewState
    frame: FrameRect | None = None
    layout_mode: str = DEFAULT_LAYOUT_MODE
    layout_direction: str = DEFAULT_LAYOUT_DIRECTION
    paired_pages: bool | None = None

    def resolved_paired_pages(self) -> bool:
        if self.paired_pages is not None:
            return self.paired_pages
        return default_paired_pages(self.layout_mode)


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything open at the last save, replaced wholesale on every save."""

    windows: tuple[WindowState, ...] = ()

    def is_empty(self) -> bool:
        return not self.windows


@dataclass
class DocumentArchiveEntry:
    document: DocumentKey
    windows: list[WindowState] = field(default_factory=list)


@dataclass
class DocumentArchive:
    """Capped per-document window history.

    Entries keep insertion order. When ``touch_on_update`` is false (the
    default) an update leaves the entry where it was first created, so only
    creation recency protects it from eviction.
    """

    entries: list[DocumentArchiveEntry] = field(default_factory=list)
    capacity: int = DEFAULT_ARCHIVE_CAPACITY
    touch_on_update: bool = False

    def __post_init__(self) -> None:
        self.capacity = max(1, int(self.capacity))

    def __len__(self) -> int:
        return len(self.entries)

    def find_exact(self, key: DocumentKey) -> DocumentArchiveEntry | None:
        for entry in self.entries:
            if entry.document == key:
                return entry
        return None

    def upsert(self, key: DocumentKey, windows: list[WindowState]) -> DocumentArchiveEntry:
        """Replace the window list for ``key``; create the entry if new."""
        entry = self.find_exact(key)
        if entry is None:
            entry = DocumentArchiveEntry(document=key, windows=list(windows))
            self.entries.append(entry)
        else:
            entry.windows = list(windows)
            if self.touch_on_update:
                self.entries.remove(entry)
                self.entries.append(entry)
        self.evict()
        return entry

    def evict(self) -> int:
        """Drop entries from the front until within capacity; return count dropped."""
        overflow = len(self.entries) - self.capacity
        if overflow <= 0:
            return 0
        del self.entries[:overflow]
        return overflow
