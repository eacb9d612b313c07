"""JSON encoding for persisted session and archive blobs.

Decoding is defensive in the same way preference loading is: unknown keys
are ignored, mistyped optional fields fall back to their defaults, and a
window whose document key cannot be decoded is dropped instead of failing
the whole blob.
"""

from __future__ import annotations

import base64
import binascii
import math

from ..document.model import (
    DEFAULT_ARCHIVE_CAPACITY,
    DEFAULT_LAYOUT_DIRECTION,
    DEFAULT_LAYOUT_MODE,
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
)
from ..errors import DeserializationFailure
from ..view.navigation import is_mark_letter

BLOB_VERSION = 1


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _coerce_nonnegative_int(value: object) -> int:
    """Booleans and non-integers are invalid and coerce to ``0``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


# Encoding


def encode_point(point: PagePoint | None) -> list[float] | None:
    if point is None:
        return None
    return [point.x, point.y]


def encode_frame(frame: FrameRect | None) -> dict[str, float] | None:
    if frame is None:
        return None
    return {"x": frame.x, "y": frame.y, "width": frame.width, "height": frame.height}


def encode_key(key: DocumentKey) -> dict[str, object]:
    return {
        "locator": base64.b64encode(key.locator).decode("ascii"),
        "fingerprint": {"size": key.fingerprint.size, "mod_time": key.fingerprint.mod_time},
    }


def encode_bookmark(mark: BookmarkState) -> dict[str, object]:
    return {"page_index": mark.page_index, "point": encode_point(mark.point)}


def encode_view(view: DocumentViewState) -> dict[str, object]:
    data: dict[str, object] = {
        "page_index": view.page_index,
        "point": encode_point(view.point),
        "scale_factor": view.scale_factor,
        "uses_auto_scale": view.uses_auto_scale,
    }
    if view.marks:
        data["marks"] = {letter: encode_bookmark(mark) for letter, mark in sorted(view.marks.items())}
    return data


def encode_window(window: WindowState) -> dict[str, object]:
    return {
        "document": encode_key(window.document),
        "view": encode_view(window.view),
        "frame": encode_frame(window.frame),
        "layout_mode": window.layout_mode,
        "layout_direction": window.layout_direction,
        "paired_pages": window.paired_pages,
    }


def encode_session(snapshot: SessionSnapshot) -> dict[str, object]:
    return {
        "version": BLOB_VERSION,
        "windows": [encode_window(window) for window in snapshot.windows],
    }


def encode_archive(archive: DocumentArchive) -> dict[str, object]:
    return {
        "version": BLOB_VERSION,
        "capacity": archive.capacity,
        "entries": [
            {
                "document": encode_key(entry.document),
                "windows": [encode_window(window) for window in entry.windows],
            }
            for entry in archive.entries
        ],
    }


# Decoding


def decode_point(raw: object) -> PagePoint | None:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        return None
    x, y = raw
    if not _is_number(x) or not _is_number(y):
        return None
    return PagePoint(float(x), float(y))


def decode_frame(raw: object) -> FrameRect | None:
    if not isinstance(raw, dict):
        return None
    values = [raw.get(name) for name in ("x", "y", "width", "height")]
    if not all(_is_number(value) for value in values):
        return None
    x, y, width, height = (float(value) for value in values)
    if width <= 0 or height <= 0:
        return None
    return FrameRect(x, y, width, height)


def decode_key(raw: object) -> DocumentKey | None:
    """Decode a document key, returning ``None`` for anything unusable."""
    if not isinstance(raw, dict):
        return None
    locator = raw.get("locator")
    fingerprint = raw.get("fingerprint")
    if not isinstance(locator, str) or not locator or not isinstance(fingerprint, dict):
        return None
    try:
        locator_bytes = base64.b64decode(locator.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError):
        return None
    size = fingerprint.get("size")
    mod_time = fingerprint.get("mod_time")
    if isinstance(size, bool) or not isinstance(size, int) or not _is_number(mod_time):
        return None
    return DocumentKey(
        locator=locator_bytes,
        fingerprint=FileFingerprint(size=size, mod_time=float(mod_time)),
    )


def decode_bookmark(raw: object) -> BookmarkState | None:
    if not isinstance(raw, dict):
        return None
    return BookmarkState(
        page_index=_coerce_nonnegative_int(raw.get("page_index", 0)),
        point=decode_point(raw.get("point")),
    )


def decode_marks(raw: object) -> dict[str, BookmarkState] | None:
    if not isinstance(raw, dict):
        return None
    marks: dict[str, BookmarkState] = {}
    for letter, raw_mark in raw.items():
        if not is_mark_letter(letter):
            continue
        mark = decode_bookmark(raw_mark)
        if mark is not None:
            marks[letter] = mark
    return marks or None


def decode_view(raw: object) -> DocumentViewState:
    if not isinstance(raw, dict):
        return DocumentViewState(page_index=0)
    scale = raw.get("scale_factor")
    uses_auto = raw.get("uses_auto_scale")
    scale_factor = float(scale) if _is_number(scale) and scale > 0 else None
    if not isinstance(uses_auto, bool):
        uses_auto = scale_factor is None
    return DocumentViewState(
        page_index=_coerce_nonnegative_int(raw.get("page_index", 0)),
        point=decode_point(raw.get("point")),
        scale_factor=scale_factor,
        uses_auto_scale=uses_auto,
        marks=decode_marks(raw.get("marks")),
    )


def decode_window(raw: object) -> WindowState | None:
    if not isinstance(raw, dict):
        return None
    key = decode_key(raw.get("document"))
    if key is None:
        return None
    layout_mode = raw.get("layout_mode")
    if layout_mode not in LAYOUT_MODES:
        layout_mode = DEFAULT_LAYOUT_MODE
    layout_direction = raw.get("layout_direction")
    if layout_direction not in LAYOUT_DIRECTIONS:
        layout_direction = DEFAULT_LAYOUT_DIRECTION
    paired_pages = raw.get("paired_pages")
    return WindowState(
        document=key,
        view=decode_view(raw.get("view")),
        frame=decode_frame(raw.get("frame")),
        layout_mode=layout_mode,
        layout_direction=layout_direction,
        paired_pages=paired_pages if isinstance(paired_pages, bool) else None,
    )


def _decode_windows(raw: object) -> list[WindowState]:
    if not isinstance(raw, list):
        return []
    windows: list[WindowState] = []
    for raw_window in raw:
        window = decode_window(raw_window)
        if window is not None:
            windows.append(window)
    return windows


def _check_version(data: object) -> dict[str, object]:
    if not isinstance(data, dict):
        raise DeserializationFailure("blob is not a JSON object")
    version = data.get("version", BLOB_VERSION)
    if version != BLOB_VERSION:
        raise DeserializationFailure(f"unsupported blob version: {version!r}")
    return data


def decode_session(data: object) -> SessionSnapshot:
    """Decode a session blob; raises ``DeserializationFailure`` on a bad envelope."""
    payload = _check_version(data)
    return SessionSnapshot(windows=tuple(_decode_windows(payload.get("windows"))))


def decode_archive(
    data: object,
    capacity: int = DEFAULT_ARCHIVE_CAPACITY,
    touch_on_update: bool = False,
) -> DocumentArchive:
    """Decode an archive blob into an archive with the given runtime capacity.

    Duplicate entries for the same key keep the first occurrence's position
    and the last occurrence's windows.
    """
    payload = _check_version(data)
    archive = DocumentArchive(capacity=capacity, touch_on_update=touch_on_update)
    raw_entries = payload.get("entries")
    if not isinstance(raw_entries, list):
        return archive
    for raw_entry in raw_entries:
        if not isinstance(raw_entry, dict):
            continue
        key = decode_key(raw_entry.get("document"))
        if key is None:
            continue
        existing = archive.find_exact(key)
        windows = _decode_windows(raw_entry.get("windows"))
        if existing is not None:
            existing.windows = windows
            continue
        archive.entries.append(DocumentArchiveEntry(document=key, windows=windows))
    archive.evict()
    return archive
