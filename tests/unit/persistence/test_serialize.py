"""Tests for session and archive blob encoding.

Decoding must be defensive: mistyped fields fall back to defaults and
unusable windows are dropped without failing the whole blob.
"""

from __future__ import annotations

import unittest

from updraft.document.model import (
    LAYOUT_TWO_UP,
    BookmarkState,
    DocumentArchive,
    DocumentKey,
    DocumentViewState,
    FileFingerprint,
    FrameRect,
    PagePoint,
    SessionSnapshot,
    WindowState,
)
from updraft.errors import DeserializationFailure
from updraft.persistence import serialize


def _key(name: str = "doc") -> DocumentKey:
    return DocumentKey(locator=name.encode("utf-8"), fingerprint=FileFingerprint(10, 123.5))


def _window() -> WindowState:
    return WindowState(
        document=_key(),
        view=DocumentViewState(
            page_index=4,
            point=PagePoint(3.0, 7.0),
            scale_factor=1.5,
            uses_auto_scale=False,
            marks={"a": BookmarkState(2, PagePoint(1.0, 1.0)), "B": BookmarkState(0)},
        ),
        frame=FrameRect(10.0, 20.0, 800.0, 600.0),
        layout_mode=LAYOUT_TWO_UP,
        paired_pages=False,
    )


class SessionCodecTests(unittest.TestCase):
    def test_session_decodes_what_it_encodes(self) -> None:
        snapshot = SessionSnapshot(windows=(_window(),))
        self.assertEqual(serialize.decode_session(serialize.encode_session(snapshot)), snapshot)

    def test_encoded_session_carries_version(self) -> None:
        self.assertEqual(serialize.encode_session(SessionSnapshot())["version"], serialize.BLOB_VERSION)

    def test_unknown_version_is_rejected(self) -> None:
        with self.assertRaises(DeserializationFailure):
            serialize.decode_session({"version": 99, "windows": []})

    def test_non_object_blob_is_rejected(self) -> None:
        with self.assertRaises(DeserializationFailure):
            serialize.decode_session(["not", "an", "object"])

    def test_windows_with_bad_keys_are_dropped(self) -> None:
        good = serialize.encode_window(_window())
        data = {
            "version": 1,
            "windows": [
                good,
                {"document": {"locator": "!!!", "fingerprint": {"size": 1, "mod_time": 1}}},
                {"document": None},
                "junk",
            ],
        }
        snapshot = serialize.decode_session(data)
        self.assertEqual(len(snapshot.windows), 1)

    def test_mistyped_optional_fields_fall_back(self) -> None:
        raw = serialize.encode_window(_window())
        raw["layout_mode"] = "spiral"
        raw["layout_direction"] = 4
        raw["paired_pages"] = "yes"
        raw["frame"] = {"x": 0, "y": 0, "width": -5, "height": 10}
        raw["view"] = {"page_index": True, "point": [1], "scale_factor": "big", "marks": {"ab": {}, "1": {}}}

        window = serialize.decode_window(raw)

        self.assertIsNotNone(window)
        self.assertEqual(window.layout_mode, "single_page_continuous")
        self.assertEqual(window.layout_direction, "vertical")
        self.assertIsNone(window.paired_pages)
        self.assertIsNone(window.frame)
        self.assertEqual(window.view, DocumentViewState(page_index=0))

    def test_empty_marks_are_not_written(self) -> None:
        encoded = serialize.encode_view(DocumentViewState(page_index=1))
        self.assertNotIn("marks", encoded)


class ArchiveCodecTests(unittest.TestCase):
    def test_archive_keeps_entry_order(self) -> None:
        archive = DocumentArchive()
        for name in ("one", "two", "three"):
            key = _key(name)
            archive.upsert(key, [WindowState(document=key, view=DocumentViewState(page_index=1))])

        decoded = serialize.decode_archive(serialize.encode_archive(archive))

        self.assertEqual([entry.document for entry in decoded.entries], [e.document for e in archive.entries])

    def test_decode_applies_runtime_capacity(self) -> None:
        archive = DocumentArchive(capacity=10)
        for idx in range(5):
            archive.upsert(_key(str(idx)), [])

        decoded = serialize.decode_archive(serialize.encode_archive(archive), capacity=3)

        self.assertEqual([entry.document for entry in decoded.entries], [_key("2"), _key("3"), _key("4")])

    def test_duplicate_entries_merge_into_first_position(self) -> None:
        key = _key("dup")
        first = serialize.encode_window(WindowState(document=key, view=DocumentViewState(page_index=1)))
        second = serialize.encode_window(WindowState(document=key, view=DocumentViewState(page_index=8)))
        data = {
            "version": 1,
            "entries": [
                {"document": serialize.encode_key(key), "windows": [first]},
                {"document": serialize.encode_key(_key("other")), "windows": []},
                {"document": serialize.encode_key(key), "windows": [second]},
            ],
        }

        decoded = serialize.decode_archive(data)

        self.assertEqual(len(decoded.entries), 2)
        self.assertEqual(decoded.entries[0].document, key)
        self.assertEqual(decoded.entries[0].windows[0].view.page_index, 8)


class NonFiniteNumberTests(unittest.TestCase):
    def test_non_finite_coordinates_decode_as_missing(self) -> None:
        raw = serialize.encode_window(_window())
        raw["view"]["point"] = [float("nan"), float("inf")]
        raw["view"]["scale_factor"] = float("inf")
        raw["view"]["marks"]["a"]["point"] = [float("-inf"), 1.0]
        raw["frame"]["width"] = float("inf")

        window = serialize.decode_window(raw)

        self.assertIsNotNone(window)
        self.assertIsNone(window.view.point)
        self.assertIsNone(window.view.scale_factor)
        self.assertEqual(window.view.marks["a"], BookmarkState(2, None))
        self.assertIsNone(window.frame)

    def test_non_finite_mod_time_drops_the_window(self) -> None:
        raw = serialize.encode_window(_window())
        raw["document"]["fingerprint"]["mod_time"] = float("nan")
        self.assertIsNone(serialize.decode_window(raw))


if __name__ == "__main__":
    unittest.main()
