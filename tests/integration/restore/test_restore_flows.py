"""End-to-end restore flows across simulated process launches.

Each "launch" builds a fresh store and session over the same state
directory, the way the CLI does at startup.
"""

from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path

from updraft.config import Settings
from updraft.document.model import FrameRect, PagePoint
from updraft.persistence.blobs import SESSION_BLOB, BlobStore
from updraft.runtime.app import StartupError, build_session, launch_session
from updraft.runtime.restore import RestoreMode


class RestoreFlowTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        self.state = self.root / "state"
        self.settings = Settings(lines_per_page=300)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _doc(self, name: str, pages: int = 10) -> Path:
        path = self.root / name
        line = "x" * 150 + "\n"
        path.write_text(line * (pages * 300), encoding="utf-8")
        os.utime(path, (1_700_000, 1_700_000))
        return path

    def _launch(self, explicit_path: Path | None = None, requested: list[Path] | None = None):
        session, policy = build_session(self.settings, self.state)
        plan = launch_session(session, policy, explicit_path, requested or [])
        return session, plan

    def test_no_arguments_restores_previous_windows(self) -> None:
        doc_a, doc_b = self._doc("a.txt"), self._doc("b.txt")
        frame_1 = FrameRect(0.0, 0.0, 100.0, 30.0)
        frame_2 = FrameRect(0.0, 0.0, 120.0, 40.0)

        session, _plan = self._launch(explicit_path=doc_a)
        first = session.windows[0]
        second = session.open_document(doc_b)
        first.surface.navigate_to(2)
        first.surface.resize(30, 100)
        second.surface.navigate_to(5)
        second.surface.resize(40, 120)
        session.request_termination()

        restored, plan = self._launch()

        self.assertEqual(plan.mode, RestoreMode.FULL_SESSION)
        self.assertEqual([w.path for w in restored.windows], [doc_a, doc_b])
        self.assertEqual([w.surface.current_page_index() for w in restored.windows], [2, 5])
        self.assertEqual([w.frame for w in restored.windows], [frame_1, frame_2])
        restored.request_termination()

    def test_explicit_path_restores_only_that_document(self) -> None:
        doc_a, doc_b = self._doc("a.txt"), self._doc("b.txt")
        session, _plan = self._launch(explicit_path=doc_a)
        session.windows[0].surface.navigate_to(7, PagePoint(100.0, 200.0))
        session.open_document(doc_b).surface.navigate_to(3)
        session.request_termination()

        restored, plan = self._launch(explicit_path=doc_a)

        self.assertEqual(plan.mode, RestoreMode.EXPLICIT_PATH)
        self.assertEqual([w.path for w in restored.windows], [doc_a])
        surface = restored.windows[0].surface
        self.assertEqual(surface.current_page_index(), 7)
        self.assertEqual(surface.current_point_in_page(), PagePoint(100.0, 200.0))
        restored.request_termination()

    def test_hand_edited_non_finite_numbers_still_restore(self) -> None:
        doc = self._doc("a.txt")
        session, _plan = self._launch(explicit_path=doc)
        session.windows[0].surface.navigate_to(4, PagePoint(10.0, 20.0))
        session.request_termination()

        session_file = BlobStore(self.state).path_for(SESSION_BLOB)
        data = json.loads(session_file.read_text(encoding="utf-8"))
        data["windows"][0]["view"]["point"] = [float("nan"), float("inf")]
        data["windows"][0]["frame"] = {"x": 0, "y": 0, "width": 80, "height": float("-inf")}
        session_file.write_text(json.dumps(data), encoding="utf-8")
        self.assertIn("NaN", session_file.read_text(encoding="utf-8"))

        restored, plan = self._launch()

        self.assertEqual(plan.mode, RestoreMode.FULL_SESSION)
        self.assertEqual([w.path for w in restored.windows], [doc])
        surface = restored.windows[0].surface
        self.assertEqual(surface.current_page_index(), 4)
        self.assertEqual(surface.current_point_in_page(), PagePoint(0.0, 0.0))
        restored.request_termination()

    def test_edited_document_restores_page_but_not_point(self) -> None:
        doc = self._doc("a.txt")
        session, _plan = self._launch(explicit_path=doc)
        session.windows[0].surface.navigate_to(4, PagePoint(10.0, 50.0))
        session.windows[0].navigation.set_mark("a")
        session.request_termination()

        os.utime(doc, (1_750_000, 1_750_000))
        restored, _plan = self._launch(explicit_path=doc)

        window = restored.windows[0]
        self.assertEqual(window.surface.current_page_index(), 4)
        self.assertEqual(window.surface.current_point_in_page(), PagePoint(0.0, 0.0))
        self.assertIsNone(window.navigation.marks["a"].point)
        restored.request_termination()

    def test_renamed_document_is_found_from_session(self) -> None:
        doc = self._doc("before.txt")
        session, _plan = self._launch(explicit_path=doc)
        session.windows[0].surface.navigate_to(6)
        session.request_termination()

        moved = self.root / "after.txt"
        doc.rename(moved)
        restored, _plan = self._launch()

        self.assertEqual([w.path for w in restored.windows], [moved])
        self.assertEqual(restored.windows[0].surface.current_page_index(), 6)
        restored.request_termination()

    def test_closed_window_position_is_remembered_by_archive(self) -> None:
        doc_a, doc_b = self._doc("a.txt"), self._doc("b.txt")
        session, _plan = self._launch(explicit_path=doc_a)
        window_b = session.open_document(doc_b)
        window_b.surface.navigate_to(8)
        session.close_window(window_b)
        session.request_termination()

        full, _plan = self._launch()
        self.assertEqual([w.path for w in full.windows], [doc_a])
        full.request_termination()

        reopened, _plan = self._launch(explicit_path=doc_b)
        self.assertEqual(reopened.windows[0].surface.current_page_index(), 8)
        reopened.request_termination()

    def test_requested_files_restore_each_document(self) -> None:
        doc_a, doc_b = self._doc("a.txt"), self._doc("b.txt")
        session, _plan = self._launch(explicit_path=doc_a)
        session.windows[0].surface.navigate_to(3)
        session.request_termination()

        restored, plan = self._launch(requested=[doc_a, doc_b])

        self.assertEqual(plan.mode, RestoreMode.REQUESTED_FILES)
        self.assertEqual([w.surface.current_page_index() for w in restored.windows], [3, 0])
        restored.request_termination()

    def test_missing_explicit_path_falls_back_to_session(self) -> None:
        doc = self._doc("a.txt")
        session, _plan = self._launch(explicit_path=doc)
        session.request_termination()

        restored, plan = self._launch(explicit_path=self.root / "missing.txt")

        self.assertEqual([w.path for w in restored.windows], [doc])
        self.assertEqual(plan.failures[0].path, self.root / "missing.txt")
        restored.request_termination()

    def test_missing_explicit_path_without_session_fails(self) -> None:
        with self.assertRaises(StartupError) as ctx:
            self._launch(explicit_path=self.root / "missing.txt")
        self.assertIn("Failed to open document", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
