"""CLI argument handling tests.

Verifies how ``updraft.cli.main`` routes paths, options, and the state dump.
"""

from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from updraft import cli
from updraft.inspect_state import render_state


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name).resolve()
        patches = [
            mock.patch("updraft.config.CONFIG_PATH", self.root / "config.json"),
            mock.patch.dict(os.environ, {"UPDRAFT_STATE_DIR": str(self.root / "state"), "UPDRAFT_OPEN_FILES": ""}),
            mock.patch("updraft.cli.configure_logging"),
        ]
        for patcher in patches:
            patcher.start()
            self.addCleanup(patcher.stop)

    def test_no_path_restores_session(self) -> None:
        with mock.patch("updraft.cli.run_viewer", return_value=0) as run_viewer:
            self.assertEqual(cli.main([]), 0)

        settings, explicit_path, requested = run_viewer.call_args.args
        self.assertIsNone(explicit_path)
        self.assertEqual(requested, [])
        self.assertEqual(settings.archive_capacity, 500)

    def test_explicit_path_and_extra_positionals(self) -> None:
        target = self.root / "doc.txt"
        with mock.patch("updraft.cli.run_viewer", return_value=0) as run_viewer:
            cli.main([str(target), "ignored.txt", "also-ignored.txt"])

        _settings, explicit_path, _requested = run_viewer.call_args.args
        self.assertEqual(explicit_path, target)

    def test_log_level_option_overrides_config(self) -> None:
        with mock.patch("updraft.cli.run_viewer", return_value=0):
            cli.main(["--log-level", "debug"])
        level, _path = cli.configure_logging.call_args.args
        self.assertEqual(level, "DEBUG")

    def test_unknown_option_is_rejected(self) -> None:
        with mock.patch("updraft.cli.run_viewer") as run_viewer, mock.patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                cli.main(["--frobnicate"])
        run_viewer.assert_not_called()

    def test_show_state_prints_blobs_without_launching(self) -> None:
        state = self.root / "state"
        state.mkdir()
        (state / "session.json").write_text(json.dumps({"version": 1, "windows": []}), encoding="utf-8")

        with mock.patch("updraft.cli.run_viewer") as run_viewer, mock.patch(
            "sys.stdout", new_callable=io.StringIO
        ) as stdout:
            self.assertEqual(cli.main(["--show-state"]), 0)

        run_viewer.assert_not_called()
        dumped = json.loads(stdout.getvalue())
        self.assertEqual(dumped["session"], {"version": 1, "windows": []})
        self.assertIn("error", dumped["documents"])


class RenderStateTests(unittest.TestCase):
    def test_color_output_is_highlighted(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertIn("\x1b[", render_state(Path(tmp), color=True))
            self.assertNotIn("\x1b[", render_state(Path(tmp), color=False))


if __name__ == "__main__":
    unittest.main()
