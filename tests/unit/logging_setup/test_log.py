from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path

from updraft.log import configure_logging


class ConfigureLoggingTests(unittest.TestCase):
    def tearDown(self) -> None:
        self._reset()

    def _reset(self) -> None:
        logger = logging.getLogger("updraft")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)

    def test_records_are_written_to_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_path = Path(tmp) / "logs" / "updraft.log"
            handler = configure_logging("info", log_path)
            logging.getLogger("updraft.persistence.store").info("saved %d windows", 2)
            handler.flush()

            self.assertIn("[INFO] updraft.persistence.store: saved 2 windows", log_path.read_text(encoding="utf-8"))
            self._reset()

    def test_reconfiguring_replaces_file_handler(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            configure_logging("warning", Path(tmp) / "one.log")
            configure_logging("warning", Path(tmp) / "two.log")
            handlers = [h for h in logging.getLogger("updraft").handlers if isinstance(h, logging.FileHandler)]
            self.assertEqual(len(handlers), 1)
            self._reset()

    def test_unwritable_location_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "file"
            blocker.write_text("", encoding="utf-8")
            self.assertIsNone(configure_logging("warning", blocker / "sub" / "updraft.log"))


if __name__ == "__main__":
    unittest.main()
