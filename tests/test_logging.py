"""Tests for twinbench.logging."""

from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path

from twinbench.logging import reset_logging, setup_logging


class TestSetupLogging(unittest.TestCase):
    """Tests for setup_logging()."""

    def tearDown(self) -> None:
        reset_logging()

    def _console_level(self, logger: logging.Logger) -> int:
        (console,) = [h for h in logger.handlers if not isinstance(h, logging.FileHandler)]
        return console.level

    def test_levels(self) -> None:
        """-v wins over -q; the default is INFO."""
        self.assertEqual(self._console_level(setup_logging()), logging.INFO)
        self.assertEqual(self._console_level(setup_logging(quiet=True)), logging.WARNING)
        self.assertEqual(
            self._console_level(setup_logging(verbose=True, quiet=True)), logging.DEBUG
        )

    def test_reconfigure_replaces_handlers(self) -> None:
        setup_logging()
        logger = setup_logging()
        self.assertEqual(len(logger.handlers), 1)

    def test_log_file_at_debug(self) -> None:
        """The file handler logs DEBUG even when the console is quiet."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.log"
            logger = setup_logging(quiet=True, log_file=path)
            logger.debug("per-trial detail")
            reset_logging()
            self.assertIn("per-trial detail", path.read_text())


class TestResetLogging(unittest.TestCase):
    """Tests for reset_logging()."""

    def test_closes_file_handler(self) -> None:
        """The log file is released once the handlers are reset."""
        with tempfile.TemporaryDirectory() as tmp:
            logger = setup_logging(log_file=Path(tmp) / "run.log")
            (fh,) = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
            reset_logging()
            self.assertEqual(logger.handlers, [])
            self.assertIsNone(fh.stream)


if __name__ == "__main__":
    unittest.main()
