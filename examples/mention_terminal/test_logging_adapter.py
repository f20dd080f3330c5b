from __future__ import annotations

import logging
import sys
import tempfile
import unittest
from pathlib import Path

EXAMPLES_DIR = Path(__file__).resolve().parents[1]
if str(EXAMPLES_DIR) not in sys.path:
    sys.path.insert(0, str(EXAMPLES_DIR))

from mention_terminal.logging_adapter import StatusLineLoggingHandler, setup_logging


class TestStatusLineLoggingHandler(unittest.TestCase):
    def setUp(self) -> None:
        self.messages: list[tuple[str, bool]] = []
        self.logger = logging.getLogger("mention_terminal.tests.status_line")
        self.logger.propagate = False
        self.logger.setLevel(logging.DEBUG)
        self.handler = StatusLineLoggingHandler(self._sink)
        self.logger.addHandler(self.handler)

    def tearDown(self) -> None:
        self.logger.removeHandler(self.handler)

    def _sink(self, message: str, is_error: bool) -> None:
        self.messages.append((message, is_error))

    def test_info_is_not_shown(self) -> None:
        self.logger.info("loaded 4 users")
        self.assertEqual(self.messages, [])

    def test_repeated_warning_shown_once(self) -> None:
        self.logger.warning("users file missing")
        self.logger.warning("users file missing")
        self.assertEqual(self.messages, [("⚠️ users file missing", False)])

    def test_error_is_flagged_and_truncated(self) -> None:
        self.logger.error("x" * 150)

        message, is_error = self.messages[0]
        self.assertTrue(is_error)
        self.assertTrue(message.startswith("❌ "))
        self.assertTrue(message.endswith("..."))
        self.assertEqual(len(message), len("❌ ") + 100 + len("..."))


class TestSetupLogging(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        root = logging.getLogger()
        self._saved_handlers = list(root.handlers)
        self._saved_level = root.level

    def tearDown(self) -> None:
        root = logging.getLogger()
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = self._saved_handlers
        root.setLevel(self._saved_level)
        self._tmpdir.cleanup()

    def test_routes_file_and_status_line(self) -> None:
        messages: list[tuple[str, bool]] = []
        log_path = setup_logging(lambda msg, err: messages.append((msg, err)), log_dir=self._tmpdir.name)

        logging.getLogger("mention_terminal.tests.setup").debug("debug line")
        logging.getLogger("mention_terminal.tests.setup").warning("warn line")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = Path(log_path).read_text(encoding="utf-8")
        self.assertIn("debug line", content)
        self.assertIn("warn line", content)
        self.assertEqual(messages, [("⚠️ warn line", False)])


if __name__ == "__main__":
    unittest.main(verbosity=2)
