"""Tests for the logging utilities module."""

import logging
import time
import unittest
from pathlib import Path
from unittest.mock import patch

from versetrack.logging_utils import ConsoleFormatter, FileFormatter, setup_logging


def _make_record(msg: str = "Test message") -> logging.LogRecord:
    record = logging.LogRecord(
        name="versetrack.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    record.created = 1234567890.123456
    return record


class TestFormatters(unittest.TestCase):
    """Test suite for the console and file formatters."""

    def test_console_formatter_includes_version(self) -> None:
        """1. Console: Formats with the app version and the message."""
        formatter = ConsoleFormatter("1.2.3")
        formatted = formatter.format(_make_record("Recorded reading"))
        assert formatter.datefmt == "%Y-%m-%dT%H:%M:%S"
        assert formatter.converter == time.gmtime
        assert "| VerseTrack - 1.2.3 | Recorded reading" in formatted

    def test_time_has_microseconds_and_utc_marker(self) -> None:
        """2. Time Format: UTC time with 6-digit microseconds and 'Z'."""
        formatter = ConsoleFormatter("1.0.0")
        formatted_time = formatter.formatTime(_make_record(), formatter.datefmt)
        assert formatted_time == "2009-02-13T23:31:30.123456Z"

    def test_file_formatter_is_detailed(self) -> None:
        """3. File: Includes logger name, level and line number."""
        formatted = FileFormatter().format(_make_record("details"))
        assert "versetrack.test" in formatted
        assert "INFO" in formatted
        assert ":1 " in formatted
        assert formatted.endswith("| details")


def test_setup_logging_console_only(clean_root_logger: logging.Logger) -> None:
    """Verify the default setup installs a single INFO console handler."""
    setup_logging("1.0.0")

    assert clean_root_logger.level == logging.INFO
    assert len(clean_root_logger.handlers) == 1
    assert isinstance(clean_root_logger.handlers[0].formatter, ConsoleFormatter)


def test_setup_logging_debug_writes_file(clean_root_logger: logging.Logger, tmp_path: Path) -> None:
    """Verify debug mode adds a file handler writing debug.log."""
    log_dir = tmp_path / "logs"

    setup_logging("1.0.0", debug=True, log_dir=log_dir)
    logging.getLogger("versetrack.test").debug("hello file")
    for handler in clean_root_logger.handlers:
        handler.flush()

    assert clean_root_logger.level == logging.DEBUG
    assert len(clean_root_logger.handlers) == 2
    assert "hello file" in (log_dir / "debug.log").read_text(encoding="utf-8")


def test_setup_logging_file_failure_keeps_console(clean_root_logger: logging.Logger, tmp_path: Path) -> None:
    """Verify a failing log directory falls back to console logging."""
    with patch("versetrack.logging_utils.paths.ensure_dir_exists", side_effect=OSError("read-only")):
        setup_logging("1.0.0", debug=True, log_dir=tmp_path)

    assert len(clean_root_logger.handlers) == 1
