"""
Tests for logging configuration.
"""

import logging

from rich.logging import RichHandler

from cloudsweep.core.logging import LogContext, setup_logging


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_replaces_root_handlers(self, monkeypatch):
        """Test that calling twice leaves a single rich handler."""
        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", [])
        monkeypatch.setattr(root, "level", root.level)

        setup_logging(level="DEBUG")
        setup_logging(level="INFO")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], RichHandler)
        assert root.level == logging.INFO

    def test_file_handler(self, monkeypatch, tmp_path):
        """Test that records are appended to the log file."""
        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", [])
        monkeypatch.setattr(root, "level", root.level)
        log_file = tmp_path / "cloudsweep.log"

        setup_logging(level="INFO", log_file=str(log_file))
        logging.getLogger("cloudsweep.test").info("Deleted vpc-123")
        for handler in root.handlers:
            handler.flush()

        assert "Deleted vpc-123" in log_file.read_text()
        for handler in root.handlers:
            handler.close()

    def test_noisy_loggers_quieted(self, monkeypatch):
        """Test that third-party loggers stay at WARNING."""
        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", [])
        monkeypatch.setattr(root, "level", root.level)

        setup_logging(level="INFO")

        assert logging.getLogger("botocore").level == logging.WARNING

    def test_noisy_loggers_opened_at_debug(self, monkeypatch):
        """Test that a DEBUG run lets third-party records through."""
        root = logging.getLogger()
        botocore_logger = logging.getLogger("botocore")
        monkeypatch.setattr(root, "handlers", [])
        monkeypatch.setattr(root, "level", root.level)
        monkeypatch.setattr(botocore_logger, "level", botocore_logger.level)

        setup_logging(level="DEBUG", noisy_loggers=("botocore",))

        assert botocore_logger.level == logging.DEBUG


class TestLogContext:
    """Tests for LogContext."""

    def test_restores_level(self):
        """Test that the original level is restored on exit."""
        logger = logging.getLogger("cloudsweep.test.context")
        logger.setLevel(logging.DEBUG)

        with LogContext(logger, "ERROR"):
            assert logger.level == logging.ERROR

        assert logger.level == logging.DEBUG
