"""
Logging Configuration Module
============================

Central logging setup for cloudsweep.

Log records go to stderr through :class:`rich.logging.RichHandler` so that
stdout stays reserved for rendered output (tables, JSON documents). An
optional plain-text file handler can be added for audit trails of nuke
runs.

Example
-------
>>> import logging
>>> from cloudsweep.core.logging import setup_logging
>>>
>>> setup_logging(level="INFO", log_file="cloudsweep.log")
>>> logger = logging.getLogger(__name__)
>>> logger.info("Starting discovery")
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_FORMAT = "%(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty dependencies kept at WARNING unless running at DEBUG
NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "google", "s3transfer")


def _to_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    rich_tracebacks: bool = True,
    console: Optional[Console] = None,
    noisy_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Configure application-wide logging.

    Parameters
    ----------
    level : str or int, default="INFO"
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    log_file : str, optional
        Path to a log file. Records are appended in plain text.
    rich_tracebacks : bool, default=True
        Whether to use Rich for exception tracebacks.
    console : Console, optional
        Rich Console to log through. Defaults to a stderr console.
    noisy_loggers : iterable of str
        Third-party loggers capped at WARNING.

    Notes
    -----
    Existing root handlers are replaced, so calling this twice does not
    duplicate output.
    """
    level = _to_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    rich_console = console or Console(stderr=True)
    console_handler = RichHandler(
        console=rich_console,
        show_time=True,
        show_path=False,
        rich_tracebacks=rich_tracebacks,
        tracebacks_show_locals=False,
        markup=False,
    )
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    third_party_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(third_party_level)

    root_logger.debug(
        "Logging configured: level=%s, file=%s",
        logging.getLevelName(level),
        log_file or "None",
    )


class LogContext:
    """
    Context manager for temporary log level changes.

    Used by the CLI to hold per-identifier log lines back while a JSON or
    CSV document is being written.

    Parameters
    ----------
    logger : logging.Logger
        Logger to modify.
    level : str or int
        Temporary log level.

    Example
    -------
    >>> with LogContext(logging.getLogger("cloudsweep"), "WARNING"):
    ...     run_nuke()
    """

    def __init__(
        self,
        logger: logging.Logger,
        level: Union[str, int],
    ) -> None:
        self.logger = logger
        self.new_level = _to_level(level)
        self.original_level: Optional[int] = None

    def __enter__(self) -> logging.Logger:
        self.original_level = self.logger.level
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.original_level is not None:
            self.logger.setLevel(self.original_level)
