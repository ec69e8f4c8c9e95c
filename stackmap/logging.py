"""Logging setup for stackmap runs.

Each pipeline stage logs under ``stackmap.<stage>`` (scanner, parser, graph,
issues, orchestrator, enrichment, llm). Verbose console output is tagged with
the stage so a debug run reads as a trace of the pipeline; file output also
carries the thread name because files are parsed on scanner worker threads.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "stackmap"

_CONSOLE_FORMAT = "[stackmap] %(levelname)s %(message)s"
_VERBOSE_CONSOLE_FORMAT = "[stackmap:%(stage)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(stage)s [%(threadName)s] %(message)s"


class _StageFilter(logging.Filter):
    """Adds a ``stage`` attribute taken from the logger name."""

    def filter(self, record: logging.LogRecord) -> bool:
        _, _, stage = record.name.partition(".")
        record.stage = stage or "main"
        return True


def get_logger(stage: str | None = None) -> logging.Logger:
    """Return the logger for one pipeline stage (or the package logger)."""
    return logging.getLogger(f"{_LOGGER_NAME}.{stage}" if stage else _LOGGER_NAME)


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route stackmap logs to stderr, and to `log_file` when given.

    Console output always goes to stderr so that reports printed on stdout
    stay machine-readable. `quiet` keeps only warnings on the console; the
    file sink always records at the run's level.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.WARNING if quiet and not verbose else level)
    console.addFilter(_StageFilter())
    console.setFormatter(logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.addFilter(_StageFilter())
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
