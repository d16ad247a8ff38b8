"""Logging configuration for the task coordinator."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

PACKAGE_LOGGER = "zzz_coordinator"

CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | task-%(task_id)s %(phase)s | "
    "%(name)s | %(message)s"
)


class TaskContextFilter(logging.Filter):
    """Stamps every record with the task id and the current phase."""

    def __init__(self, task_id: str, phase_source: Callable[[], str] | None = None):
        super().__init__()
        self.task_id = task_id
        self.phase_source = phase_source

    def filter(self, record: logging.LogRecord) -> bool:
        record.task_id = self.task_id
        record.phase = self.phase_source() if self.phase_source else "-"
        return True


def setup_logging(
    log_file: str | os.PathLike[str] | None = None,
    verbose: bool = False,
    context: TaskContextFilter | None = None,
    logger_name: str = PACKAGE_LOGGER,
) -> logging.Logger:
    """
    Configure dual-handler logging (console + file).

    Args:
        log_file: Path to the coordinator log (None for no file logging)
        verbose: Enable DEBUG level on console (default INFO)
        context: Filter adding task id and phase to file records
        logger_name: Logger to configure; child loggers propagate to it

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    teardown_logging(logger)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        # Appends: a restarted coordinator continues the same log
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(context or TaskContextFilter("-"))
        file_handler.setFormatter(
            logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        logger.addHandler(file_handler)

    # Suppress noisy 3rd party loggers
    logging.getLogger("watchdog").setLevel(logging.WARNING)

    return logger


def teardown_logging(logger: logging.Logger | None = None) -> None:
    """Detach and close the handlers installed by ``setup_logging``."""
    logger = logger or logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
