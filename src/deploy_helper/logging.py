"""Logging utilities for deploy-helper.

This module provides:
- Verbosity levels for the -v flag, including a custom TRACE level that
  shows every remote command line
- Console (stderr) and optional file logging setup
- Context managers that log a host run and time each task
"""

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

DEFAULT_FORMAT = "%(levelname)s [%(name)s] %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
TRACE_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s:%(funcName)s:%(lineno)d] %(message)s"

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
    3: TRACE,
}


def get_level_from_verbosity(verbosity: int) -> int:
    """Convert a count of -v flags to a logging level."""
    return VERBOSITY_LEVELS.get(min(verbosity, 3), TRACE)


def get_level_from_name(level_name: str) -> int:
    """Convert a --log-level name to a logging level.

    Raises:
        ValueError: If level name is invalid
    """
    level_map = {
        "trace": TRACE,
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    level_lower = level_name.lower()
    if level_lower not in level_map:
        valid = ", ".join(level_map.keys())
        raise ValueError(f"Invalid log level: {level_name}. Valid levels: {valid}")
    return level_map[level_lower]


def format_for_level(level: int) -> str:
    """Pick the console format: more detail the lower the level."""
    if level <= TRACE:
        return TRACE_FORMAT
    if level <= logging.DEBUG:
        return DEBUG_FORMAT
    return DEFAULT_FORMAT


def configure_logging(
    level: int = logging.WARNING,
    log_file: str | Path | None = None,
    file_level: int | None = None,
) -> None:
    """Configure logging for a deploy-helper run.

    Console logs go to stderr so they never mix with command output on
    stdout. Calling this again replaces the handlers of the previous call.

    Args:
        level: Logging level for console
        log_file: Optional path to also write logs to
        file_level: Level for the file handler (defaults to level)

    Example:
        >>> configure_logging(level=logging.INFO)
        >>> configure_logging(level=logging.WARNING, log_file="/tmp/deploy.log", file_level=TRACE)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(min(level, file_level or level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(format_for_level(level)))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler_level = file_level or level
        file_handler.setLevel(file_handler_level)
        # Files always get timestamps and source locations
        file_handler.setFormatter(logging.Formatter(format_for_level(min(file_handler_level, logging.DEBUG))))
        root_logger.addHandler(file_handler)


@contextmanager
def host_scope(
    logger: logging.Logger,
    deployment: str,
    host: str,
    level: int = logging.INFO,
) -> Generator[None, None, None]:
    """Log the start and outcome of one host's task list.

    Example:
        >>> with host_scope(logger, "Deploy web", "web01"):
        ...     pass
        INFO: Running tasks on web01 (deployment=Deploy web)
        INFO: Finished web01 in 0.412s (deployment=Deploy web)
    """
    start_time = time.perf_counter()
    logger.log(level, f"Running tasks on {host} (deployment={deployment})")
    try:
        yield
    except Exception as e:
        duration = time.perf_counter() - start_time
        logger.log(level, f"Aborted {host} after {duration:.3f}s (deployment={deployment}): {e}")
        raise
    duration = time.perf_counter() - start_time
    logger.log(level, f"Finished {host} in {duration:.3f}s (deployment={deployment})")


@contextmanager
def task_timer(
    logger: logging.Logger,
    task_name: str,
    level: int = logging.DEBUG,
) -> Generator[None, None, None]:
    """Log how long a task's body took, whether or not it succeeded."""
    start_time = time.perf_counter()
    outcome = "failed"
    try:
        yield
        outcome = "completed"
    finally:
        duration = time.perf_counter() - start_time
        logger.log(level, f"Task {task_name!r} {outcome} in {duration:.3f}s")
