from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOG_PATH = str(Path.home() / ".dev_quick_setup" / "devsetup.log")

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
FILE_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# Console lines share the terminal with the live progress bar and the
# reporter's per-tool status lines, so they carry only level and message.
# Timestamps and logger names live in the file.
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

# Reasons a log file location is unusable; any other OSError propagates.
_UNUSABLE_LOG_PATH = (PermissionError, FileNotFoundError, NotADirectoryError, IsADirectoryError, FileExistsError)


def _open_log_file(log_path: str) -> logging.FileHandler:
    Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(log_path, encoding="utf-8")


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    console_level: int = logging.ERROR,
    also_console: bool = True,
) -> str:
    """Configure root logging for a setup run.

    Every command and decision goes to the log file. Per-tool failures are
    logged at WARNING because ConsoleReporter already prints them, so the
    console handler defaults to ERROR and only fatal problems reach it
    unless console_level is lowered (--verbose).

    If the requested log file cannot be created (no permission, or a path
    component is a regular file), fall back to devsetup.log in the current
    working directory. Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(min(level, console_level))

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_devsetup_configured", False):
        return getattr(logger, "_devsetup_log_path", log_path)

    chosen_path = log_path
    fallback_reason: Optional[OSError] = None
    try:
        file_handler = _open_log_file(log_path)
    except _UNUSABLE_LOG_PATH as e:
        fallback_reason = e
        chosen_path = str(Path.cwd() / "devsetup.log")
        file_handler = _open_log_file(chosen_path)
    file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=FILE_DATEFMT))
    file_handler.setLevel(level)
    logger.addHandler(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        console.setLevel(console_level)
        logger.addHandler(console)

    setattr(logger, "_devsetup_configured", True)
    setattr(logger, "_devsetup_log_path", chosen_path)

    log = logging.getLogger(__name__)
    if fallback_reason is not None:
        log.warning("Cannot log to %s (%s); using %s", log_path, fallback_reason, chosen_path)
    log.info("Logging initialized (requested=%s, actual=%s)", log_path, chosen_path)
    return chosen_path
