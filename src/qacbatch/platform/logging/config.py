"""Where: src/qacbatch/platform/logging/config.py
What: Configure the ``qacbatch`` logger with a Rich console handler and a rotating file log.
Why: Cleaning runs across a worker thread, stream readers and hang monitors; one bootstrap keeps their output consistent.
Assumptions: - The console handler writes to stderr so reports on stdout stay pipeable.
Trade-offs: - The import-time logger is console-only; the CLI attaches ``logs/qacbatch.log`` once config is loaded.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Final

from rich.console import Console

from qacbatch.config.paths import default_log_file

from .handlers import CleaningRichHandler

LOGGER_NAME: Final[str] = "qacbatch"
DEFAULT_LOG_FILE: Final[Path] = default_log_file()

# Thread names tell the cleaning-session worker apart from stdout-<pid> and hang-<pid> threads.
FILE_LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"
LOG_FILE_MAX_BYTES: Final[int] = 10 * 1024 * 1024
LOG_FILE_BACKUP_COUNT: Final[int] = 5


def setup_logger(
    log_file: Path | None = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> logging.Logger:
    """Replace the handlers of the ``qacbatch`` logger.

    Args:
        log_file: Rotating log destination; ``None`` logs to the console only.
        console_level: Threshold for the Rich console handler.
        file_level: Threshold for the file handler.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    console_handler = CleaningRichHandler(console=Console(stderr=True, soft_wrap=True))
    console_handler.setLevel(console_level)
    logger.addHandler(console_handler)

    if log_file is not None:
        resolved_log_file = Path(log_file).expanduser().resolve()
        os.makedirs(resolved_log_file.parent, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            resolved_log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger


logger: Final[logging.Logger] = setup_logger()


__all__ = ["DEFAULT_LOG_FILE", "FILE_LOG_FORMAT", "LOGGER_NAME", "setup_logger", "logger"]
