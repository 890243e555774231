"""Where: src/qacbatch/features/cleaning/adapters/log_file.py
What: Read the ``<STEM>_log.txt`` file xEdit writes next to its executable.
Why: The log file is more complete than captured stdout, but only if it belongs to this run.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime
from logging import Logger, getLogger
from pathlib import Path

from qacbatch.config.settings import LOG_READ_RETRY_DELAY_SECONDS


class XEditLogFileReader:
    """Fetch the xEdit log written during a given run."""

    def __init__(
        self,
        *,
        retry_delay: float = LOG_READ_RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        logger: Logger | None = None,
    ) -> None:
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._logger: Logger = logger or getLogger(__name__)

    @staticmethod
    def log_path_for(xedit_binary: Path) -> Path:
        """``C:/xEdit/SSEEdit.exe`` → ``C:/xEdit/SSEEDIT_log.txt``."""

        return xedit_binary.with_name(f"{xedit_binary.stem.upper()}_log.txt")

    def read(self, xedit_binary: Path, process_started: datetime) -> tuple[list[str], str | None]:
        """Return ``(lines, None)`` or ``([], reason)`` when the log is missing, stale, or unreadable."""

        log_path = self.log_path_for(xedit_binary)
        if not log_path.is_file():
            self._logger.debug("Log file not found: %s", log_path)
            return [], f"Log file not found: {log_path}"

        modified = datetime.fromtimestamp(log_path.stat().st_mtime)
        if modified < process_started:
            self._logger.debug("Log file is stale (modified %s, process started %s)", modified, process_started)
            return [], "Log file is stale (predates this cleaning run)"

        try:
            return self._read_lines(log_path), None
        except OSError as first_error:
            self._logger.debug(
                "First read of %s failed: %s; retrying in %.1fs",
                log_path,
                first_error,
                self._retry_delay,
            )

        self._sleep(self._retry_delay)
        try:
            return self._read_lines(log_path), None
        except OSError as exc:
            self._logger.warning("Failed to read log file after retry: %s: %s", log_path, exc)
            return [], f"Failed to read log file: {exc}"

    @staticmethod
    def _read_lines(path: Path) -> list[str]:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()


__all__ = ["XEditLogFileReader"]
