"""Where: src/qacbatch/platform/process/tracking.py
What: Persist {pid, create time} records of running xEdit instances.
Why: A crashed run leaves xEdit holding file locks; the next run needs to find it.
"""

from __future__ import annotations

import json
import threading
from logging import Logger, getLogger
from pathlib import Path
from typing import Any, Final

from qacbatch.config.file_ops import replace_text_file
from qacbatch.config.paths import default_data_dir
from qacbatch.config.settings import PID_FILE_NAME

from .models import TrackedProcess


class ProcessTracker:
    """JSON-backed marker file listing processes spawned by this application."""

    def __init__(self, path: Path | None = None, *, logger: Logger | None = None) -> None:
        self._path: Final[Path] = path or default_data_dir() / PID_FILE_NAME
        self._lock: Final[threading.Lock] = threading.Lock()
        self._logger: Logger = logger or getLogger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def record(self, entry: TrackedProcess) -> None:
        """Add ``entry``, replacing any stale record with the same PID."""

        with self._lock:
            records = [item for item in self._read() if item.pid != entry.pid]
            records.append(entry)
            self._write(records)

    def remove(self, pid: int) -> None:
        with self._lock:
            records = self._read()
            remaining = [item for item in records if item.pid != pid]
            if len(remaining) == len(records):
                return
            if remaining:
                self._write(remaining)
            else:
                self._path.unlink(missing_ok=True)

    def load(self) -> list[TrackedProcess]:
        with self._lock:
            return self._read()

    def replace_all(self, records: list[TrackedProcess]) -> None:
        """Overwrite the file with ``records``; an empty list removes it."""

        with self._lock:
            if records:
                self._write(records)
            else:
                self._path.unlink(missing_ok=True)

    def _read(self) -> list[TrackedProcess]:
        if not self._path.exists():
            return []
        try:
            payload: Any = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            self._logger.warning("Ignoring unreadable PID file %s: %s", self._path, exc)
            return []

        if not isinstance(payload, list):
            self._logger.warning("Ignoring malformed PID file %s", self._path)
            return []

        records: list[TrackedProcess] = []
        for item in payload:
            try:
                records.append(
                    TrackedProcess(
                        pid=int(item["pid"]),
                        create_time=float(item["create_time"]),
                        plugin_name=str(item.get("plugin_name", "")),
                    )
                )
            except (KeyError, TypeError, ValueError, AttributeError):
                self._logger.debug("Skipping malformed PID record: %r", item)
        return records

    def _write(self, records: list[TrackedProcess]) -> None:
        payload = [
            {"pid": item.pid, "create_time": item.create_time, "plugin_name": item.plugin_name}
            for item in records
        ]
        replace_text_file(self._path, json.dumps(payload, indent=2))


__all__ = ["ProcessTracker"]
