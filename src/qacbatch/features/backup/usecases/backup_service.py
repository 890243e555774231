"""Where: src/qacbatch/features/backup/usecases/backup_service.py
What: Copy plugins into timestamped session directories and restore them on demand.
Why: xEdit rewrites plugins in place; a session backup makes an interrupted run recoverable.
Assumptions: - Session directory names sort chronologically.
Trade-offs: - Retention is by directory name, not by filesystem timestamps.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Callable
from datetime import datetime
from logging import Logger, getLogger
from pathlib import Path

from qacbatch.config.file_ops import replace_text_file
from qacbatch.config.settings import (
    BACKUP_METADATA_FILE_NAME,
    BACKUP_ROOT_DIR_NAME,
    BACKUP_SESSION_NAME_FORMAT,
)

from ..domain.models import BackupPluginEntry, BackupResult, BackupSession, BackupSource


class BackupService:
    """Filesystem-backed implementation of per-session plugin backups."""

    _logger: Logger
    _clock: Callable[[], datetime]

    def __init__(
        self,
        *,
        logger: Logger | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._logger = logger or getLogger(__name__)
        self._clock = clock

    def backup_root_for(self, data_folder: Path) -> Path:
        """Place backups beside the game's Data folder, never inside it."""

        parent = data_folder.parent if data_folder.parent != data_folder else data_folder
        return parent / BACKUP_ROOT_DIR_NAME

    def create_session_directory(self, root: Path) -> Path:
        """Create ``root/YYYY-MM-DD_HH-MM-SS`` (suffixed ``_2``, ``_3`` ... on collision)."""

        base_name = self._clock().strftime(BACKUP_SESSION_NAME_FORMAT)
        root.mkdir(parents=True, exist_ok=True)

        candidate = root / base_name
        suffix = 1
        while True:
            try:
                candidate.mkdir()
                break
            except FileExistsError:
                suffix += 1
                candidate = root / f"{base_name}_{suffix}"

        self._logger.info("Created backup session directory: %s", candidate)
        return candidate

    def backup(self, plugin: BackupSource, session_dir: Path) -> BackupResult:
        """Copy ``plugin`` into ``session_dir`` without overwriting an existing copy."""

        source = plugin.full_path
        if source is None or not source.is_absolute():
            return BackupResult.failure(f"Plugin path is not a valid absolute path: '{source}'")
        if not source.is_file():
            return BackupResult.failure(f"Source file does not exist: '{source}'")

        destination = session_dir / plugin.file_name
        created = False
        try:
            session_dir.mkdir(parents=True, exist_ok=True)
            with source.open("rb") as reader, destination.open("xb") as writer:
                created = True
                shutil.copyfileobj(reader, writer)
            shutil.copystat(source, destination)
            size = destination.stat().st_size
        except FileExistsError:
            self._logger.warning("Backup of %s already exists in %s", plugin.file_name, session_dir)
            return BackupResult.failure(f"Backup already exists for '{plugin.file_name}' in this session")
        except PermissionError as exc:
            self._logger.warning("Backup failed for %s: %s", plugin.file_name, exc)
            if created:
                self._discard_partial(destination)
            return BackupResult.failure(f"Access denied backing up '{plugin.file_name}': {exc}")
        except OSError as exc:
            self._logger.warning("Backup failed for %s: %s", plugin.file_name, exc)
            if created:
                self._discard_partial(destination)
            return BackupResult.failure(f"I/O error backing up '{plugin.file_name}': {exc}")

        self._logger.debug("Backed up %s (%d bytes) to %s", plugin.file_name, size, destination)
        return BackupResult.ok(destination, size)

    def restore(self, entry: BackupPluginEntry, session_dir: Path) -> None:
        """Copy the backup of ``entry`` over its original location.

        Raises:
            FileNotFoundError: The session holds no copy of ``entry``.
        """

        backup_path = session_dir / entry.file_name
        if not backup_path.is_file():
            raise FileNotFoundError(f"Backup file not found: '{backup_path}'")

        entry.original_path.parent.mkdir(parents=True, exist_ok=True)
        _ = shutil.copy2(backup_path, entry.original_path)
        self._logger.info("Restored %s to %s", entry.file_name, entry.original_path)

    def restore_session(self, session: BackupSession) -> list[BackupPluginEntry]:
        """Restore every plugin in ``session``; returns the restored entries."""

        restored: list[BackupPluginEntry] = []
        for entry in session.plugins:
            self.restore(entry, session.session_directory)
            restored.append(entry)
        return restored

    def write_session_metadata(self, session_dir: Path, session: BackupSession) -> Path:
        metadata_path = session_dir / BACKUP_METADATA_FILE_NAME
        replace_text_file(metadata_path, json.dumps(session.to_dict(), indent=2))
        self._logger.debug("Wrote session metadata to %s", metadata_path)
        return metadata_path

    def list_sessions(self, root: Path) -> list[BackupSession]:
        """Return sessions under ``root`` newest first; unreadable metadata is skipped."""

        if not root.is_dir():
            return []

        sessions: list[BackupSession] = []
        for directory in sorted(self._session_dirs(root), key=lambda path: path.name, reverse=True):
            metadata_path = directory / BACKUP_METADATA_FILE_NAME
            if not metadata_path.is_file():
                self._logger.debug("Skipping directory without %s: %s", BACKUP_METADATA_FILE_NAME, directory)
                continue
            try:
                payload = json.loads(metadata_path.read_text(encoding="utf-8"))
                sessions.append(BackupSession.from_dict(payload, directory))
            except (OSError, ValueError, KeyError, TypeError) as exc:
                self._logger.warning("Corrupt %s in %s: %s", BACKUP_METADATA_FILE_NAME, directory, exc)
        return sessions

    def cleanup_old_sessions(
        self,
        root: Path,
        max_sessions: int,
        protect: Path | None = None,
    ) -> list[Path]:
        """Delete all but the newest ``max_sessions`` directories; returns deleted paths.

        ``protect`` is never deleted and does not count toward the limit.
        """

        if not root.is_dir():
            return []

        protected = protect.resolve() if protect is not None else None
        kept = 0
        deleted: list[Path] = []
        for directory in sorted(self._session_dirs(root), key=lambda path: path.name, reverse=True):
            if protected is not None and directory.resolve() == protected:
                continue
            kept += 1
            if kept <= max_sessions:
                continue
            try:
                shutil.rmtree(directory)
            except OSError as exc:
                self._logger.warning("Failed to delete old backup session %s: %s", directory, exc)
                continue
            self._logger.info("Deleted old backup session: %s", directory)
            deleted.append(directory)
        return deleted

    def _discard_partial(self, destination: Path) -> None:
        """Remove a half-written copy so the slot can be retried."""

        try:
            destination.unlink(missing_ok=True)
        except OSError as exc:
            self._logger.warning("Could not remove partial backup %s: %s", destination, exc)

    @staticmethod
    def _session_dirs(root: Path) -> list[Path]:
        return [path for path in root.iterdir() if path.is_dir()]


__all__ = ["BackupService"]
