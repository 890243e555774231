"""Data structures describing plugin backups and backup sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol


class BackupSource(Protocol):
    """Anything that names a file and where it lives."""

    @property
    def file_name(self) -> str: ...

    @property
    def full_path(self) -> Path | None: ...


@dataclass(slots=True, frozen=True)
class BackupResult:
    """Outcome of copying one plugin into a session directory."""

    success: bool
    backup_path: Path | None = None
    file_size_bytes: int = 0
    error: str | None = None

    @classmethod
    def ok(cls, backup_path: Path, file_size_bytes: int) -> "BackupResult":
        return cls(success=True, backup_path=backup_path, file_size_bytes=file_size_bytes)

    @classmethod
    def failure(cls, error: str) -> "BackupResult":
        return cls(success=False, error=error)


@dataclass(slots=True, frozen=True)
class BackupPluginEntry:
    """One backed-up plugin recorded in ``session.json``."""

    file_name: str
    original_path: Path
    file_size_bytes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "original_path": str(self.original_path),
            "file_size_bytes": self.file_size_bytes,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "BackupPluginEntry":
        return cls(
            file_name=str(payload["file_name"]),
            original_path=Path(str(payload["original_path"])),
            file_size_bytes=int(payload.get("file_size_bytes", 0)),
        )


@dataclass(slots=True)
class BackupSession:
    """Metadata for one session directory.

    ``session_directory`` is filled from the filesystem when listing and is
    not written to ``session.json``.
    """

    timestamp: datetime
    game_type: str
    session_directory: Path
    plugins: list[BackupPluginEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "game_type": self.game_type,
            "plugins": [entry.to_dict() for entry in self.plugins],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any], session_directory: Path) -> "BackupSession":
        return cls(
            timestamp=datetime.fromisoformat(str(payload["timestamp"])),
            game_type=str(payload.get("game_type", "")),
            session_directory=session_directory,
            plugins=[BackupPluginEntry.from_dict(item) for item in payload.get("plugins", [])],
        )


__all__ = ["BackupPluginEntry", "BackupResult", "BackupSession", "BackupSource"]
