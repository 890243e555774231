"""Ports for the cleaning feature."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from datetime import datetime
from pathlib import Path
from typing import Protocol

from qacbatch.features.backup.domain.models import BackupResult, BackupSession, BackupSource
from qacbatch.platform.process.models import (
    ProcessCommand,
    ProcessHandle,
    ProcessResult,
    TerminationResult,
)
from qacbatch.shared.cancellation import CancellationToken

from ..domain.games import GameType, GameVariant
from ..domain.models import BackupFailureAction, CleaningSessionResult, PluginInfo

SessionResultSink = Callable[[CleaningSessionResult], None]
"""Receives the finished session result; the orchestrator's only outward side effect."""

TimeoutRetryCallback = Callable[[str, float, int], bool]
"""``(plugin_name, timeout_seconds, attempt) -> retry?`` asked after a timeout."""

BackupFailureCallback = Callable[[str, str], BackupFailureAction]
"""``(plugin_name, error) -> action`` asked when a plugin backup fails."""


class EnvironmentValidator(Protocol):
    """Confirm that binaries and input files needed for a session are usable."""

    def validate(self) -> bool:
        """Return True when a session may start."""

        ...

    @property
    def problems(self) -> list[str]:
        """Human-readable reasons from the most recent ``validate`` call."""

        ...


class ContextDetector(Protocol):
    """Work out which game a session targets."""

    def detect_from_tool_name(self, name: str | None) -> GameType: ...

    def detect_from_items(self, names: Iterable[str]) -> GameType: ...

    def detect_variant(self, game: GameType, names: Iterable[str]) -> GameVariant: ...


class SkipListProvider(Protocol):
    """Supply plugin names that must never be cleaned."""

    def get_exclusions(self, game: GameType, variant: GameVariant = GameVariant.NONE) -> set[str]:
        """Return the merged skip list for ``game`` and ``variant``."""

        ...


class CommandBuilder(Protocol):
    def build(self, plugin: PluginInfo, game: GameType) -> ProcessCommand | None:
        """Return the xEdit command, or ``None`` for input that cannot be cleaned safely."""

        ...


class ProcessRunner(Protocol):
    """Slot-limited execution of external processes."""

    def execute(
        self,
        command: ProcessCommand,
        *,
        on_output_line: Callable[[str], None] | None = None,
        timeout: float | None = None,
        cancellation: CancellationToken | None = None,
        on_process_started: Callable[[ProcessHandle], None] | None = None,
        plugin_name: str | None = None,
    ) -> ProcessResult: ...

    def terminate(self, handle: ProcessHandle, force_kill: bool = False) -> TerminationResult: ...

    def sweep_orphans(self) -> int: ...


class BackupGateway(Protocol):
    """Per-session plugin backups."""

    def backup_root_for(self, data_folder: Path) -> Path: ...

    def create_session_directory(self, root: Path) -> Path: ...

    def backup(self, plugin: BackupSource, session_dir: Path) -> BackupResult: ...

    def write_session_metadata(self, session_dir: Path, session: BackupSession) -> Path: ...

    def cleanup_old_sessions(
        self,
        root: Path,
        max_sessions: int,
        protect: Path | None = None,
    ) -> list[Path]: ...


class LogFileReader(Protocol):
    def read(self, xedit_binary: Path, process_started: datetime) -> tuple[list[str], str | None]:
        """Return log lines written since ``process_started`` or an error description."""

        ...


class HangMonitor(Protocol):
    def monitor(self, process: object, cancellation: CancellationToken | None = None) -> Iterator[bool]:
        """Yield True when the process looks hung and False when it recovers."""

        ...


__all__ = [
    "BackupFailureCallback",
    "BackupGateway",
    "CommandBuilder",
    "ContextDetector",
    "EnvironmentValidator",
    "HangMonitor",
    "LogFileReader",
    "ProcessRunner",
    "SessionResultSink",
    "SkipListProvider",
    "TimeoutRetryCallback",
]
