"""Where: src/qacbatch/features/cleaning/domain/models.py
What: Plugins, per-plugin outcomes, and session results for the cleaning feature.
Why: Results are immutable records that every layer (state, CLI, reports) can share.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Final

from .games import GameType, display_name

PLUGIN_EXTENSIONS: Final[frozenset[str]] = frozenset({".esp", ".esm", ".esl"})


class PluginWarningKind(StrEnum):
    """Problems found when checking a plugin file on disk."""

    NONE = "none"
    NOT_FOUND = "not_found"
    UNREADABLE = "unreadable"
    ZERO_BYTE = "zero_byte"
    MALFORMED_ENTRY = "malformed_entry"
    INVALID_EXTENSION = "invalid_extension"

    @property
    def reason(self) -> str:
        return _WARNING_REASONS[self]


_WARNING_REASONS: Final[dict[PluginWarningKind, str]] = {
    PluginWarningKind.NONE: "Ready for cleaning",
    PluginWarningKind.NOT_FOUND: "File not found",
    PluginWarningKind.UNREADABLE: "File is unreadable",
    PluginWarningKind.ZERO_BYTE: "Zero-byte file",
    PluginWarningKind.MALFORMED_ENTRY: "Malformed file name",
    PluginWarningKind.INVALID_EXTENSION: "Invalid file extension",
}


@dataclass(slots=True, frozen=True)
class PluginInfo:
    """One plugin listed in the load order.

    ``full_path`` is ``None`` until the plugin has been resolved against the
    game's Data folder.
    """

    file_name: str
    full_path: Path | None = None
    in_skip_list: bool = False
    detected_game: GameType = GameType.UNKNOWN
    selected: bool = True


def validate_plugin_file(plugin: PluginInfo) -> PluginWarningKind:
    """Check that ``plugin`` points at a readable, non-empty plugin file."""

    name = plugin.file_name.strip()
    if not name or any(sep in name for sep in ("/", "\\")):
        return PluginWarningKind.MALFORMED_ENTRY
    if Path(name).suffix.lower() not in PLUGIN_EXTENSIONS:
        return PluginWarningKind.INVALID_EXTENSION

    path = plugin.full_path
    if path is None or not path.is_absolute():
        return PluginWarningKind.NOT_FOUND
    try:
        if not path.is_file():
            return PluginWarningKind.NOT_FOUND
        if path.stat().st_size == 0:
            return PluginWarningKind.ZERO_BYTE
        with path.open("rb") as handle:
            _ = handle.read(1)
    except OSError:
        return PluginWarningKind.UNREADABLE
    return PluginWarningKind.NONE


class CleaningStatus(StrEnum):
    CLEANED = "cleaned"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


class BackupFailureAction(StrEnum):
    """What to do with a plugin whose backup could not be made."""

    CONTINUE = "continue"
    SKIP_PLUGIN = "skip_plugin"
    ABORT_SESSION = "abort_session"


@dataclass(slots=True, frozen=True)
class CleaningStatistics:
    """Record counts reported by xEdit for one plugin."""

    items_removed: int = 0
    items_undeleted: int = 0
    items_skipped: int = 0
    partial_forms_created: int = 0

    @property
    def total(self) -> int:
        return (
            self.items_removed
            + self.items_undeleted
            + self.items_skipped
            + self.partial_forms_created
        )


@dataclass(slots=True, frozen=True)
class CleaningResult:
    """Outcome of a single xEdit run as seen by the cleaning service."""

    status: CleaningStatus
    message: str = ""
    duration_seconds: float = 0.0
    statistics: CleaningStatistics | None = None
    timed_out: bool = False
    process_survived: bool = False
    output_lines: tuple[str, ...] = ()
    process_started_at: float | None = None
    process_exited_at: float | None = None

    @property
    def success(self) -> bool:
        return self.status is CleaningStatus.CLEANED


@dataclass(slots=True, frozen=True)
class PluginCleaningResult:
    """Final, recorded outcome for one plugin in a session."""

    plugin_name: str
    status: CleaningStatus
    message: str = ""
    duration_seconds: float = 0.0
    statistics: CleaningStatistics | None = None
    backup_path: Path | None = None
    log_parse_warning: str | None = None
    attempts: int = 1

    @property
    def success(self) -> bool:
        return self.status in (CleaningStatus.CLEANED, CleaningStatus.SKIPPED)

    @property
    def items_removed(self) -> int:
        return self.statistics.items_removed if self.statistics else 0

    @property
    def items_undeleted(self) -> int:
        return self.statistics.items_undeleted if self.statistics else 0

    @property
    def items_skipped(self) -> int:
        return self.statistics.items_skipped if self.statistics else 0

    @property
    def partial_forms_created(self) -> int:
        return self.statistics.partial_forms_created if self.statistics else 0

    @property
    def total_processed(self) -> int:
        return self.statistics.total if self.statistics else 0

    @property
    def has_log_parse_warning(self) -> bool:
        return bool(self.log_parse_warning)

    @property
    def summary(self) -> str:
        """Short human-readable outcome, e.g. ``3 ITMs, 1 UDRs``."""

        if self.status is CleaningStatus.SKIPPED:
            return "Skipped"
        if self.status is CleaningStatus.CANCELLED:
            return "Cancelled"
        if self.status is CleaningStatus.FAILED:
            return f"Failed: {self.message}"
        if self.total_processed == 0:
            return "No changes"

        parts: list[str] = []
        if self.items_removed > 0:
            parts.append(f"{self.items_removed} ITMs")
        if self.items_undeleted > 0:
            parts.append(f"{self.items_undeleted} UDRs")
        if self.partial_forms_created > 0:
            parts.append(f"{self.partial_forms_created} partial")
        return ", ".join(parts) if parts else "Cleaned"


def _format_duration(seconds: float) -> str:
    whole = max(0, int(seconds))
    hours, remainder = divmod(whole, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


@dataclass(slots=True, frozen=True)
class CleaningSessionResult:
    """Terminal record of one session, produced even when nothing ran."""

    started_at: datetime
    finished_at: datetime
    game: GameType = GameType.UNKNOWN
    cancelled: bool = False
    plugin_results: tuple[PluginCleaningResult, ...] = ()
    aborted_reason: str | None = None
    backup_session_dir: Path | None = None

    @property
    def aborted(self) -> bool:
        return self.aborted_reason is not None

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def _with_status(self, status: CleaningStatus) -> list[PluginCleaningResult]:
        return [result for result in self.plugin_results if result.status is status]

    @property
    def cleaned_plugins(self) -> list[PluginCleaningResult]:
        return self._with_status(CleaningStatus.CLEANED)

    @property
    def failed_plugins(self) -> list[PluginCleaningResult]:
        return self._with_status(CleaningStatus.FAILED)

    @property
    def skipped_plugins(self) -> list[PluginCleaningResult]:
        return self._with_status(CleaningStatus.SKIPPED)

    @property
    def cancelled_plugins(self) -> list[PluginCleaningResult]:
        return self._with_status(CleaningStatus.CANCELLED)

    @property
    def total_plugins(self) -> int:
        return len(self.plugin_results)

    @property
    def cleaned_count(self) -> int:
        return len(self.cleaned_plugins)

    @property
    def failed_count(self) -> int:
        return len(self.failed_plugins)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_plugins)

    @property
    def total_items_removed(self) -> int:
        return sum(result.items_removed for result in self.plugin_results)

    @property
    def total_items_undeleted(self) -> int:
        return sum(result.items_undeleted for result in self.plugin_results)

    @property
    def total_partial_forms_created(self) -> int:
        return sum(result.partial_forms_created for result in self.plugin_results)

    @property
    def is_success(self) -> bool:
        return not self.cancelled and not self.aborted and self.failed_count == 0

    @property
    def summary(self) -> str:
        if self.aborted:
            return f"Aborted: {self.aborted_reason}"
        if self.cancelled:
            return f"Cancelled after {self.cleaned_count} of {self.total_plugins} plugins"
        if self.failed_count > 0:
            return (
                f"Completed with errors: {self.cleaned_count} cleaned, "
                f"{self.failed_count} failed, {self.skipped_count} skipped"
            )
        return f"Completed: {self.cleaned_count} cleaned, {self.skipped_count} skipped"

    def generate_report(self) -> str:
        """Render a plain-text report suitable for logs or export."""

        lines: list[str] = [
            "=== QACBatch Cleaning Report ===",
            f"Date: {self.started_at:%Y-%m-%d %H:%M:%S}",
            f"Game: {display_name(self.game)}",
            f"Duration: {_format_duration(self.duration_seconds)}",
            "",
            "--- Summary ---",
            f"Total Plugins: {self.total_plugins}",
            f"Cleaned: {self.cleaned_count}",
            f"Skipped: {self.skipped_count}",
            f"Failed: {self.failed_count}",
            "",
            "--- Statistics ---",
            f"ITMs Removed: {self.total_items_removed}",
            f"UDRs Fixed: {self.total_items_undeleted}",
        ]
        if self.total_partial_forms_created > 0:
            lines.append(f"Partial Forms: {self.total_partial_forms_created}")
        lines.append("")

        if self.cleaned_plugins:
            lines.append("--- Cleaned Plugins ---")
            for result in self.cleaned_plugins:
                lines.append(
                    f"  {result.plugin_name}: {result.summary} "
                    f"({_format_duration(result.duration_seconds)[3:]})"
                )
            lines.append("")

        if self.skipped_plugins:
            lines.append("--- Skipped Plugins ---")
            lines.extend(f"  {result.plugin_name}" for result in self.skipped_plugins)
            lines.append("")

        if self.failed_plugins:
            lines.append("--- Failed Plugins ---")
            lines.extend(f"  {result.plugin_name}: {result.message}" for result in self.failed_plugins)
            lines.append("")

        if self.aborted:
            lines.append(f"*** Session aborted: {self.aborted_reason} ***")
        elif self.cancelled:
            lines.append("*** Session was cancelled by user ***")

        return "\n".join(lines) + "\n"


class DryRunStatus(StrEnum):
    WILL_CLEAN = "will_clean"
    WILL_SKIP = "will_skip"


@dataclass(slots=True, frozen=True)
class DryRunResult:
    """Preview verdict for one plugin."""

    plugin_name: str
    status: DryRunStatus
    reason: str


@dataclass(slots=True)
class SessionPlan:
    """Plugins selected for a run after detection and skip-list filtering."""

    game: GameType
    plugins: list[PluginInfo] = field(default_factory=list)
    skipped: list[PluginInfo] = field(default_factory=list)
    invalid: list[tuple[PluginInfo, PluginWarningKind]] = field(default_factory=list)


__all__ = [
    "BackupFailureAction",
    "CleaningResult",
    "CleaningSessionResult",
    "CleaningStatistics",
    "CleaningStatus",
    "DryRunResult",
    "DryRunStatus",
    "PLUGIN_EXTENSIONS",
    "PluginCleaningResult",
    "PluginInfo",
    "PluginWarningKind",
    "SessionPlan",
    "validate_plugin_file",
]
