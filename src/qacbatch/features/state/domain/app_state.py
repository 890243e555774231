"""Where: src/qacbatch/features/state/domain/app_state.py
What: Immutable snapshot of configuration, session progress, and results.
Why: Readers hold a whole snapshot, so they can never see a half-applied update.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from qacbatch.config.settings import DEFAULT_BACKUP_MAX_SESSIONS, DEFAULT_CLEANING_TIMEOUT_SECONDS
from qacbatch.features.cleaning.domain.games import GameType
from qacbatch.features.cleaning.domain.models import (
    CleaningSessionResult,
    PluginCleaningResult,
    PluginInfo,
)


@dataclass(slots=True, frozen=True)
class AppState:
    """Single externally observable state of the application."""

    # Configuration
    xedit_binary: Path | None = None
    mo2_binary: Path | None = None
    load_order_file: Path | None = None
    data_folder: Path | None = None

    # Settings
    selected_game: GameType = GameType.UNKNOWN
    mo2_mode: bool = False
    partial_forms: bool = False
    disable_skip_lists: bool = False
    cleaning_timeout: int = DEFAULT_CLEANING_TIMEOUT_SECONDS
    backup_enabled: bool = True
    backup_max_sessions: int = DEFAULT_BACKUP_MAX_SESSIONS

    # Runtime
    is_cleaning: bool = False
    detected_game: GameType = GameType.UNKNOWN
    current_plugin: str | None = None
    current_operation: str | None = None
    hang_detected: bool = False

    # Progress
    progress: int = 0
    total_plugins: int = 0
    plugins_to_clean: tuple[PluginInfo, ...] = ()

    # Results
    cleaned_plugins: frozenset[str] = field(default_factory=frozenset)
    failed_plugins: frozenset[str] = field(default_factory=frozenset)
    skipped_plugins: frozenset[str] = field(default_factory=frozenset)
    cancelled_plugins: frozenset[str] = field(default_factory=frozenset)
    plugin_results: tuple[PluginCleaningResult, ...] = ()
    last_session_result: CleaningSessionResult | None = None

    @property
    def is_xedit_configured(self) -> bool:
        return self.xedit_binary is not None

    @property
    def is_load_order_configured(self) -> bool:
        return self.load_order_file is not None

    @property
    def is_mo2_configured(self) -> bool:
        return self.mo2_binary is not None

    @property
    def effective_game(self) -> GameType:
        """Explicit selection wins over detection."""

        if self.selected_game is not GameType.UNKNOWN:
            return self.selected_game
        return self.detected_game


__all__ = ["AppState"]
