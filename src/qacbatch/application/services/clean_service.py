"""Application service that runs cleaning sessions from the user configuration."""

from __future__ import annotations

from collections.abc import Iterable
from logging import Logger, getLogger
from pathlib import Path
from typing import final

from qacbatch.config.config import Config
from qacbatch.config.settings import resolve_cleaning_timeout, resolve_process_slots
from qacbatch.features.backup import BackupPluginEntry, BackupService, BackupSession
from qacbatch.features.cleaning.adapters.environment import FileSystemEnvironmentValidator
from qacbatch.features.cleaning.adapters.load_order import LoadOrderLoader
from qacbatch.features.cleaning.adapters.log_file import XEditLogFileReader
from qacbatch.features.cleaning.adapters.skip_lists import TomlSkipListProvider
from qacbatch.features.cleaning.domain.command_builder import XEditCommandBuilder
from qacbatch.features.cleaning.domain.games import GameDetector, GameType
from qacbatch.features.cleaning.domain.models import (
    CleaningSessionResult,
    DryRunResult,
    PluginInfo,
)
from qacbatch.features.cleaning.domain.output_parser import XEditOutputParser
from qacbatch.features.cleaning.usecases.cleaning_service import CleaningService
from qacbatch.features.cleaning.usecases.orchestrator import CleaningOrchestrator
from qacbatch.features.cleaning.usecases.ports import (
    BackupFailureCallback,
    BackupGateway,
    HangMonitor,
    ProcessRunner,
    SessionResultSink,
    TimeoutRetryCallback,
)
from qacbatch.features.monitoring import HangDetector
from qacbatch.features.state import AppState, StateStore
from qacbatch.platform.process import ProcessExecutionService, ProcessTracker
from qacbatch.shared.cancellation import CancellationToken


def state_from_config(config: Config) -> AppState:
    """Project the persisted configuration onto a fresh application state."""

    return AppState(
        xedit_binary=config.xedit_binary,
        mo2_binary=config.mo2_binary,
        load_order_file=config.load_order_file,
        data_folder=config.data_folder,
        selected_game=GameType.from_user_input(config.selected_game),
        mo2_mode=config.mo2_mode,
        partial_forms=config.partial_forms,
        disable_skip_lists=config.disable_skip_lists,
        cleaning_timeout=int(resolve_cleaning_timeout(config.cleaning_timeout)),
        backup_enabled=config.backup_enabled,
        backup_max_sessions=config.backup_max_sessions,
    )


@final
class CleanService:
    """Application façade wiring adapters into the cleaning orchestrator."""

    _state: StateStore
    _orchestrator: CleaningOrchestrator
    _backup: BackupService
    _loader: LoadOrderLoader

    def __init__(
        self,
        config: Config,
        *,
        state: StateStore | None = None,
        process_runner: ProcessRunner | None = None,
        backup: BackupService | None = None,
        hang_detector: HangMonitor | None = None,
        result_sink: SessionResultSink | None = None,
        timeout_retry: TimeoutRetryCallback | None = None,
        backup_failure: BackupFailureCallback | None = None,
        logger: Logger | None = None,
    ) -> None:
        service_logger = logger or getLogger(__name__)
        self._state = state or StateStore(state_from_config(config), logger=service_logger)
        snapshot = self._state.current

        runner = process_runner or ProcessExecutionService(
            max_slots=resolve_process_slots(config.max_concurrent_subprocesses),
            tracker=ProcessTracker(logger=service_logger),
            logger=service_logger,
        )
        self._backup = backup or BackupService(logger=service_logger)
        self._loader = LoadOrderLoader(logger=service_logger)
        parser = XEditOutputParser()

        command_builder = XEditCommandBuilder(
            snapshot.xedit_binary,
            mo2_binary=snapshot.mo2_binary,
            mo2_mode=snapshot.mo2_mode,
            partial_forms=snapshot.partial_forms,
        )
        backup_gateway: BackupGateway = self._backup
        self._orchestrator = CleaningOrchestrator(
            state=self._state,
            validator=FileSystemEnvironmentValidator(lambda: self._state.current, logger=service_logger),
            detector=GameDetector(logger=service_logger),
            skip_lists=TomlSkipListProvider(user_lists=config.skip_lists, logger=service_logger),
            cleaning_service=CleaningService(
                command_builder=command_builder,
                process_runner=runner,
                parser=parser,
                logger=service_logger,
            ),
            process_runner=runner,
            backup=backup_gateway,
            log_reader=XEditLogFileReader(logger=service_logger),
            hang_detector=hang_detector or HangDetector(logger=service_logger),
            parser=parser,
            result_sink=result_sink,
            timeout_retry=timeout_retry,
            backup_failure=backup_failure,
            logger=service_logger,
        )

    @property
    def state(self) -> StateStore:
        return self._state

    @property
    def orchestrator(self) -> CleaningOrchestrator:
        return self._orchestrator

    def load_plugins(self, load_order_file: Path | None = None) -> list[PluginInfo]:
        """Read the configured (or given) load order, resolved against the Data folder."""

        snapshot = self._state.current
        path = load_order_file or snapshot.load_order_file
        if path is None:
            return []
        return self._loader.load(path, snapshot.data_folder)

    def run(
        self,
        plugins: Iterable[PluginInfo] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> CleaningSessionResult:
        items = list(plugins) if plugins is not None else self.load_plugins()
        return self._orchestrator.run_session(items, cancellation)

    def preview(self, plugins: Iterable[PluginInfo] | None = None) -> list[DryRunResult]:
        items = list(plugins) if plugins is not None else self.load_plugins()
        return self._orchestrator.preview(items)

    def request_stop(self, *, force: bool = False) -> None:
        if force:
            self._orchestrator.request_force_stop()
        else:
            self._orchestrator.request_cooperative_stop()

    def backup_root(self) -> Path | None:
        data_folder = self._state.current.data_folder
        return self._backup.backup_root_for(data_folder) if data_folder is not None else None

    def list_backups(self) -> list[BackupSession]:
        root = self.backup_root()
        return self._backup.list_sessions(root) if root is not None else []

    def restore_backup(self, session: BackupSession) -> list[BackupPluginEntry]:
        return self._backup.restore_session(session)


__all__ = ["CleanService", "state_from_config"]
