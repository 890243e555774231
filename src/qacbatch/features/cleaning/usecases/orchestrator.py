"""Where: src/qacbatch/features/cleaning/usecases/orchestrator.py
What: Drive one cleaning session over an ordered plugin list, one xEdit run at a time.
Why: xEdit locks its working files; plugins must run strictly in sequence with deterministic cancellation.
Assumptions: - The process runner enforces the single execution slot; this class only sequences.
Trade-offs: - Plugins after a cooperative stop are left out of the result rather than marked cancelled.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from logging import Logger, getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from qacbatch.config.settings import MAX_TIMEOUT_ATTEMPTS
from qacbatch.features.backup.domain.models import BackupPluginEntry, BackupSession
from qacbatch.platform.process.models import ProcessHandle
from qacbatch.shared.cancellation import CancellationToken

from ..domain.errors import (
    EnvironmentInvalidError,
    GameUndeterminedError,
    ProcessStrandedError,
    SessionAbortedError,
)
from ..domain.games import GameType, GameVariant
from ..domain.models import (
    BackupFailureAction,
    CleaningResult,
    CleaningSessionResult,
    CleaningStatistics,
    CleaningStatus,
    DryRunResult,
    DryRunStatus,
    PluginCleaningResult,
    PluginInfo,
    PluginWarningKind,
    validate_plugin_file,
)
from ..domain.output_parser import XEditOutputParser
from .cleaning_service import CleaningService
from .events import CleaningEvent, log_cleaning
from .ports import (
    BackupFailureCallback,
    BackupGateway,
    ContextDetector,
    EnvironmentValidator,
    HangMonitor,
    LogFileReader,
    ProcessRunner,
    SessionResultSink,
    SkipListProvider,
    TimeoutRetryCallback,
)

if TYPE_CHECKING:
    from qacbatch.features.state.domain.app_state import AppState
    from qacbatch.features.state.usecases.state_store import StateStore

_HANG_MONITOR_JOIN_SECONDS = 5.0


class OrchestratorPhase(StrEnum):
    IDLE = "idle"
    VALIDATING = "validating"
    DETECTING_CONTEXT = "detecting_context"
    RUNNING = "running"
    CANCELLING = "cancelling"
    FINISHING = "finishing"
    ABORTED = "aborted"


@dataclass(slots=True)
class _QueuedPlugin:
    plugin: PluginInfo
    skip_reason: str | None = None


@dataclass(slots=True)
class _BackupContext:
    root: Path
    session_dir: Path
    entries: list[BackupPluginEntry] = field(default_factory=list)


@dataclass(slots=True)
class _SessionPlan:
    game: GameType
    queue: list[_QueuedPlugin]


class CleaningOrchestrator:
    """Sequential state machine for a cleaning session.

    ``run_session`` always returns a terminal :class:`CleaningSessionResult`
    and always publishes it to the state store, whether the session completed,
    was cancelled, or aborted on a failed precondition.
    """

    def __init__(
        self,
        *,
        state: StateStore,
        validator: EnvironmentValidator,
        detector: ContextDetector,
        skip_lists: SkipListProvider,
        cleaning_service: CleaningService,
        process_runner: ProcessRunner,
        backup: BackupGateway | None = None,
        log_reader: LogFileReader | None = None,
        hang_detector: HangMonitor | None = None,
        parser: XEditOutputParser | None = None,
        result_sink: SessionResultSink | None = None,
        timeout_retry: TimeoutRetryCallback | None = None,
        backup_failure: BackupFailureCallback | None = None,
        logger: Logger | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._state = state
        self._validator = validator
        self._detector = detector
        self._skip_lists = skip_lists
        self._cleaning_service = cleaning_service
        self._process_runner = process_runner
        self._backup = backup
        self._log_reader = log_reader
        self._hang_detector = hang_detector
        self._parser = parser or XEditOutputParser()
        self._result_sink = result_sink
        self._timeout_retry = timeout_retry
        self._backup_failure = backup_failure
        self._logger: Logger = logger or getLogger(__name__)
        self._clock = clock

        self._session_lock = threading.Lock()
        self._lock = threading.RLock()
        self._phase = OrchestratorPhase.IDLE
        self._token: CancellationToken | None = None
        self._active_handle: ProcessHandle | None = None
        self._stop_requested = False
        self._force_requested = False

    @property
    def phase(self) -> OrchestratorPhase:
        with self._lock:
            return self._phase

    def _set_phase(self, phase: OrchestratorPhase) -> None:
        with self._lock:
            if self._phase is not phase:
                self._logger.debug("Orchestrator phase: %s -> %s", self._phase, phase)
            self._phase = phase

    # Stop requests -----------------------------------------------------------

    def request_cooperative_stop(self) -> None:
        """Terminate the in-flight xEdit gracefully and end the session; a second request force-kills."""

        with self._lock:
            token = self._token
            if token is None:
                self._logger.debug("Stop requested with no session running; ignoring")
                return
            escalate = self._stop_requested
            self._stop_requested = True
            if not escalate:
                self._phase = OrchestratorPhase.CANCELLING

        if escalate:
            self.request_force_stop()
            return

        self._logger.info("Stop requested; cancelling the current plugin and ending the session")
        token.cancel()

    def request_force_stop(self) -> None:
        """Cancel the session and kill the active xEdit process tree immediately."""

        with self._lock:
            token = self._token
            if token is None:
                self._logger.debug("Force stop requested with no session running; ignoring")
                return
            self._stop_requested = True
            self._force_requested = True
            self._phase = OrchestratorPhase.CANCELLING
            handle = self._active_handle

        self._logger.warning("Force stop requested; killing the active xEdit process")
        token.cancel()
        if handle is not None:
            outcome = self._process_runner.terminate(handle, force_kill=True)
            self._logger.info("Force stop of PID %d finished: %s", handle.pid, outcome)

    # Session -----------------------------------------------------------------

    def run_session(
        self,
        plugins: Iterable[PluginInfo],
        cancellation: CancellationToken | None = None,
    ) -> CleaningSessionResult:
        """Clean ``plugins`` in order and return the terminal session result.

        Raises:
            RuntimeError: Another session is already running on this orchestrator.
        """

        if not self._session_lock.acquire(blocking=False):
            raise RuntimeError("A cleaning session is already running")

        token = cancellation.linked() if cancellation is not None else CancellationToken()
        with self._lock:
            self._token = token
            self._active_handle = None
            self._stop_requested = False
            self._force_requested = False

        try:
            return self._run(list(plugins), token)
        finally:
            token.detach()
            with self._lock:
                self._token = None
                self._active_handle = None
            self._set_phase(OrchestratorPhase.IDLE)
            self._session_lock.release()

    def _run(self, items: list[PluginInfo], token: CancellationToken) -> CleaningSessionResult:
        started_at = self._clock()
        started_perf = time.perf_counter()
        game = GameType.UNKNOWN
        results: list[PluginCleaningResult] = []
        backup: _BackupContext | None = None
        aborted_reason: str | None = None

        try:
            plan = self._prepare(items)
            game = plan.game
            self._sweep_orphans()

            self._state.start_cleaning(entry.plugin for entry in plan.queue)
            backup = self._open_backup_session(plan.queue)
            log_cleaning(
                self._logger,
                logging.INFO,
                CleaningEvent.SESSION_START,
                "Cleaning session started: game=%s plugins=%d",
                game,
                len(plan.queue),
                game=game.value,
                total_plugins=len(plan.queue),
            )

            if not token.is_cancelled:
                self._set_phase(OrchestratorPhase.RUNNING)
            self._run_queue(plan, token, backup, results)
        except SessionAbortedError as exc:
            aborted_reason = str(exc)
            self._set_phase(OrchestratorPhase.ABORTED)
        except Exception as exc:
            self._logger.exception("Cleaning session failed unexpectedly")
            aborted_reason = f"Unexpected error: {exc}"
            self._set_phase(OrchestratorPhase.ABORTED)

        return self._finish(
            started_at=started_at,
            started_perf=started_perf,
            game=game,
            cancelled=token.is_cancelled and aborted_reason is None,
            results=results,
            aborted_reason=aborted_reason,
            backup=backup,
        )

    def _prepare(self, items: list[PluginInfo]) -> _SessionPlan:
        self._set_phase(OrchestratorPhase.VALIDATING)
        if not self._validator.validate():
            problems = "; ".join(self._validator.problems) or "environment validation failed"
            raise EnvironmentInvalidError(f"Environment is not ready: {problems}")

        self._set_phase(OrchestratorPhase.DETECTING_CONTEXT)
        state = self._state.current
        names = [plugin.file_name for plugin in items]
        game = self._detect_game(state, names)
        if game is GameType.UNKNOWN:
            raise GameUndeterminedError(
                "Could not determine the game from the xEdit executable or the load order; "
                "set selected_game explicitly"
            )
        self._state.set_detected_game(game)
        variant = self._detector.detect_variant(game, names)
        exclusions = set() if state.disable_skip_lists else self._load_exclusions(game, variant)

        queue: list[_QueuedPlugin] = []
        for plugin in items:
            if not plugin.selected:
                continue
            plugin = replace(plugin, detected_game=game)
            if plugin.file_name.strip().lower() in exclusions:
                queue.append(_QueuedPlugin(replace(plugin, in_skip_list=True), "In skip list"))
                continue
            if not state.mo2_mode:
                warning = validate_plugin_file(plugin)
                if warning is not PluginWarningKind.NONE:
                    self._logger.warning("Skipping %s: %s", plugin.file_name, warning.reason)
                    queue.append(_QueuedPlugin(plugin, warning.reason))
                    continue
            queue.append(_QueuedPlugin(plugin))
        return _SessionPlan(game=game, queue=queue)

    def _detect_game(self, state: AppState, names: list[str]) -> GameType:
        if state.selected_game is not GameType.UNKNOWN:
            return state.selected_game

        tool_name = state.xedit_binary.name if state.xedit_binary is not None else None
        game = self._detector.detect_from_tool_name(tool_name)
        if game is not GameType.UNKNOWN:
            self._logger.info("Detected game %s from xEdit executable %s", game, tool_name)
            return game

        game = self._detector.detect_from_items(names)
        if game is not GameType.UNKNOWN:
            self._logger.info("Detected game %s from load order masters", game)
        return game

    def _load_exclusions(self, game: GameType, variant: GameVariant) -> set[str]:
        try:
            names = self._skip_lists.get_exclusions(game, variant)
        except Exception as exc:
            self._logger.warning("Skip list unavailable, continuing without it: %s", exc)
            return set()
        return {name.strip().lower() for name in names}

    def _sweep_orphans(self) -> None:
        try:
            killed = self._process_runner.sweep_orphans()
        except Exception as exc:
            self._logger.warning("Orphan process sweep failed: %s", exc)
            return
        if killed:
            self._logger.warning("Terminated %d orphaned xEdit process(es) from a previous run", killed)

    def _run_queue(
        self,
        plan: _SessionPlan,
        token: CancellationToken,
        backup: _BackupContext | None,
        results: list[PluginCleaningResult],
    ) -> None:
        total = len(plan.queue)
        for index, entry in enumerate(plan.queue, start=1):
            if token.is_cancelled:
                self._logger.info(
                    "Session cancelled before %s; %d of %d plugins processed",
                    entry.plugin.file_name,
                    index - 1,
                    total,
                )
                break

            survived = False
            try:
                result, survived = self._process_plugin(entry, plan.game, index, total, token, backup)
            except SessionAbortedError:
                raise
            except Exception as exc:
                self._logger.exception("Unexpected error while processing %s", entry.plugin.file_name)
                result = PluginCleaningResult(
                    plugin_name=entry.plugin.file_name,
                    status=CleaningStatus.FAILED,
                    message=f"Unexpected error: {exc}",
                )

            results.append(result)
            self._state.add_result(result)
            self._log_result(result, entry.plugin, index, total)
            if survived:
                raise ProcessStrandedError(
                    f"xEdit could not be stopped while cleaning {entry.plugin.file_name}; "
                    "no further plugins were started"
                )

    def _process_plugin(
        self,
        entry: _QueuedPlugin,
        game: GameType,
        index: int,
        total: int,
        token: CancellationToken,
        backup: _BackupContext | None,
    ) -> tuple[PluginCleaningResult, bool]:
        plugin = entry.plugin
        self._state.set_current_plugin(plugin.file_name, "Cleaning")
        if entry.skip_reason is not None:
            skipped = PluginCleaningResult(
                plugin_name=plugin.file_name,
                status=CleaningStatus.SKIPPED,
                message=entry.skip_reason,
            )
            return skipped, False

        log_cleaning(
            self._logger,
            logging.INFO,
            CleaningEvent.PLUGIN_START,
            "Cleaning %s",
            plugin.file_name,
            plugin=plugin.file_name,
            plugin_path=plugin.full_path,
            sequence=index,
            total_plugins=total,
        )

        backup_path, action = self._backup_plugin(plugin, backup)
        if action is BackupFailureAction.ABORT_SESSION:
            raise SessionAbortedError(f"Backup of {plugin.file_name} failed; session aborted")
        if action is BackupFailureAction.SKIP_PLUGIN:
            skipped = PluginCleaningResult(
                plugin_name=plugin.file_name,
                status=CleaningStatus.SKIPPED,
                message="Backup failed",
            )
            return skipped, False

        run_started = self._clock()
        outcome, attempts = self._clean_with_retries(plugin, game, token)

        statistics = outcome.statistics
        log_warning: str | None = None
        if outcome.status is CleaningStatus.CLEANED:
            statistics, log_warning = self._statistics_from_log(run_started, statistics)

        result = PluginCleaningResult(
            plugin_name=plugin.file_name,
            status=outcome.status,
            message=outcome.message,
            duration_seconds=outcome.duration_seconds,
            statistics=statistics,
            backup_path=backup_path,
            log_parse_warning=log_warning,
            attempts=attempts,
        )
        return result, outcome.process_survived

    def _clean_with_retries(
        self,
        plugin: PluginInfo,
        game: GameType,
        token: CancellationToken,
    ) -> tuple[CleaningResult, int]:
        timeout = float(self._state.current.cleaning_timeout)
        attempt = 1
        while True:
            outcome = self._clean_once(plugin, game, timeout, token)
            if not outcome.timed_out or token.is_cancelled or self._timeout_retry is None:
                return outcome, attempt
            if attempt >= MAX_TIMEOUT_ATTEMPTS:
                self._logger.warning("%s timed out %d times; giving up", plugin.file_name, attempt)
                return outcome, attempt
            try:
                retry = self._timeout_retry(plugin.file_name, timeout, attempt)
            except Exception:
                self._logger.exception("Timeout retry callback failed for %s", plugin.file_name)
                return outcome, attempt
            if not retry:
                return outcome, attempt
            attempt += 1
            self._logger.info("Retrying %s after timeout (attempt %d)", plugin.file_name, attempt)

    def _clean_once(
        self,
        plugin: PluginInfo,
        game: GameType,
        timeout: float,
        token: CancellationToken,
    ) -> CleaningResult:
        monitor_token = token.linked()
        monitor_threads: list[threading.Thread] = []

        def _on_started(handle: ProcessHandle) -> None:
            with self._lock:
                self._active_handle = handle
                force_pending = self._force_requested
            if force_pending:
                _ = self._process_runner.terminate(handle, force_kill=True)
                return
            if self._hang_detector is not None and handle.process is not None:
                thread = threading.Thread(
                    target=self._watch_for_hang,
                    args=(handle.process, plugin.file_name, monitor_token),
                    name=f"hang-{handle.pid}",
                    daemon=True,
                )
                monitor_threads.append(thread)
                thread.start()

        try:
            return self._cleaning_service.clean_plugin(
                plugin,
                game,
                timeout=timeout,
                cancellation=token,
                on_process_started=_on_started,
            )
        finally:
            monitor_token.cancel()
            with self._lock:
                self._active_handle = None
            for thread in monitor_threads:
                thread.join(timeout=_HANG_MONITOR_JOIN_SECONDS)
            if self._state.current.hang_detected:
                self._state.set_hang_detected(False)

    def _watch_for_hang(self, process: object, plugin_name: str, cancellation: CancellationToken) -> None:
        if self._hang_detector is None:
            return
        try:
            for hung in self._hang_detector.monitor(process, cancellation):
                if cancellation.is_cancelled:
                    return
                self._state.set_hang_detected(hung)
                if hung:
                    log_cleaning(
                        self._logger,
                        logging.WARNING,
                        CleaningEvent.PROCESS_HANG,
                        "xEdit appears hung while cleaning %s",
                        plugin_name,
                        plugin=plugin_name,
                    )
        except Exception:
            self._logger.exception("Hang monitor failed for %s", plugin_name)

    def _statistics_from_log(
        self,
        run_started: datetime,
        fallback: CleaningStatistics | None,
    ) -> tuple[CleaningStatistics | None, str | None]:
        xedit_binary = self._state.current.xedit_binary
        if self._log_reader is None or xedit_binary is None:
            return fallback, None

        try:
            lines, error = self._log_reader.read(xedit_binary, run_started)
        except Exception as exc:
            self._logger.warning("Failed to read xEdit log: %s", exc)
            return fallback, f"Failed to read xEdit log: {exc}"

        if error is not None:
            return fallback, error
        if not lines:
            return fallback, "xEdit log file was empty"
        return self._parser.parse(lines), None

    # Dry run -----------------------------------------------------------------

    def preview(self, plugins: Iterable[PluginInfo]) -> list[DryRunResult]:
        """Report what ``run_session`` would do with ``plugins`` without launching xEdit.

        Raises:
            GameUndeterminedError: The game cannot be detected.
        """

        items = list(plugins)
        state = self._state.current
        names = [plugin.file_name for plugin in items]
        game = self._detect_game(state, names)
        if game is GameType.UNKNOWN:
            raise GameUndeterminedError("Could not determine the game for the preview")
        variant = self._detector.detect_variant(game, names)
        exclusions = set() if state.disable_skip_lists else self._load_exclusions(game, variant)

        preview: list[DryRunResult] = []
        for plugin in items:
            name = plugin.file_name
            if not plugin.selected:
                preview.append(DryRunResult(name, DryRunStatus.WILL_SKIP, "Not selected"))
            elif name.strip().lower() in exclusions:
                preview.append(DryRunResult(name, DryRunStatus.WILL_SKIP, "In skip list"))
            else:
                warning = PluginWarningKind.NONE if state.mo2_mode else validate_plugin_file(plugin)
                status = DryRunStatus.WILL_CLEAN if warning is PluginWarningKind.NONE else DryRunStatus.WILL_SKIP
                preview.append(DryRunResult(name, status, warning.reason))
        return preview

    # Backups -----------------------------------------------------------------

    def _open_backup_session(self, queue: list[_QueuedPlugin]) -> _BackupContext | None:
        state = self._state.current
        if self._backup is None or not state.backup_enabled:
            return None
        if state.mo2_mode:
            self._logger.info("Backups are disabled in MO2 mode")
            return None

        data_folder = state.data_folder
        if data_folder is None:
            data_folder = next(
                (
                    entry.plugin.full_path.parent
                    for entry in queue
                    if entry.plugin.full_path is not None and entry.plugin.full_path.is_absolute()
                ),
                None,
            )
        if data_folder is None:
            self._logger.warning("No Data folder known; continuing without backups")
            return None

        try:
            root = self._backup.backup_root_for(data_folder)
            session_dir = self._backup.create_session_directory(root)
        except OSError as exc:
            self._logger.warning("Could not create backup session, continuing without backups: %s", exc)
            return None
        return _BackupContext(root=root, session_dir=session_dir)

    def _backup_plugin(
        self,
        plugin: PluginInfo,
        backup: _BackupContext | None,
    ) -> tuple[Path | None, BackupFailureAction]:
        if backup is None or self._backup is None:
            return None, BackupFailureAction.CONTINUE
        try:
            result = self._backup.backup(plugin, backup.session_dir)
        except Exception as exc:
            return None, self._backup_failed(plugin, str(exc))

        if not result.success or result.backup_path is None or plugin.full_path is None:
            return None, self._backup_failed(plugin, result.error or "no backup was written")
        backup.entries.append(
            BackupPluginEntry(
                file_name=plugin.file_name,
                original_path=plugin.full_path,
                file_size_bytes=result.file_size_bytes,
            )
        )
        return result.backup_path, BackupFailureAction.CONTINUE

    def _backup_failed(self, plugin: PluginInfo, reason: str) -> BackupFailureAction:
        if self._backup_failure is None:
            self._logger.warning("Backup of %s failed, cleaning anyway: %s", plugin.file_name, reason)
            return BackupFailureAction.CONTINUE
        try:
            action = BackupFailureAction(self._backup_failure(plugin.file_name, reason))
        except Exception:
            self._logger.exception("Backup failure callback failed for %s; cleaning anyway", plugin.file_name)
            return BackupFailureAction.CONTINUE
        self._logger.warning("Backup of %s failed (%s); action: %s", plugin.file_name, reason, action)
        return action

    def _close_backup_session(
        self,
        backup: _BackupContext,
        started_at: datetime,
        game: GameType,
    ) -> Path | None:
        if self._backup is None:
            return None
        if not backup.entries:
            try:
                backup.session_dir.rmdir()
            except OSError as exc:
                self._logger.debug("Left backup session directory in place: %s", exc)
                return backup.session_dir
            return None

        max_sessions = self._state.current.backup_max_sessions
        try:
            _ = self._backup.write_session_metadata(
                backup.session_dir,
                BackupSession(
                    timestamp=started_at,
                    game_type=game.value,
                    session_directory=backup.session_dir,
                    plugins=list(backup.entries),
                ),
            )
            _ = self._backup.cleanup_old_sessions(backup.root, max_sessions, protect=backup.session_dir)
        except OSError as exc:
            self._logger.warning("Failed to finalise backup session %s: %s", backup.session_dir, exc)
        return backup.session_dir

    # Finishing ---------------------------------------------------------------

    def _finish(
        self,
        *,
        started_at: datetime,
        started_perf: float,
        game: GameType,
        cancelled: bool,
        results: list[PluginCleaningResult],
        aborted_reason: str | None,
        backup: _BackupContext | None,
    ) -> CleaningSessionResult:
        if aborted_reason is None:
            self._set_phase(OrchestratorPhase.FINISHING)

        backup_dir = self._close_backup_session(backup, started_at, game) if backup is not None else None
        session = CleaningSessionResult(
            started_at=started_at,
            finished_at=self._clock(),
            game=game,
            cancelled=cancelled,
            plugin_results=tuple(results),
            aborted_reason=aborted_reason,
            backup_session_dir=backup_dir,
        )
        self._state.finish_cleaning(session)
        self._log_session(session, time.perf_counter() - started_perf)

        if self._result_sink is not None:
            try:
                self._result_sink(session)
            except Exception:
                self._logger.exception("Session result sink failed")
        return session

    def _log_result(self, result: PluginCleaningResult, plugin: PluginInfo, index: int, total: int) -> None:
        level = logging.ERROR if result.status is CleaningStatus.FAILED else logging.INFO
        log_cleaning(
            self._logger,
            level,
            CleaningEvent.for_status(result.status),
            "%s: %s",
            result.plugin_name,
            result.summary,
            plugin=result.plugin_name,
            plugin_path=plugin.full_path,
            sequence=index,
            total_plugins=total,
            summary=result.summary,
            duration_seconds=result.duration_seconds,
            error_message=result.message if result.status is CleaningStatus.FAILED else None,
        )
        if result.log_parse_warning:
            self._logger.debug("Log parse warning for %s: %s", result.plugin_name, result.log_parse_warning)

    def _log_session(self, session: CleaningSessionResult, duration: float) -> None:
        if session.aborted:
            event, level = CleaningEvent.SESSION_ABORTED, logging.ERROR
        elif session.cancelled:
            event, level = CleaningEvent.SESSION_CANCELLED, logging.WARNING
        else:
            event, level = CleaningEvent.SESSION_COMPLETE, logging.INFO
        log_cleaning(
            self._logger,
            level,
            event,
            "Cleaning session finished: %s",
            session.summary,
            game=session.game.value,
            total_plugins=session.total_plugins,
            cleaned=session.cleaned_count,
            skipped=session.skipped_count,
            failed=session.failed_count,
            duration_seconds=duration,
            error_message=session.aborted_reason,
        )


__all__ = ["CleaningOrchestrator", "OrchestratorPhase"]
