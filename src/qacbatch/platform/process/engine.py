"""Where: src/qacbatch/platform/process/engine.py
What: Slot-limited spawn, monitor, terminate, and orphan sweep for external tools.
Why: xEdit holds exclusive file locks, so at most one instance may ever run.
Assumptions: - Output is line-oriented UTF-8 text; undecodable bytes are replaced.
Trade-offs: - Exit, timeout, and cancellation are observed by polling at a short interval.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from logging import Logger, getLogger
from pathlib import Path
from typing import IO, Final

import psutil

from qacbatch.config.settings import (
    DEFAULT_PROCESS_SLOTS,
    KILL_WAIT_SECONDS,
    PID_START_TIME_TOLERANCE_SECONDS,
    PROCESS_POLL_INTERVAL_SECONDS,
    TERMINATION_GRACE_PERIOD_SECONDS,
    TERMINATION_SETTLE_SECONDS,
    resolve_process_slots,
)
from qacbatch.shared.cancellation import CancellationToken, OperationCancelledError

from .models import ProcessCommand, ProcessHandle, ProcessResult, TerminationResult, TrackedProcess
from .tracking import ProcessTracker

OutputCallback = Callable[[str], None]
ProcessStartedCallback = Callable[[ProcessHandle], None]

_READER_JOIN_SECONDS: Final[float] = 5.0


class SlotUnavailableError(Exception):
    """Raised when no execution slot frees up before the timeout."""


@dataclass(slots=True, eq=False)
class SlotLease:
    """One held slot; ``retained_by`` keeps it past the ``with`` block."""

    retained_by: ProcessHandle | None = None


class ProcessExecutionService:
    """Run external processes one slot at a time.

    Every execution holds a slot from spawn until the process is confirmed
    gone, so a slot count of one serialises all callers.
    """

    def __init__(
        self,
        *,
        max_slots: int = DEFAULT_PROCESS_SLOTS,
        tracker: ProcessTracker | None = None,
        grace_period: float = TERMINATION_GRACE_PERIOD_SECONDS,
        settle_delay: float = TERMINATION_SETTLE_SECONDS,
        poll_interval: float = PROCESS_POLL_INTERVAL_SECONDS,
        kill_wait: float = KILL_WAIT_SECONDS,
        logger: Logger | None = None,
    ) -> None:
        self._max_slots: Final[int] = resolve_process_slots(max_slots)
        self._slots: Final[threading.BoundedSemaphore] = threading.BoundedSemaphore(self._max_slots)
        self._in_use_lock: Final[threading.Lock] = threading.Lock()
        self._in_use: int = 0
        self._stranded: list[ProcessHandle] = []
        self._tracker: ProcessTracker = tracker or ProcessTracker()
        self._grace_period: float = grace_period
        self._settle_delay: float = settle_delay
        self._poll_interval: float = poll_interval
        self._kill_wait: float = kill_wait
        self._logger: Logger = logger or getLogger(__name__)
        self._logger.debug("Process execution engine ready with %d slot(s)", self._max_slots)

    @property
    def max_slots(self) -> int:
        return self._max_slots

    @property
    def slots_in_use(self) -> int:
        self._reclaim_stranded()
        with self._in_use_lock:
            return self._in_use

    @property
    def tracker(self) -> ProcessTracker:
        return self._tracker

    # Slots -----------------------------------------------------------------

    @contextmanager
    def acquire_slot(
        self,
        timeout: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Iterator[SlotLease]:
        """Hold one execution slot for the duration of the ``with`` block.

        A lease whose ``retained_by`` process is still running when the block
        exits keeps the slot until that process is seen to exit.

        Raises:
            SlotUnavailableError: No slot became free within ``timeout`` seconds.
            OperationCancelledError: ``cancellation`` fired while waiting.
        """

        self._wait_for_slot(timeout, cancellation)
        with self._in_use_lock:
            self._in_use += 1
        lease = SlotLease()
        try:
            yield lease
        finally:
            stranded = lease.retained_by
            if stranded is not None and stranded.is_running():
                self._logger.error(
                    "Process %d could not be stopped; its slot stays held until it exits",
                    stranded.pid,
                )
                with self._in_use_lock:
                    self._stranded.append(stranded)
            else:
                self._release_slot()

    def _release_slot(self) -> None:
        with self._in_use_lock:
            self._in_use -= 1
        self._slots.release()

    def _reclaim_stranded(self) -> None:
        with self._in_use_lock:
            exited = [handle for handle in self._stranded if not handle.is_running()]
            self._stranded = [handle for handle in self._stranded if handle not in exited]
        for handle in exited:
            self._logger.info("Stranded process %d has exited; releasing its slot", handle.pid)
            self._untrack(handle)
            self._release_slot()

    def _wait_for_slot(self, timeout: float | None, cancellation: CancellationToken | None) -> None:
        deadline = None if timeout is None else time.monotonic() + max(timeout, 0.0)
        while True:
            if cancellation is not None:
                cancellation.raise_if_cancelled()
            self._reclaim_stranded()

            wait = self._poll_interval
            if deadline is not None:
                wait = max(0.0, min(wait, deadline - time.monotonic()))

            if self._slots.acquire(timeout=wait):
                if cancellation is not None and cancellation.is_cancelled:
                    self._slots.release()
                    cancellation.raise_if_cancelled()
                return

            if deadline is not None and time.monotonic() >= deadline:
                raise SlotUnavailableError(
                    f"No execution slot available within {timeout:.1f}s ({self._max_slots} in use)"
                )

    # Execution -------------------------------------------------------------

    def execute(
        self,
        command: ProcessCommand,
        *,
        on_output_line: OutputCallback | None = None,
        timeout: float | None = None,
        cancellation: CancellationToken | None = None,
        on_process_started: ProcessStartedCallback | None = None,
        plugin_name: str | None = None,
    ) -> ProcessResult:
        """Spawn ``command`` inside a slot and wait for it to finish.

        Spawn failures come back as a result with ``start_error`` set. A
        timed-out or cancelled run is terminated before this returns.
        """

        start_error = self._preflight(command)
        if start_error is not None:
            self._logger.error("Cannot start %s: %s", command.executable, start_error)
            return ProcessResult.failed_to_start(start_error)

        try:
            with self.acquire_slot(cancellation=cancellation) as lease:
                return self._run(
                    command,
                    lease,
                    on_output_line=on_output_line,
                    timeout=timeout,
                    cancellation=cancellation,
                    on_process_started=on_process_started,
                    plugin_name=plugin_name or "",
                )
        except OperationCancelledError:
            self._logger.info("Execution cancelled before %s started", command.executable.name)
            return ProcessResult(cancelled=True)

    def _preflight(self, command: ProcessCommand) -> str | None:
        executable = command.executable
        if not executable.is_file():
            located = shutil.which(str(executable))
            if located is None:
                return f"Executable not found: {executable}"
            executable = Path(located)
        if not os.access(executable, os.X_OK):
            return f"Executable is not runnable: {executable}"
        if command.working_directory is not None and not command.working_directory.is_dir():
            return f"Working directory does not exist: {command.working_directory}"
        return None

    def _run(
        self,
        command: ProcessCommand,
        lease: SlotLease,
        *,
        on_output_line: OutputCallback | None,
        timeout: float | None,
        cancellation: CancellationToken | None,
        on_process_started: ProcessStartedCallback | None,
        plugin_name: str,
    ) -> ProcessResult:
        self._logger.debug("Starting process: %s", command.display)
        try:
            popen = subprocess.Popen(
                command.argv,
                cwd=command.working_directory,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
            )
        except OSError as exc:
            self._logger.error("Failed to start process %s: %s", command.executable, exc)
            return ProcessResult.failed_to_start(f"Failed to start process: {exc}")

        started_at = time.monotonic()
        handle = ProcessHandle(
            popen=popen,
            process=self._inspect(popen.pid),
            started_at=started_at,
            plugin_name=plugin_name,
        )
        self._track(handle)

        output_lines: list[str] = []
        error_lines: list[str] = []
        readers = [
            self._start_reader(popen.stdout, output_lines, on_output_line, f"stdout-{popen.pid}"),
            self._start_reader(popen.stderr, error_lines, None, f"stderr-{popen.pid}"),
        ]

        if on_process_started is not None:
            try:
                on_process_started(handle)
            except Exception as exc:
                self._logger.warning("Process start callback failed: %s", exc)

        timed_out = False
        cancelled = False
        deadline = started_at + timeout if timeout is not None and timeout > 0 else None
        try:
            while True:
                try:
                    _ = popen.wait(timeout=self._poll_interval)
                    break
                except subprocess.TimeoutExpired:
                    pass

                if cancellation is not None and cancellation.is_cancelled:
                    cancelled = True
                    self._logger.warning("Process %d cancelled; terminating", popen.pid)
                    _ = self.terminate(handle)
                    break
                if deadline is not None and time.monotonic() >= deadline:
                    timed_out = True
                    self._logger.warning("Process %d timed out after %.0fs; terminating", popen.pid, timeout)
                    _ = self.terminate(handle)
                    break

            exit_code = self._reap(popen)
            termination_failed = popen.poll() is None
            exited_at = None if termination_failed else time.monotonic()
            if termination_failed:
                lease.retained_by = handle
        finally:
            if popen.poll() is not None:
                self._untrack(handle)

        # Pipes of a surviving process stay open.
        if not termination_failed:
            for reader in readers:
                reader.join(_READER_JOIN_SECONDS)

        if not cancelled and not timed_out and cancellation is not None and cancellation.is_cancelled:
            cancelled = exit_code != 0

        self._logger.debug(
            "Process %d finished (exit=%s, timed_out=%s, cancelled=%s)",
            popen.pid,
            exit_code,
            timed_out,
            cancelled,
        )
        return ProcessResult(
            exit_code=exit_code,
            output_lines=list(output_lines),
            error_lines=list(error_lines),
            timed_out=timed_out,
            cancelled=cancelled,
            termination_failed=termination_failed,
            pid=popen.pid,
            started_at=started_at,
            exited_at=exited_at,
        )

    def _start_reader(
        self,
        stream: IO[str] | None,
        sink: list[str],
        callback: OutputCallback | None,
        name: str,
    ) -> threading.Thread:
        def _drain() -> None:
            if stream is None:
                return
            try:
                for raw_line in stream:
                    line = raw_line.rstrip("\r\n")
                    sink.append(line)
                    if callback is None:
                        continue
                    try:
                        callback(line)
                    except Exception as exc:
                        self._logger.debug("Output callback failed: %s", exc)
            except (OSError, ValueError) as exc:
                self._logger.debug("Stream %s closed early: %s", name, exc)
            finally:
                stream.close()

        thread = threading.Thread(target=_drain, name=name, daemon=True)
        thread.start()
        return thread

    def _reap(self, popen: subprocess.Popen[str]) -> int | None:
        try:
            return popen.wait(timeout=self._kill_wait)
        except subprocess.TimeoutExpired:
            self._logger.error("Process %d still running after termination", popen.pid)
            return popen.poll()

    # Termination -----------------------------------------------------------

    def terminate(self, handle: ProcessHandle, force_kill: bool = False) -> TerminationResult:
        """Stop ``handle`` and every process it spawned.

        Graceful mode asks the process to exit and waits the grace period
        before killing the tree. Both modes wait the settle delay after a
        successful stop so file handles are released.
        """

        if not handle.is_running():
            return TerminationResult.ALREADY_EXITED

        children = self._children(handle.process)

        if not force_kill:
            self._logger.debug("Requesting graceful exit of process %d", handle.pid)
            try:
                handle.popen.terminate()
            except ProcessLookupError:
                return TerminationResult.ALREADY_EXITED
            except OSError as exc:
                self._logger.debug("Graceful termination request failed: %s", exc)

            try:
                _ = handle.popen.wait(timeout=self._grace_period)
            except subprocess.TimeoutExpired:
                self._logger.info(
                    "Process %d ignored graceful exit for %.1fs; killing tree",
                    handle.pid,
                    self._grace_period,
                )
            else:
                _ = self._kill_processes(children)
                self._settle()
                return TerminationResult.GRACEFUL_EXIT

        self._logger.debug("Killing process tree rooted at %d", handle.pid)
        _ = self._kill_processes(children)
        try:
            handle.popen.kill()
        except ProcessLookupError:
            pass
        except OSError as exc:
            self._logger.error("Failed to kill process %d: %s", handle.pid, exc)

        try:
            _ = handle.popen.wait(timeout=self._kill_wait)
        except subprocess.TimeoutExpired:
            self._logger.error("Process %d survived kill", handle.pid)
            return TerminationResult.FAILED

        self._settle()
        return TerminationResult.FORCE_KILLED

    def _kill_processes(self, processes: list[psutil.Process]) -> list[psutil.Process]:
        """Kill ``processes`` and return the ones still alive afterwards."""

        alive: list[psutil.Process] = []
        denied: list[psutil.Process] = []
        for proc in processes:
            try:
                proc.kill()
                alive.append(proc)
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied as exc:
                self._logger.warning("Access denied killing process %d: %s", proc.pid, exc)
                denied.append(proc)
        if not alive:
            return denied
        _, survivors = psutil.wait_procs(alive, timeout=self._kill_wait)
        for survivor in survivors:
            self._logger.error("Process %d survived kill", survivor.pid)
        return [*denied, *survivors]

    def _settle(self) -> None:
        if self._settle_delay > 0:
            time.sleep(self._settle_delay)

    def _children(self, process: psutil.Process | None) -> list[psutil.Process]:
        if process is None:
            return []
        try:
            return process.children(recursive=True)
        except psutil.Error:
            return []

    # Orphans ---------------------------------------------------------------

    def sweep_orphans(self) -> int:
        """Kill tracked processes that survived a previous run; return how many.

        Records that could not be inspected or killed are kept for the next sweep.
        """

        records = self._tracker.load()
        if not records:
            return 0

        killed = 0
        unresolved: list[TrackedProcess] = []
        for record in records:
            try:
                proc = psutil.Process(record.pid)
                actual = proc.create_time()
            except psutil.NoSuchProcess:
                self._logger.debug("Tracked process %d already gone", record.pid)
                continue
            except psutil.AccessDenied as exc:
                self._logger.warning("Cannot inspect tracked process %d: %s", record.pid, exc)
                unresolved.append(record)
                continue

            if abs(actual - record.create_time) > PID_START_TIME_TOLERANCE_SECONDS:
                self._logger.debug("PID %d was reused by another process; leaving it alone", record.pid)
                continue

            self._logger.warning(
                "Killing orphaned process %d (%s) from a previous run",
                record.pid,
                record.plugin_name or "unknown plugin",
            )
            survivors = self._kill_processes([*self._children(proc), proc])
            if any(survivor.pid == record.pid for survivor in survivors):
                unresolved.append(record)
            else:
                killed += 1

        self._tracker.replace_all(unresolved)
        return killed

    def _inspect(self, pid: int) -> psutil.Process | None:
        try:
            return psutil.Process(pid)
        except psutil.Error:
            return None

    def _track(self, handle: ProcessHandle) -> None:
        create_time = handle.create_time
        if create_time is None:
            return
        try:
            self._tracker.record(
                TrackedProcess(pid=handle.pid, create_time=create_time, plugin_name=handle.plugin_name)
            )
        except OSError as exc:
            self._logger.warning("Could not record process %d for orphan cleanup: %s", handle.pid, exc)

    def _untrack(self, handle: ProcessHandle) -> None:
        try:
            self._tracker.remove(handle.pid)
        except OSError as exc:
            self._logger.warning("Could not clear process record %d: %s", handle.pid, exc)


__all__ = ["ProcessExecutionService", "SlotLease", "SlotUnavailableError"]
