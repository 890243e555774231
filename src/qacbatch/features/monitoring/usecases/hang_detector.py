"""Where: src/qacbatch/features/monitoring/usecases/hang_detector.py
What: Sample a process's CPU time and signal sustained near-zero usage.
Why: A stuck xEdit looks idle for minutes; the caller decides whether to act on the hint.
Assumptions: - ``process`` exposes psutil's ``is_running()`` and ``cpu_times()``.
Trade-offs: - The first sample only sets the baseline, so detection needs at least two polls.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from logging import Logger, getLogger
from typing import Any, Protocol

import psutil

from qacbatch.config.settings import (
    HANG_CPU_THRESHOLD_PERCENT,
    HANG_POLL_INTERVAL_SECONDS,
    HANG_THRESHOLD_SECONDS,
)
from qacbatch.shared.cancellation import CancellationToken


class MonitoredProcess(Protocol):
    def is_running(self) -> bool: ...

    def cpu_times(self) -> Any: ...


def _cpu_seconds(process: MonitoredProcess) -> float:
    times = process.cpu_times()
    return float(times.user) + float(times.system)


class HangDetector:
    """Emit ``True`` once a process stays idle for the hang window, ``False`` when it recovers.

    The detector never terminates anything.
    """

    def __init__(
        self,
        *,
        poll_interval: float = HANG_POLL_INTERVAL_SECONDS,
        hang_threshold: float = HANG_THRESHOLD_SECONDS,
        cpu_threshold_percent: float = HANG_CPU_THRESHOLD_PERCENT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._poll_interval = poll_interval
        self._hang_threshold = hang_threshold
        self._cpu_threshold = cpu_threshold_percent
        self._clock = clock
        self._sleep = sleep
        self._logger: Logger = logger or getLogger(__name__)

    def monitor(
        self,
        process: MonitoredProcess,
        cancellation: CancellationToken | None = None,
    ) -> Iterator[bool]:
        """Yield hang transitions until the process exits or ``cancellation`` fires."""

        try:
            if not process.is_running():
                return
            last_cpu = _cpu_seconds(process)
        except psutil.Error:
            return

        last_check = self._clock()
        idle_for = 0.0
        hung = False

        while True:
            if self._pause(cancellation):
                return

            try:
                if not process.is_running():
                    self._logger.debug("Monitored process exited; stopping hang detection")
                    return
                current_cpu = _cpu_seconds(process)
            except psutil.Error:
                self._logger.debug("Monitored process vanished during poll")
                return

            now = self._clock()
            elapsed = now - last_check
            if elapsed <= 0:
                last_check = now
                continue

            cpu_percent = (current_cpu - last_cpu) / elapsed * 100.0
            if cpu_percent < self._cpu_threshold:
                idle_for += elapsed
                if idle_for >= self._hang_threshold and not hung:
                    hung = True
                    self._logger.warning("Process appears hung: near-zero CPU for %.0fs", idle_for)
                    yield True
            else:
                if hung:
                    hung = False
                    self._logger.info("Process resumed CPU activity")
                    yield False
                idle_for = 0.0

            last_cpu = current_cpu
            last_check = now

    def _pause(self, cancellation: CancellationToken | None) -> bool:
        """Wait one poll interval; True when monitoring should stop."""

        if self._sleep is not None:
            self._sleep(self._poll_interval)
        elif cancellation is not None:
            return cancellation.wait(self._poll_interval)
        else:
            time.sleep(self._poll_interval)
        return cancellation is not None and cancellation.is_cancelled


__all__ = ["HangDetector", "MonitoredProcess"]
