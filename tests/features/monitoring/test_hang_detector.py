"""Tests for CPU-based hang detection."""

from __future__ import annotations

from types import SimpleNamespace

import psutil

from qacbatch.features.monitoring import HangDetector
from qacbatch.shared.cancellation import CancellationToken


class FakeProcess:
    """Reports scripted cumulative CPU seconds, one sample per call."""

    def __init__(self, cpu_samples: list[float], vanish: bool = False) -> None:
        self._samples = list(cpu_samples)
        self._vanish = vanish

    def is_running(self) -> bool:
        return bool(self._samples) or self._vanish

    def cpu_times(self) -> SimpleNamespace:
        if not self._samples:
            raise psutil.NoSuchProcess(pid=1234)
        return SimpleNamespace(user=self._samples.pop(0), system=0.0)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


def _detector(clock: FakeClock, **kwargs: float) -> HangDetector:
    return HangDetector(
        poll_interval=kwargs.get("poll_interval", 5.0),
        hang_threshold=kwargs.get("hang_threshold", 15.0),
        clock=clock,
        sleep=clock.sleep,
    )


def test_emits_hang_then_recovery() -> None:
    clock = FakeClock()
    process = FakeProcess([1.0, 1.0, 1.0, 1.0, 1.0, 3.0, 3.0])

    transitions = list(_detector(clock).monitor(process))

    assert transitions == [True, False]


def test_busy_process_is_never_flagged() -> None:
    clock = FakeClock()
    process = FakeProcess([float(second) for second in range(0, 60, 5)])

    assert list(_detector(clock).monitor(process)) == []


def test_hang_is_reported_once_while_idle() -> None:
    clock = FakeClock()
    process = FakeProcess([2.0] * 20)

    assert list(_detector(clock).monitor(process)) == [True]


def test_cancelled_token_stops_monitoring() -> None:
    token = CancellationToken()
    token.cancel()
    detector = HangDetector(poll_interval=0.01, hang_threshold=0.0)

    assert list(detector.monitor(FakeProcess([1.0] * 5), token)) == []


def test_vanished_process_ends_monitoring() -> None:
    clock = FakeClock()
    process = FakeProcess([1.0, 1.0], vanish=True)

    assert list(_detector(clock).monitor(process)) == []


def test_exited_process_yields_nothing() -> None:
    assert list(HangDetector().monitor(FakeProcess([]))) == []
