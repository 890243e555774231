"""Fixtures for process engine tests that spawn real Python interpreters."""

from __future__ import annotations

from pathlib import Path

import pytest

from qacbatch.platform.process import ProcessExecutionService, ProcessTracker


@pytest.fixture
def tracker(tmp_path: Path) -> ProcessTracker:
    return ProcessTracker(tmp_path / "pids.json")


@pytest.fixture
def engine(tracker: ProcessTracker) -> ProcessExecutionService:
    """Engine with short grace and settle periods so termination tests stay fast."""

    return ProcessExecutionService(
        max_slots=1,
        tracker=tracker,
        grace_period=0.5,
        settle_delay=0.0,
        poll_interval=0.02,
        kill_wait=5.0,
    )

