"""Tests for the persisted orphan-process marker file."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from qacbatch.platform.process import ProcessTracker, TrackedProcess


def test_record_and_remove_round_trip(tmp_path: Path) -> None:
    tracker = ProcessTracker(tmp_path / "pids.json")
    tracker.record(TrackedProcess(pid=10, create_time=1.5, plugin_name="A.esp"))
    tracker.record(TrackedProcess(pid=11, create_time=2.5))

    assert [entry.pid for entry in tracker.load()] == [10, 11]

    tracker.remove(10)
    assert tracker.load() == [TrackedProcess(pid=11, create_time=2.5)]

    tracker.remove(11)
    assert not tracker.path.exists()


def test_record_replaces_stale_entry_with_same_pid(tmp_path: Path) -> None:
    tracker = ProcessTracker(tmp_path / "pids.json")
    tracker.record(TrackedProcess(pid=10, create_time=1.0))
    tracker.record(TrackedProcess(pid=10, create_time=9.0))

    assert tracker.load() == [TrackedProcess(pid=10, create_time=9.0)]


def test_replace_all_keeps_given_records_and_empty_removes_file(tmp_path: Path) -> None:
    tracker = ProcessTracker(tmp_path / "pids.json")
    tracker.record(TrackedProcess(pid=1, create_time=1.0))
    tracker.record(TrackedProcess(pid=2, create_time=2.0))

    tracker.replace_all([TrackedProcess(pid=2, create_time=2.0)])
    assert tracker.load() == [TrackedProcess(pid=2, create_time=2.0)]

    tracker.replace_all([])
    assert not tracker.path.exists()


def test_malformed_file_is_ignored(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "pids.json"
    _ = path.write_text("{not json", encoding="utf-8")
    tracker = ProcessTracker(path)

    with caplog.at_level(logging.WARNING):
        assert tracker.load() == []
    assert "unreadable PID file" in caplog.text


def test_malformed_records_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "pids.json"
    _ = path.write_text('[{"pid": "x"}, {"pid": 5, "create_time": 3.0}]', encoding="utf-8")

    assert ProcessTracker(path).load() == [TrackedProcess(pid=5, create_time=3.0)]
