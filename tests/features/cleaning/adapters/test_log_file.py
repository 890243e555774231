"""Tests for reading xEdit's own log file."""

from __future__ import annotations

import os
from datetime import datetime, timedelta
from pathlib import Path

from pytest_mock import MockerFixture

from qacbatch.features.cleaning.adapters.log_file import XEditLogFileReader


def _binary(tmp_path: Path) -> Path:
    return tmp_path / "SSEEdit.exe"


def test_log_path_is_upper_case_stem() -> None:
    assert XEditLogFileReader.log_path_for(Path("/xedit/SSEEdit.exe")) == Path("/xedit/SSEEDIT_log.txt")


def test_fresh_log_is_read(tmp_path: Path) -> None:
    log_path = tmp_path / "SSEEDIT_log.txt"
    _ = log_path.write_text("Removing: [REFR:01]\nDone.\n", encoding="utf-8")

    lines, error = XEditLogFileReader().read(_binary(tmp_path), datetime.now() - timedelta(minutes=1))

    assert error is None
    assert lines == ["Removing: [REFR:01]", "Done."]


def test_missing_log_is_reported(tmp_path: Path) -> None:
    lines, error = XEditLogFileReader().read(_binary(tmp_path), datetime.now())

    assert lines == []
    assert error is not None
    assert error.startswith("Log file not found:")


def test_stale_log_is_rejected(tmp_path: Path) -> None:
    log_path = tmp_path / "SSEEDIT_log.txt"
    _ = log_path.write_text("old run\n", encoding="utf-8")
    old = (datetime.now() - timedelta(hours=1)).timestamp()
    os.utime(log_path, (old, old))

    lines, error = XEditLogFileReader().read(_binary(tmp_path), datetime.now() - timedelta(minutes=5))

    assert lines == []
    assert error == "Log file is stale (predates this cleaning run)"


def test_read_is_retried_once(tmp_path: Path, mocker: MockerFixture) -> None:
    _ = (tmp_path / "SSEEDIT_log.txt").write_text("x\n", encoding="utf-8")
    sleeps: list[float] = []
    reader = XEditLogFileReader(retry_delay=0.25, sleep=sleeps.append)
    read_lines = mocker.patch.object(
        XEditLogFileReader,
        "_read_lines",
        side_effect=[PermissionError("locked"), ["Removing: a"]],
    )

    lines, error = reader.read(_binary(tmp_path), datetime.now() - timedelta(minutes=1))

    assert (lines, error) == (["Removing: a"], None)
    assert sleeps == [0.25]
    assert read_lines.call_count == 2


def test_second_failure_is_reported(tmp_path: Path, mocker: MockerFixture) -> None:
    _ = (tmp_path / "SSEEDIT_log.txt").write_text("x\n", encoding="utf-8")
    reader = XEditLogFileReader(sleep=lambda _delay: None)
    _ = mocker.patch.object(XEditLogFileReader, "_read_lines", side_effect=PermissionError("locked"))

    lines, error = reader.read(_binary(tmp_path), datetime.now() - timedelta(minutes=1))

    assert lines == []
    assert error == "Failed to read log file: locked"
