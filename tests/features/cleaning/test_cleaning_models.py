"""Tests for cleaning result records and plugin validation."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from qacbatch.features.cleaning.domain.games import GameType
from qacbatch.features.cleaning.domain.models import (
    CleaningSessionResult,
    CleaningStatistics,
    CleaningStatus,
    PluginCleaningResult,
    PluginInfo,
    PluginWarningKind,
    validate_plugin_file,
)

STARTED = datetime(2026, 3, 14, 9, 30, 0)


def _session(*results: PluginCleaningResult, **kwargs: object) -> CleaningSessionResult:
    return CleaningSessionResult(
        started_at=STARTED,
        finished_at=STARTED + timedelta(minutes=2, seconds=5),
        game=GameType.SKYRIM_SE,
        plugin_results=results,
        **kwargs,  # pyright: ignore[reportArgumentType]
    )


def test_plugin_result_summary() -> None:
    stats = CleaningStatistics(items_removed=3, items_undeleted=1)
    assert PluginCleaningResult("A.esp", CleaningStatus.CLEANED, statistics=stats).summary == "3 ITMs, 1 UDRs"
    assert PluginCleaningResult("A.esp", CleaningStatus.CLEANED).summary == "No changes"
    assert PluginCleaningResult("A.esp", CleaningStatus.FAILED, message="boom").summary == "Failed: boom"
    assert PluginCleaningResult("A.esp", CleaningStatus.SKIPPED).summary == "Skipped"


def test_session_counts_and_success() -> None:
    session = _session(
        PluginCleaningResult("A.esp", CleaningStatus.CLEANED, statistics=CleaningStatistics(items_removed=2)),
        PluginCleaningResult("B.esp", CleaningStatus.FAILED, message="exit 1"),
        PluginCleaningResult("C.esp", CleaningStatus.SKIPPED),
    )

    assert session.total_plugins == 3
    assert (session.cleaned_count, session.failed_count, session.skipped_count) == (1, 1, 1)
    assert session.total_items_removed == 2
    assert session.duration_seconds == 125
    assert not session.is_success
    assert session.summary == "Completed with errors: 1 cleaned, 1 failed, 1 skipped"


def test_aborted_session_summary() -> None:
    session = _session(aborted_reason="Environment is not ready")
    assert session.aborted
    assert not session.is_success
    assert session.summary == "Aborted: Environment is not ready"


def test_report_lists_sections() -> None:
    session = _session(
        PluginCleaningResult(
            "A.esp",
            CleaningStatus.CLEANED,
            duration_seconds=65,
            statistics=CleaningStatistics(items_removed=2, partial_forms_created=1),
        ),
        PluginCleaningResult("B.esp", CleaningStatus.FAILED, message="exit 1"),
        cancelled=True,
    )

    report = session.generate_report()

    assert "Game: Skyrim Special Edition" in report
    assert "Duration: 00:02:05" in report
    assert "Partial Forms: 1" in report
    assert "  A.esp: 2 ITMs, 1 partial (01:05)" in report
    assert "  B.esp: exit 1" in report
    assert "*** Session was cancelled by user ***" in report


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("", PluginWarningKind.MALFORMED_ENTRY),
        ("sub/Plugin.esp", PluginWarningKind.MALFORMED_ENTRY),
        ("Readme.txt", PluginWarningKind.INVALID_EXTENSION),
    ],
)
def test_validate_plugin_file_rejects_bad_names(name: str, expected: PluginWarningKind) -> None:
    assert validate_plugin_file(PluginInfo(name)) is expected


def test_validate_plugin_file_checks_disk(tmp_path: Path) -> None:
    good = tmp_path / "Good.esp"
    _ = good.write_bytes(b"TES4")
    empty = tmp_path / "Empty.esp"
    _ = empty.write_bytes(b"")

    assert validate_plugin_file(PluginInfo("Good.esp", full_path=good)) is PluginWarningKind.NONE
    assert validate_plugin_file(PluginInfo("Empty.esp", full_path=empty)) is PluginWarningKind.ZERO_BYTE
    assert (
        validate_plugin_file(PluginInfo("Gone.esp", full_path=tmp_path / "Gone.esp"))
        is PluginWarningKind.NOT_FOUND
    )
    assert validate_plugin_file(PluginInfo("Good.esp")) is PluginWarningKind.NOT_FOUND
    assert PluginWarningKind.ZERO_BYTE.reason == "Zero-byte file"
