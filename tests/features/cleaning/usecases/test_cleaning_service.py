"""Tests for single-plugin cleaning and outcome classification."""

from __future__ import annotations

from pathlib import Path

from pytest_mock import MockerFixture

from qacbatch.features.cleaning.domain.command_builder import XEditCommandBuilder
from qacbatch.features.cleaning.domain.games import GameType
from qacbatch.features.cleaning.domain.models import CleaningStatus, PluginInfo
from qacbatch.features.cleaning.usecases.cleaning_service import CleaningService
from qacbatch.platform.process.models import ProcessResult

SSEEDIT = Path("/tools/SSEEdit.exe")


def _service(mocker: MockerFixture, result: ProcessResult | Exception) -> tuple[CleaningService, object]:
    runner = mocker.Mock()
    if isinstance(result, Exception):
        runner.execute.side_effect = result
    else:
        runner.execute.return_value = result
    service = CleaningService(command_builder=XEditCommandBuilder(SSEEDIT), process_runner=runner)
    return service, runner


def test_clean_exit_is_classified_with_statistics(mocker: MockerFixture) -> None:
    service, runner = _service(
        mocker,
        ProcessResult(exit_code=0, output_lines=["Removing: [REFR:01]", "Done."], started_at=3.0, exited_at=9.0),
    )

    result = service.clean_plugin(PluginInfo("A.esp"), GameType.SKYRIM_SE, timeout=30)

    assert result.status is CleaningStatus.CLEANED
    assert result.statistics is not None
    assert result.statistics.items_removed == 1
    assert result.output_lines == ("Removing: [REFR:01]", "Done.")
    assert (result.process_started_at, result.process_exited_at) == (3.0, 9.0)
    call = runner.execute.call_args  # pyright: ignore[reportAttributeAccessIssue]
    assert call.kwargs["timeout"] == 30
    assert call.kwargs["plugin_name"] == "A.esp"
    assert call.args[0].arguments == ("-QAC", "-autoexit", "-autoload", "A.esp")


def test_skip_listed_plugin_never_runs(mocker: MockerFixture) -> None:
    service, runner = _service(mocker, ProcessResult(exit_code=0))

    result = service.clean_plugin(PluginInfo("Update.esm", in_skip_list=True), GameType.SKYRIM_SE)

    assert result.status is CleaningStatus.SKIPPED
    assert result.message == "In skip list"
    runner.execute.assert_not_called()  # pyright: ignore[reportAttributeAccessIssue]


def test_unknown_game_fails_without_running(mocker: MockerFixture) -> None:
    service, runner = _service(mocker, ProcessResult(exit_code=0))

    result = service.clean_plugin(PluginInfo("A.esp"), GameType.UNKNOWN)

    assert result.status is CleaningStatus.FAILED
    assert result.message == "Failed to build xEdit command."
    runner.execute.assert_not_called()  # pyright: ignore[reportAttributeAccessIssue]


def test_non_zero_exit_reports_last_stderr_line(mocker: MockerFixture) -> None:
    service, _ = _service(mocker, ProcessResult(exit_code=3, error_lines=["first", "Access violation"]))

    result = service.clean_plugin(PluginInfo("A.esp"), GameType.SKYRIM_SE)

    assert result.status is CleaningStatus.FAILED
    assert result.message == "xEdit exited with code 3: Access violation"


def test_timeout_keeps_partial_statistics(mocker: MockerFixture) -> None:
    service, _ = _service(mocker, ProcessResult(timed_out=True, output_lines=["Undeleting: [REFR:01]"]))

    result = service.clean_plugin(PluginInfo("A.esp"), GameType.SKYRIM_SE)

    assert result.status is CleaningStatus.FAILED
    assert result.timed_out
    assert result.message == "Cleaning timed out."
    assert result.statistics is not None
    assert result.statistics.items_undeleted == 1


def test_surviving_process_is_flagged_instead_of_timed_out(mocker: MockerFixture) -> None:
    service, _ = _service(mocker, ProcessResult(timed_out=True, termination_failed=True, pid=77))

    result = service.clean_plugin(PluginInfo("A.esp"), GameType.SKYRIM_SE)

    assert result.status is CleaningStatus.FAILED
    assert result.process_survived
    assert not result.timed_out
    assert result.message == "xEdit process 77 could not be terminated"


def test_cancelled_and_start_error(mocker: MockerFixture) -> None:
    cancelled, _ = _service(mocker, ProcessResult(cancelled=True))
    assert cancelled.clean_plugin(PluginInfo("A.esp"), GameType.SKYRIM_SE).status is CleaningStatus.CANCELLED

    missing, _ = _service(mocker, ProcessResult.failed_to_start("Executable not found"))
    result = missing.clean_plugin(PluginInfo("A.esp"), GameType.SKYRIM_SE)
    assert result.status is CleaningStatus.FAILED
    assert result.message == "Failed to start xEdit: Executable not found"


def test_runner_exception_becomes_failure(mocker: MockerFixture) -> None:
    service, _ = _service(mocker, RuntimeError("pipe broke"))

    result = service.clean_plugin(PluginInfo("A.esp"), GameType.SKYRIM_SE)

    assert result.status is CleaningStatus.FAILED
    assert result.message == "Unexpected error: pipe broke"
