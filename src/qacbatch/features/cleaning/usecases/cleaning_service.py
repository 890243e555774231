"""Where: src/qacbatch/features/cleaning/usecases/cleaning_service.py
What: Clean one plugin by running xEdit through the process engine and classifying the outcome.
Why: Keep per-plugin execution separate from session sequencing so it can be tested alone.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from logging import Logger, getLogger

from qacbatch.platform.process.models import ProcessHandle, ProcessResult
from qacbatch.shared.cancellation import CancellationToken

from ..domain.games import GameType
from ..domain.models import CleaningResult, CleaningStatus, PluginInfo
from ..domain.output_parser import XEditOutputParser
from .ports import CommandBuilder, ProcessRunner


class CleaningService:
    """Run Quick Auto Clean for a single plugin."""

    def __init__(
        self,
        *,
        command_builder: CommandBuilder,
        process_runner: ProcessRunner,
        parser: XEditOutputParser | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._command_builder = command_builder
        self._process_runner = process_runner
        self._parser = parser or XEditOutputParser()
        self._logger: Logger = logger or getLogger(__name__)

    def clean_plugin(
        self,
        plugin: PluginInfo,
        game: GameType,
        *,
        timeout: float | None = None,
        cancellation: CancellationToken | None = None,
        on_process_started: Callable[[ProcessHandle], None] | None = None,
        on_output_line: Callable[[str], None] | None = None,
    ) -> CleaningResult:
        if plugin.in_skip_list:
            return CleaningResult(status=CleaningStatus.SKIPPED, message="In skip list")

        started = time.perf_counter()
        command = self._command_builder.build(plugin, game)
        if command is None:
            self._logger.error("Could not build xEdit command for %s (game=%s)", plugin.file_name, game)
            return CleaningResult(status=CleaningStatus.FAILED, message="Failed to build xEdit command.")

        self._logger.debug("Running %s", command.display)
        try:
            process_result = self._process_runner.execute(
                command,
                on_output_line=on_output_line,
                timeout=timeout,
                cancellation=cancellation,
                on_process_started=on_process_started,
                plugin_name=plugin.file_name,
            )
        except Exception as exc:
            self._logger.exception("Unexpected error while cleaning %s", plugin.file_name)
            return CleaningResult(
                status=CleaningStatus.FAILED,
                message=f"Unexpected error: {exc}",
                duration_seconds=time.perf_counter() - started,
            )

        return self._classify(process_result, time.perf_counter() - started)

    def _classify(self, result: ProcessResult, duration: float) -> CleaningResult:
        output = tuple(result.output_lines)
        common = {
            "duration_seconds": duration,
            "output_lines": output,
            "process_started_at": result.started_at,
            "process_exited_at": result.exited_at,
        }

        if result.start_error is not None:
            return CleaningResult(
                status=CleaningStatus.FAILED,
                message=f"Failed to start xEdit: {result.start_error}",
                **common,
            )
        if result.termination_failed:
            return CleaningResult(
                status=CleaningStatus.FAILED,
                message=f"xEdit process {result.pid} could not be terminated",
                process_survived=True,
                **common,
            )
        if result.cancelled:
            return CleaningResult(status=CleaningStatus.CANCELLED, message="Cancelled", **common)
        if result.timed_out:
            return CleaningResult(
                status=CleaningStatus.FAILED,
                message="Cleaning timed out.",
                timed_out=True,
                statistics=self._parser.parse(output),
                **common,
            )
        if result.exit_code != 0:
            detail = result.error_lines[-1] if result.error_lines else ""
            message = f"xEdit exited with code {result.exit_code}"
            return CleaningResult(
                status=CleaningStatus.FAILED,
                message=f"{message}: {detail}" if detail else message,
                **common,
            )

        return CleaningResult(
            status=CleaningStatus.CLEANED,
            message="Cleaned",
            statistics=self._parser.parse(output),
            **common,
        )


__all__ = ["CleaningService"]
