"""Clean command implementation for the CLI."""

from __future__ import annotations

import threading
from typing import Final, final

from qacbatch.application.services.clean_service import CleanService
from qacbatch.features.cleaning.domain.models import CleaningSessionResult
from qacbatch.platform.logging import logger
from qacbatch.ui.cli.args.options import CleanArgs
from qacbatch.ui.cli.commands.executor import CommandExecutor
from qacbatch.ui.cli.display.progress import ProgressDisplay
from qacbatch.ui.cli.display.session_result import SessionResultDisplay

_JOIN_INTERVAL_SECONDS: Final[float] = 0.2


@final
class CleanCommand(CommandExecutor):
    """Run a cleaning session with a live progress bar.

    The session runs on a worker thread so the main thread stays free to
    receive Ctrl+C: the first press asks for a cooperative stop, the second
    forces the active xEdit process down.
    """

    def __init__(self, args: CleanArgs, app: CleanService | None = None) -> None:
        super().__init__(args, app)
        self.progress_display = ProgressDisplay()
        self.result_display = SessionResultDisplay()

    def execute(self) -> CleaningSessionResult:
        plugins = self.app.load_plugins()
        outcome: list[CleaningSessionResult] = []
        failures: list[Exception] = []

        def _run() -> None:
            try:
                outcome.append(self.app.run(plugins))
            except Exception as exc:
                failures.append(exc)

        worker = threading.Thread(target=_run, name="cleaning-session", daemon=True)
        with self.progress_display.track(self.app.state, quiet=self.args.quiet):
            worker.start()
            self._wait(worker)

        if failures:
            raise failures[0]
        result = outcome[0]
        self.result_display.show_result(result, quiet=self.args.quiet)
        return result

    def _wait(self, worker: threading.Thread) -> None:
        interrupts = 0
        while worker.is_alive():
            try:
                worker.join(timeout=_JOIN_INTERVAL_SECONDS)
            except KeyboardInterrupt:
                interrupts += 1
                if interrupts == 1:
                    logger.warning("Stopping: cancelling the current plugin; press Ctrl+C again to force stop")
                    self.app.request_stop()
                else:
                    logger.warning("Force stopping the active xEdit process")
                    self.app.request_stop(force=True)
