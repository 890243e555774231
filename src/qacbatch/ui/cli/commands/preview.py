"""Preview (dry run) command implementation for the CLI."""

from __future__ import annotations

from typing import final

from qacbatch.application.services.clean_service import CleanService
from qacbatch.features.cleaning.domain.models import DryRunResult
from qacbatch.ui.cli.args.options import CleanArgs
from qacbatch.ui.cli.commands.executor import CommandExecutor
from qacbatch.ui.cli.display.preview import PreviewDisplay


@final
class PreviewCommand(CommandExecutor):
    """Report what a cleaning session would do without launching xEdit."""

    def __init__(self, args: CleanArgs, app: CleanService | None = None) -> None:
        super().__init__(args, app)
        self.display = PreviewDisplay()

    def execute(self) -> list[DryRunResult]:
        results = self.app.preview()
        self.display.show_preview(results, quiet=self.args.quiet)
        return results
