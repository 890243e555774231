"""Display functionality for dry-run previews."""

from __future__ import annotations

from collections.abc import Sequence
from typing import final

from rich.console import Console
from rich.table import Table

from qacbatch.features.cleaning.domain.models import DryRunResult, DryRunStatus


@final
class PreviewDisplay:
    """Render the plugins a session would clean or skip."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def show_preview(self, results: Sequence[DryRunResult], *, quiet: bool = False) -> None:
        if quiet:
            return

        table = Table(title="Cleaning Preview")
        table.add_column("#", justify="right")
        table.add_column("Plugin")
        table.add_column("Action")
        table.add_column("Reason")
        for index, result in enumerate(results, start=1):
            action = (
                "[green]clean[/green]"
                if result.status is DryRunStatus.WILL_CLEAN
                else "[yellow]skip[/yellow]"
            )
            table.add_row(str(index), result.plugin_name, action, result.reason)
        self.console.print(table)

        will_clean = sum(1 for result in results if result.status is DryRunStatus.WILL_CLEAN)
        self.console.print(
            f"[bold]{will_clean} of {len(results)} plugins would be cleaned[/bold]"
        )
