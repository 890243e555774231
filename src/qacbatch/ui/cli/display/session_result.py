"""Display utilities for cleaning session results."""

from __future__ import annotations

from typing import final

from rich.console import Console

from qacbatch.features.cleaning.domain.games import display_name
from qacbatch.features.cleaning.domain.models import CleaningSessionResult


@final
class SessionResultDisplay:
    """Render a finished cleaning session in the CLI."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def show_result(self, result: CleaningSessionResult, *, quiet: bool = False) -> None:
        """Print a summary of the session."""

        if quiet:
            return

        self.console.print("\n[bold]Cleaning Summary:[/bold]")
        self.console.print(f"Game: {display_name(result.game)}")
        self.console.print(f"Total plugins: {result.total_plugins}")
        self.console.print(f"[green]Cleaned: {result.cleaned_count}[/green]")
        if result.skipped_count:
            self.console.print(f"[yellow]Skipped: {result.skipped_count}[/yellow]")
        if result.total_items_removed or result.total_items_undeleted:
            self.console.print(
                f"ITMs removed: {result.total_items_removed}, UDRs fixed: {result.total_items_undeleted}"
            )
        if result.failed_count:
            self.console.print(f"[red]Failed: {result.failed_count}[/red]")
            for failed in result.failed_plugins:
                self.console.print(f"[red]  • {failed.plugin_name}: {failed.message}[/red]")
        if result.backup_session_dir is not None:
            self.console.print(f"Backups: {result.backup_session_dir}")

        if result.aborted:
            self.console.print(f"[bold red]Session aborted: {result.aborted_reason}[/bold red]")
        elif result.cancelled:
            self.console.print(f"[bold yellow]{result.summary}[/bold yellow]")
        else:
            style = "green" if result.is_success else "red"
            self.console.print(f"[bold {style}]{result.summary}[/bold {style}]")
