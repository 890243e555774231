"""Display utilities for backup sessions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import final

from rich.console import Console
from rich.table import Table

from qacbatch.features.backup import BackupPluginEntry, BackupSession


@final
class BackupsDisplay:
    """Render backup sessions and restore outcomes."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def show_sessions(self, sessions: Sequence[BackupSession], *, quiet: bool = False) -> None:
        if quiet:
            return
        if not sessions:
            self.console.print("[yellow]No backup sessions found[/yellow]")
            return

        table = Table(title="Backup Sessions")
        table.add_column("Session")
        table.add_column("Game")
        table.add_column("Plugins", justify="right")
        table.add_column("Size", justify="right")
        for session in sessions:
            size = sum(entry.file_size_bytes for entry in session.plugins)
            table.add_row(
                session.session_directory.name,
                session.game_type,
                str(len(session.plugins)),
                f"{size / 1024:.1f} KiB",
            )
        self.console.print(table)

    def show_restored(
        self,
        session: BackupSession,
        restored: Sequence[BackupPluginEntry],
        *,
        quiet: bool = False,
    ) -> None:
        if quiet:
            return
        self.console.print(
            f"\n[bold]Restored {len(restored)} plugin(s) from {session.session_directory.name}:[/bold]"
        )
        for entry in restored:
            self.console.print(f"[green]  • {entry.file_name} → {entry.original_path}[/green]")
