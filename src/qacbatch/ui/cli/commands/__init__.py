"""Command execution package for CLI."""

from qacbatch.ui.cli.commands.clean import CleanCommand
from qacbatch.ui.cli.commands.executor import CommandExecutor, apply_overrides
from qacbatch.ui.cli.commands.preview import PreviewCommand
from qacbatch.ui.cli.commands.restore import BackupsCommand, RestoreCommand

__all__ = [
    "BackupsCommand",
    "CleanCommand",
    "CommandExecutor",
    "PreviewCommand",
    "RestoreCommand",
    "apply_overrides",
]
