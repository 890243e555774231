"""Command line argument options."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, final


@final
@dataclass(slots=True)
class CleanArgs:
    """Command line arguments for the ``clean`` or ``preview`` subcommands."""

    command: Literal["clean", "preview"]
    load_order_file: Path | None
    xedit_binary: Path | None
    mo2_binary: Path | None
    data_folder: Path | None
    game: str | None
    timeout: int | None
    partial_forms: bool
    disable_skip_lists: bool
    no_backup: bool
    mo2: bool
    verbose: bool
    quiet: bool


@final
@dataclass(slots=True)
class RestoreArgs:
    """Command line arguments for the ``restore`` subcommand."""

    command: Literal["restore"]
    session: str | None
    data_folder: Path | None
    verbose: bool
    quiet: bool


@final
@dataclass(slots=True)
class BackupsArgs:
    """Command line arguments for the ``backups`` subcommand."""

    command: Literal["backups"]
    data_folder: Path | None
    verbose: bool
    quiet: bool


CLIArgs = CleanArgs | RestoreArgs | BackupsArgs

__all__ = ["BackupsArgs", "CLIArgs", "CleanArgs", "RestoreArgs"]
