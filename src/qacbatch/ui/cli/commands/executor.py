"""src/qacbatch/ui/cli/commands/executor.py
What: Provide shared wiring for session-based CLI commands.
Why: ``clean`` and ``preview`` apply the same command line overrides to the configuration.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any

from qacbatch.application.services.clean_service import CleanService
from qacbatch.config.config import Config
from qacbatch.ui.cli.args.options import CleanArgs


def apply_overrides(config: Config, args: CleanArgs) -> Config:
    """Return a copy of ``config`` with command line values layered on top."""

    changes: dict[str, Any] = {}
    if args.load_order_file is not None:
        changes["load_order_file"] = args.load_order_file
    if args.xedit_binary is not None:
        changes["xedit_binary"] = args.xedit_binary
    if args.mo2_binary is not None:
        changes["mo2_binary"] = args.mo2_binary
    if args.data_folder is not None:
        changes["data_folder"] = args.data_folder
    if args.game is not None:
        changes["selected_game"] = args.game
    if args.timeout is not None:
        changes["cleaning_timeout"] = args.timeout
    if args.partial_forms:
        changes["partial_forms"] = True
    if args.disable_skip_lists:
        changes["disable_skip_lists"] = True
    if args.no_backup:
        changes["backup_enabled"] = False
    if args.mo2:
        changes["mo2_mode"] = True
    return replace(config, **changes) if changes else config


class CommandExecutor(ABC):
    """Base class for session command execution."""

    args: CleanArgs
    config: Config
    app: CleanService

    def __init__(self, args: CleanArgs, app: CleanService | None = None) -> None:
        """Initialize command executor.

        Args:
            args: Command line arguments.
            app: Pre-built application service (for testing).
        """
        self.args = args
        self.config = apply_overrides(Config.load(), args)
        self.app = app or CleanService(self.config)

    @abstractmethod
    def execute(self) -> Any:
        """Execute the command."""
        pass
