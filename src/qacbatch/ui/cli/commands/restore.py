"""Restore and backup listing commands for the CLI."""

from __future__ import annotations

from dataclasses import replace
from typing import final

from qacbatch.application.services.clean_service import CleanService
from qacbatch.config.config import Config
from qacbatch.features.backup import BackupPluginEntry, BackupSession
from qacbatch.platform.logging import logger
from qacbatch.ui.cli.args.options import BackupsArgs, RestoreArgs
from qacbatch.ui.cli.display.backups import BackupsDisplay


def _service_for(args: RestoreArgs | BackupsArgs) -> CleanService:
    config = Config.load()
    if args.data_folder is not None:
        config = replace(config, data_folder=args.data_folder)
    return CleanService(config)


@final
class BackupsCommand:
    """List backup sessions, newest first."""

    def __init__(self, args: BackupsArgs, app: CleanService | None = None) -> None:
        self.args = args
        self.app = app or _service_for(args)
        self.display = BackupsDisplay()

    def execute(self) -> list[BackupSession]:
        if self.app.backup_root() is None:
            logger.error("No Data folder configured; set data_folder or pass --data-folder")
            return []
        sessions = self.app.list_backups()
        self.display.show_sessions(sessions, quiet=self.args.quiet)
        return sessions


@final
class RestoreCommand:
    """Copy every plugin in a backup session back to its original location."""

    def __init__(self, args: RestoreArgs, app: CleanService | None = None) -> None:
        self.args = args
        self.app = app or _service_for(args)
        self.display = BackupsDisplay()

    def execute(self) -> list[BackupPluginEntry] | None:
        """Return the restored entries, or ``None`` when no matching session exists."""

        sessions = self.app.list_backups()
        if not sessions:
            logger.error("No backup sessions found")
            return None

        if self.args.session is None:
            session = sessions[0]
        else:
            matches = [item for item in sessions if item.session_directory.name == self.args.session]
            if not matches:
                logger.error("Backup session not found: %s", self.args.session)
                return None
            session = matches[0]

        restored = self.app.restore_backup(session)
        self.display.show_restored(session, restored, quiet=self.args.quiet)
        return restored
