"""Public surface for the backup feature."""

from .domain.models import BackupPluginEntry, BackupResult, BackupSession, BackupSource
from .usecases.backup_service import BackupService

__all__ = [
    "BackupPluginEntry",
    "BackupResult",
    "BackupService",
    "BackupSession",
    "BackupSource",
]
