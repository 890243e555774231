"""Display management for CLI interface."""

from qacbatch.ui.cli.display.backups import BackupsDisplay
from qacbatch.ui.cli.display.preview import PreviewDisplay
from qacbatch.ui.cli.display.progress import ProgressDisplay
from qacbatch.ui.cli.display.session_result import SessionResultDisplay

__all__ = ["BackupsDisplay", "PreviewDisplay", "ProgressDisplay", "SessionResultDisplay"]
