"""Read plugins.txt / loadorder.txt style load order files."""

from __future__ import annotations

from logging import Logger, getLogger
from pathlib import Path

from ..domain.models import PluginInfo

ENABLED_MARKER = "*"
COMMENT_MARKER = "#"


class LoadOrderLoader:
    """Parse a load order file into :class:`PluginInfo` entries.

    When any line carries the ``*`` enabled marker (plugins.txt), unmarked
    lines are treated as disabled. Files without markers (loadorder.txt)
    select every plugin.
    """

    def __init__(self, *, logger: Logger | None = None) -> None:
        self._logger: Logger = logger or getLogger(__name__)

    def load(self, path: Path, data_folder: Path | None = None) -> list[PluginInfo]:
        if not path.is_file():
            self._logger.warning("Load order file not found: %s", path)
            return []

        try:
            lines = path.read_text(encoding="utf-8-sig", errors="replace").splitlines()
        except OSError as exc:
            self._logger.error("Failed to read load order %s: %s", path, exc)
            return []

        entries: list[tuple[str, bool]] = []
        for raw_line in lines:
            line = raw_line.strip()
            if not line or line.startswith(COMMENT_MARKER):
                continue
            enabled = line.startswith(ENABLED_MARKER)
            name = line.removeprefix(ENABLED_MARKER).strip()
            if name:
                entries.append((name, enabled))

        uses_markers = any(enabled for _, enabled in entries)
        plugins = [
            PluginInfo(
                file_name=name,
                full_path=(data_folder / name) if data_folder is not None else None,
                selected=enabled or not uses_markers,
            )
            for name, enabled in entries
        ]
        self._logger.debug("Loaded %d plugins from %s", len(plugins), path)
        return plugins


__all__ = ["LoadOrderLoader"]
