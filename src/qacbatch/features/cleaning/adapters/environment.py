"""Check that binaries and input files configured for a session are usable."""

from __future__ import annotations

import os
from collections.abc import Callable
from logging import Logger, getLogger
from pathlib import Path

from qacbatch.features.state.domain.app_state import AppState


def _check_executable(label: str, path: Path | None) -> str | None:
    if path is None:
        return f"{label} is not configured"
    if not path.is_file():
        return f"{label} not found at '{path}'"
    if not os.access(path, os.X_OK):
        return f"{label} at '{path}' is not executable"
    return None


class FileSystemEnvironmentValidator:
    """Validate the current configuration snapshot against the filesystem."""

    def __init__(
        self,
        settings: Callable[[], AppState],
        *,
        logger: Logger | None = None,
    ) -> None:
        self._settings = settings
        self._logger: Logger = logger or getLogger(__name__)
        self._problems: list[str] = []

    @property
    def problems(self) -> list[str]:
        return list(self._problems)

    def validate(self) -> bool:
        state = self._settings()
        problems: list[str] = []

        xedit_problem = _check_executable("xEdit executable", state.xedit_binary)
        if xedit_problem is not None:
            problems.append(xedit_problem)

        if state.load_order_file is None:
            problems.append("Load order file is not configured")
        elif not state.load_order_file.is_file():
            problems.append(f"Load order file not found at '{state.load_order_file}'")

        if state.mo2_mode:
            mo2_problem = _check_executable("Mod Organizer 2 executable", state.mo2_binary)
            if mo2_problem is not None:
                problems.append(
                    f"MO2 mode is enabled but {mo2_problem}; "
                    "set mo2_binary or disable mo2_mode"
                )

        for problem in problems:
            self._logger.error("Environment check failed: %s", problem)
        self._problems = problems
        return not problems


__all__ = ["FileSystemEnvironmentValidator"]
