"""Shared path utilities for configuration and data locations.

This module centralizes how the application discovers locations for
config, log, and process-tracking files.

Policy (portable by default):
- Config: repository-root ``<repo_root>/config/config.toml`` unless the
  directory is overridden by ``QACBATCH_CONFIG_DIR``.
- Data: repository-root ``<repo_root>/.data`` unless overridden by
  ``QACBATCH_DATA_DIR``. The PID tracking file lives here.
- Logs: repository-root ``<repo_root>/logs``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Callable, Final


_ENV_CONFIG_DIR: Final[str] = "QACBATCH_CONFIG_DIR"
_ENV_DATA_DIR: Final[str] = "QACBATCH_DATA_DIR"


def resolve_overridable_path(
    *,
    explicit_path: Path | str | None,
    env: Mapping[str, str] | None,
    env_var: str | None,
    default_factory: Callable[[], Path],
) -> Path:
    """Resolve a configuration path honoring explicit and environment overrides."""

    if explicit_path is not None:
        return Path(explicit_path).expanduser().resolve()

    mapping = env if env is not None else os.environ
    if env_var:
        candidate = mapping.get(env_var) or ""
        candidate = candidate.strip()
        if candidate:
            return Path(candidate).expanduser().resolve()

    default_path = default_factory()
    return default_path.expanduser().resolve()


def _detect_repo_root(start: Path | None = None) -> Path:
    """Detect the repository root by walking up parents.

    Looks for markers like ``pyproject.toml`` or ``.git``.

    Args:
        start: Starting path. Defaults to this file's directory.

    Returns:
        Path: Detected repository root, or the current working directory
        if no marker is found.
    """
    here = (start or Path(__file__).resolve()).parent
    for p in [here, *here.parents]:
        if (p / "pyproject.toml").exists() or (p / ".git").exists():
            return p
    return Path.cwd()


def default_config_dir() -> Path:
    """Get the directory holding ``config.toml``."""

    return resolve_overridable_path(
        explicit_path=None,
        env=None,
        env_var=_ENV_CONFIG_DIR,
        default_factory=lambda: _detect_repo_root() / "config",
    )


def default_config_path() -> Path:
    """Get the default path to the main TOML config file."""

    return (default_config_dir() / "config.toml").resolve()


def default_data_dir() -> Path:
    """Get the default directory for runtime data (PID tracking file)."""

    return resolve_overridable_path(
        explicit_path=None,
        env=None,
        env_var=_ENV_DATA_DIR,
        default_factory=lambda: (_detect_repo_root() / ".data").resolve(),
    )


def default_log_dir() -> Path:
    """Get the default directory for log files."""

    return (_detect_repo_root() / "logs").resolve()


def default_log_file() -> Path:
    """Get the default log file path."""

    return (default_log_dir() / "qacbatch.log").resolve()


def bundled_skip_list_path() -> Path:
    """Return the skip list file distributed with the package."""

    return (Path(__file__).resolve().parent.parent / "data" / "skip_lists.toml").resolve()


__all__ = [
    "bundled_skip_list_path",
    "default_config_dir",
    "default_config_path",
    "default_data_dir",
    "default_log_dir",
    "default_log_file",
    "resolve_overridable_path",
]
