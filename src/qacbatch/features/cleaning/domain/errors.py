"""Errors that abort a whole cleaning session."""

from __future__ import annotations


class SessionAbortedError(Exception):
    """The session cannot start or continue."""


class EnvironmentInvalidError(SessionAbortedError):
    """Required binaries or input files are missing or unusable."""


class GameUndeterminedError(SessionAbortedError):
    """Neither the tool name nor the plugins reveal which game to clean."""


class ProcessStrandedError(SessionAbortedError):
    """An xEdit process outlived termination, so no further plugin may start."""


__all__ = [
    "EnvironmentInvalidError",
    "GameUndeterminedError",
    "ProcessStrandedError",
    "SessionAbortedError",
]
