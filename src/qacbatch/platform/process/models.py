"""Where: src/qacbatch/platform/process/models.py
What: Value objects exchanged with the process execution engine.
Why: Keep spawn inputs, outcomes, and orphan records free of engine internals.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

import psutil


class TerminationResult(StrEnum):
    """Outcome of asking the engine to stop a process."""

    ALREADY_EXITED = "already_exited"
    GRACEFUL_EXIT = "graceful_exit"
    FORCE_KILLED = "force_killed"
    FAILED = "failed"


def _quote_argument(argument: str) -> str:
    if argument and not any(char.isspace() for char in argument) and '"' not in argument:
        return argument
    escaped = argument.replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(slots=True, frozen=True)
class ProcessCommand:
    """Executable plus arguments for one external tool invocation."""

    executable: Path
    arguments: tuple[str, ...] = ()
    working_directory: Path | None = None

    @property
    def argv(self) -> list[str]:
        return [str(self.executable), *self.arguments]

    @property
    def display(self) -> str:
        """Single-line rendering used in logs."""

        return " ".join(_quote_argument(part) for part in self.argv)


@dataclass(slots=True, frozen=True)
class ProcessResult:
    """Everything the engine knows about one finished execution.

    ``started_at`` and ``exited_at`` come from ``time.monotonic`` so results
    from one session can be compared for ordering. ``termination_failed``
    marks a process that outlived every attempt to stop it; the engine keeps
    its slot until the process is seen to exit.
    """

    exit_code: int | None = None
    output_lines: list[str] = field(default_factory=list)
    error_lines: list[str] = field(default_factory=list)
    timed_out: bool = False
    cancelled: bool = False
    termination_failed: bool = False
    start_error: str | None = None
    pid: int | None = None
    started_at: float | None = None
    exited_at: float | None = None

    @property
    def succeeded(self) -> bool:
        return (
            self.start_error is None
            and not self.timed_out
            and not self.cancelled
            and not self.termination_failed
            and self.exit_code == 0
        )

    @classmethod
    def failed_to_start(cls, message: str) -> "ProcessResult":
        return cls(start_error=message, error_lines=[message])


@dataclass(slots=True, frozen=True)
class TrackedProcess:
    """Weak reference to a spawned process persisted for orphan cleanup."""

    pid: int
    create_time: float
    plugin_name: str = ""


@dataclass(slots=True, eq=False)
class ProcessHandle:
    """A live external process owned by the engine for its lifetime."""

    popen: subprocess.Popen[str]
    process: psutil.Process | None
    started_at: float
    plugin_name: str = ""

    @property
    def pid(self) -> int:
        return self.popen.pid

    @property
    def create_time(self) -> float | None:
        if self.process is None:
            return None
        try:
            return self.process.create_time()
        except psutil.Error:
            return None

    def is_running(self) -> bool:
        return self.popen.poll() is None


__all__ = [
    "ProcessCommand",
    "ProcessHandle",
    "ProcessResult",
    "TerminationResult",
    "TrackedProcess",
]
