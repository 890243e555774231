"""External process execution: slots, spawning, termination, orphan cleanup."""

from __future__ import annotations

from .engine import ProcessExecutionService, SlotLease, SlotUnavailableError
from .models import ProcessCommand, ProcessHandle, ProcessResult, TerminationResult, TrackedProcess
from .tracking import ProcessTracker

__all__ = [
    "ProcessCommand",
    "ProcessExecutionService",
    "ProcessHandle",
    "ProcessResult",
    "ProcessTracker",
    "SlotLease",
    "SlotUnavailableError",
    "TerminationResult",
    "TrackedProcess",
]
