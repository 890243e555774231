"""Where: src/qacbatch/config/settings.py
What: Runtime constants and bounds checks shared by feature layers.
Why: Keep tuning knobs in one place without touching the config file.
Assumptions: - Values mirror the defaults xEdit cleaning has been tuned against.
Trade-offs: - Validation is limited to simple boundary checks.
"""

from __future__ import annotations

from typing import Final

# Process execution ---------------------------------------------------------

# Per-plugin wall clock budget used when the configured value is unusable.
DEFAULT_CLEANING_TIMEOUT_SECONDS: Final[int] = 300

# xEdit holds exclusive locks on its working files; one instance at a time.
DEFAULT_PROCESS_SLOTS: Final[int] = 1

# Time allowed between the polite shutdown request and the tree kill.
TERMINATION_GRACE_PERIOD_SECONDS: Final[float] = 2.5

# Pause after a termination so the OS releases file handles.
TERMINATION_SETTLE_SECONDS: Final[float] = 0.5

# How long to wait for killed processes to disappear.
KILL_WAIT_SECONDS: Final[float] = 5.0

# Granularity of the exit / cancellation / timeout polling loop.
PROCESS_POLL_INTERVAL_SECONDS: Final[float] = 0.1

# File holding {pid, start time} records of running xEdit instances.
PID_FILE_NAME: Final[str] = "qacbatch-pids.json"

# Tolerance when comparing a recorded start time with the OS-reported one.
PID_START_TIME_TOLERANCE_SECONDS: Final[float] = 1.0

# Hang detection -------------------------------------------------------------

HANG_POLL_INTERVAL_SECONDS: Final[float] = 5.0
HANG_THRESHOLD_SECONDS: Final[float] = 60.0
HANG_CPU_THRESHOLD_PERCENT: Final[float] = 0.5

# Orchestration --------------------------------------------------------------

MAX_TIMEOUT_ATTEMPTS: Final[int] = 3

# Backups --------------------------------------------------------------------

BACKUP_ROOT_DIR_NAME: Final[str] = "QACBatch Backups"
BACKUP_SESSION_NAME_FORMAT: Final[str] = "%Y-%m-%d_%H-%M-%S"
BACKUP_METADATA_FILE_NAME: Final[str] = "session.json"
DEFAULT_BACKUP_MAX_SESSIONS: Final[int] = 10

# xEdit log files --------------------------------------------------------------

LOG_READ_RETRY_DELAY_SECONDS: Final[float] = 0.2


def resolve_cleaning_timeout(value: int | float | None) -> float:
    """Return ``value`` when positive, otherwise the default timeout."""

    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
        return float(value)
    return float(DEFAULT_CLEANING_TIMEOUT_SECONDS)


def resolve_process_slots(value: int | None) -> int:
    """Return a usable slot count; anything below one falls back to one."""

    if isinstance(value, int) and not isinstance(value, bool) and value >= 1:
        return value
    return DEFAULT_PROCESS_SLOTS


__all__ = [
    "BACKUP_METADATA_FILE_NAME",
    "BACKUP_ROOT_DIR_NAME",
    "BACKUP_SESSION_NAME_FORMAT",
    "DEFAULT_BACKUP_MAX_SESSIONS",
    "DEFAULT_CLEANING_TIMEOUT_SECONDS",
    "DEFAULT_PROCESS_SLOTS",
    "HANG_CPU_THRESHOLD_PERCENT",
    "HANG_POLL_INTERVAL_SECONDS",
    "HANG_THRESHOLD_SECONDS",
    "KILL_WAIT_SECONDS",
    "LOG_READ_RETRY_DELAY_SECONDS",
    "MAX_TIMEOUT_ATTEMPTS",
    "PID_FILE_NAME",
    "PID_START_TIME_TOLERANCE_SECONDS",
    "PROCESS_POLL_INTERVAL_SECONDS",
    "TERMINATION_GRACE_PERIOD_SECONDS",
    "TERMINATION_SETTLE_SECONDS",
    "resolve_cleaning_timeout",
    "resolve_process_slots",
]
