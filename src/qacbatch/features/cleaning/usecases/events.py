"""src/qacbatch/features/cleaning/usecases/events.py
Where: Cleaning feature usecases layer.
What: Structured event identifiers attached to cleaning log records.
Why: The console handler styles records by ``cleaning_event`` rather than by message text.
"""

from __future__ import annotations

from enum import StrEnum
from logging import Logger
from pathlib import Path
from typing import Any

from ..domain.models import CleaningStatus


class CleaningEvent(StrEnum):
    """Structured event identifiers for cleaning session logs."""

    SESSION_START = "cleaning.session.start"
    SESSION_COMPLETE = "cleaning.session.complete"
    SESSION_CANCELLED = "cleaning.session.cancelled"
    SESSION_ABORTED = "cleaning.session.aborted"
    PLUGIN_START = "cleaning.plugin.start"
    PLUGIN_CLEANED = "cleaning.plugin.cleaned"
    PLUGIN_SKIPPED = "cleaning.plugin.skipped"
    PLUGIN_FAILED = "cleaning.plugin.failed"
    PLUGIN_CANCELLED = "cleaning.plugin.cancelled"
    PROCESS_HANG = "cleaning.process.hang"

    @classmethod
    def for_status(cls, status: CleaningStatus) -> CleaningEvent:
        return _STATUS_EVENTS[status]


_STATUS_EVENTS: dict[CleaningStatus, CleaningEvent] = {
    CleaningStatus.CLEANED: CleaningEvent.PLUGIN_CLEANED,
    CleaningStatus.SKIPPED: CleaningEvent.PLUGIN_SKIPPED,
    CleaningStatus.FAILED: CleaningEvent.PLUGIN_FAILED,
    CleaningStatus.CANCELLED: CleaningEvent.PLUGIN_CANCELLED,
}


def log_cleaning(
    logger: Logger,
    level: int,
    event: CleaningEvent,
    message: str,
    *message_args: object,
    **context: Any,
) -> None:
    extra: dict[str, Any] = {"cleaning_event": event.value}
    for key, value in context.items():
        extra[key] = str(value) if isinstance(value, Path) else value
    logger.log(level, message, *message_args, extra=extra, stacklevel=2)


__all__ = ["CleaningEvent", "log_cleaning"]
