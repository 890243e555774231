"""Rich console handler for structured cleaning events.

Where: platform/logging/handlers.py
What: Render ``cleaning_event`` log records with icons, counters, and compact paths.
Why: Keep console output scannable during long batches without losing detail in the file log.
"""

from __future__ import annotations

import logging
from pathlib import PurePath, PurePosixPath, PureWindowsPath
from typing import Any, ClassVar, override

from rich.console import ConsoleRenderable
from rich.logging import RichHandler
from rich.style import Style
from rich.text import Text


class CleaningRichHandler(RichHandler):
    """Rich handler that styles cleaning session and plugin events."""

    _EVENT_STYLES: ClassVar[dict[str, tuple[str, str]]] = {
        "cleaning.session.start": ("🚀", "cyan"),
        "cleaning.session.complete": ("✅", "green"),
        "cleaning.session.cancelled": ("⏹️", "yellow"),
        "cleaning.session.aborted": ("❌", "red"),
        "cleaning.plugin.start": ("🧹", "blue"),
        "cleaning.plugin.cleaned": ("🎉", "green"),
        "cleaning.plugin.skipped": ("↪️", "yellow"),
        "cleaning.plugin.failed": ("⛔", "red"),
        "cleaning.plugin.cancelled": ("⏹️", "yellow"),
        "cleaning.process.hang": ("⏳", "magenta"),
    }
    _PATH_SEGMENT_LIMIT: ClassVar[int] = 3

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs["show_time"] = False
        kwargs["show_path"] = False
        kwargs["show_level"] = False
        kwargs["rich_tracebacks"] = True
        kwargs["markup"] = True
        kwargs["omit_repeated_times"] = False
        super().__init__(*args, **kwargs)

    def _format_path(self, path: str) -> Text:
        """Format a path keeping only the trailing segments."""

        pure_path = self._to_pure_path(path)
        separator = "\\" if isinstance(pure_path, PureWindowsPath) else "/"
        anchor = pure_path.anchor
        body_parts = [part for part in pure_path.parts if part and part != anchor]

        truncated = len(body_parts) > self._PATH_SEGMENT_LIMIT
        if truncated:
            display = "…" + separator + separator.join(body_parts[-self._PATH_SEGMENT_LIMIT:])
        else:
            display = str(pure_path)

        text = Text()
        for char in display:
            color = "magenta" if char in {separator, "…"} else "white"
            _ = text.append(char, style=Style(color=color))
        return text

    @staticmethod
    def _to_pure_path(raw_path: str) -> PurePath:
        if "\\" in raw_path:
            return PureWindowsPath(raw_path)
        return PurePosixPath(raw_path)

    def _render_cleaning_message(self, record: logging.LogRecord) -> Text | None:
        """Render structured cleaning events with dedicated styling."""

        event = getattr(record, "cleaning_event", None)
        if not isinstance(event, str):
            return None

        icon, color = self._EVENT_STYLES.get(event, ("ℹ️", "blue"))
        text = Text()
        _ = text.append(f"{icon} ", style=Style(color=color, bold=True))
        body = Text(style=Style(color=color))

        if event.startswith("cleaning.session"):
            label = {
                "cleaning.session.start": "Session start",
                "cleaning.session.complete": "Session complete",
                "cleaning.session.cancelled": "Session cancelled",
                "cleaning.session.aborted": "Session aborted",
            }.get(event, "Session")
            _ = body.append(label)
            metrics: list[str] = []
            game = getattr(record, "game", None)
            if game:
                metrics.append(f"game={game}")
            for key in ("total_plugins", "cleaned", "skipped", "failed"):
                value = getattr(record, key, None)
                if isinstance(value, int):
                    metrics.append(f"{key.replace('_plugins', '')}={value}")
            duration = getattr(record, "duration_seconds", None)
            if isinstance(duration, (int, float)):
                metrics.append(f"duration={duration:.2f}s")
            if metrics:
                _ = body.append(" [" + ", ".join(metrics) + "]")
            error = getattr(record, "error_message", None)
            if error:
                _ = body.append(f" ({error})")
        else:
            sequence = getattr(record, "sequence", None)
            total = getattr(record, "total_plugins", None)
            if isinstance(sequence, int) and sequence > 0:
                if isinstance(total, int) and total > 0:
                    _ = body.append(f"[{sequence}/{total}] ")
                else:
                    _ = body.append(f"[{sequence}] ")

            prefix = {
                "cleaning.plugin.start": "Cleaning ",
                "cleaning.plugin.cleaned": "Cleaned ",
                "cleaning.plugin.skipped": "Skipped ",
                "cleaning.plugin.failed": "Failed ",
                "cleaning.plugin.cancelled": "Cancelled ",
                "cleaning.process.hang": "Possible hang in ",
            }.get(event)
            if prefix:
                _ = body.append(prefix)

            plugin_path = getattr(record, "plugin_path", None)
            plugin = getattr(record, "plugin", None)
            if plugin_path:
                _ = body.append_text(self._format_path(str(plugin_path)))
            elif plugin:
                _ = body.append(str(plugin))

            details: list[str] = []
            summary = getattr(record, "summary", None)
            if summary:
                details.append(str(summary))
            duration = getattr(record, "duration_seconds", None)
            if isinstance(duration, (int, float)):
                details.append(f"{duration:.2f}s")
            error = getattr(record, "error_message", None)
            if error:
                details.append(str(error))
            if details:
                _ = body.append(" (" + ", ".join(details) + ")")

        _ = text.append_text(body)
        return text

    @override
    def render_message(self, record: logging.LogRecord, message: str) -> ConsoleRenderable:
        cleaning_text = self._render_cleaning_message(record)
        if cleaning_text is not None:
            return cleaning_text
        return super().render_message(record, message)


__all__ = ["CleaningRichHandler"]
