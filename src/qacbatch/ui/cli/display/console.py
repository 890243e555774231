"""Locate the console used by the Rich logging handler."""

from rich.console import Console

from qacbatch.platform.logging import CleaningRichHandler, logger


def logging_console() -> Console | None:
    """Share the logging console so progress bars and log lines do not interleave."""

    for handler in logger.handlers:
        if isinstance(handler, CleaningRichHandler):
            return handler.console
    return None
