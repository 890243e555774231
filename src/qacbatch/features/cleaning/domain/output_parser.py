"""Where: src/qacbatch/features/cleaning/domain/output_parser.py
What: Turn xEdit Quick Auto Clean output lines into record counts.
Why: Output may be partial after a timeout or kill, so parsing must never fail.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Final

from .models import CleaningStatistics

_UNDELETED: Final[re.Pattern[str]] = re.compile(r"undeleting:", re.IGNORECASE)
_REMOVED: Final[re.Pattern[str]] = re.compile(r"removing:", re.IGNORECASE)
_SKIPPED: Final[re.Pattern[str]] = re.compile(r"skipping:", re.IGNORECASE)
_PARTIAL_FORM: Final[re.Pattern[str]] = re.compile(r"making partial form:", re.IGNORECASE)
_TERMINAL: Final[re.Pattern[str]] = re.compile(r"done\.|cleaning completed", re.IGNORECASE)


class XEditOutputParser:
    """Stateless line classifier; each line counts toward at most one category."""

    def parse(self, lines: Iterable[object] | None) -> CleaningStatistics:
        undeleted = removed = skipped = partial_forms = 0
        if lines is None:
            return CleaningStatistics()

        for line in lines:
            if not isinstance(line, str) or not line.strip():
                continue
            if _UNDELETED.search(line):
                undeleted += 1
            elif _REMOVED.search(line):
                removed += 1
            elif _SKIPPED.search(line):
                skipped += 1
            elif _PARTIAL_FORM.search(line):
                partial_forms += 1

        return CleaningStatistics(
            items_removed=removed,
            items_undeleted=undeleted,
            items_skipped=skipped,
            partial_forms_created=partial_forms,
        )

    def is_terminal_line(self, line: object) -> bool:
        """True for the marker xEdit prints once cleaning has finished."""

        return isinstance(line, str) and _TERMINAL.search(line) is not None


__all__ = ["XEditOutputParser"]
