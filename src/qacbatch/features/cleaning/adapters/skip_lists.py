"""Where: src/qacbatch/features/cleaning/adapters/skip_lists.py
What: Merge the bundled skip lists with user lists and variant overlays.
Why: Base-game masters must never be handed to Quick Auto Clean.
"""

from __future__ import annotations

import tomllib
from collections.abc import Iterable, Mapping
from logging import Logger, getLogger
from pathlib import Path

from qacbatch.config.paths import bundled_skip_list_path

from ..domain.games import (
    SKIP_LIST_KEYS,
    UNIVERSAL_SKIP_LIST_KEY,
    VARIANT_SKIP_LIST_KEYS,
    GameType,
    GameVariant,
)


class TomlSkipListProvider:
    """Skip lists from a TOML file of ``KEY = [names]`` plus user additions."""

    def __init__(
        self,
        *,
        bundled_path: Path | None = None,
        user_lists: Mapping[str, Iterable[str]] | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._bundled_path = bundled_path or bundled_skip_list_path()
        self._user_lists = {key: list(names) for key, names in (user_lists or {}).items()}
        self._logger: Logger = logger or getLogger(__name__)
        self._bundled: dict[str, list[str]] | None = None

    def bundled_lists(self) -> dict[str, list[str]]:
        """Load and cache the bundled file.

        Raises:
            tomllib.TOMLDecodeError: The bundled file is not valid TOML.
        """

        if self._bundled is None:
            if not self._bundled_path.is_file():
                self._logger.warning("Bundled skip list not found: %s", self._bundled_path)
                self._bundled = {}
            else:
                with open(self._bundled_path, "rb") as handle:
                    raw = tomllib.load(handle)
                self._bundled = {
                    str(key): [str(name) for name in names]
                    for key, names in raw.items()
                    if isinstance(names, list)
                }
        return self._bundled

    def get_exclusions(self, game: GameType, variant: GameVariant = GameVariant.NONE) -> set[str]:
        """Return the merged list, de-duplicated case-insensitively."""

        key = SKIP_LIST_KEYS.get(game)
        if key is None:
            return set()

        bundled = self.bundled_lists()
        keys = [key, UNIVERSAL_SKIP_LIST_KEY]
        variant_key = VARIANT_SKIP_LIST_KEYS.get(variant)
        if variant_key is not None:
            keys.append(variant_key)

        merged: dict[str, str] = {}
        for source in (bundled, self._user_lists):
            for list_key in keys:
                for name in source.get(list_key, []):
                    cleaned = name.strip()
                    if cleaned:
                        _ = merged.setdefault(cleaned.lower(), cleaned)

        self._logger.debug("Skip list for %s (%s): %d entries", game, variant, len(merged))
        return set(merged.values())


__all__ = ["TomlSkipListProvider"]
