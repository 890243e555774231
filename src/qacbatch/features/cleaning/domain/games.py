"""Where: src/qacbatch/features/cleaning/domain/games.py
What: Closed game enumeration, per-game lookup tables, and game detection.
Why: Command flags and skip lists depend on the game; an unknown game must never reach xEdit.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import StrEnum
from logging import Logger, getLogger
from pathlib import PureWindowsPath
from types import MappingProxyType
from typing import Final


class GameType(StrEnum):
    """Games supported by xEdit's Quick Auto Clean."""

    UNKNOWN = "unknown"
    OBLIVION = "oblivion"
    SKYRIM_LE = "skyrim_le"
    SKYRIM_SE = "skyrim_se"
    SKYRIM_VR = "skyrim_vr"
    FALLOUT3 = "fallout3"
    FALLOUT_NV = "fallout_nv"
    FALLOUT4 = "fallout4"
    FALLOUT4_VR = "fallout4_vr"

    @staticmethod
    def from_user_input(value: str | None) -> "GameType":
        """Translate a config or CLI value into the matching game."""

        if value is None:
            return GameType.UNKNOWN
        normalized = value.strip().lower().replace("-", "_")
        for game in GameType:
            if game.value == normalized:
                return game
        valid = ", ".join(game.value for game in GameType)
        raise ValueError(f"Unsupported game '{value}'. Valid options: {valid}")


class GameVariant(StrEnum):
    """Total conversions that share a base game but change skip lists."""

    NONE = "none"
    TTW = "ttw"
    ENDERAL = "enderal"


GAME_FLAGS: Final[Mapping[GameType, str]] = MappingProxyType(
    {
        GameType.OBLIVION: "-TES4",
        GameType.SKYRIM_LE: "-TES5",
        GameType.SKYRIM_SE: "-SSE",
        GameType.SKYRIM_VR: "-SkyrimVR",
        GameType.FALLOUT3: "-FO3",
        GameType.FALLOUT_NV: "-FNV",
        GameType.FALLOUT4: "-FO4",
        GameType.FALLOUT4_VR: "-FO4VR",
    }
)

SKIP_LIST_KEYS: Final[Mapping[GameType, str]] = MappingProxyType(
    {
        GameType.OBLIVION: "TES4",
        GameType.SKYRIM_LE: "TES5",
        GameType.SKYRIM_SE: "SSE",
        GameType.SKYRIM_VR: "SkyrimVR",
        GameType.FALLOUT3: "FO3",
        GameType.FALLOUT_NV: "FNV",
        GameType.FALLOUT4: "FO4",
        GameType.FALLOUT4_VR: "FO4VR",
    }
)

UNIVERSAL_SKIP_LIST_KEY: Final[str] = "Universal"

VARIANT_SKIP_LIST_KEYS: Final[Mapping[GameVariant, str]] = MappingProxyType(
    {
        GameVariant.TTW: SKIP_LIST_KEYS[GameType.FALLOUT3],
        GameVariant.ENDERAL: "Enderal",
    }
)

DISPLAY_NAMES: Final[Mapping[GameType, str]] = MappingProxyType(
    {
        GameType.UNKNOWN: "Unknown",
        GameType.OBLIVION: "The Elder Scrolls IV: Oblivion",
        GameType.SKYRIM_LE: "Skyrim (Legendary Edition)",
        GameType.SKYRIM_SE: "Skyrim Special Edition",
        GameType.SKYRIM_VR: "Skyrim VR",
        GameType.FALLOUT3: "Fallout 3",
        GameType.FALLOUT_NV: "Fallout: New Vegas",
        GameType.FALLOUT4: "Fallout 4",
        GameType.FALLOUT4_VR: "Fallout 4 VR",
    }
)

# Lower-case executable stems; checked exact first, then as prefixes.
EXECUTABLE_PATTERNS: Final[Mapping[str, GameType]] = MappingProxyType(
    {
        "tes4edit": GameType.OBLIVION,
        "tes4edit64": GameType.OBLIVION,
        "tes5edit": GameType.SKYRIM_LE,
        "tes5edit64": GameType.SKYRIM_LE,
        "sseedit": GameType.SKYRIM_SE,
        "sseedit64": GameType.SKYRIM_SE,
        "skyrimvredit": GameType.SKYRIM_VR,
        "tes5vredit": GameType.SKYRIM_VR,
        "fo3edit": GameType.FALLOUT3,
        "fo3edit64": GameType.FALLOUT3,
        "fnvedit": GameType.FALLOUT_NV,
        "fnvedit64": GameType.FALLOUT_NV,
        "fo4edit": GameType.FALLOUT4,
        "fo4edit64": GameType.FALLOUT4,
        "fo4vredit": GameType.FALLOUT4_VR,
        "fo4vredit64": GameType.FALLOUT4_VR,
    }
)

# Skyrim.esm is shared by LE and SE; SE is the more common install.
MASTER_FILES: Final[Mapping[str, GameType]] = MappingProxyType(
    {
        "oblivion.esm": GameType.OBLIVION,
        "skyrim.esm": GameType.SKYRIM_SE,
        "fallout3.esm": GameType.FALLOUT3,
        "falloutnv.esm": GameType.FALLOUT_NV,
        "fallout4.esm": GameType.FALLOUT4,
        "fallout4_vr.esm": GameType.FALLOUT4_VR,
    }
)

TTW_MASTER: Final[str] = "taleoftwowastelands.esm"
ENDERAL_MASTERS: Final[frozenset[str]] = frozenset(
    {"enderal - forgotten stories.esm", "enderal.esm"}
)

# Masters sit at the top of a load order, so only the head is inspected.
ITEM_DETECTION_SAMPLE_SIZE: Final[int] = 10


def display_name(game: GameType) -> str:
    return DISPLAY_NAMES.get(game, DISPLAY_NAMES[GameType.UNKNOWN])


def _tool_stem(name: str) -> str:
    # Accepts both separators.
    stem = PureWindowsPath(name.strip()).stem
    return stem.lower()


class GameDetector:
    """Infer the game from the xEdit binary name or from the plugins themselves."""

    def __init__(self, *, logger: Logger | None = None) -> None:
        self._logger: Logger = logger or getLogger(__name__)

    def detect_from_tool_name(self, name: str | None) -> GameType:
        """Match the executable stem exactly, then by prefix (``SSEEdit 4.1`` → SSE)."""

        if not name or not name.strip():
            return GameType.UNKNOWN

        stem = _tool_stem(name)
        exact = EXECUTABLE_PATTERNS.get(stem)
        if exact is not None:
            return exact

        for pattern, game in EXECUTABLE_PATTERNS.items():
            if stem.startswith(pattern):
                return game
        return GameType.UNKNOWN

    def detect_from_items(self, names: Iterable[str]) -> GameType:
        """Look for a known base-game master among the first few plugin names."""

        for index, name in enumerate(names):
            if index >= ITEM_DETECTION_SAMPLE_SIZE:
                break
            game = MASTER_FILES.get(name.strip().lower())
            if game is not None:
                return game
        return GameType.UNKNOWN

    def detect_variant(self, game: GameType, names: Iterable[str]) -> GameVariant:
        lowered = {name.strip().lower() for name in names}
        if not lowered:
            return GameVariant.NONE

        if game is GameType.FALLOUT_NV and TTW_MASTER in lowered:
            self._logger.info("Detected Tale of Two Wastelands variant")
            return GameVariant.TTW

        if game is GameType.SKYRIM_SE and lowered & ENDERAL_MASTERS:
            self._logger.info("Detected Enderal variant")
            return GameVariant.ENDERAL

        return GameVariant.NONE


__all__ = [
    "DISPLAY_NAMES",
    "EXECUTABLE_PATTERNS",
    "GAME_FLAGS",
    "GameDetector",
    "GameType",
    "GameVariant",
    "MASTER_FILES",
    "SKIP_LIST_KEYS",
    "UNIVERSAL_SKIP_LIST_KEY",
    "VARIANT_SKIP_LIST_KEYS",
    "display_name",
]
