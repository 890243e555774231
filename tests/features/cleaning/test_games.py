"""Tests for game enumeration and detection."""

from __future__ import annotations

import pytest

from qacbatch.features.cleaning.domain.games import (
    GAME_FLAGS,
    GameDetector,
    GameType,
    GameVariant,
    display_name,
)


@pytest.fixture
def detector() -> GameDetector:
    return GameDetector()


@pytest.mark.parametrize(
    ("tool", "expected"),
    [
        ("SSEEdit.exe", GameType.SKYRIM_SE),
        ("C:\\Modding\\xEdit\\FO4Edit64.exe", GameType.FALLOUT4),
        ("/opt/xedit/TES5Edit", GameType.SKYRIM_LE),
        ("FNVEdit 4.1.5", GameType.FALLOUT_NV),
        ("fo4vredit.exe", GameType.FALLOUT4_VR),
        ("xEdit.exe", GameType.UNKNOWN),
        ("", GameType.UNKNOWN),
        (None, GameType.UNKNOWN),
    ],
)
def test_detect_from_tool_name(detector: GameDetector, tool: str | None, expected: GameType) -> None:
    assert detector.detect_from_tool_name(tool) is expected


def test_detect_from_items_uses_base_master(detector: GameDetector) -> None:
    assert detector.detect_from_items(["Skyrim.esm", "Update.esm"]) is GameType.SKYRIM_SE
    assert detector.detect_from_items(["  FalloutNV.esm "]) is GameType.FALLOUT_NV
    assert detector.detect_from_items(["SomeMod.esp"]) is GameType.UNKNOWN
    assert detector.detect_from_items([]) is GameType.UNKNOWN


def test_detect_from_items_only_inspects_head(detector: GameDetector) -> None:
    names = [f"Mod{index}.esp" for index in range(10)] + ["Fallout4.esm"]
    assert detector.detect_from_items(names) is GameType.UNKNOWN


def test_detect_variant(detector: GameDetector) -> None:
    assert (
        detector.detect_variant(GameType.FALLOUT_NV, ["FalloutNV.esm", "TaleOfTwoWastelands.esm"])
        is GameVariant.TTW
    )
    assert detector.detect_variant(GameType.SKYRIM_SE, ["Skyrim.esm", "Enderal.esm"]) is GameVariant.ENDERAL
    assert detector.detect_variant(GameType.FALLOUT4, ["TaleOfTwoWastelands.esm"]) is GameVariant.NONE
    assert detector.detect_variant(GameType.SKYRIM_SE, []) is GameVariant.NONE


def test_from_user_input_normalises_and_rejects() -> None:
    assert GameType.from_user_input("Skyrim-SE") is GameType.SKYRIM_SE
    assert GameType.from_user_input(None) is GameType.UNKNOWN
    with pytest.raises(ValueError, match="Unsupported game"):
        _ = GameType.from_user_input("morrowind")


def test_every_known_game_has_flag_and_name() -> None:
    for game in GameType:
        if game is GameType.UNKNOWN:
            assert game not in GAME_FLAGS
            continue
        assert GAME_FLAGS[game].startswith("-")
        assert display_name(game) != "Unknown"
