"""Tests for building xEdit and MO2 command lines."""

from __future__ import annotations

from pathlib import Path

from qacbatch.features.cleaning.domain.command_builder import XEditCommandBuilder
from qacbatch.features.cleaning.domain.games import GameType
from qacbatch.features.cleaning.domain.models import PluginInfo

XEDIT = Path("/games/tools/xEdit.exe")
SSEEDIT = Path("/games/tools/SSEEdit.exe")
MO2 = Path("/games/mo2/ModOrganizer.exe")


def test_universal_binary_gets_game_flag() -> None:
    command = XEditCommandBuilder(XEDIT).build(PluginInfo("Dawnguard.esm"), GameType.SKYRIM_SE)

    assert command is not None
    assert command.executable == XEDIT
    assert command.arguments == ("-SSE", "-QAC", "-autoexit", "-autoload", "Dawnguard.esm")
    assert command.working_directory == XEDIT.parent


def test_game_specific_binary_omits_flag() -> None:
    command = XEditCommandBuilder(SSEEDIT).build(PluginInfo("Update.esm"), GameType.SKYRIM_SE)

    assert command is not None
    assert command.arguments == ("-QAC", "-autoexit", "-autoload", "Update.esm")


def test_partial_forms_flags_are_appended() -> None:
    builder = XEditCommandBuilder(SSEEDIT, partial_forms=True)
    command = builder.build(PluginInfo("Update.esm"), GameType.SKYRIM_SE)

    assert command is not None
    assert command.arguments[-2:] == ("-iknowwhatimdoing", "-allowmakepartial")


def test_unknown_game_or_missing_binary_builds_nothing() -> None:
    plugin = PluginInfo("Update.esm")
    assert XEditCommandBuilder(XEDIT).build(plugin, GameType.UNKNOWN) is None
    assert XEditCommandBuilder(None).build(plugin, GameType.SKYRIM_SE) is None
    assert XEditCommandBuilder(XEDIT).build(PluginInfo("   "), GameType.SKYRIM_SE) is None


def test_mo2_mode_wraps_xedit() -> None:
    builder = XEditCommandBuilder(XEDIT, mo2_binary=MO2, mo2_mode=True)
    command = builder.build(PluginInfo("My Mod.esp"), GameType.FALLOUT4)

    assert command is not None
    assert command.executable == MO2
    assert command.arguments == (
        "run",
        str(XEDIT),
        "-a",
        '-FO4 -QAC -autoexit -autoload "My Mod.esp"',
    )
    assert command.working_directory == MO2.parent


def test_mo2_mode_without_mo2_binary_builds_nothing() -> None:
    builder = XEditCommandBuilder(XEDIT, mo2_mode=True)
    assert builder.build(PluginInfo("Update.esm"), GameType.SKYRIM_SE) is None
