"""Tests for reading load order files."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from qacbatch.features.cleaning.adapters.load_order import LoadOrderLoader


def test_plugins_txt_markers_select_enabled_plugins(tmp_path: Path) -> None:
    load_order = tmp_path / "plugins.txt"
    _ = load_order.write_text(
        "﻿# This file is used by the game\n*Skyrim.esm\n*Update.esm\nDisabledMod.esp\n\n*My Mod.esp\n",
        encoding="utf-8",
    )

    plugins = LoadOrderLoader().load(load_order, data_folder=tmp_path / "Data")

    assert [(plugin.file_name, plugin.selected) for plugin in plugins] == [
        ("Skyrim.esm", True),
        ("Update.esm", True),
        ("DisabledMod.esp", False),
        ("My Mod.esp", True),
    ]
    assert plugins[3].full_path == tmp_path / "Data" / "My Mod.esp"


def test_loadorder_txt_without_markers_selects_everything(tmp_path: Path) -> None:
    load_order = tmp_path / "loadorder.txt"
    _ = load_order.write_text("Fallout4.esm\nMod.esp\n", encoding="utf-8")

    plugins = LoadOrderLoader().load(load_order)

    assert all(plugin.selected for plugin in plugins)
    assert all(plugin.full_path is None for plugin in plugins)


def test_missing_file_returns_empty_list(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        assert LoadOrderLoader().load(tmp_path / "nope.txt") == []
    assert "Load order file not found" in caplog.text
