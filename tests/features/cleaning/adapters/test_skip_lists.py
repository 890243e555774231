"""Tests for the TOML skip list provider."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from qacbatch.features.cleaning.adapters.skip_lists import TomlSkipListProvider
from qacbatch.features.cleaning.domain.games import GameType, GameVariant


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "skip_lists.toml"
    _ = path.write_text(content, encoding="utf-8")
    return path


def test_bundled_list_protects_base_masters() -> None:
    exclusions = TomlSkipListProvider().get_exclusions(GameType.SKYRIM_SE)

    assert "Skyrim.esm" in exclusions
    assert "Update.esm" in exclusions


def test_merges_game_universal_variant_and_user_lists(tmp_path: Path) -> None:
    bundled = _write(
        tmp_path,
        'Universal = ["Shared.esp"]\n'
        'FO3 = ["Fallout3.esm"]\n'
        'FNV = ["FalloutNV.esm", "fallout3.esm"]\n',
    )
    provider = TomlSkipListProvider(bundled_path=bundled, user_lists={"FNV": ["MyPatch.esp", "  "]})

    exclusions = provider.get_exclusions(GameType.FALLOUT_NV, GameVariant.TTW)

    assert exclusions == {"FalloutNV.esm", "fallout3.esm", "Shared.esp", "MyPatch.esp"}


def test_unknown_game_has_no_exclusions(tmp_path: Path) -> None:
    provider = TomlSkipListProvider(bundled_path=_write(tmp_path, 'Universal = ["Shared.esp"]\n'))
    assert provider.get_exclusions(GameType.UNKNOWN) == set()


def test_missing_bundled_file_falls_back_to_user_lists(tmp_path: Path) -> None:
    provider = TomlSkipListProvider(bundled_path=tmp_path / "absent.toml", user_lists={"SSE": ["Mine.esp"]})
    assert provider.get_exclusions(GameType.SKYRIM_SE) == {"Mine.esp"}


def test_malformed_bundled_file_raises(tmp_path: Path) -> None:
    provider = TomlSkipListProvider(bundled_path=_write(tmp_path, "SSE = [unterminated"))
    with pytest.raises(tomllib.TOMLDecodeError):
        _ = provider.get_exclusions(GameType.SKYRIM_SE)
