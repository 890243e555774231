"""Tests for configuration path resolution helpers."""

from pathlib import Path

import pytest

from qacbatch.config.paths import (
    bundled_skip_list_path,
    default_config_path,
    default_data_dir,
    default_log_dir,
    default_log_file,
    resolve_overridable_path,
)


def test_default_log_paths(portable_repo_root: Path) -> None:
    """Default log locations should live under the repository logs/ folder."""

    expected_dir = portable_repo_root / "logs"
    assert default_log_dir() == expected_dir
    assert default_log_file() == expected_dir / "qacbatch.log"


def test_default_config_and_data_paths(portable_repo_root: Path) -> None:
    assert default_config_path() == portable_repo_root / "config" / "config.toml"
    assert default_data_dir() == portable_repo_root / ".data"


def test_environment_overrides_config_and_data_dirs(
    portable_repo_root: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """``QACBATCH_CONFIG_DIR`` and ``QACBATCH_DATA_DIR`` replace the portable defaults."""

    _ = portable_repo_root
    monkeypatch.setenv("QACBATCH_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.setenv("QACBATCH_DATA_DIR", str(tmp_path / "state"))

    assert default_config_path() == (tmp_path / "cfg" / "config.toml").resolve()
    assert default_data_dir() == (tmp_path / "state").resolve()


def test_explicit_path_wins_over_environment(tmp_path: Path) -> None:
    resolved = resolve_overridable_path(
        explicit_path=tmp_path / "explicit",
        env={"VAR": str(tmp_path / "env")},
        env_var="VAR",
        default_factory=lambda: tmp_path / "default",
    )
    assert resolved == (tmp_path / "explicit").resolve()


def test_blank_environment_value_falls_back_to_default(tmp_path: Path) -> None:
    resolved = resolve_overridable_path(
        explicit_path=None,
        env={"VAR": "   "},
        env_var="VAR",
        default_factory=lambda: tmp_path / "default",
    )
    assert resolved == (tmp_path / "default").resolve()


def test_bundled_skip_list_ships_with_package() -> None:
    path = bundled_skip_list_path()
    assert path.name == "skip_lists.toml"
    assert path.is_file()
