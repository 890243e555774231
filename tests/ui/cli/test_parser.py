"""Tests for command line argument parsing."""

from __future__ import annotations

import logging
from argparse import Namespace
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture

from qacbatch.platform.logging import DEFAULT_LOG_FILE
from qacbatch.ui.cli.args import ArgumentParser, BackupsArgs, CleanArgs, RestoreArgs


@pytest.fixture
def mock_setup(mocker: MockerFixture) -> MagicMock:
    mock_config = mocker.patch("qacbatch.ui.cli.args.parser.Config")
    mock_config.load.return_value.log_file = None
    return mocker.patch("qacbatch.ui.cli.args.parser.setup_logger")


def test_create_parser() -> None:
    parser = ArgumentParser.create_parser()

    clean: Namespace = parser.parse_args(["clean", "--game", "skyrim_se", "--timeout", "60", "--mo2"])
    assert clean.command == "clean"
    assert clean.game == "skyrim_se"
    assert clean.timeout == 60
    assert clean.mo2

    restore: Namespace = parser.parse_args(["restore", "2026-03-14_09-30-00"])
    assert restore.session == "2026-03-14_09-30-00"

    with pytest.raises(SystemExit):
        _ = parser.parse_args([])


def test_process_clean_args(mock_setup: MagicMock, tmp_path: Path) -> None:
    load_order = tmp_path / "plugins.txt"
    _ = load_order.write_text("*A.esp\n", encoding="utf-8")

    args = ArgumentParser.process_args(
        [
            "clean",
            "--load-order",
            str(load_order),
            "--xedit",
            "C:/xEdit/SSEEdit.exe",
            "--no-backup",
            "--disable-skip-lists",
            "--verbose",
        ]
    )

    assert isinstance(args, CleanArgs)
    assert args.load_order_file == load_order
    assert args.xedit_binary == Path("C:/xEdit/SSEEdit.exe")
    assert args.no_backup and args.disable_skip_lists
    assert args.data_folder is None
    assert mock_setup.call_args.kwargs["console_level"] == logging.DEBUG
    assert mock_setup.call_args.kwargs["log_file"] == DEFAULT_LOG_FILE


def test_quiet_preview(mock_setup: MagicMock) -> None:
    args = ArgumentParser.process_args(["preview", "--quiet"])

    assert isinstance(args, CleanArgs)
    assert args.command == "preview"
    assert mock_setup.call_args.kwargs["console_level"] == logging.ERROR


@pytest.mark.parametrize(
    "argv",
    [
        ["clean", "--load-order", "does/not/exist.txt"],
        ["clean", "--game", "morrowind"],
        ["clean", "--timeout", "0"],
    ],
)
def test_invalid_session_arguments_exit(mock_setup: MagicMock, argv: list[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        _ = ArgumentParser.process_args(argv)
    assert exc_info.value.code == 1


def test_restore_and_backups_args(mock_setup: MagicMock) -> None:
    restore = ArgumentParser.process_args(["restore", "--data-folder", "/games/Skyrim/Data"])
    assert isinstance(restore, RestoreArgs)
    assert restore.session is None
    assert restore.data_folder == Path("/games/Skyrim/Data")

    backups = ArgumentParser.process_args(["backups", "--quiet"])
    assert isinstance(backups, BackupsArgs)
    assert backups.quiet
