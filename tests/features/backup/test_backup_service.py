"""Tests for session backups, retention and restore."""

from __future__ import annotations

import errno
import json
import shutil
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

import pytest
from pytest_mock import MockerFixture

from qacbatch.features.backup import BackupPluginEntry, BackupService, BackupSession
from qacbatch.features.cleaning.domain.models import PluginInfo

STAMP = datetime(2026, 3, 14, 9, 30, 0)


@pytest.fixture
def service() -> BackupService:
    return BackupService(clock=lambda: STAMP)


def _plugin(data: Path, name: str, content: bytes = b"TES4 data") -> PluginInfo:
    data.mkdir(parents=True, exist_ok=True)
    path = data / name
    _ = path.write_bytes(content)
    return PluginInfo(name, full_path=path)


def test_backup_root_sits_beside_data_folder(service: BackupService, tmp_path: Path) -> None:
    assert service.backup_root_for(tmp_path / "Skyrim" / "Data") == tmp_path / "Skyrim" / "QACBatch Backups"


def test_session_directories_never_collide(service: BackupService, tmp_path: Path) -> None:
    first = service.create_session_directory(tmp_path)
    second = service.create_session_directory(tmp_path)

    assert first.name == "2026-03-14_09-30-00"
    assert second.name == "2026-03-14_09-30-00_2"


def test_backup_copies_without_clobbering(service: BackupService, tmp_path: Path) -> None:
    plugin = _plugin(tmp_path / "Data", "A.esp")
    session_dir = service.create_session_directory(tmp_path / "backups")

    first = service.backup(plugin, session_dir)
    second = service.backup(plugin, session_dir)

    assert first.success
    assert first.backup_path == session_dir / "A.esp"
    assert first.file_size_bytes == len(b"TES4 data")
    assert not second.success
    assert second.error == "Backup already exists for 'A.esp' in this session"


def test_failed_copy_leaves_nothing_behind(service: BackupService, tmp_path: Path, mocker: MockerFixture) -> None:
    content = b"x" * 100_000
    plugin = _plugin(tmp_path / "Data", "A.esp", content)
    session_dir = service.create_session_directory(tmp_path / "backups")
    real_copy = shutil.copyfileobj

    def disk_full(reader: BinaryIO, writer: BinaryIO) -> None:
        _ = writer.write(reader.read(10))
        raise OSError(errno.ENOSPC, "No space left on device")

    patched = mocker.patch.object(shutil, "copyfileobj", side_effect=disk_full)
    failed = service.backup(plugin, session_dir)

    assert not failed.success
    assert failed.error is not None
    assert failed.error.startswith("I/O error backing up 'A.esp'")
    assert list(session_dir.iterdir()) == []

    patched.side_effect = real_copy
    retried = service.backup(plugin, session_dir)

    assert retried.success
    assert (session_dir / "A.esp").stat().st_size == len(content)


def test_backup_rejects_missing_sources(service: BackupService, tmp_path: Path) -> None:
    relative = service.backup(PluginInfo("A.esp"), tmp_path)
    missing = service.backup(PluginInfo("B.esp", full_path=tmp_path / "B.esp"), tmp_path)

    assert not relative.success
    assert relative.error is not None
    assert "not a valid absolute path" in relative.error
    assert not missing.success
    assert missing.error is not None
    assert missing.error.startswith("Source file does not exist")


def test_metadata_round_trip_and_listing(service: BackupService, tmp_path: Path) -> None:
    root = tmp_path / "backups"
    plugin = _plugin(tmp_path / "Data", "A.esp")
    session_dir = service.create_session_directory(root)
    result = service.backup(plugin, session_dir)
    assert plugin.full_path is not None
    entry = BackupPluginEntry("A.esp", plugin.full_path, result.file_size_bytes)

    metadata = service.write_session_metadata(
        session_dir,
        BackupSession(timestamp=STAMP, game_type="skyrim_se", session_directory=session_dir, plugins=[entry]),
    )
    (root / "no-metadata").mkdir()
    corrupt = root / "2020-01-01_00-00-00"
    corrupt.mkdir()
    _ = (corrupt / "session.json").write_text("{not json", encoding="utf-8")

    assert json.loads(metadata.read_text(encoding="utf-8"))["game_type"] == "skyrim_se"
    sessions = service.list_sessions(root)
    assert len(sessions) == 1
    assert sessions[0].session_directory == session_dir
    assert sessions[0].timestamp == STAMP
    assert sessions[0].plugins == [entry]


def test_cleanup_keeps_newest_and_protects_current(service: BackupService, tmp_path: Path) -> None:
    root = tmp_path / "backups"
    names = ["2026-01-01_00-00-00", "2026-02-01_00-00-00", "2026-03-01_00-00-00"]
    for name in names:
        (root / name).mkdir(parents=True)

    deleted = service.cleanup_old_sessions(root, max_sessions=1, protect=root / names[0])

    assert sorted(path.name for path in deleted) == [names[1]]
    assert sorted(path.name for path in root.iterdir()) == [names[0], names[2]]


def test_cleanup_on_missing_root(service: BackupService, tmp_path: Path) -> None:
    assert service.cleanup_old_sessions(tmp_path / "absent", 3) == []


def test_restore_session_overwrites_cleaned_plugin(service: BackupService, tmp_path: Path) -> None:
    plugin = _plugin(tmp_path / "Data", "A.esp", b"original")
    assert plugin.full_path is not None
    session_dir = service.create_session_directory(tmp_path / "backups")
    _ = service.backup(plugin, session_dir)
    _ = plugin.full_path.write_bytes(b"cleaned")
    session = BackupSession(
        timestamp=STAMP,
        game_type="skyrim_se",
        session_directory=session_dir,
        plugins=[BackupPluginEntry("A.esp", plugin.full_path)],
    )

    restored = service.restore_session(session)

    assert [entry.file_name for entry in restored] == ["A.esp"]
    assert plugin.full_path.read_bytes() == b"original"


def test_restore_missing_backup_raises(service: BackupService, tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        service.restore(BackupPluginEntry("Gone.esp", tmp_path / "Gone.esp"), tmp_path)
