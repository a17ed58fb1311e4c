"""
Backup manager tests - naming, ordering, restore, prune.
"""

import re
import shutil
import sys
import tempfile
from pathlib import Path

TESTS_DIR = Path(__file__).parent
sys.path.insert(0, str(TESTS_DIR.parent.parent / "src"))

from ufs_patcher.core.backup import BackupManager

BACKUP_NAME = re.compile(r"^appinfo\.vdf\.\d{8}_\d{6}(_\d+)?\.bak$")


def _original(directory: Path, content: bytes = b"v1") -> Path:
    path = directory / "appinfo.vdf"
    path.write_bytes(content)
    return path


def test_backup_next_to_original():
    tmp = Path(tempfile.mkdtemp())
    try:
        path = _original(tmp)
        op = BackupManager().backup(path, reason="test")
        assert op.success
        backup = Path(op.backup_path)
        assert backup.parent == tmp
        assert BACKUP_NAME.match(backup.name)
        assert backup.read_bytes() == b"v1"
    finally:
        shutil.rmtree(tmp)


def test_same_second_backups_get_suffix():
    tmp = Path(tempfile.mkdtemp())
    try:
        path = _original(tmp)
        manager = BackupManager(tmp / "bk")
        names = {Path(manager.backup(path).backup_path).name for _ in range(3)}
        assert len(names) == 3
        assert all(BACKUP_NAME.match(n) for n in names)
        assert len(manager.list_backups(path)) == 3
    finally:
        shutil.rmtree(tmp)


def test_backup_of_missing_file_fails():
    tmp = Path(tempfile.mkdtemp())
    try:
        op = BackupManager().backup(tmp / "nope.vdf")
        assert not op.success
        assert op.backup_path is None
    finally:
        shutil.rmtree(tmp)


def test_restore_latest_and_specific():
    tmp = Path(tempfile.mkdtemp())
    try:
        path = _original(tmp, b"first")
        manager = BackupManager()
        first = manager.backup(path).backup_path
        path.write_bytes(b"second")
        manager.backup(path)
        path.write_bytes(b"broken")

        op = manager.restore(path)
        assert op.success
        assert path.read_bytes() == b"second"

        op = manager.restore(path, first)
        assert op.success
        assert path.read_bytes() == b"first"
    finally:
        shutil.rmtree(tmp)


def test_restore_without_backups_fails():
    tmp = Path(tempfile.mkdtemp())
    try:
        path = _original(tmp)
        op = BackupManager().restore(path)
        assert not op.success
        assert path.read_bytes() == b"v1"
    finally:
        shutil.rmtree(tmp)


def test_prune_keeps_newest():
    tmp = Path(tempfile.mkdtemp())
    try:
        path = _original(tmp)
        manager = BackupManager()
        for _ in range(5):
            manager.backup(path)
        newest = manager.list_backups(path)[:2]

        removed = manager.prune(path, 2)
        assert len(removed) == 3
        assert manager.list_backups(path) == newest
        assert manager.prune(path, 0) == []
        assert path.exists()
    finally:
        shutil.rmtree(tmp)


def test_collision_counter_orders_numerically():
    tmp = Path(tempfile.mkdtemp())
    try:
        path = _original(tmp)
        stamp = "20260101_120000"
        names = [f"appinfo.vdf.{stamp}.bak"] + [f"appinfo.vdf.{stamp}_{n}.bak" for n in range(1, 12)]
        for i, name in enumerate(names):
            (tmp / name).write_bytes(str(i).encode())
        (tmp / "appinfo.vdf.20260101_115959_30.bak").write_bytes(b"older")

        manager = BackupManager()
        listed = [p.name for p in manager.list_backups(path)]
        assert listed[0] == f"appinfo.vdf.{stamp}_11.bak"
        assert listed[1] == f"appinfo.vdf.{stamp}_10.bak"
        assert listed[2] == f"appinfo.vdf.{stamp}_9.bak"
        assert listed[-1] == "appinfo.vdf.20260101_115959_30.bak"

        assert manager.restore(path).success
        assert path.read_bytes() == b"11"

        manager.prune(path, 2)
        assert sorted(p.name for p in manager.list_backups(path)) == [
            f"appinfo.vdf.{stamp}_10.bak", f"appinfo.vdf.{stamp}_11.bak",
        ]
    finally:
        shutil.rmtree(tmp)
