"""
Backups - timestamped copies of appinfo.vdf taken before every write.

Naming: <name>.<YYYYmmdd_HHMMSS>.bak next to the original (or inside
backup_dir when configured). A second backup in the same second gets a
_1, _2, ... suffix.
"""

import logging
import re
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# <timestamp>[_<n>] between the original name and ".bak"
_STAMP_RE = re.compile(r"\.(\d{8}_\d{6})(?:_(\d+))?\.bak$")


def _backup_sort_key(path: Path) -> Tuple[str, int, str]:
    """Order by timestamp, then collision counter numerically."""
    match = _STAMP_RE.search(path.name)
    if match is None:
        return ("", 0, path.name)
    return (match.group(1), int(match.group(2) or 0), path.name)


@dataclass
class FileOpResult:
    """Result of a file operation."""
    success: bool
    message: str
    path: Optional[str] = None
    data: Optional[Any] = None
    backup_path: Optional[str] = None


class BackupManager:
    """
    Creates, lists, restores and prunes backups of a file.

    Backups are found on disk by name, so they survive restarts.
    """

    def __init__(self, backup_dir: Optional[PathLike] = None):
        self.backup_dir = Path(backup_dir) if backup_dir else None

    def _dir_for(self, original: Path) -> Path:
        return self.backup_dir if self.backup_dir else original.parent

    def _new_backup_path(self, original: Path) -> Path:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        directory = self._dir_for(original)
        candidate = directory / f"{original.name}.{timestamp}.bak"
        n = 1
        while candidate.exists():
            candidate = directory / f"{original.name}.{timestamp}_{n}.bak"
            n += 1
        return candidate

    def backup(self, file_path: PathLike, reason: str = "") -> FileOpResult:
        """
        Copy file_path to a new timestamped backup.

        Returns:
            FileOpResult with backup_path set on success
        """
        original = Path(file_path)
        if not original.exists():
            return FileOpResult(False, f"File not found: {original}")

        try:
            if self.backup_dir:
                self.backup_dir.mkdir(parents=True, exist_ok=True)
            backup_path = self._new_backup_path(original)
            shutil.copy2(original, backup_path)
        except OSError as e:
            return FileOpResult(False, f"Backup failed: {e}", str(original))

        logger.info("Backed up %s -> %s%s", original, backup_path, f" ({reason})" if reason else "")
        return FileOpResult(True, "Backup created", str(original), backup_path=str(backup_path))

    def list_backups(self, file_path: PathLike) -> List[Path]:
        """Backups of file_path, newest first."""
        original = Path(file_path)
        directory = self._dir_for(original)
        if not directory.is_dir():
            return []
        return sorted(directory.glob(f"{original.name}.*.bak"), key=_backup_sort_key, reverse=True)

    def restore(self, file_path: PathLike, backup_path: Optional[PathLike] = None) -> FileOpResult:
        """
        Copy a backup over file_path.

        Args:
            file_path: Path to restore to
            backup_path: Specific backup to restore. If None, uses latest.
        """
        original = Path(file_path)
        if backup_path is None:
            backups = self.list_backups(original)
            if not backups:
                return FileOpResult(False, f"No backup found for {original}")
            backup_path = backups[0]

        backup_path = Path(backup_path)
        if not backup_path.exists():
            return FileOpResult(False, f"Backup not found: {backup_path}")

        try:
            shutil.copy2(backup_path, original)
        except OSError as e:
            return FileOpResult(False, f"Restore failed: {e}", str(original))

        logger.info("Restored %s from %s", original, backup_path)
        return FileOpResult(True, f"Restored from {backup_path}", str(original), backup_path=str(backup_path))

    def prune(self, file_path: PathLike, keep: int) -> List[Path]:
        """Delete all but the newest `keep` backups. keep <= 0 keeps everything."""
        if keep <= 0:
            return []
        removed = []
        for old in self.list_backups(file_path)[keep:]:
            old.unlink()
            removed.append(old)
            logger.debug("Pruned backup %s", old)
        return removed
