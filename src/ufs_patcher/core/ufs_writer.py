"""
ufs Writer - replace one app's savefiles / rootoverrides in appinfo.vdf.

Flow for AppInfoWriter.patch():
  read file -> find record -> locate ufs -> encode entries -> splice
  -> recompute checksums -> rebuild file image -> pipeline
  -> (MUTATE) back up, then write

Nothing touches the disk until the complete new image is in memory, and the
write itself goes through a temporary sibling file that is renamed over the
original.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Union

from ..errors import AppInfoError, AppInfoIOError
from ..formats.appinfo import (
    AppInfoFile, AppRecord, LocateResult, StringTable, SaveRule, RootOverride,
    encode_savefiles_block, encode_rootoverrides_block, splice_ufs,
)
from ..formats.appinfo.base import uses_string_table
from .backup import BackupManager
from .mutation_pipeline import (
    MutationAudit, MutationDiff, MutationMode, MutationPipeline, MutationRequest, MutationResult,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# ═══════════════════════════════════════════════════════════════════════════════
# RESULT TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class PatchPlan:
    """Everything computed for a patch, before anything is written."""
    app_id: int
    old_record: AppRecord
    new_record: AppRecord
    located: LocateResult
    old_size: int
    data: bytes
    string_table: Optional[StringTable] = None
    new_keys: List[str] = field(default_factory=list)

    def diffs(self) -> List[MutationDiff]:
        old, new = self.old_record, self.new_record
        diffs = [
            MutationDiff("record.payload_size", len(old.payload), len(new.payload)),
            MutationDiff("record.text_checksum", old.text_checksum.hex(), new.text_checksum.hex()),
            MutationDiff("file.size", self.old_size, len(self.data)),
            MutationDiff("ufs.present", self.located.has_ufs, True),
        ]
        if new.binary_checksum is not None:
            old_hex = old.binary_checksum.hex() if old.binary_checksum else ""
            diffs.append(MutationDiff("record.binary_checksum", old_hex, new.binary_checksum.hex()))
        if self.new_keys:
            diffs.append(MutationDiff("string_table.added", [], list(self.new_keys)))
        return diffs


@dataclass
class PatchResult:
    """Outcome of one patch attempt."""
    success: bool
    message: str
    app_id: int = 0
    path: Optional[str] = None
    backup_path: Optional[str] = None
    old_file_size: int = 0
    new_file_size: int = 0
    old_payload_size: int = 0
    new_payload_size: int = 0
    dry_run: bool = False
    error: Optional[Exception] = None
    audit: Optional[MutationAudit] = None


# ═══════════════════════════════════════════════════════════════════════════════
# WRITER
# ═══════════════════════════════════════════════════════════════════════════════

class AppInfoWriter:
    """
    Patches the ufs section of one record in an appinfo.vdf file.

    Usage:
        writer = AppInfoWriter(path)
        result = writer.patch(570, [SaveRule("WinMyDocuments", "My Games/Dota")], [])
    """

    def __init__(self, path: PathLike,
                 backups: Optional[BackupManager] = None,
                 pipeline: Optional[MutationPipeline] = None,
                 keep_backups: int = 0):
        self.path = Path(path)
        self.backups = backups or BackupManager()
        self.pipeline = pipeline or MutationPipeline(MutationMode.MUTATE)
        self.keep_backups = keep_backups

    def build(self, app_id: int, savefiles: List[SaveRule],
              rootoverrides: List[RootOverride]) -> PatchPlan:
        """
        Compute the patched file image without writing anything.

        Raises AppInfoError subclasses on any read or format problem.
        """
        info = AppInfoFile.read(self.path)
        version = info.version
        record = info.find_record(app_id)

        # Work on a copy so the loaded table stays as read
        table = None
        if uses_string_table(version):
            table = StringTable(info.string_table)
        before = len(table) if table is not None else 0

        located = info.locate(record, table)
        savefiles_block = encode_savefiles_block(savefiles, version, table)
        rootoverrides_block = encode_rootoverrides_block(rootoverrides, version, table)
        payload = splice_ufs(record.payload, located, savefiles_block, rootoverrides_block, version, table)

        new_record = info.with_payload(record, payload, table)
        data = info.rebuild(new_record, table)

        new_keys = table.strings[before:] if table is not None else []
        logger.debug(
            "App %d: payload %d -> %d bytes, %d new keys",
            app_id, len(record.payload), len(payload), len(new_keys),
        )
        return PatchPlan(
            app_id=app_id,
            old_record=record,
            new_record=new_record,
            located=located,
            old_size=len(info.data),
            data=data,
            string_table=table,
            new_keys=new_keys,
        )

    def patch(self, app_id: int, savefiles: List[SaveRule],
              rootoverrides: List[RootOverride], reason: str = "") -> PatchResult:
        """
        Replace app_id's savefiles and rootoverrides.

        Never raises for AppInfoError or OSError; failures are folded into the
        returned PatchResult and the original file is left untouched.
        """
        result = PatchResult(False, "", app_id=app_id, path=str(self.path))
        try:
            plan = self.build(app_id, savefiles, rootoverrides)
        except (AppInfoError, OSError) as e:
            logger.error("Patch of app %d failed: %s", app_id, e)
            result.message = str(e)
            result.error = e
            return result

        result.old_file_size = plan.old_size
        result.new_file_size = len(plan.data)
        result.old_payload_size = len(plan.old_record.payload)
        result.new_payload_size = len(plan.new_record.payload)

        request = MutationRequest(
            target_id=app_id,
            target_file=str(self.path),
            diffs=plan.diffs(),
            reason=reason or f"Set ufs for app {app_id}",
        )

        def commit():
            result.backup_path = self._backup()
            self._write(plan.data)

        audit = self.pipeline.propose(request, commit)
        result.audit = audit

        if audit.result == MutationResult.SUCCESS:
            result.success = True
            result.message = (
                f"Patched app {app_id}: record payload {result.old_payload_size} -> "
                f"{result.new_payload_size} bytes"
            )
            logger.info("%s (backup %s)", result.message, result.backup_path)
            self._prune()
        elif audit.result == MutationResult.PREVIEW_ONLY:
            result.success = True
            result.dry_run = True
            result.message = f"Dry run: would write {result.new_file_size} bytes (was {result.old_file_size})"
            logger.info(result.message)
        else:
            result.error = audit.error
            result.message = "; ".join(audit.risk_notes) or audit.result.value
            logger.error("Patch of app %d not applied: %s", app_id, result.message)
        return result

    def _backup(self) -> str:
        op = self.backups.backup(self.path, reason="before ufs patch")
        if not op.success:
            raise AppInfoIOError(op.message, self.path)
        return op.backup_path

    def _write(self, data: bytes):
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp, 'wb') as f:
                f.write(data)
            os.replace(tmp, self.path)
        except OSError as e:
            if tmp.exists():
                tmp.unlink()
            raise AppInfoIOError(f"Cannot write {self.path}: {e}", self.path) from e

    def _prune(self):
        if self.keep_backups <= 0:
            return
        # The patch is already on disk; a failed prune only leaves extra backups
        try:
            self.backups.prune(self.path, self.keep_backups)
        except OSError as e:
            logger.warning("Could not prune backups of %s: %s", self.path, e)


# ═══════════════════════════════════════════════════════════════════════════════
# BACKGROUND
# ═══════════════════════════════════════════════════════════════════════════════

def patch_in_background(writer: AppInfoWriter, app_id: int,
                        savefiles: List[SaveRule], rootoverrides: List[RootOverride],
                        on_done: Callable[[PatchResult], None]) -> threading.Thread:
    """Run writer.patch() on a daemon thread; on_done always receives a PatchResult."""
    def worker():
        try:
            result = writer.patch(app_id, savefiles, rootoverrides)
        except Exception as e:
            logger.exception("Background patch of app %d failed", app_id)
            result = PatchResult(False, str(e), app_id=app_id, path=str(writer.path), error=e)
        on_done(result)

    thread = threading.Thread(target=worker, name=f"ufs-patch-{app_id}", daemon=True)
    thread.start()
    return thread
