"""
Mutation Pipeline - Write Barrier Layer

Every write to appinfo.vdf goes through a pipeline that can:
  - validate
  - diff
  - reject
  - keep an audit trail

Pipelines are plain objects handed to the writer; there is no shared
instance.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from ..errors import AppInfoError

logger = logging.getLogger(__name__)


class MutationMode(Enum):
    """Mutation modes with increasing write access."""
    INSPECT = "inspect"     # Read-only, no writes possible
    PREVIEW = "preview"     # Build and diff, no backup, no write
    MUTATE = "mutate"       # Full write with audit


class MutationResult(Enum):
    """Result of attempting a mutation."""
    SUCCESS = "success"
    REJECTED_SAFETY = "rejected_safety"
    REJECTED_VALIDATION = "rejected_validation"
    PREVIEW_ONLY = "preview_only"
    COMMIT_FAILED = "commit_failed"


@dataclass
class MutationDiff:
    """One proposed change."""
    field_path: str         # e.g. "record.size" or "ufs.savefiles"
    old_value: Any
    new_value: Any
    display_old: str = ""
    display_new: str = ""

    def __str__(self) -> str:
        old = self.display_old or self.old_value
        new = self.display_new or self.new_value
        return f"{self.field_path}: {old} -> {new}"


@dataclass
class MutationRequest:
    """A request to replace one record's ufs section."""

    target_id: int          # app id
    target_file: str

    diffs: List[MutationDiff] = field(default_factory=list)
    reason: str = ""

    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class MutationAudit:
    """Audit record for a mutation."""
    request: MutationRequest
    result: MutationResult
    risk_notes: List[str] = field(default_factory=list)
    approved_by: str = ""   # "auto" or "preview"
    commit_time: Optional[datetime] = None
    error: Optional[Exception] = None

    @property
    def committed(self) -> bool:
        return self.result == MutationResult.SUCCESS


Validator = Callable[[MutationRequest], Tuple[bool, str]]


class MutationPipeline:
    """
    The Write Barrier Layer.

    propose() takes the request plus a commit callable. The callable only
    runs in MUTATE mode and only after every validator has accepted.
    """

    def __init__(self, mode: MutationMode = MutationMode.MUTATE):
        self.mode = mode
        self.history: List[MutationAudit] = []
        self.validators: List[Validator] = []
        self.commit_hooks: List[Callable[[MutationRequest, MutationAudit], None]] = []

    # ─────────────────────────────────────────────────────────────
    # MODE CONTROL
    # ─────────────────────────────────────────────────────────────

    def set_mode(self, mode: MutationMode):
        self.mode = mode

    def is_writable(self) -> bool:
        return self.mode == MutationMode.MUTATE

    def is_preview(self) -> bool:
        return self.mode == MutationMode.PREVIEW

    # ─────────────────────────────────────────────────────────────
    # MUTATION FLOW
    # ─────────────────────────────────────────────────────────────

    def propose(self, request: MutationRequest, commit: Optional[Callable[[], None]] = None) -> MutationAudit:
        """
        Propose a mutation. Returns audit with result.

        INSPECT: rejected
        PREVIEW: validated, diff recorded, nothing written
        MUTATE:  validated, then commit() is called
        """
        audit = MutationAudit(request=request, result=MutationResult.REJECTED_SAFETY)

        if self.mode == MutationMode.INSPECT:
            audit.risk_notes.append("Mode is INSPECT - no writes allowed")
            return self._record(audit)

        for validator in self.validators:
            try:
                valid, reason = validator(request)
            except Exception as e:
                audit.result = MutationResult.REJECTED_VALIDATION
                audit.error = e
                audit.risk_notes.append(f"Validator error: {e!r}")
                return self._record(audit)
            if not valid:
                audit.result = MutationResult.REJECTED_VALIDATION
                audit.risk_notes.append(f"Validation failed: {reason}")
                return self._record(audit)

        if self.mode == MutationMode.PREVIEW:
            audit.result = MutationResult.PREVIEW_ONLY
            audit.approved_by = "preview"
            return self._record(audit)

        if commit is not None:
            try:
                commit()
            except (AppInfoError, OSError) as e:
                audit.result = MutationResult.COMMIT_FAILED
                audit.error = e
                audit.risk_notes.append(f"Commit failed: {e}")
                return self._record(audit)

        audit.result = MutationResult.SUCCESS
        audit.approved_by = "auto"
        audit.commit_time = datetime.now()
        for hook in self.commit_hooks:
            hook(request, audit)
        return self._record(audit)

    def _record(self, audit: MutationAudit) -> MutationAudit:
        self.history.append(audit)
        logger.debug("Mutation of app %s: %s", audit.request.target_id, audit.result.value)
        return audit

    # ─────────────────────────────────────────────────────────────
    # AUDIT
    # ─────────────────────────────────────────────────────────────

    def get_history(self, limit: int = 50) -> List[MutationAudit]:
        """Get recent mutation history."""
        return self.history[-limit:]

    def export_audit_log(self) -> str:
        """Export audit log as JSON."""
        records = []
        for audit in self.history:
            records.append({
                'timestamp': audit.request.timestamp.isoformat(),
                'app_id': audit.request.target_id,
                'file': audit.request.target_file,
                'result': audit.result.value,
                'diffs': [str(d) for d in audit.request.diffs],
                'notes': audit.risk_notes,
            })
        return json.dumps(records, indent=2)

    # ─────────────────────────────────────────────────────────────
    # REGISTRATION
    # ─────────────────────────────────────────────────────────────

    def add_validator(self, fn: Validator):
        """Add a validation function returning (bool, reason)."""
        self.validators.append(fn)

    def add_commit_hook(self, fn: Callable[[MutationRequest, MutationAudit], None]):
        """Add a post-commit hook."""
        self.commit_hooks.append(fn)
