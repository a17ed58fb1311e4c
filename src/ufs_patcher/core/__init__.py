"""
Core operations for ufs_patcher.

- ufs_writer: patch one app's ufs section (build, back up, write)
- ufs_query: read-only "current config for app id"
- ufs_text: editable VDF-text form of a config
- mutation_pipeline: write barrier with validation and audit
- backup: timestamped backups with restore and prune
- steam_paths: Steam install lookup, root names
- settings: persisted preferences
"""

from .ufs_writer import AppInfoWriter, PatchPlan, PatchResult, patch_in_background
from .ufs_query import read_ufs_config, resolve_appinfo
from .ufs_text import entries_to_ufs_text, parse_ufs_text
from .mutation_pipeline import (
    MutationPipeline, MutationMode, MutationRequest, MutationDiff,
    MutationResult, MutationAudit,
)
from .backup import BackupManager, FileOpResult
from .steam_paths import RootType, find_steam_path, appinfo_path, root_name_to_type
from .settings import Settings, SettingsManager
from .log_setup import configure_logging

__all__ = [
    'AppInfoWriter', 'PatchPlan', 'PatchResult', 'patch_in_background',
    'read_ufs_config', 'resolve_appinfo',
    'entries_to_ufs_text', 'parse_ufs_text',
    'MutationPipeline', 'MutationMode', 'MutationRequest', 'MutationDiff',
    'MutationResult', 'MutationAudit',
    'BackupManager', 'FileOpResult',
    'RootType', 'find_steam_path', 'appinfo_path', 'root_name_to_type',
    'Settings', 'SettingsManager',
    'configure_logging',
]
