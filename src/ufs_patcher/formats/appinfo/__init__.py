"""appinfo.vdf format package - Steam's binary per-app metadata cache."""
from .appinfo_file import AppInfoFile, ChecksumReport
from .base import (
    NodeType, AppInfoHeader, AppRecord,
    MAGIC_TO_VERSION, VERSION_TO_MAGIC, record_header_size, uses_string_table,
)
from .string_table import StringTable
from .locator import LocateResult, locate_ufs
from .encoders import (
    platforms_to_oslist, encode_save_rule, encode_root_override,
    encode_savefiles_block, encode_rootoverrides_block,
)
from .mutator import splice_ufs
from .checksum import binary_checksum, render_text, text_checksum
from .tree_reader import read_ufs
from .ufs_entries import SaveRule, RootOverride, PathTransform, UfsConfig

__all__ = [
    'AppInfoFile', 'ChecksumReport',
    'NodeType', 'AppInfoHeader', 'AppRecord',
    'MAGIC_TO_VERSION', 'VERSION_TO_MAGIC', 'record_header_size', 'uses_string_table',
    'StringTable',
    'LocateResult', 'locate_ufs',
    'platforms_to_oslist', 'encode_save_rule', 'encode_root_override',
    'encode_savefiles_block', 'encode_rootoverrides_block',
    'splice_ufs',
    'binary_checksum', 'render_text', 'text_checksum',
    'read_ufs',
    'SaveRule', 'RootOverride', 'PathTransform', 'UfsConfig',
]
