"""ufs_patcher formats package - file format parsers."""
from .appinfo import AppInfoFile, StringTable, SaveRule, RootOverride, PathTransform, UfsConfig

__all__ = [
    'AppInfoFile', 'StringTable',
    'SaveRule', 'RootOverride', 'PathTransform', 'UfsConfig',
]
