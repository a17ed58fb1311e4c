"""ufs_patcher - edit the Steam Cloud ("ufs") section of Steam's appinfo.vdf."""
from .errors import (
    AppInfoError, AppInfoIOError, FormatError, UnsupportedVersionError,
    NotFoundError, EncodingError,
)
from .formats.appinfo import AppInfoFile, SaveRule, RootOverride, PathTransform, UfsConfig
from .core import AppInfoWriter, PatchResult, read_ufs_config

__version__ = "0.1.0"

__all__ = [
    'AppInfoError', 'AppInfoIOError', 'FormatError', 'UnsupportedVersionError',
    'NotFoundError', 'EncodingError',
    'AppInfoFile', 'SaveRule', 'RootOverride', 'PathTransform', 'UfsConfig',
    'AppInfoWriter', 'PatchResult', 'read_ufs_config',
]
