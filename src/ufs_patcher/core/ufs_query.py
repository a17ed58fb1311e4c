"""
Read-only ufs query.

read_ufs_config() returns an app's current savefiles / rootoverrides
(plus quota, maxnumfiles and a VDF-text rendering) without going near the
mutator or the write path.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..formats.appinfo import AppInfoFile, UfsConfig
from .steam_paths import appinfo_path, find_steam_path

logger = logging.getLogger(__name__)


def resolve_appinfo(appinfo: Optional[Union[str, Path]] = None,
                    steam_path: Optional[Union[str, Path]] = None) -> Path:
    """Explicit appinfo.vdf path, or the one under the detected Steam install."""
    if appinfo:
        return Path(appinfo).expanduser()
    return appinfo_path(find_steam_path(steam_path))


def read_ufs_config(app_id: int, appinfo: Optional[Union[str, Path]] = None,
                    steam_path: Optional[Union[str, Path]] = None) -> UfsConfig:
    """
    Current ufs configuration of app_id.

    Raises NotFoundError when the app has no record, and returns a config
    with found=False when the record has no ufs section.
    """
    path = resolve_appinfo(appinfo, steam_path)
    config = AppInfoFile.read(path).read_ufs(app_id)
    logger.debug(
        "App %d ufs: found=%s, %d savefiles, %d rootoverrides",
        app_id, config.found, len(config.savefiles), len(config.rootoverrides),
    )
    return config
