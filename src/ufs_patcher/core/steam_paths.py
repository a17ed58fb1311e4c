"""
Steam installation lookup and Steam Cloud root names.

find_steam_path() resolves the Steam base directory; appinfo.vdf lives at
<steam>/appcache/appinfo.vdf.
"""

import logging
import os
import sys
from enum import IntEnum
from pathlib import Path
from typing import List, Optional, Union

from ..errors import AppInfoIOError

logger = logging.getLogger(__name__)

STEAM_PATH_ENV = "STEAM_PATH"
APPINFO_RELATIVE = Path("appcache") / "appinfo.vdf"


class RootType(IntEnum):
    """Steam Cloud storage roots, by their numeric id in appinfo."""
    STEAM_REMOTE = 0
    GAME_INSTALL = 1
    DOCUMENTS = 2
    APPDATA_ROAMING = 3
    APPDATA_LOCAL = 4
    PICTURES = 5
    MUSIC = 6
    VIDEOS = 7          # also MacAppSupport
    DESKTOP = 8         # also LinuxXdgDataHome
    SAVED_GAMES = 9
    DOWNLOADS = 10
    PUBLIC_SHARED = 11
    APPDATA_LOCAL_LOW = 12


ROOT_NAMES = {
    "SteamCloudDocuments": RootType.STEAM_REMOTE,
    "GameInstall": RootType.GAME_INSTALL,
    "WinMyDocuments": RootType.DOCUMENTS,
    "WinAppDataRoaming": RootType.APPDATA_ROAMING,
    "WinAppDataLocal": RootType.APPDATA_LOCAL,
    "WinPictures": RootType.PICTURES,
    "WinMusic": RootType.MUSIC,
    "WinVideos": RootType.VIDEOS,
    "MacAppSupport": RootType.VIDEOS,
    "LinuxXdgDataHome": RootType.DESKTOP,
    "WinSavedGames": RootType.SAVED_GAMES,
    "WinDownloads": RootType.DOWNLOADS,
    "WinPublic": RootType.PUBLIC_SHARED,
    "WinAppDataLocalLow": RootType.APPDATA_LOCAL_LOW,
}


def root_name_to_type(name: str) -> Optional[RootType]:
    """Map a root name ("WinMyDocuments") or numeric id ("2") to RootType."""
    if name in ROOT_NAMES:
        return ROOT_NAMES[name]
    if name.isascii() and name.isdigit():
        value = int(name)
        if value <= max(RootType):
            return RootType(value)
    return None


def _looks_like_steam(path: Path) -> bool:
    return (path / "userdata").exists() or (path / "appcache").exists()


def _registry_steam_path() -> Optional[Path]:
    """InstallPath from the Windows registry, if present."""
    import winreg

    keys = [
        (winreg.HKEY_LOCAL_MACHINE, r"SOFTWARE\WOW6432Node\Valve\Steam", "InstallPath"),
        (winreg.HKEY_LOCAL_MACHINE, r"SOFTWARE\Valve\Steam", "InstallPath"),
        (winreg.HKEY_CURRENT_USER, r"SOFTWARE\Valve\Steam", "SteamPath"),
    ]
    for root, sub_key, value_name in keys:
        try:
            with winreg.OpenKey(root, sub_key) as key:
                value, _ = winreg.QueryValueEx(key, value_name)
        except OSError:
            continue
        if value:
            return Path(value)
    return None


def candidate_paths() -> List[Path]:
    """Platform default locations, most likely first."""
    candidates: List[Path] = []
    env = os.environ.get(STEAM_PATH_ENV)
    if env:
        candidates.append(Path(env))

    home = Path.home()
    if sys.platform == "win32":
        registry = _registry_steam_path()
        if registry:
            candidates.append(registry)
        for var in ("PROGRAMFILES(X86)", "PROGRAMFILES", "LOCALAPPDATA", "APPDATA"):
            base = os.environ.get(var)
            if base:
                candidates.append(Path(base) / "Steam")
    elif sys.platform == "darwin":
        candidates.append(home / "Library" / "Application Support" / "Steam")
    else:
        candidates += [
            home / ".steam" / "steam",
            home / ".local" / "share" / "Steam",
            home / ".var" / "app" / "com.valvesoftware.Steam" / ".local" / "share" / "Steam",
        ]
    return candidates


def find_steam_path(custom: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve the Steam installation directory.

    A configured custom path wins when it looks like a Steam install;
    otherwise STEAM_PATH and the platform defaults are tried in order.
    """
    if custom:
        custom = Path(custom).expanduser()
        if _looks_like_steam(custom):
            logger.debug("Using configured Steam path %s", custom)
            return custom
        logger.warning("Configured Steam path %s has no userdata or appcache; ignoring", custom)

    for path in candidate_paths():
        if _looks_like_steam(path):
            logger.debug("Found Steam at %s", path)
            return path

    raise AppInfoIOError(
        f"Steam installation not found. Set {STEAM_PATH_ENV} or pass --steam-path."
    )


def appinfo_path(steam_path: Union[str, Path]) -> Path:
    return Path(steam_path) / APPINFO_RELATIVE
