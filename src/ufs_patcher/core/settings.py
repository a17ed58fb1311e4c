"""
Settings - persisted user preferences (settings.json).

Lives in the per-user config directory:
  macOS    ~/Library/Application Support/ufs-patcher
  Windows  %LOCALAPPDATA%\\ufs-patcher
  other    $XDG_CONFIG_HOME/ufs-patcher or ~/.config/ufs-patcher
"""

import json
import logging
import os
import sys
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

APP_DIR_NAME = "ufs-patcher"
SETTINGS_FILENAME = "settings.json"
LOG_FILENAME = "ufs_patcher.log"


def settings_dir() -> Path:
    """Per-user directory for settings and the log file."""
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / APP_DIR_NAME
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA")
        return Path(base) / APP_DIR_NAME if base else home / "AppData" / "Local" / APP_DIR_NAME
    xdg = os.environ.get("XDG_CONFIG_HOME")
    return (Path(xdg) if xdg else home / ".config") / APP_DIR_NAME


@dataclass
class Settings:
    """User preferences."""
    steam_path: Optional[str] = None    # None = auto-detect
    backup_dir: Optional[str] = None    # None = next to appinfo.vdf
    log_level: str = "INFO"
    log_to_file: bool = False
    keep_backups: int = 10              # 0 = unlimited

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "Settings":
        """Create from dictionary; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


class SettingsManager:
    """Load and save Settings as JSON."""

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory) if directory else settings_dir()
        self.settings = Settings()

    @property
    def path(self) -> Path:
        return self.directory / SETTINGS_FILENAME

    @property
    def log_path(self) -> Path:
        return self.directory / LOG_FILENAME

    def load(self) -> Settings:
        """Read settings.json; a missing or unreadable file yields defaults."""
        if not self.path.exists():
            self.settings = Settings()
            return self.settings
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            self.settings = Settings()
            return self.settings

        self.settings = Settings.from_dict(data if isinstance(data, dict) else {})
        return self.settings

    def save(self, settings: Optional[Settings] = None) -> Path:
        """Write settings.json, creating the directory if needed."""
        if settings is not None:
            self.settings = settings
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(self.settings.to_dict(), f, indent=2)
        logger.debug("Saved settings to %s", self.path)
        return self.path
