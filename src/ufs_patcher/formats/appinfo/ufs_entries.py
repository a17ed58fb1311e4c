"""
ufs entry types - what the caller wants Steam Cloud to sync.

These mirror the children of an app's "ufs" section:

  "ufs"
  {
      "savefiles"      { "0" { root, path, pattern, platforms } ... }
      "rootoverrides"  { "0" { root, os, oscompare, useinstead, addpath|pathtransforms } ... }
  }
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

_TRUE_WORDS = ("1", "true", "yes", "on")
_FALSE_WORDS = ("0", "false", "no", "off", "")


def parse_bool(value, default: bool = True) -> bool:
    """JSON / VDF flag: bools, 0/1, or words like "false"."""
    if value is None:
        return default
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError(f"Not a boolean: {value!r}")
    return bool(value)


@dataclass
class SaveRule:
    """One savefiles entry."""
    root: str = ""
    path: str = ""
    pattern: str = "*"
    platforms: List[str] = field(default_factory=list)
    recursive: bool = True

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'SaveRule':
        platforms = data.get('platforms') or []
        if isinstance(platforms, str):
            platforms = [p.strip() for p in platforms.split(',') if p.strip()]
        return cls(
            root=str(data.get('root', '')),
            path=str(data.get('path', '')),
            pattern=str(data.get('pattern', '*')),
            platforms=list(platforms),
            recursive=parse_bool(data.get('recursive'), True),
        )


def _transform_items(data: Dict) -> List[Dict]:
    items = data.get('path_transforms', data.get('pathtransforms', [])) or []
    if not isinstance(items, list) or not all(isinstance(t, dict) for t in items):
        raise ValueError("path_transforms must be a list of {find, replace} objects")
    return items


@dataclass
class PathTransform:
    """find/replace applied to a path under an overridden root."""
    find: str = ""
    replace: str = ""


@dataclass
class RootOverride:
    """
    One rootoverrides entry.

    add_path and path_transforms are mutually exclusive on disk; when both are
    set the transforms win.
    """
    original_root: str = ""
    os: str = ""
    new_root: str = ""
    add_path: str = ""
    path_transforms: List[PathTransform] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'RootOverride':
        return cls(
            original_root=str(data.get('original_root', data.get('root', ''))),
            os=str(data.get('os', '')),
            new_root=str(data.get('new_root', data.get('useinstead', ''))),
            add_path=str(data.get('add_path', data.get('addpath', ''))),
            path_transforms=[
                PathTransform(find=str(t.get('find', '')), replace=str(t.get('replace', '')))
                for t in _transform_items(data)
            ],
        )


@dataclass
class UfsConfig:
    """Current ufs configuration of one app, as read from appinfo.vdf."""
    app_id: int = 0
    quota: int = 0
    maxnumfiles: int = 0
    savefiles: List[SaveRule] = field(default_factory=list)
    rootoverrides: List[RootOverride] = field(default_factory=list)
    raw_text: str = ""
    found: bool = False

    # Highest numeric child keys seen in the file (None when the section is absent)
    savefiles_max_index: Optional[int] = None
    rootoverrides_max_index: Optional[int] = None

    def to_dict(self) -> Dict:
        data = asdict(self)
        data.pop('raw_text')
        return data
