"""
Section Encoders - serialize savefiles / rootoverrides entries into binary
KeyValues nodes.

Every child section is keyed by its position ("0", "1", ...). Numbering is
dense from 0 in emission order; whatever indices the file held before are
not continued.
"""

from typing import Iterable, List, Optional, TYPE_CHECKING

from ...utils.binary import IoWriter
from .base import NodeType, write_key
from .locator import ROOTOVERRIDES_KEY, SAVEFILES_KEY
from .ufs_entries import RootOverride, SaveRule

if TYPE_CHECKING:
    from .string_table import StringTable


# Canonical oslist tokens, matched by case-insensitive substring, first hit wins
_PLATFORM_MATCHERS = (
    ("windows", ("win",)),
    ("macos", ("mac", "osx")),
    ("linux", ("linux",)),
)

ALL_PLATFORMS = "all"
OSCOMPARE_EQUALS = "="


def canonical_platform(token: str) -> Optional[str]:
    """Map a free-form platform name to windows/macos/linux, or None."""
    lowered = token.lower()
    for canonical, needles in _PLATFORM_MATCHERS:
        if any(n in lowered for n in needles):
            return canonical
    return None


def platforms_to_oslist(platforms: Iterable[str]) -> str:
    """
    Comma-joined canonical platform list.

    ["Windows", "Mac OSX"] -> "windows,macos"; duplicates collapse and
    unrecognized tokens are dropped.
    """
    seen: List[str] = []
    for token in platforms:
        canonical = canonical_platform(token)
        if canonical and canonical not in seen:
            seen.append(canonical)
    return ",".join(seen)


def is_all_platforms(platforms: List[str]) -> bool:
    return not platforms or any(p.strip().lower() == ALL_PLATFORMS for p in platforms)


def _write_section(writer: IoWriter, key: str, version: int, string_table):
    writer.write_byte(NodeType.SECTION)
    write_key(writer, key, version, string_table)


def _write_string(writer: IoWriter, key: str, value: str, version: int, string_table):
    writer.write_byte(NodeType.STRING)
    write_key(writer, key, version, string_table)
    writer.write_cstring(value)


def _write_end(writer: IoWriter):
    writer.write_byte(NodeType.SECTION_END)


def encode_save_rule(rule: SaveRule, index: int, version: int,
                     string_table: Optional['StringTable'] = None) -> bytes:
    """Encode one savefiles child: root, path, pattern[, platforms]."""
    writer = IoWriter()
    _write_section(writer, str(index), version, string_table)
    _write_string(writer, "root", rule.root, version, string_table)
    _write_string(writer, "path", rule.path, version, string_table)
    _write_string(writer, "pattern", rule.pattern, version, string_table)
    if not is_all_platforms(rule.platforms):
        oslist = platforms_to_oslist(rule.platforms)
        if oslist:
            _write_string(writer, "platforms", oslist, version, string_table)
    _write_end(writer)
    return writer.getvalue()


def encode_root_override(override: RootOverride, index: int, version: int,
                         string_table: Optional['StringTable'] = None) -> bytes:
    """
    Encode one rootoverrides child.

    Tail is either a pathtransforms section or an addpath string, never both;
    transforms take precedence.
    """
    writer = IoWriter()
    _write_section(writer, str(index), version, string_table)
    _write_string(writer, "root", override.original_root, version, string_table)
    _write_string(writer, "os", override.os, version, string_table)
    _write_string(writer, "oscompare", OSCOMPARE_EQUALS, version, string_table)
    _write_string(writer, "useinstead", override.new_root, version, string_table)

    if override.path_transforms:
        _write_section(writer, "pathtransforms", version, string_table)
        for i, transform in enumerate(override.path_transforms):
            _write_section(writer, str(i), version, string_table)
            _write_string(writer, "find", transform.find, version, string_table)
            _write_string(writer, "replace", transform.replace, version, string_table)
            _write_end(writer)
        _write_end(writer)
    elif override.add_path:
        _write_string(writer, "addpath", override.add_path, version, string_table)

    _write_end(writer)
    return writer.getvalue()


def encode_savefiles_block(rules: List[SaveRule], version: int,
                           string_table: Optional['StringTable'] = None) -> bytes:
    """Whole "savefiles" section, or b"" when there are no rules."""
    if not rules:
        return b""
    writer = IoWriter()
    _write_section(writer, SAVEFILES_KEY, version, string_table)
    for i, rule in enumerate(rules):
        writer.write_bytes(encode_save_rule(rule, i, version, string_table))
    _write_end(writer)
    return writer.getvalue()


def encode_rootoverrides_block(overrides: List[RootOverride], version: int,
                               string_table: Optional['StringTable'] = None) -> bytes:
    """Whole "rootoverrides" section, or b"" when there are no overrides."""
    if not overrides:
        return b""
    writer = IoWriter()
    _write_section(writer, ROOTOVERRIDES_KEY, version, string_table)
    for i, override in enumerate(overrides):
        writer.write_bytes(encode_root_override(override, i, version, string_table))
    _write_end(writer)
    return writer.getvalue()


def encode_section_header(key: str, version: int, string_table: Optional['StringTable'] = None) -> bytes:
    """Section tag plus key, with no children and no SectionEnd."""
    writer = IoWriter()
    _write_section(writer, key, version, string_table)
    return writer.getvalue()
