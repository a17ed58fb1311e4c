"""
Editable VDF-text form of a ufs configuration.

    "ufs"
    {
        "savefiles"
        {
            "0"
            {
                "root" "WinMyDocuments"
                "path" "My Games/Example"
                ...

entries_to_ufs_text() writes it, parse_ufs_text() reads it back. The parser
is forgiving: unknown keys are ignored and a missing closing brace just
ends the section.
"""

import re
from typing import List, Optional, Tuple, Union

from ..formats.appinfo.encoders import is_all_platforms, platforms_to_oslist
from ..formats.appinfo.locator import ROOTOVERRIDES_KEY, SAVEFILES_KEY, UFS_KEY
from ..formats.appinfo.ufs_entries import PathTransform, RootOverride, SaveRule

INDENT = "    "

# Quoted string (with \" escapes), a brace, or a bare word
_TOKEN_RE = re.compile(r'"((?:[^"\\]|\\.)*)"|([{}])|([^\s{}"]+)')

# A parsed section: ordered (key, value) pairs where value is str or another section
Section = List[Tuple[str, Union[str, 'Section']]]


def _kv(depth: int, key: str, value: str) -> str:
    return f'{INDENT * depth}"{key}" "{value}"'


def _open(depth: int, key: str) -> List[str]:
    return [f'{INDENT * depth}"{key}"', f'{INDENT * depth}{{']


def _close(depth: int) -> str:
    return f'{INDENT * depth}}}'


def entries_to_ufs_text(savefiles: List[SaveRule], overrides: List[RootOverride]) -> str:
    """Render entries as ufs VDF text, numbering children from 0."""
    lines = _open(0, UFS_KEY)

    if savefiles:
        lines += _open(1, SAVEFILES_KEY)
        for i, rule in enumerate(savefiles):
            lines += _open(2, str(i))
            lines.append(_kv(3, "root", rule.root))
            lines.append(_kv(3, "path", rule.path))
            lines.append(_kv(3, "pattern", rule.pattern))
            lines.append(_kv(3, "recursive", "1" if rule.recursive else "0"))
            if not is_all_platforms(rule.platforms):
                oslist = platforms_to_oslist(rule.platforms)
                if oslist:
                    lines.append(_kv(3, "platforms", oslist))
            lines.append(_close(2))
        lines.append(_close(1))

    if overrides:
        lines += _open(1, ROOTOVERRIDES_KEY)
        for i, override in enumerate(overrides):
            lines += _open(2, str(i))
            lines.append(_kv(3, "root", override.original_root))
            lines.append(_kv(3, "os", override.os))
            lines.append(_kv(3, "oscompare", "="))
            lines.append(_kv(3, "useinstead", override.new_root))
            if override.path_transforms:
                lines += _open(3, "pathtransforms")
                for j, transform in enumerate(override.path_transforms):
                    lines += _open(4, str(j))
                    lines.append(_kv(5, "find", transform.find))
                    lines.append(_kv(5, "replace", transform.replace))
                    lines.append(_close(4))
                lines.append(_close(3))
            elif override.add_path:
                lines.append(_kv(3, "addpath", override.add_path))
            lines.append(_close(2))
        lines.append(_close(1))

    lines.append(_close(0))
    return "\n".join(lines)


_OPEN = ("brace", "{")
_CLOSE = ("brace", "}")


def _tokenize(text: str) -> List[Tuple[str, str]]:
    tokens = []
    for quoted, brace, bare in _TOKEN_RE.findall(text):
        if brace:
            tokens.append(("brace", brace))
        elif bare:
            tokens.append(("word", bare))
        else:
            tokens.append(("word", quoted.replace('\\"', '"')))
    return tokens


def _parse_section(tokens: List[Tuple[str, str]], pos: int) -> Tuple[Section, int]:
    items: Section = []
    while pos < len(tokens):
        token = tokens[pos]
        if token == _CLOSE:
            return items, pos + 1
        if token == _OPEN:
            # Stray brace without a key
            _, pos = _parse_section(tokens, pos + 1)
            continue
        key = token[1]
        pos += 1
        if pos < len(tokens) and tokens[pos] == _OPEN:
            child, pos = _parse_section(tokens, pos + 1)
            items.append((key, child))
        elif pos < len(tokens) and tokens[pos] != _CLOSE:
            items.append((key, tokens[pos][1]))
            pos += 1
    return items, pos


def _find(section: Section, key: str) -> Optional[Section]:
    """First subsection named key, searched depth first."""
    for k, v in section:
        if isinstance(v, list):
            if k == key:
                return v
            found = _find(v, key)
            if found is not None:
                return found
    return None


def _numbered(section: Optional[Section]) -> List[Section]:
    if section is None:
        return []
    return [v for k, v in section if isinstance(v, list) and k.isascii() and k.isdigit()]


def _value(section: Section, key: str, default: str = "") -> str:
    for k, v in section:
        if k == key and isinstance(v, str):
            return v
    return default


def parse_ufs_text(text: str) -> Tuple[List[SaveRule], List[RootOverride]]:
    """Read savefiles and rootoverrides back out of ufs VDF text."""
    root, _ = _parse_section(_tokenize(text), 0)

    savefiles = []
    for entry in _numbered(_find(root, SAVEFILES_KEY)):
        platforms = [p.strip() for p in _value(entry, "platforms").split(",") if p.strip()]
        savefiles.append(SaveRule(
            root=_value(entry, "root"),
            path=_value(entry, "path"),
            pattern=_value(entry, "pattern", "*"),
            platforms=platforms or ["all"],
            recursive=_value(entry, "recursive", "1") != "0",
        ))

    overrides = []
    for entry in _numbered(_find(root, ROOTOVERRIDES_KEY)):
        transforms = _numbered(_find(entry, "pathtransforms"))
        overrides.append(RootOverride(
            original_root=_value(entry, "root"),
            os=_value(entry, "os"),
            new_root=_value(entry, "useinstead"),
            add_path=_value(entry, "addpath"),
            path_transforms=[
                PathTransform(find=_value(t, "find"), replace=_value(t, "replace"))
                for t in transforms
            ],
        ))

    return savefiles, overrides
