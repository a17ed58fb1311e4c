"""
Read-only ufs reader.

Walks the ufs subtree of one record payload and returns a UfsConfig: the
savefiles / rootoverrides entries, quota and maxnumfiles, and a VDF-text
rendering for display. The payload is never modified.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

from ...utils.binary import IoBuffer
from .base import NodeType, read_key
from .locator import LocateResult, ROOTOVERRIDES_KEY, SAVEFILES_KEY, UFS_KEY, locate_ufs
from .ufs_entries import PathTransform, RootOverride, SaveRule, UfsConfig

if TYPE_CHECKING:
    from .string_table import StringTable

logger = logging.getLogger(__name__)

INDENT = "    "


class _Node:
    """Minimal parsed node; only used for the small ufs subtree."""
    __slots__ = ("tag", "key", "value", "children")

    def __init__(self, tag: int, key: str, value=None):
        self.tag = tag
        self.key = key
        self.value = value
        self.children: List['_Node'] = []

    def child(self, key: str) -> Optional['_Node']:
        for node in self.children:
            if node.key == key:
                return node
        return None

    def string(self, key: str, default: str = "") -> str:
        node = self.child(key)
        if node is None or node.tag == NodeType.SECTION:
            return default
        return str(node.value)


def _read_children(io: IoBuffer, version: int, string_table, parent: _Node):
    while io.has_more:
        pos = io.position
        tag = io.read_uint8()
        if tag == NodeType.SECTION_END:
            return
        key = read_key(io, version, string_table)
        if tag == NodeType.SECTION:
            node = _Node(tag, key)
            _read_children(io, version, string_table, node)
        elif tag == NodeType.STRING:
            node = _Node(tag, key, io.read_cstring())
        elif tag == NodeType.INT32:
            node = _Node(tag, key, io.read_int32())
        elif tag == NodeType.INT64:
            node = _Node(tag, key, io.read_uint64())
        else:
            logger.debug("Unknown node tag 0x%02X at offset %d in ufs (key %r)", tag, pos, key)
            continue
        parent.children.append(node)


def _render(node: _Node, depth: int, lines: List[str]):
    indent = INDENT * depth
    if node.tag == NodeType.SECTION:
        lines.append(f'{indent}"{node.key}"')
        lines.append(f'{indent}{{')
        for child in node.children:
            _render(child, depth + 1, lines)
        lines.append(f'{indent}}}')
    else:
        lines.append(f'{indent}"{node.key}" "{node.value}"')


def _is_index(key: str) -> bool:
    return key.isascii() and key.isdigit()


def _platform_list(node: Optional[_Node]) -> List[str]:
    """platforms is usually "windows,linux" but older apps use a subsection."""
    if node is None:
        return []
    if node.tag == NodeType.SECTION:
        return [str(c.value) for c in node.children if c.tag == NodeType.STRING and c.value]
    return [p.strip() for p in str(node.value).split(",") if p.strip()]


def _to_save_rule(node: _Node) -> SaveRule:
    recursive = node.string("recursive", "1")
    return SaveRule(
        root=node.string("root"),
        path=node.string("path"),
        pattern=node.string("pattern", "*"),
        platforms=_platform_list(node.child("platforms")),
        recursive=recursive != "0",
    )


def _to_root_override(node: _Node) -> RootOverride:
    override = RootOverride(
        original_root=node.string("root"),
        os=node.string("os"),
        new_root=node.string("useinstead"),
        add_path=node.string("addpath"),
    )
    transforms = node.child("pathtransforms")
    if transforms is not None and transforms.tag == NodeType.SECTION:
        override.path_transforms = [
            PathTransform(find=t.string("find"), replace=t.string("replace"))
            for t in transforms.children
            if t.tag == NodeType.SECTION
        ]
    return override


def read_ufs(payload: bytes, app_id: int, version: int,
             string_table: Optional['StringTable'] = None,
             located: Optional[LocateResult] = None) -> UfsConfig:
    """
    Parse the ufs subtree of a record payload.

    Returns UfsConfig(found=False) when the record has no ufs section.
    """
    if located is None:
        located = locate_ufs(payload, version, string_table)

    config = UfsConfig(
        app_id=app_id,
        savefiles_max_index=located.savefiles_max_index,
        rootoverrides_max_index=located.rootoverrides_max_index,
    )
    if not located.has_ufs:
        return config

    io = IoBuffer.from_bytes(payload)
    io.position = located.ufs_start + 1
    ufs = _Node(NodeType.SECTION, read_key(io, version, string_table))
    _read_children(io, version, string_table, ufs)
    config.found = True

    for node in ufs.children:
        if node.key in ("quota", "maxnumfiles") and node.tag in (NodeType.INT32, NodeType.INT64):
            setattr(config, node.key, int(node.value))
        elif node.key == SAVEFILES_KEY and node.tag == NodeType.SECTION:
            config.savefiles = [_to_save_rule(c) for c in node.children
                                if c.tag == NodeType.SECTION and _is_index(c.key)]
        elif node.key == ROOTOVERRIDES_KEY and node.tag == NodeType.SECTION:
            config.rootoverrides = [_to_root_override(c) for c in node.children
                                    if c.tag == NodeType.SECTION and _is_index(c.key)]

    lines: List[str] = []
    ufs.key = UFS_KEY
    _render(ufs, 0, lines)
    config.raw_text = "\n".join(lines)
    return config
