"""
Record checksums.

Each record carries two SHA-1 digests:
  - binary: over the raw tree payload (v28+)
  - text:   over a pseudo-text rendering of the same tree

The text form has to match the Steam client byte for byte. Line breaks and
the tabs between key and value are the two-character escape sequences
backslash-n and backslash-t, not control characters. Indentation is real
tab characters. Every backslash in the finished text is then doubled.
"""

import hashlib
from typing import List, Optional, TYPE_CHECKING

from ...utils.binary import IoBuffer
from .base import NodeType, read_key

if TYPE_CHECKING:
    from .string_table import StringTable

_NL = "\\n"
_SEP = "\\t\\t"


def binary_checksum(payload: bytes) -> bytes:
    """SHA-1 of the tree bytes."""
    return hashlib.sha1(payload).digest()


def _render_level(io: IoBuffer, version: int, string_table, depth: int, out: List[str]):
    indent = "\t" * depth
    while io.has_more:
        tag = io.read_uint8()
        if tag == NodeType.SECTION_END:
            return

        key = read_key(io, version, string_table)

        if tag == NodeType.SECTION:
            out.append(f'{indent}"{key}"{_NL}')
            out.append(f'{indent}{{{_NL}')
            _render_level(io, version, string_table, depth + 1, out)
            out.append(f'{indent}}}{_NL}')
        elif tag == NodeType.STRING:
            value = io.read_cstring()
            out.append(f'{indent}"{key}"{_SEP}"{value}"{_NL}')
        elif tag == NodeType.INT32:
            out.append(f'{indent}"{key}"{_SEP}"{io.read_int32()}"{_NL}')
        elif tag == NodeType.INT64:
            # Read unsigned, as the client does
            out.append(f'{indent}"{key}"{_SEP}"{io.read_uint64()}"{_NL}')
        # Unknown tags: key consumed, nothing rendered


def render_text(payload: bytes, version: int, string_table: Optional['StringTable'] = None) -> str:
    """Pseudo-text rendering of a tree payload, before backslash doubling."""
    io = IoBuffer.from_bytes(payload)
    out: List[str] = []
    _render_level(io, version, string_table, 0, out)
    return "".join(out)


def text_checksum(payload: bytes, version: int, string_table: Optional['StringTable'] = None) -> bytes:
    """SHA-1 of the rendered text with every backslash doubled."""
    text = render_text(payload, version, string_table).replace("\\", "\\\\")
    return hashlib.sha1(text.encode("utf-8", errors="surrogateescape")).digest()
