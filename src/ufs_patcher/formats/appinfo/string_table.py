"""
Key String Table (appinfo.vdf v29+)

Version 29 moved every tree key out of the records into one table at the end
of the file. Keys in the tree are then u32 indices into it.

Layout at the header-declared offset:
  - count (u32)
  - count NUL-terminated strings
"""

import logging
from typing import Dict, Iterable, List, Optional

from ...errors import FormatError
from ...utils.binary import IoBuffer, IoWriter

logger = logging.getLogger(__name__)

# Corruption guard: real tables hold a few thousand keys
MAX_STRINGS = 50_000


class StringTable:
    """
    Append-only interned string list with reverse lookup.

    Indices handed out are stable for the lifetime of the table, so one
    instance is threaded through a whole mutation pass.
    """

    def __init__(self, strings: Optional[Iterable[str]] = None):
        self._strings: List[str] = []
        self._index: Dict[str, int] = {}
        for s in strings or ():
            self._append(s)

    def _append(self, s: str) -> int:
        idx = len(self._strings)
        self._strings.append(s)
        # First occurrence wins if the file already has duplicates
        self._index.setdefault(s, idx)
        return idx

    def __len__(self) -> int:
        return len(self._strings)

    def __iter__(self):
        return iter(self._strings)

    def __contains__(self, s: str) -> bool:
        return s in self._index

    @property
    def strings(self) -> List[str]:
        return list(self._strings)

    def get(self, index: int) -> str:
        """String at index, or "" when out of range."""
        if 0 <= index < len(self._strings):
            return self._strings[index]
        return ""

    def index_of(self, s: str) -> Optional[int]:
        return self._index.get(s)

    def get_or_create(self, s: str) -> int:
        """Return the index of s, appending it first if it is new."""
        idx = self._index.get(s)
        if idx is None:
            idx = self._append(s)
            logger.debug("Interned new key %r at index %d", s, idx)
        return idx

    @classmethod
    def read(cls, io: IoBuffer) -> 'StringTable':
        """Read a count-prefixed table from the current position."""
        start = io.position
        count = io.read_uint32()
        if count > MAX_STRINGS:
            raise FormatError(f"String table claims {count} entries (max {MAX_STRINGS})", start)

        table = cls()
        for _ in range(count):
            if not io.has_more:
                raise FormatError(f"String table truncated after {len(table)} of {count} entries", io.position)
            # Raw bytes must round-trip exactly, so invalid UTF-8 is escaped, not dropped
            raw = io.read_cstring_bytes()
            table._append(raw.decode('utf-8', errors='surrogateescape'))
        return table

    @classmethod
    def from_bytes(cls, data: bytes, offset: int) -> 'StringTable':
        """Parse the table that starts at byte offset in data."""
        if offset >= len(data):
            raise FormatError(f"String table offset {offset} is past end of file ({len(data)} bytes)")
        io = IoBuffer.from_bytes(data)
        io.position = offset
        return cls.read(io)

    def to_bytes(self) -> bytes:
        writer = IoWriter()
        writer.write_uint32(len(self._strings))
        for s in self._strings:
            writer.write_cstring(s)
        return writer.getvalue()
