"""
Tree Locator - one forward scan over a record's tree payload.

Records byte offsets of the "ufs" subtree (a child of the record's root
section), its "savefiles" / "rootoverrides" children, and the record's own
closing SectionEnd. Nothing is materialized; offsets are all the mutator
needs to splice.

Unknown tag bytes only have their key consumed. The format gives no way to
size an unknown value, so a payload containing one will desynchronize the
scan exactly as it does in the Steam client's own readers.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, TYPE_CHECKING

from ...errors import FormatError
from ...utils.binary import IoBuffer
from .base import NodeType, read_key

if TYPE_CHECKING:
    from .string_table import StringTable

logger = logging.getLogger(__name__)

UFS_KEY = "ufs"
SAVEFILES_KEY = "savefiles"
ROOTOVERRIDES_KEY = "rootoverrides"

# Root section is depth 1, so "ufs" sits at depth 2
UFS_DEPTH = 2

_TRACKED_CHILDREN = (SAVEFILES_KEY, ROOTOVERRIDES_KEY)


@dataclass
class LocateResult:
    """
    Offsets into one tree payload.

    *_start is the offset of the Section tag byte, *_end the offset of the
    matching SectionEnd byte.
    """
    ufs_start: Optional[int] = None
    ufs_end: Optional[int] = None
    savefiles_start: Optional[int] = None
    savefiles_end: Optional[int] = None
    rootoverrides_start: Optional[int] = None
    rootoverrides_end: Optional[int] = None
    savefiles_max_index: Optional[int] = None
    rootoverrides_max_index: Optional[int] = None
    record_end: Optional[int] = None

    @property
    def has_ufs(self) -> bool:
        return self.ufs_start is not None

    def skip_ranges(self) -> List[Tuple[int, int]]:
        """
        Half-open byte ranges of the existing savefiles / rootoverrides
        subtrees, each including its own SectionEnd, sorted by start.
        """
        ranges = []
        if self.savefiles_start is not None and self.savefiles_end is not None:
            ranges.append((self.savefiles_start, self.savefiles_end + 1))
        if self.rootoverrides_start is not None and self.rootoverrides_end is not None:
            ranges.append((self.rootoverrides_start, self.rootoverrides_end + 1))
        return sorted(ranges)

    def validate(self, payload_len: int):
        """Check the offset invariants; raise FormatError on violation."""
        pairs = [
            (UFS_KEY, self.ufs_start, self.ufs_end),
            (SAVEFILES_KEY, self.savefiles_start, self.savefiles_end),
            (ROOTOVERRIDES_KEY, self.rootoverrides_start, self.rootoverrides_end),
        ]
        for name, start, end in pairs:
            if start is None or end is None:
                continue
            if not start < end < payload_len:
                raise FormatError(f"Bad '{name}' range {start}..{end} in {payload_len}-byte payload")

        ranges = self.skip_ranges()
        if ranges and (self.ufs_start is None or self.ufs_end is None):
            raise FormatError("Child sections located without an enclosing ufs section")
        for start, end in ranges:
            if not (self.ufs_start < start and end <= self.ufs_end):
                raise FormatError(f"Skip range {start}..{end} outside ufs {self.ufs_start}..{self.ufs_end}")
        if len(ranges) == 2 and ranges[0][1] > ranges[1][0]:
            raise FormatError(f"Overlapping skip ranges {ranges}")


def locate_ufs(payload: bytes, version: int, string_table: Optional['StringTable'] = None) -> LocateResult:
    """
    Scan payload once and return the located offsets.

    Raises FormatError when a tracked section never closes or when there is
    neither a ufs section nor a record end to splice into.
    """
    io = IoBuffer.from_bytes(payload)
    result = LocateResult()
    depth = 0
    # name -> depth at which the tracked section was opened
    open_depth = {}

    while io.has_more:
        pos = io.position
        tag = io.read_uint8()

        if tag == NodeType.SECTION_END:
            depth -= 1
            for name in list(open_depth):
                if depth < open_depth[name]:
                    setattr(result, f"{name}_end", pos)
                    del open_depth[name]
            if depth == 0:
                result.record_end = pos
            continue

        key = read_key(io, version, string_table)

        if tag == NodeType.SECTION:
            depth += 1
            if depth == UFS_DEPTH and key == UFS_KEY and result.ufs_start is None:
                result.ufs_start = pos
                open_depth[UFS_KEY] = depth
            elif (UFS_KEY in open_depth and depth == open_depth[UFS_KEY] + 1
                  and key in _TRACKED_CHILDREN and getattr(result, f"{key}_start") is None):
                setattr(result, f"{key}_start", pos)
                open_depth[key] = depth
            else:
                for child in _TRACKED_CHILDREN:
                    if child in open_depth and depth == open_depth[child] + 1 and key.isascii() and key.isdigit():
                        attr = f"{child}_max_index"
                        current = getattr(result, attr)
                        if current is None or int(key) > current:
                            setattr(result, attr, int(key))
        elif tag == NodeType.STRING:
            io.skip_cstring()
        elif tag == NodeType.INT32:
            io.skip(4)
        elif tag == NodeType.INT64:
            io.skip(8)
        else:
            logger.debug("Unknown node tag 0x%02X at offset %d (key %r)", tag, pos, key)

    if open_depth:
        name = next(iter(open_depth))
        raise FormatError(f"'{name}' section has no matching SectionEnd", getattr(result, f"{name}_start"))
    if result.ufs_start is None and result.record_end is None:
        raise FormatError("No ufs section and no record end found; nothing to splice into")

    logger.debug("Located %s", result)
    return result
