"""
Tree Mutator - copy / skip / insert.

Builds a new tree payload from the original bytes, the offsets found by
locate_ufs(), and freshly encoded savefiles / rootoverrides blocks. Bytes
outside the replaced subtrees are copied through unchanged.
"""

import logging
from typing import Optional, TYPE_CHECKING

from ...errors import FormatError
from .base import NodeType
from .encoders import encode_section_header
from .locator import LocateResult, UFS_KEY

if TYPE_CHECKING:
    from .string_table import StringTable

logger = logging.getLogger(__name__)


def splice_ufs(payload: bytes, located: LocateResult,
               savefiles_block: bytes, rootoverrides_block: bytes,
               version: int, string_table: Optional['StringTable'] = None) -> bytes:
    """
    Return payload with the ufs children replaced by the given blocks.

    Existing ufs: copy up to ufs_end while skipping the old savefiles and
    rootoverrides subtrees, append savefiles_block then rootoverrides_block,
    then copy from ufs_end (ufs's own SectionEnd onward).

    No ufs: a new ufs section holding both blocks goes in front of the
    record's closing SectionEnd.

    Empty blocks are simply not written, so passing b"" for one of them
    removes that subtree.
    """
    located.validate(len(payload))
    out = bytearray()

    if located.ufs_end is not None:
        pos = 0
        for start, end in located.skip_ranges():
            out += payload[pos:start]
            pos = end
        out += payload[pos:located.ufs_end]
        out += savefiles_block
        out += rootoverrides_block
        out += payload[located.ufs_end:]
        logger.debug("Replaced ufs children: %d -> %d bytes", len(payload), len(out))
    elif located.ufs_start is not None:
        raise FormatError("ufs section has a start but no end", located.ufs_start)
    elif located.record_end is not None:
        out += payload[:located.record_end]
        out += encode_section_header(UFS_KEY, version, string_table)
        out += savefiles_block
        out += rootoverrides_block
        out.append(NodeType.SECTION_END)
        out += payload[located.record_end:]
        logger.debug("Inserted new ufs section at offset %d", located.record_end)
    else:
        raise FormatError("No anchor for the ufs section in this record")

    return bytes(out)
