"""
appinfo.vdf format constants and header/record structures.

File layout (little-endian):
  Header:
    - magic (4 bytes)        0x07564427 / 28 / 29
    - universe (4 bytes)
    - string table offset (8 bytes, v29+)
  Records, repeated until app_id == 0:
    - app_id (4)
    - size (4)               bytes that follow this field
    - info_state (4)
    - last_updated (4)
    - access_token (8)
    - text checksum (20)     SHA-1 of the text rendering
    - change_number (4)
    - binary checksum (20)   SHA-1 of the tree bytes (v28+)
    - tree payload
  String table (v29+)
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, TYPE_CHECKING

from ...errors import FormatError, UnsupportedVersionError
from ...utils.binary import IoBuffer, IoWriter

if TYPE_CHECKING:
    from .string_table import StringTable


class NodeType(IntEnum):
    """Tag byte in front of every binary KeyValues node."""
    SECTION = 0x00
    STRING = 0x01
    INT32 = 0x02
    INT64 = 0x07
    SECTION_END = 0x08


MAGIC_TO_VERSION = {
    0x07564427: 27,
    0x07564428: 28,
    0x07564429: 29,
}
VERSION_TO_MAGIC = {v: m for m, v in MAGIC_TO_VERSION.items()}

CHECKSUM_SIZE = 20

# First version with a binary checksum in each record
BINARY_CHECKSUM_VERSION = 28
# First version with a trailing key string table
STRING_TABLE_VERSION = 29


def uses_string_table(version: int) -> bool:
    return version >= STRING_TABLE_VERSION


def record_header_size(version: int) -> int:
    """Bytes between the size field and the tree payload."""
    size = 4 + 4 + 8 + CHECKSUM_SIZE + 4
    if version >= BINARY_CHECKSUM_VERSION:
        size += CHECKSUM_SIZE
    return size


def read_key(io: IoBuffer, version: int, string_table: Optional['StringTable']) -> str:
    """Read a node key: inline C string, or a string table index on v29+."""
    if uses_string_table(version):
        idx = io.read_uint32()
        return string_table.get(idx) if string_table is not None else ""
    return io.read_cstring()


def write_key(writer: IoWriter, key: str, version: int, string_table: Optional['StringTable']):
    """Write a node key in the encoding the version expects."""
    if uses_string_table(version):
        if string_table is None:
            raise FormatError(f"Version {version} keys need a string table")
        writer.write_uint32(string_table.get_or_create(key))
    else:
        writer.write_cstring(key)


@dataclass
class AppInfoHeader:
    """Fixed file header."""
    magic: int = VERSION_TO_MAGIC[29]
    universe: int = 1
    string_table_offset: int = 0

    @property
    def version(self) -> int:
        return MAGIC_TO_VERSION[self.magic]

    @property
    def size(self) -> int:
        return 16 if uses_string_table(self.version) else 8

    @classmethod
    def read(cls, io: IoBuffer) -> 'AppInfoHeader':
        magic = io.read_uint32()
        # Reject unknown versions before touching anything else
        if magic not in MAGIC_TO_VERSION:
            raise UnsupportedVersionError(magic)
        header = cls(magic=magic, universe=io.read_uint32())
        if uses_string_table(header.version):
            header.string_table_offset = io.read_uint64()
        return header

    def to_bytes(self) -> bytes:
        writer = IoWriter()
        writer.write_uint32(self.magic)
        writer.write_uint32(self.universe)
        if uses_string_table(self.version):
            writer.write_uint64(self.string_table_offset)
        return writer.getvalue()


@dataclass
class AppRecord:
    """
    One application's entry. The tree payload is kept as raw bytes.

    start/end are file offsets of the whole record (app_id through payload).
    """
    app_id: int = 0
    size: int = 0
    info_state: int = 0
    last_updated: int = 0
    access_token: int = 0
    text_checksum: bytes = b"\x00" * CHECKSUM_SIZE
    change_number: int = 0
    binary_checksum: Optional[bytes] = None
    payload: bytes = b""

    start: int = 0
    end: int = 0

    @classmethod
    def read(cls, io: IoBuffer, version: int) -> 'AppRecord':
        """Read a full record at the current position (app_id already peeked by caller)."""
        record = cls(start=io.position)
        record.app_id = io.read_uint32()
        record.size = io.read_uint32()
        record.end = record.start + 8 + record.size
        if record.end > io.size:
            raise FormatError(
                f"Record for app {record.app_id} runs past end of file ({record.end} > {io.size})",
                record.start,
            )

        header_size = record_header_size(version)
        if record.size < header_size:
            raise FormatError(f"Record for app {record.app_id} too small ({record.size} bytes)", record.start)

        record.info_state = io.read_uint32()
        record.last_updated = io.read_uint32()
        record.access_token = io.read_uint64()
        record.text_checksum = io.read_bytes(CHECKSUM_SIZE)
        record.change_number = io.read_uint32()
        if version >= BINARY_CHECKSUM_VERSION:
            record.binary_checksum = io.read_bytes(CHECKSUM_SIZE)
        record.payload = io.read_bytes(record.size - header_size)
        return record

    def to_bytes(self, version: int) -> bytes:
        """Serialize; the size field is recomputed from the payload."""
        writer = IoWriter()
        writer.write_uint32(self.app_id)
        writer.write_uint32(record_header_size(version) + len(self.payload))
        writer.write_uint32(self.info_state)
        writer.write_uint32(self.last_updated)
        writer.write_uint64(self.access_token)
        writer.write_bytes(self.text_checksum)
        writer.write_uint32(self.change_number)
        if version >= BINARY_CHECKSUM_VERSION:
            writer.write_bytes(self.binary_checksum or b"\x00" * CHECKSUM_SIZE)
        writer.write_bytes(self.payload)
        return writer.getvalue()
