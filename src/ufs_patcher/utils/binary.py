"""Little-endian binary I/O utilities for appinfo.vdf parsing."""

import logging
import struct
from io import BytesIO
from typing import BinaryIO

from ..errors import EncodingError, FormatError

logger = logging.getLogger(__name__)


def decode_utf8(raw: bytes, strict: bool = False) -> str:
    """
    Decode UTF-8 text read from the file.

    Lenient mode degrades invalid bytes to an empty string, which is what the
    Steam client's own re-serializer sees for such values.
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        if strict:
            raise EncodingError(f"Invalid UTF-8 in string {raw[:32]!r}: {e}") from e
        logger.debug("Non-UTF-8 string %r degraded to empty", raw[:32])
        return ""


class IoBuffer:
    """Binary reader over an in-memory stream. All fields are little-endian."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.stream.seek(0, 2)
        self._size = self.stream.tell()
        self.stream.seek(0)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'IoBuffer':
        """Create from bytes."""
        return cls(BytesIO(data))

    @property
    def position(self) -> int:
        """Current position in stream."""
        return self.stream.tell()

    @position.setter
    def position(self, value: int):
        """Seek to position."""
        self.stream.seek(value)

    @property
    def size(self) -> int:
        return self._size

    @property
    def remaining(self) -> int:
        return max(0, self._size - self.stream.tell())

    @property
    def has_more(self) -> bool:
        """Check if there are more bytes to read."""
        return self.stream.tell() < self._size

    def has_bytes(self, num_bytes: int) -> bool:
        """Check if there are at least num_bytes remaining."""
        return self.remaining >= num_bytes

    def seek(self, offset: int, whence: int = 0):
        """Seek in stream (whence: 0=start, 1=current, 2=end)."""
        self.stream.seek(offset, whence)

    def skip(self, num_bytes: int):
        """Skip a fixed-width field; fails like a read would."""
        self._require(num_bytes)
        self.stream.seek(num_bytes, 1)

    def _require(self, count: int):
        if self.remaining < count:
            raise FormatError(
                f"Truncated buffer: need {count} bytes, {self.remaining} left",
                self.position,
            )

    def read_bytes(self, count: int) -> bytes:
        """Read exactly count raw bytes."""
        self._require(count)
        return self.stream.read(count)

    def read_uint8(self) -> int:
        """Read unsigned 8-bit integer."""
        return self.read_bytes(1)[0]

    def read_uint16(self) -> int:
        """Read unsigned 16-bit integer."""
        return struct.unpack('<H', self.read_bytes(2))[0]

    def read_uint32(self) -> int:
        """Read unsigned 32-bit integer."""
        return struct.unpack('<I', self.read_bytes(4))[0]

    def read_int32(self) -> int:
        """Read signed 32-bit integer."""
        return struct.unpack('<i', self.read_bytes(4))[0]

    def read_uint64(self) -> int:
        """Read unsigned 64-bit integer."""
        return struct.unpack('<Q', self.read_bytes(8))[0]

    def read_cstring_bytes(self) -> bytes:
        """Read up to the next NUL (consumed, not returned) or end of buffer."""
        out = bytearray()
        while self.has_more:
            b = self.stream.read(1)[0]
            if b == 0:
                break
            out.append(b)
        return bytes(out)

    def read_cstring(self, strict: bool = False) -> str:
        """Read a NUL-terminated UTF-8 string."""
        return decode_utf8(self.read_cstring_bytes(), strict=strict)

    def skip_cstring(self):
        """Advance past a NUL-terminated string without decoding it."""
        self.read_cstring_bytes()


class IoWriter:
    """Binary writer accumulating into a bytearray. Little-endian."""

    def __init__(self):
        self.buffer = bytearray()

    def __len__(self) -> int:
        return len(self.buffer)

    def getvalue(self) -> bytes:
        return bytes(self.buffer)

    def write_bytes(self, data: bytes):
        """Write raw bytes."""
        self.buffer.extend(data)

    def write_byte(self, value: int):
        """Write single byte."""
        self.buffer.append(value & 0xFF)

    def write_uint32(self, value: int):
        """Write unsigned 32-bit integer."""
        self.buffer.extend(struct.pack('<I', value))

    def write_uint64(self, value: int):
        """Write unsigned 64-bit integer."""
        self.buffer.extend(struct.pack('<Q', value))

    def write_cstring(self, value: str):
        """Write a UTF-8 string followed by NUL."""
        self.buffer.extend(value.encode('utf-8', errors='surrogateescape'))
        self.buffer.append(0)
