"""
Primitive decoder tests - IoBuffer / IoWriter.

Can be run standalone: python -m pytest dev/tests/test_binary.py
Or via main runner: python tests.py
"""

import sys
from pathlib import Path

TESTS_DIR = Path(__file__).parent
sys.path.insert(0, str(TESTS_DIR.parent.parent / "src"))

from ufs_patcher.errors import EncodingError, FormatError
from ufs_patcher.utils.binary import IoBuffer, IoWriter, decode_utf8


def test_little_endian_reads():
    io = IoBuffer.from_bytes(bytes.fromhex("01 0201 04030201 ffffffff 0807060504030201"))
    assert io.read_uint8() == 0x01
    assert io.read_uint16() == 0x0102
    assert io.read_uint32() == 0x01020304
    assert io.read_int32() == -1
    assert io.read_uint64() == 0x0102030405060708
    assert not io.has_more


def test_truncated_fixed_width_read_raises():
    io = IoBuffer.from_bytes(b"\x01\x02\x03")
    try:
        io.read_uint32()
    except FormatError as e:
        assert "need 4 bytes" in str(e)
    else:
        raise AssertionError("expected FormatError")


def test_skip_past_end_raises():
    io = IoBuffer.from_bytes(b"\x00" * 4)
    io.skip(4)
    try:
        io.skip(1)
    except FormatError:
        pass
    else:
        raise AssertionError("expected FormatError")


def test_cstring_stops_at_nul_and_eof():
    io = IoBuffer.from_bytes(b"root\x00tail")
    assert io.read_cstring() == "root"
    assert io.position == 5
    # No terminator: read to end of buffer
    assert io.read_cstring() == "tail"
    assert not io.has_more


def test_invalid_utf8_degrades_to_empty():
    io = IoBuffer.from_bytes(b"\xff\xfe\x00next\x00")
    assert io.read_cstring() == ""
    # Cursor still advanced past the bad string
    assert io.read_cstring() == "next"


def test_strict_decode_raises_encoding_error():
    try:
        decode_utf8(b"\xc3\x28", strict=True)
    except EncodingError:
        pass
    else:
        raise AssertionError("expected EncodingError")


def test_writer_layout():
    w = IoWriter()
    w.write_byte(0x100 + 7)
    w.write_uint32(1)
    w.write_uint64(2)
    w.write_cstring("ufs")
    assert w.getvalue() == b"\x07" + b"\x01\x00\x00\x00" + b"\x02" + b"\x00" * 7 + b"ufs\x00"
    assert len(w) == 17


def test_writer_keeps_escaped_bytes():
    raw = b"caf\xe9"
    text = raw.decode("utf-8", errors="surrogateescape")
    w = IoWriter()
    w.write_cstring(text)
    assert w.getvalue() == raw + b"\x00"
