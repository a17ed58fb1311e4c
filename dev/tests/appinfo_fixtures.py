"""
Synthetic appinfo.vdf builders for the tests.

No real Steam data is needed: TreeBuilder writes binary KeyValues trees and
build_file() wraps records into a complete v27 / v28 / v29 file image with
correct sizes, checksums and string table.
"""

import sys
from pathlib import Path
from typing import List, Optional, Tuple

# Path setup
TESTS_DIR = Path(__file__).parent
DEV_DIR = TESTS_DIR.parent
SUITE_DIR = DEV_DIR.parent
SRC_DIR = SUITE_DIR / "src"

sys.path.insert(0, str(SRC_DIR))

from ufs_patcher.utils.binary import IoWriter
from ufs_patcher.formats.appinfo.base import (
    AppInfoHeader, AppRecord, NodeType, VERSION_TO_MAGIC, uses_string_table, write_key,
)
from ufs_patcher.formats.appinfo.checksum import binary_checksum, text_checksum
from ufs_patcher.formats.appinfo.string_table import StringTable


class TreeBuilder:
    """Chainable writer for binary KeyValues payloads."""

    def __init__(self, version: int, string_table: Optional[StringTable] = None):
        self.version = version
        self.string_table = string_table
        self.writer = IoWriter()

    def section(self, key: str) -> 'TreeBuilder':
        self.writer.write_byte(NodeType.SECTION)
        write_key(self.writer, key, self.version, self.string_table)
        return self

    def string(self, key: str, value: str) -> 'TreeBuilder':
        self.writer.write_byte(NodeType.STRING)
        write_key(self.writer, key, self.version, self.string_table)
        self.writer.write_cstring(value)
        return self

    def int32(self, key: str, value: int) -> 'TreeBuilder':
        self.writer.write_byte(NodeType.INT32)
        write_key(self.writer, key, self.version, self.string_table)
        self.writer.write_bytes(value.to_bytes(4, 'little', signed=True))
        return self

    def int64(self, key: str, value: int) -> 'TreeBuilder':
        self.writer.write_byte(NodeType.INT64)
        write_key(self.writer, key, self.version, self.string_table)
        self.writer.write_uint64(value)
        return self

    def end(self) -> 'TreeBuilder':
        self.writer.write_byte(NodeType.SECTION_END)
        return self

    def raw(self, data: bytes) -> 'TreeBuilder':
        self.writer.write_bytes(data)
        return self

    def save_rule(self, index: int, root: str, path: str, pattern: str = "*") -> 'TreeBuilder':
        return (self.section(str(index))
                .string("root", root).string("path", path).string("pattern", pattern)
                .end())

    def getvalue(self) -> bytes:
        return self.writer.getvalue()


def new_table(version: int) -> Optional[StringTable]:
    return StringTable() if uses_string_table(version) else None


def app_payload(version: int, table: Optional[StringTable], app_id: int,
                name: str = "Game", ufs: str = "savefiles2") -> bytes:
    """
    A typical app tree.

    ufs variants:
      "none"        no ufs section
      "empty"       ufs with quota / maxnumfiles only
      "savefiles2"  ufs with savefiles "0" and "1"
      "both"        savefiles "0","1" plus one rootoverride
    """
    b = TreeBuilder(version, table)
    b.section("appinfo").int32("appid", app_id)
    b.section("common").string("name", name).string("type", "Game").end()

    if ufs != "none":
        b.section("ufs").int32("quota", 1048576).int32("maxnumfiles", 100)
        if ufs in ("savefiles2", "both"):
            b.section("savefiles")
            b.save_rule(0, "WinMyDocuments", "My Games/" + name, "*.sav")
            b.save_rule(1, "WinAppDataLocal", name + "/Saves")
            b.end()
        if ufs == "both":
            (b.section("rootoverrides")
              .section("0")
              .string("root", "WinMyDocuments").string("os", "MacOS")
              .string("oscompare", "=").string("useinstead", "MacAppSupport")
              .string("addpath", "Documents")
              .end()
             .end())
        b.end()

    b.section("extended").string("developer", "Studio").end()
    b.end()     # appinfo
    b.end()     # root terminator
    return b.getvalue()


def make_record(app_id: int, payload: bytes, version: int,
                table: Optional[StringTable]) -> AppRecord:
    record = AppRecord(
        app_id=app_id,
        info_state=2,
        last_updated=1700000000 + app_id,
        access_token=0x1122334455667788,
        change_number=20000000 + app_id,
        payload=payload,
    )
    record.text_checksum = text_checksum(payload, version, table)
    if version >= 28:
        record.binary_checksum = binary_checksum(payload)
    return record


def build_file(version: int, apps: List[Tuple[int, bytes]],
               table: Optional[StringTable] = None, universe: int = 1) -> bytes:
    """Complete file image: header, records, sentinel, string table (v29)."""
    header = AppInfoHeader(magic=VERSION_TO_MAGIC[version], universe=universe)
    body = IoWriter()
    for app_id, payload in apps:
        body.write_bytes(make_record(app_id, payload, version, table).to_bytes(version))
    body.write_uint32(0)

    if not uses_string_table(version):
        return header.to_bytes() + body.getvalue()

    header.string_table_offset = header.size + len(body)
    return header.to_bytes() + body.getvalue() + (table or StringTable()).to_bytes()


def standard_file(version: int, ufs: str = "savefiles2",
                  app_ids=(10, 570, 730)) -> Tuple[bytes, Optional[StringTable]]:
    """Three apps; every app uses the same ufs variant."""
    table = new_table(version)
    apps = [(app_id, app_payload(version, table, app_id, f"Game{app_id}", ufs)) for app_id in app_ids]
    return build_file(version, apps, table), table


def record_slices(data: bytes, version: int) -> List[Tuple[int, bytes]]:
    """(app_id, raw record bytes) for every record in a file image."""
    header_size = 16 if uses_string_table(version) else 8
    pos = header_size
    out = []
    while True:
        app_id = int.from_bytes(data[pos:pos + 4], 'little')
        if app_id == 0:
            return out
        size = int.from_bytes(data[pos + 4:pos + 8], 'little')
        out.append((app_id, data[pos:pos + 8 + size]))
        pos += 8 + size
