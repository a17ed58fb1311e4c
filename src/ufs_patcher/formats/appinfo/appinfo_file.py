"""
appinfo.vdf file model.

Holds the raw file bytes plus the parsed header, key string table (v29) and
an index of record offsets. Records are read on demand; rebuilding swaps one
record and copies everything else through byte for byte.
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ...errors import AppInfoIOError, FormatError, NotFoundError
from ...utils.binary import IoBuffer
from .base import AppInfoHeader, AppRecord, BINARY_CHECKSUM_VERSION, uses_string_table
from .checksum import binary_checksum, text_checksum
from .locator import LocateResult, locate_ufs
from .string_table import StringTable
from .tree_reader import read_ufs
from .ufs_entries import UfsConfig

logger = logging.getLogger(__name__)


@dataclass
class ChecksumReport:
    """Stored vs recomputed checksums of one record."""
    app_id: int
    text_stored: str
    text_computed: str
    binary_stored: Optional[str] = None
    binary_computed: Optional[str] = None

    @property
    def text_ok(self) -> bool:
        return self.text_stored == self.text_computed

    @property
    def binary_ok(self) -> bool:
        # v27 records carry no binary checksum
        return self.binary_stored is None or self.binary_stored == self.binary_computed

    @property
    def ok(self) -> bool:
        return self.text_ok and self.binary_ok


class AppInfoFile:
    """
    Parsed view over an appinfo.vdf image.

    Usage:
        info = AppInfoFile.read(path)
        record = info.find_record(570)
        config = info.read_ufs(570)
    """

    def __init__(self, data: bytes, header: AppInfoHeader,
                 string_table: Optional[StringTable] = None, path: Optional[Path] = None):
        self.data = data
        self.header = header
        self.string_table = string_table
        self.path = path
        # app_id -> (record start, record end); first occurrence wins
        self._index: Dict[int, Tuple[int, int]] = {}
        self._order: List[int] = []
        self.entries_end = 0
        self._scan_records()

    @classmethod
    def from_bytes(cls, data: bytes, path: Optional[Path] = None) -> 'AppInfoFile':
        io = IoBuffer.from_bytes(data)
        header = AppInfoHeader.read(io)
        string_table = None
        if uses_string_table(header.version):
            string_table = StringTable.from_bytes(data, header.string_table_offset)
            logger.debug("Loaded %d table strings from offset %d", len(string_table), header.string_table_offset)
        return cls(data, header, string_table, path)

    @classmethod
    def read(cls, path: Union[str, Path]) -> 'AppInfoFile':
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise AppInfoIOError(f"Cannot read {path}: {e}", path) from e
        return cls.from_bytes(data, path)

    @property
    def version(self) -> int:
        return self.header.version

    @property
    def app_ids(self) -> List[int]:
        return list(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, app_id: int) -> bool:
        return app_id in self._index

    def _table(self, string_table: Optional[StringTable]) -> Optional[StringTable]:
        return self.string_table if string_table is None else string_table

    def _scan_records(self):
        """Walk record headers up to the zero app id sentinel."""
        io = IoBuffer.from_bytes(self.data)
        io.position = self.header.size
        while True:
            start = io.position
            app_id = io.read_uint32()
            if app_id == 0:
                break
            size = io.read_uint32()
            end = start + 8 + size
            if end > io.size:
                raise FormatError(f"Record for app {app_id} runs past end of file", start)
            self._index.setdefault(app_id, (start, end))
            self._order.append(app_id)
            io.position = end

        if uses_string_table(self.version):
            self.entries_end = self.header.string_table_offset
            if self.entries_end < io.position:
                raise FormatError(
                    f"String table offset {self.entries_end} overlaps records ending at {io.position}"
                )
        else:
            self.entries_end = len(self.data)
        logger.debug("Indexed %d records (v%d)", len(self._order), self.version)

    def find_record(self, app_id: int) -> AppRecord:
        if app_id not in self._index:
            raise NotFoundError(app_id)
        start, _ = self._index[app_id]
        io = IoBuffer.from_bytes(self.data)
        io.position = start
        return AppRecord.read(io, self.version)

    def locate(self, record: AppRecord, string_table: Optional[StringTable] = None) -> LocateResult:
        return locate_ufs(record.payload, self.version, self._table(string_table))

    def read_ufs(self, app_id: int) -> UfsConfig:
        """Current ufs configuration of app_id (found=False when it has none)."""
        record = self.find_record(app_id)
        return read_ufs(record.payload, app_id, self.version, self.string_table)

    def with_payload(self, record: AppRecord, payload: bytes,
                     string_table: Optional[StringTable] = None) -> AppRecord:
        """Copy of record carrying payload, with both checksums recomputed."""
        table = self._table(string_table)
        updated = replace(record, payload=payload)
        updated.text_checksum = text_checksum(payload, self.version, table)
        if self.version >= BINARY_CHECKSUM_VERSION:
            updated.binary_checksum = binary_checksum(payload)
        updated.size = len(updated.to_bytes(self.version)) - 8
        return updated

    def rebuild(self, record: AppRecord, string_table: Optional[StringTable] = None) -> bytes:
        """
        Whole-file image with record swapped in.

        Every byte outside the record is copied verbatim. On v29 the string
        table is written at the new end of the records and the header offset
        updated to match.
        """
        start, end = self._index[record.app_id]
        body = b"".join((
            self.data[self.header.size:start],
            record.to_bytes(self.version),
            self.data[end:self.entries_end],
        ))

        if not uses_string_table(self.version):
            return self.header.to_bytes() + body

        table = self._table(string_table)
        header = replace(self.header, string_table_offset=self.header.size + len(body))
        return header.to_bytes() + body + table.to_bytes()

    def verify_record(self, app_id: int) -> ChecksumReport:
        """Recompute both checksums of a stored record and compare."""
        record = self.find_record(app_id)
        report = ChecksumReport(
            app_id=app_id,
            text_stored=record.text_checksum.hex(),
            text_computed=text_checksum(record.payload, self.version, self.string_table).hex(),
        )
        if record.binary_checksum is not None:
            report.binary_stored = record.binary_checksum.hex()
            report.binary_computed = binary_checksum(record.payload).hex()
        return report
