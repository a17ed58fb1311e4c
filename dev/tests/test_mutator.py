"""
Tree mutator tests - copy / skip / insert.
"""

import sys
from pathlib import Path

TESTS_DIR = Path(__file__).parent
sys.path.insert(0, str(TESTS_DIR))
sys.path.insert(0, str(TESTS_DIR.parent.parent / "src"))

from appinfo_fixtures import TreeBuilder, app_payload, new_table
from ufs_patcher.errors import FormatError
from ufs_patcher.formats.appinfo.encoders import encode_rootoverrides_block, encode_savefiles_block
from ufs_patcher.formats.appinfo.locator import LocateResult, locate_ufs
from ufs_patcher.formats.appinfo.mutator import splice_ufs
from ufs_patcher.formats.appinfo.tree_reader import read_ufs
from ufs_patcher.formats.appinfo.ufs_entries import RootOverride, SaveRule


def _balanced_sections(payload: bytes, version: int, table) -> bool:
    loc = locate_ufs(payload, version, table)
    return loc.record_end is not None


def test_replace_savefiles_shifts_ufs_end_by_delta():
    for version in (27, 28, 29):
        table = new_table(version)
        payload = app_payload(version, table, 5)
        loc = locate_ufs(payload, version, table)
        old_len = loc.savefiles_end + 1 - loc.savefiles_start

        block = encode_savefiles_block([SaveRule("GameInstall", "saves", "*.dat")], version, table)
        out = splice_ufs(payload, loc, block, b"", version, table)

        delta = len(block) - old_len
        assert len(out) == len(payload) + delta
        again = locate_ufs(out, version, table)
        assert again.ufs_start == loc.ufs_start
        assert again.ufs_end == loc.ufs_end + delta
        assert again.savefiles_max_index == 0
        # Bytes before the old savefiles section are untouched
        assert out[:loc.savefiles_start] == payload[:loc.savefiles_start]
        # Bytes after ufs are untouched
        assert out[again.ufs_end:] == payload[loc.ufs_end:]


def test_children_appended_in_fixed_order():
    table = new_table(28)
    payload = app_payload(28, table, 5, ufs="both")
    loc = locate_ufs(payload, 28, table)
    sf = encode_savefiles_block([SaveRule("GameInstall", "a")], 28)
    ro = encode_rootoverrides_block([RootOverride("GameInstall", "Linux", "LinuxXdgDataHome")], 28)
    out = splice_ufs(payload, loc, sf, ro, 28)
    again = locate_ufs(out, 28)
    assert again.savefiles_end + 1 == again.rootoverrides_start
    assert again.rootoverrides_end + 1 == again.ufs_end
    assert out[again.savefiles_start:again.savefiles_end + 1] == sf
    assert out[again.rootoverrides_start:again.rootoverrides_end + 1] == ro


def test_non_ufs_children_kept():
    table = new_table(29)
    payload = app_payload(29, table, 5, ufs="both")
    out = splice_ufs(payload, locate_ufs(payload, 29, table), b"", b"", 29, table)
    config = read_ufs(out, 5, 29, table)
    assert config.found
    assert config.quota == 1048576
    assert config.maxnumfiles == 100
    assert config.savefiles == []
    assert config.rootoverrides == []


def test_insert_new_ufs_before_record_end():
    for version in (27, 28, 29):
        table = new_table(version)
        payload = app_payload(version, table, 9, ufs="none")
        loc = locate_ufs(payload, version, table)
        sf = encode_savefiles_block([SaveRule("WinSavedGames", "Game")], version, table)
        out = splice_ufs(payload, loc, sf, b"", version, table)

        again = locate_ufs(out, version, table)
        assert again.has_ufs
        assert again.ufs_start == loc.record_end
        assert again.savefiles_start is not None
        assert out[:loc.record_end] == payload[:loc.record_end]
        assert out[again.ufs_end + 1:] == payload[loc.record_end:]
        assert _balanced_sections(out, version, table)


def test_insert_key_interned_v29():
    table = new_table(29)
    payload = app_payload(29, table, 9, ufs="none")
    assert "ufs" not in table
    out = splice_ufs(payload, locate_ufs(payload, 29, table), b"", b"", 29, table)
    assert "ufs" in table
    assert read_ufs(out, 9, 29, table).found


def test_ufs_start_without_end_raises():
    payload = TreeBuilder(28).section("appinfo").section("ufs").end().end().end().getvalue()
    loc = LocateResult(ufs_start=10, record_end=len(payload) - 2)
    try:
        splice_ufs(payload, loc, b"", b"", 28)
    except FormatError:
        pass
    else:
        raise AssertionError("expected FormatError")


def test_no_anchor_raises():
    try:
        splice_ufs(b"\x00appinfo\x00", LocateResult(), b"", b"", 28)
    except FormatError:
        pass
    else:
        raise AssertionError("expected FormatError")
