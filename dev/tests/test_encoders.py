"""
Section encoder tests - savefiles / rootoverrides serialization.
"""

import struct
import sys
from pathlib import Path

TESTS_DIR = Path(__file__).parent
sys.path.insert(0, str(TESTS_DIR.parent.parent / "src"))

from ufs_patcher.errors import FormatError
from ufs_patcher.formats.appinfo.encoders import (
    encode_root_override, encode_rootoverrides_block, encode_save_rule,
    encode_savefiles_block, platforms_to_oslist,
)
from ufs_patcher.formats.appinfo.string_table import StringTable
from ufs_patcher.formats.appinfo.ufs_entries import PathTransform, RootOverride, SaveRule


def _s(key: str, value: str) -> bytes:
    return b"\x01" + key.encode() + b"\x00" + value.encode() + b"\x00"


def test_platform_canonicalization():
    assert platforms_to_oslist(["Windows", "Mac OSX"]) == "windows,macos"
    assert platforms_to_oslist(["win64", "WINDOWS", "linux", "SteamOS Linux"]) == "windows,linux"
    assert platforms_to_oslist(["osx", "Amiga"]) == "macos"
    assert platforms_to_oslist(["Amiga"]) == ""


def test_save_rule_exact_bytes_inline_keys():
    rule = SaveRule(root="WinMyDocuments", path="saves", pattern="*.sav", platforms=["Windows", "Mac OSX"])
    expected = (
        b"\x003\x00"
        + _s("root", "WinMyDocuments")
        + _s("path", "saves")
        + _s("pattern", "*.sav")
        + _s("platforms", "windows,macos")
        + b"\x08"
    )
    assert encode_save_rule(rule, 3, 28) == expected


def test_save_rule_all_platforms_omitted():
    for platforms in ([], ["all"], ["Windows", "All"]):
        data = encode_save_rule(SaveRule("GameInstall", "p", "*", platforms), 0, 27)
        assert b"platforms" not in data


def test_save_rule_unknown_platforms_omitted():
    data = encode_save_rule(SaveRule("GameInstall", "p", "*", ["Amiga"]), 0, 28)
    assert b"platforms" not in data


def test_recursive_flag_not_serialized():
    a = encode_save_rule(SaveRule("GameInstall", "p", "*", [], recursive=True), 0, 28)
    b = encode_save_rule(SaveRule("GameInstall", "p", "*", [], recursive=False), 0, 28)
    assert a == b


def test_save_rule_v29_uses_table_indices():
    table = StringTable(["root", "path"])
    data = encode_save_rule(SaveRule("GameInstall", "x", "*"), 0, 29, table)
    assert table.strings == ["root", "path", "0", "pattern"]
    expected = (
        b"\x00" + struct.pack("<I", 2)
        + b"\x01" + struct.pack("<I", 0) + b"GameInstall\x00"
        + b"\x01" + struct.pack("<I", 1) + b"x\x00"
        + b"\x01" + struct.pack("<I", 3) + b"*\x00"
        + b"\x08"
    )
    assert data == expected


def test_v29_without_table_raises():
    try:
        encode_save_rule(SaveRule("GameInstall", "x"), 0, 29, None)
    except FormatError:
        pass
    else:
        raise AssertionError("expected FormatError")


def test_root_override_addpath_tail():
    override = RootOverride("WinMyDocuments", "MacOS", "MacAppSupport", add_path="Documents")
    expected = (
        b"\x000\x00"
        + _s("root", "WinMyDocuments")
        + _s("os", "MacOS")
        + _s("oscompare", "=")
        + _s("useinstead", "MacAppSupport")
        + _s("addpath", "Documents")
        + b"\x08"
    )
    assert encode_root_override(override, 0, 28) == expected


def test_root_override_transforms_win_over_addpath():
    override = RootOverride(
        "WinAppDataLocal", "Linux", "LinuxXdgDataHome",
        add_path="ignored",
        path_transforms=[PathTransform("Saved", "saves")],
    )
    data = encode_root_override(override, 1, 28)
    assert b"addpath" not in data
    assert b"ignored" not in data
    expected_tail = (
        b"\x00pathtransforms\x00"
        + b"\x000\x00" + _s("find", "Saved") + _s("replace", "saves") + b"\x08"
        + b"\x08"
        + b"\x08"
    )
    assert data.endswith(expected_tail)


def test_root_override_without_tail():
    data = encode_root_override(RootOverride("A", "Linux", "B"), 0, 28)
    assert data.endswith(_s("useinstead", "B") + b"\x08")


def test_blocks_number_densely_from_zero():
    rules = [SaveRule("GameInstall", str(i)) for i in range(3)]
    block = encode_savefiles_block(rules, 28)
    assert block.startswith(b"\x00savefiles\x00\x000\x00")
    assert block.endswith(b"\x08\x08")
    body = b"".join(encode_save_rule(r, i, 28) for i, r in enumerate(rules))
    assert block == b"\x00savefiles\x00" + body + b"\x08"
    for i in range(3):
        assert b"\x00" + str(i).encode() + b"\x00\x01root" in block


def test_empty_blocks_are_empty():
    assert encode_savefiles_block([], 28) == b""
    assert encode_rootoverrides_block([], 29, StringTable()) == b""


def test_rootoverrides_block_wraps_entries():
    overrides = [RootOverride("A", "Linux", "B"), RootOverride("C", "MacOS", "D")]
    block = encode_rootoverrides_block(overrides, 27)
    inner = encode_root_override(overrides[0], 0, 27) + encode_root_override(overrides[1], 1, 27)
    assert block == b"\x00rootoverrides\x00" + inner + b"\x08"
