"""
Error taxonomy for appinfo.vdf patching.

Codec functions raise these; AppInfoWriter.patch() folds them into a single
PatchResult so callers never see a half-finished write.
"""


class AppInfoError(Exception):
    """Base class for every failure raised by ufs_patcher."""


class AppInfoIOError(AppInfoError):
    """File missing, unreadable or unwritable."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class FormatError(AppInfoError, ValueError):
    """Malformed input: truncated buffer, unbalanced sections, no splice anchor."""

    def __init__(self, message: str, offset=None):
        if offset is not None:
            message = f"{message} (at offset 0x{offset:X})"
        super().__init__(message)
        self.offset = offset


class UnsupportedVersionError(FormatError):
    """Header magic does not map to a known appinfo version."""

    def __init__(self, magic: int):
        super().__init__(f"Unsupported appinfo.vdf magic: 0x{magic:08X}")
        self.magic = magic


class NotFoundError(AppInfoError, LookupError):
    """Target app id is not present in the file."""

    def __init__(self, app_id: int):
        super().__init__(f"App {app_id} not found in appinfo.vdf")
        self.app_id = app_id


class EncodingError(AppInfoError):
    """Bytes that must be text are not valid UTF-8 (strict decoding only)."""
