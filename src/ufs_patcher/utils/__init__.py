"""Shared low-level helpers."""
from .binary import IoBuffer, IoWriter, decode_utf8

__all__ = ['IoBuffer', 'IoWriter', 'decode_utf8']
