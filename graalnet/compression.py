"""Zlib and bzip2 helpers for packet payloads."""

from __future__ import annotations

import bz2
import zlib

__all__ = ["compress_bzip2", "compress_zlib", "decompress_bzip2", "decompress_zlib"]


def decompress_zlib(data: bytes) -> bytes:
    """Decompress a zlib stream.

    Raises OSError if the data is not a valid zlib stream.
    """
    try:
        return zlib.decompress(bytes(data))
    except zlib.error as exc:
        raise OSError(f"invalid zlib data: {exc}") from exc


def compress_zlib(data: bytes) -> bytes:
    """Compress data into a zlib stream at the default level."""
    return zlib.compress(bytes(data))


def decompress_bzip2(data: bytes) -> bytes:
    """Decompress a bzip2 stream.

    Raises OSError if the data is not a valid bzip2 stream.
    """
    try:
        return bz2.decompress(bytes(data))
    except ValueError as exc:
        raise OSError(f"invalid bzip2 data: {exc}") from exc


def compress_bzip2(data: bytes) -> bytes:
    """Compress data into a bzip2 stream at the default level."""
    return bz2.compress(bytes(data))