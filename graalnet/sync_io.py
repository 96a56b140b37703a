"""Synchronous readers and writers for Graal-encoded data."""

from __future__ import annotations

import io
from typing import BinaryIO

from .codec import GraalIoError, ValueExceedsMaximumError, decode_bits, encode_bits, guint_max

__all__ = ["GraalReader", "GraalWriter"]

_CHUNK = 8192


def _as_byte(delimiter: int | bytes) -> int:
    if isinstance(delimiter, (bytes, bytearray)):
        if len(delimiter) != 1:
            raise ValueError("delimiter must be a single byte")
        return delimiter[0]
    return delimiter


class GraalReader:
    """Reads Graal-encoded values from bytes or a binary stream."""

    def __init__(self, source: bytes | bytearray | memoryview | BinaryIO) -> None:
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._stream = source
        self._buffer = bytearray()
        self._eof = False

    def _fill(self) -> bool:
        if self._eof:
            return False
        chunk = self._stream.read(_CHUNK)
        if not chunk:
            self._eof = True
            return False
        self._buffer += chunk
        return True

    def read_exact(self, n: int) -> bytes:
        """Read exactly `n` bytes."""
        while len(self._buffer) < n:
            if not self._fill():
                raise GraalIoError(
                    f"IO error: unexpected end of stream (wanted {n} bytes, "
                    f"{len(self._buffer)} available)"
                )
        data = bytes(self._buffer[:n])
        del self._buffer[:n]
        return data

    def read_to_end(self) -> bytes:
        """Read everything up to the end of the stream."""
        while self._fill():
            pass
        data = bytes(self._buffer)
        self._buffer.clear()
        return data

    def read_until(self, delimiter: int | bytes) -> bytes:
        """Read up to the delimiter, which is consumed but not returned.

        Without a delimiter, everything up to the end of the stream is returned.
        """
        delim = _as_byte(delimiter)
        start = 0
        while True:
            index = self._buffer.find(delim, start)
            if index >= 0:
                data = bytes(self._buffer[:index])
                del self._buffer[: index + 1]
                return data
            start = len(self._buffer)
            if not self._fill():
                data = bytes(self._buffer)
                self._buffer.clear()
                return data

    def split(self, delimiter: int | bytes) -> list[bytes]:
        """Split the rest of the stream on the delimiter, stopping at the first empty part."""
        parts = []
        while part := self.read_until(delimiter):
            parts.append(part)
        return parts

    def read_string(self) -> tuple[str, int]:
        """Read a NUL-terminated string; return it and its length in bytes."""
        data = self.read_until(0)
        return data.decode("latin-1"), len(data)

    def read_gstring(self) -> str:
        """Read a string preceded by a Graal-encoded one-byte length."""
        return self.read_exact(self.read_gu8()).decode("latin-1")

    def read_u8(self) -> int:
        """Read one byte."""
        return self.read_exact(1)[0]

    def read_u16(self) -> int:
        """Read a big-endian unsigned 16-bit integer."""
        return int.from_bytes(self.read_exact(2), "big")

    def read_u32(self) -> int:
        """Read a big-endian unsigned 32-bit integer."""
        return int.from_bytes(self.read_exact(4), "big")

    def read_gu(self, byte_count: int) -> int:
        """Read a Graal-encoded unsigned integer of `byte_count` bytes."""
        return decode_bits(self.read_exact(byte_count))

    def read_gu8(self) -> int:
        return self.read_gu(1)

    def read_gu16(self) -> int:
        return self.read_gu(2)

    def read_gu24(self) -> int:
        return self.read_gu(3)

    def read_gu32(self) -> int:
        return self.read_gu(4)

    def read_gu40(self) -> int:
        return self.read_gu(5)

    def can_read(self) -> bool:
        """Return whether any bytes remain to be read."""
        return bool(self._buffer) or self._fill()


class GraalWriter:
    """Writes Graal-encoded values to a binary sink, buffering until flushed."""

    def __init__(self, sink: BinaryIO | None = None) -> None:
        self._sink = io.BytesIO() if sink is None else sink
        self._buffer = bytearray()

    def __enter__(self) -> GraalWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.flush()

    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes."""
        self._buffer += data

    def flush(self) -> None:
        """Write buffered bytes to the sink and flush it."""
        if self._buffer:
            self._sink.write(bytes(self._buffer))
            self._buffer.clear()
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()

    def write_string(self, text: str) -> None:
        """Write a NUL-terminated UTF-8 string."""
        self.write_bytes(text.encode("utf-8"))
        self.write_bytes(b"\x00")

    def write_gstring(self, text: str) -> None:
        """Write a UTF-8 string preceded by a Graal-encoded one-byte length."""
        data = text.encode("utf-8")
        self.write_gu8(len(data))
        self.write_bytes(data)

    def write_u8(self, value: int) -> None:
        self.write_bytes(value.to_bytes(1, "big"))

    def write_u16(self, value: int) -> None:
        """Write a big-endian unsigned 16-bit integer."""
        self.write_bytes(value.to_bytes(2, "big"))

    def write_u32(self, value: int) -> None:
        """Write a big-endian unsigned 32-bit integer."""
        self.write_bytes(value.to_bytes(4, "big"))

    def write_gu(self, byte_count: int, value: int) -> None:
        """Write a Graal-encoded unsigned integer of `byte_count` bytes."""
        maximum = guint_max(byte_count)
        if value > maximum:
            raise ValueExceedsMaximumError(value, maximum)
        self.write_bytes(encode_bits(value, byte_count))

    def write_gu8(self, value: int) -> None:
        self.write_gu(1, value)

    def write_gu16(self, value: int) -> None:
        self.write_gu(2, value)

    def write_gu24(self, value: int) -> None:
        self.write_gu(3, value)

    def write_gu32(self, value: int) -> None:
        self.write_gu(4, value)

    def write_gu40(self, value: int) -> None:
        self.write_gu(5, value)

    def getvalue(self) -> bytes:
        """Flush and return everything the sink holds."""
        self.flush()
        getvalue = getattr(self._sink, "getvalue", None)
        if getvalue is None:
            raise GraalIoError("Other: sink does not keep written data")
        return getvalue()