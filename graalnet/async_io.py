"""Asynchronous readers and writers for Graal-encoded data."""

from __future__ import annotations

from typing import Any

from .codec import GraalIoError, ValueExceedsMaximumError, decode_bits, encode_bits, guint_max

__all__ = ["AsyncGraalReader", "AsyncGraalWriter"]

_CHUNK = 8192


def _as_byte(delimiter: int | bytes) -> int:
    if isinstance(delimiter, (bytes, bytearray)):
        if len(delimiter) != 1:
            raise ValueError("delimiter must be a single byte")
        return delimiter[0]
    return delimiter


class AsyncGraalReader:
    """Reads Graal-encoded values from a stream with an awaitable ``read(n)``.

    An ``asyncio.StreamReader`` is the usual source.
    """

    def __init__(self, stream: Any) -> None:
        self._stream = stream
        self._buffer = bytearray()
        self._eof = False

    async def _fill(self) -> bool:
        if self._eof:
            return False
        try:
            chunk = await self._stream.read(_CHUNK)
        except OSError as exc:
            raise GraalIoError(f"IO error: {exc}") from exc
        if not chunk:
            self._eof = True
            return False
        self._buffer += chunk
        return True

    async def read_exact(self, n: int) -> bytes:
        """Read exactly `n` bytes."""
        while len(self._buffer) < n:
            if not await self._fill():
                raise GraalIoError(
                    f"IO error: unexpected end of stream (wanted {n} bytes, "
                    f"{len(self._buffer)} available)"
                )
        data = bytes(self._buffer[:n])
        del self._buffer[:n]
        return data

    async def read_to_end(self) -> bytes:
        """Read everything up to the end of the stream."""
        while await self._fill():
            pass
        data = bytes(self._buffer)
        self._buffer.clear()
        return data

    async def read_until(self, delimiter: int | bytes) -> bytes:
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
            if not await self._fill():
                data = bytes(self._buffer)
                self._buffer.clear()
                return data

    async def split(self, delimiter: int | bytes) -> list[bytes]:
        """Split the rest of the stream on the delimiter, stopping at the first empty part."""
        parts = []
        while part := await self.read_until(delimiter):
            parts.append(part)
        return parts

    async def read_string(self) -> tuple[str, int]:
        """Read a NUL-terminated string; return it and its length in bytes."""
        data = await self.read_until(0)
        return data.decode("latin-1"), len(data)

    async def read_gstring(self) -> str:
        """Read a string preceded by a Graal-encoded one-byte length."""
        length = await self.read_gu8()
        return (await self.read_exact(length)).decode("latin-1")

    async def read_u8(self) -> int:
        """Read one byte."""
        return (await self.read_exact(1))[0]

    async def read_u16(self) -> int:
        """Read a big-endian unsigned 16-bit integer."""
        return int.from_bytes(await self.read_exact(2), "big")

    async def read_u32(self) -> int:
        """Read a big-endian unsigned 32-bit integer."""
        return int.from_bytes(await self.read_exact(4), "big")

    async def read_gu(self, byte_count: int) -> int:
        """Read a Graal-encoded unsigned integer of `byte_count` bytes."""
        return decode_bits(await self.read_exact(byte_count))

    async def read_gu8(self) -> int:
        return await self.read_gu(1)

    async def read_gu16(self) -> int:
        return await self.read_gu(2)

    async def read_gu24(self) -> int:
        return await self.read_gu(3)

    async def read_gu32(self) -> int:
        return await self.read_gu(4)

    async def read_gu40(self) -> int:
        return await self.read_gu(5)


class AsyncGraalWriter:
    """Writes Graal-encoded values to a stream, buffering until flushed.

    The stream needs a ``write(data)`` method and may have an awaitable
    ``drain()``, as ``asyncio.StreamWriter`` does.
    """

    def __init__(self, stream: Any) -> None:
        self._stream = stream
        self._buffer = bytearray()

    async def _write_through(self) -> None:
        if not self._buffer:
            return
        data = bytes(self._buffer)
        self._buffer.clear()
        try:
            self._stream.write(data)
            drain = getattr(self._stream, "drain", None)
            if drain is not None:
                await drain()
        except OSError as exc:
            raise GraalIoError(f"IO error: {exc}") from exc

    async def write_bytes(self, data: bytes) -> None:
        """Write raw bytes."""
        self._buffer += data
        if len(self._buffer) >= _CHUNK:
            await self._write_through()

    async def flush(self) -> None:
        """Send all buffered bytes to the stream."""
        await self._write_through()

    async def write_string(self, text: str) -> None:
        """Write a NUL-terminated UTF-8 string."""
        await self.write_bytes(text.encode("utf-8"))
        await self.write_bytes(b"\x00")

    async def write_gstring(self, text: str) -> None:
        """Write a UTF-8 string preceded by a Graal-encoded one-byte length."""
        data = text.encode("utf-8")
        await self.write_gu8(len(data))
        await self.write_bytes(data)

    async def write_u8(self, value: int) -> None:
        await self.write_bytes(value.to_bytes(1, "big"))

    async def write_u16(self, value: int) -> None:
        """Write a big-endian unsigned 16-bit integer."""
        await self.write_bytes(value.to_bytes(2, "big"))

    async def write_u32(self, value: int) -> None:
        """Write a big-endian unsigned 32-bit integer."""
        await self.write_bytes(value.to_bytes(4, "big"))

    async def write_gu(self, byte_count: int, value: int) -> None:
        """Write a Graal-encoded unsigned integer of `byte_count` bytes."""
        maximum = guint_max(byte_count)
        if value > maximum:
            raise ValueExceedsMaximumError(value, maximum)
        await self.write_bytes(encode_bits(value, byte_count))

    async def write_gu8(self, value: int) -> None:
        await self.write_gu(1, value)

    async def write_gu16(self, value: int) -> None:
        await self.write_gu(2, value)

    async def write_gu24(self, value: int) -> None:
        await self.write_gu(3, value)

    async def write_gu32(self, value: int) -> None:
        await self.write_gu(4, value)

    async def write_gu40(self, value: int) -> None:
        await self.write_gu(5, value)