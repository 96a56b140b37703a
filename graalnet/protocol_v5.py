"""The v5 protocol: compressed frames with a lightweight stream cipher."""

from __future__ import annotations

import asyncio
from collections import deque
from enum import IntEnum
from typing import Any

from .async_io import AsyncGraalReader, AsyncGraalWriter
from .compression import compress_zlib, decompress_bzip2, decompress_zlib
from .packets import Packet
from .protocol import (
    EmptyPacketQueueError,
    InvalidCompressionError,
    Protocol,
    ProtocolError,
)
from .protocol_v4 import _encode_packet, _length_prefix, _parse_packets, _protocol_errors

__all__ = ["V5_ENCRYPTION_START", "CompressionV5", "ProtocolV5"]

V5_ENCRYPTION_START = 0x4A80B38

_MULTIPLIER = 0x8088405
_MASK32 = 0xFFFFFFFF


class CompressionV5(IntEnum):
    """Compression types of the v5 protocol."""

    NONE = 2
    ZLIB = 4
    BZIP2 = 6

    @classmethod
    def from_value(cls, value: int) -> CompressionV5:
        try:
            return cls(value)
        except ValueError:
            raise InvalidCompressionError(value) from None

    @property
    def iteration_limit(self) -> int:
        """How many four-byte blocks of a frame are enciphered."""
        return 12 if self is CompressionV5.NONE else 4


class ProtocolV5(Protocol):
    """The v5 protocol, used by remote-control connections.

    Until an encryption key is set, data passes through unenciphered and
    outgoing frames carry no compression byte.
    """

    def __init__(self, reader: Any, writer: Any) -> None:
        self._reader = AsyncGraalReader(reader)
        self._writer = AsyncGraalWriter(writer)
        self._reader_lock = asyncio.Lock()
        self._writer_lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._queue: deque[Packet] = deque()
        self._out_state = V5_ENCRYPTION_START
        self._in_state = V5_ENCRYPTION_START
        self._key: int | None = None

    @property
    def encryption_key(self) -> int | None:
        """The encryption key, or None if it has not been set."""
        return self._key

    def set_encryption_key(self, key: int) -> None:
        """Set the encryption key; it can be set only once."""
        if self._key is not None:
            raise ProtocolError("Other: Encryption key already set")
        self._key = key & 0xFF

    def _process(self, compression: CompressionV5, outgoing: bool, data: bytes) -> bytes:
        if self._key is None:
            return bytes(data)
        state = self._out_state if outgoing else self._in_state
        out = bytearray(data)
        limit = compression.iteration_limit
        for i in range(len(out)):
            offset = i % 4
            if offset == 0:
                if limit == 0:
                    break
                limit -= 1
                state = (state * _MULTIPLIER + self._key) & _MASK32
            out[i] ^= (state >> (offset * 8)) & 0xFF
        if outgoing:
            self._out_state = state
        else:
            self._in_state = state
        return bytes(out)

    async def read_from_stream(self) -> None:
        """Read one frame, decipher and decompress it, and queue its packets."""
        with _protocol_errors():
            async with self._reader_lock:
                length = await self._reader.read_u16()
                frame = await self._reader.read_exact(length)
        if not frame:
            raise ProtocolError("Other: empty frame has no compression type")
        compression = CompressionV5.from_value(frame[0])
        body = self._process(compression, False, frame[1:])
        with _protocol_errors():
            if compression is CompressionV5.ZLIB:
                body = decompress_zlib(body)
            elif compression is CompressionV5.BZIP2:
                body = decompress_bzip2(body)
            packets = list(_parse_packets(body))
        async with self._queue_lock:
            self._queue.extend(packets)

    async def send_packet(self, packet: Packet) -> None:
        """Compress, encipher and write a packet as one frame."""
        with _protocol_errors():
            payload = _encode_packet(packet)
            body = self._process(CompressionV5.ZLIB, True, compress_zlib(payload))
            if self._key is not None:
                frame = _length_prefix(len(body) + 1) + bytes([CompressionV5.ZLIB]) + body
            else:
                frame = _length_prefix(len(body)) + body
            async with self._writer_lock:
                await self._writer.write_bytes(frame)
                await self._writer.flush()

    async def read(self) -> Packet:
        """Return the next packet, reading a frame first if none is queued."""
        async with self._queue_lock:
            empty = not self._queue
        if empty:
            await self.read_from_stream()
        async with self._queue_lock:
            if not self._queue:
                raise EmptyPacketQueueError()
            return self._queue.popleft()

    async def write(self, packet: Packet) -> None:
        """Send a packet."""
        await self.send_packet(packet)

    def version(self) -> int:
        return 5