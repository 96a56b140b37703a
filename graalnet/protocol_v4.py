"""The v4 protocol: zlib-compressed frames with a two-byte length prefix."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .async_io import AsyncGraalReader, AsyncGraalWriter
from .codec import GraalIoError
from .compression import compress_zlib, decompress_zlib
from .packets import Packet, PacketConversionError
from .protocol import (
    EmptyPacketQueueError,
    InvalidPacketLengthError,
    Protocol,
    ProtocolError,
)
from .server_packets import FromServerPacketId
from .sync_io import GraalReader, GraalWriter

__all__ = ["ProtocolV4"]

_MAX_FRAME = 0xFFFF
_NEWLINE = 0x0A


@contextmanager
def _protocol_errors() -> Iterator[None]:
    """Re-raise lower-level failures as ProtocolError."""
    try:
        yield
    except GraalIoError as exc:
        raise ProtocolError(f"GraalIo error: {exc}") from exc
    except PacketConversionError as exc:
        raise ProtocolError(f"Packet conversion error: {exc}") from exc
    except OSError as exc:
        raise ProtocolError(f"IO error: {exc}") from exc


def _parse_packets(data: bytes) -> Iterator[Packet]:
    """Yield the newline-terminated packets held in a decompressed frame."""
    reader = GraalReader(data)
    while reader.can_read():
        packet_type = reader.read_gu8()
        payload = reader.read_until(_NEWLINE)
        yield Packet(FromServerPacketId.from_value(packet_type), payload)


def _encode_packet(packet: Packet) -> bytes:
    """Return a packet's id, data and terminating newline as wire bytes."""
    writer = GraalWriter()
    writer.write_gu8(int(packet.id.value))
    writer.write_bytes(bytes(packet.data))
    writer.write_bytes(bytes([_NEWLINE]))
    return writer.getvalue()


def _length_prefix(length: int) -> bytes:
    if length > _MAX_FRAME:
        raise InvalidPacketLengthError(length, _MAX_FRAME)
    return length.to_bytes(2, "big")


class ProtocolV4(Protocol):
    """The v4 protocol, used by NPC-control connections.

    `reader` needs an awaitable ``read(n)``; `writer` needs ``write(data)`` and
    may have an awaitable ``drain()``, as asyncio streams do.
    """

    def __init__(self, reader: Any, writer: Any) -> None:
        self._reader = AsyncGraalReader(reader)
        self._writer = AsyncGraalWriter(writer)
        self._reader_lock = asyncio.Lock()
        self._writer_lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._queue: deque[Packet] = deque()

    async def read_from_stream(self) -> None:
        """Read one frame, decompress it and queue the packets it holds."""
        with _protocol_errors():
            async with self._reader_lock:
                length = await self._reader.read_u16()
                frame = await self._reader.read_exact(length)
            packets = list(_parse_packets(decompress_zlib(frame)))
        async with self._queue_lock:
            self._queue.extend(packets)

    async def send_packet(self, packet: Packet) -> None:
        """Compress a packet and write it as one frame."""
        with _protocol_errors():
            body = compress_zlib(_encode_packet(packet))
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
        return 4