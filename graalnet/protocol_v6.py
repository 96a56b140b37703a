"""The v6 protocol: configurable headers, packet bundles and RC4 encryption."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any

from cryptography.hazmat.primitives.asymmetric import padding

from .async_io import AsyncGraalReader, AsyncGraalWriter
from .codec import GraalIoError
from .compression import compress_zlib, decompress_bzip2, decompress_zlib
from .packets import Packet
from .protocol import (
    DecryptionError,
    EmptyPacketQueueError,
    InvalidHeaderError,
    Protocol,
    ProtocolError,
)
from .protocol_v4 import _protocol_errors
from .server_packets import FromServerPacketId
from .sync_io import GraalReader
from .v6_header import CompressionV6, HeaderFormat, PacketDirection, PacketHeader

__all__ = ["RC4_KEY_SIZE", "V6_PROTOCOL_STRING", "ProtocolV6", "Rc4"]

log = logging.getLogger(__name__)

V6_PROTOCOL_STRING = "GNP1905C"
RC4_KEY_SIZE = 16

_COMPRESS_THRESHOLD = 55
_RETRY_DELAY = 0.01


class Rc4:
    """The RC4 stream cipher; its keystream carries over between calls."""

    def __init__(self, key: bytes) -> None:
        key = bytes(key)
        if not 1 <= len(key) <= 256:
            raise ValueError("RC4 key must be between 1 and 256 bytes long")
        state = list(range(256))
        j = 0
        for i in range(256):
            j = (j + state[i] + key[i % len(key)]) & 0xFF
            state[i], state[j] = state[j], state[i]
        self._state = state
        self._i = 0
        self._j = 0

    def apply(self, data: bytes) -> bytes:
        """XOR the data with the next bytes of the keystream."""
        state = self._state
        i, j = self._i, self._j
        out = bytearray(data)
        for index, byte in enumerate(out):
            i = (i + 1) & 0xFF
            j = (j + state[i]) & 0xFF
            state[i], state[j] = state[j], state[i]
            out[index] = byte ^ state[(state[i] + state[j]) & 0xFF]
        self._i, self._j = i, j
        return bytes(out)


def _decompress(compression: CompressionV6, data: bytes) -> bytes:
    if compression is CompressionV6.ZLIB:
        return decompress_zlib(data)
    if compression is CompressionV6.BZIP2:
        return decompress_bzip2(data)
    return data


class ProtocolV6(Protocol):
    """The v6 protocol, used by game connections.

    `rsa_private_key` is a private key from ``cryptography``; it decrypts the
    RC4 key the server sends. Outgoing data is not encrypted.
    """

    def __init__(
        self,
        reader: Any,
        writer: Any,
        header_format: HeaderFormat,
        rsa_private_key: Any,
    ) -> None:
        self._reader = AsyncGraalReader(reader)
        self._writer = AsyncGraalWriter(writer)
        self._reader_lock = asyncio.Lock()
        self._writer_lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._queue: deque[Packet] = deque()
        self._format = header_format
        self._rsa_private_key = rsa_private_key
        self._from_server_checksum = 1
        self._to_server_checksum = 1
        self._rc4: Rc4 | None = None

    async def _read_encrypted(self, length: int) -> bytes:
        async with self._reader_lock:
            with _protocol_errors():
                data = await self._reader.read_exact(length)
            if self._rc4 is not None:
                data = self._rc4.apply(data)
        return data

    def _set_encryption_key(self, ciphertext: bytes) -> None:
        if self._rsa_private_key is None:
            raise DecryptionError("Rsa decryption error: no private key configured")
        try:
            payload = self._rsa_private_key.decrypt(ciphertext, padding.PKCS1v15())
        except ValueError as exc:
            raise DecryptionError(f"Rsa decryption error: {exc}") from exc
        reader = GraalReader(payload)
        with _protocol_errors():
            encryption_type = reader.read_gu8()
            if encryption_type == 0:
                raise ProtocolError("Other: AES is not supported, consider using RC4.")
            key = reader.read_exact(reader.read_gu8())
            reader.read_exact(reader.read_gu8())
        if len(key) != RC4_KEY_SIZE:
            raise ProtocolError("Other: Failed to create RC4 key")
        log.debug("Setting RC4 key: %r", key)
        self._rc4 = Rc4(key)

    def _update_checksum(self, checksum: int) -> None:
        if self._from_server_checksum != checksum:
            log.warning(
                "Invalid checksum: expected %d, got %d", self._from_server_checksum, checksum
            )
        self._from_server_checksum = 0 if checksum == 255 else checksum + 1

    async def _process_bundle(self, data: bytes) -> None:
        header_length = self._format.header_length
        offset = 0
        while len(data) - offset > header_length:
            with _protocol_errors():
                header = self._format.parse_header(
                    PacketDirection.INCOMING, data[offset : offset + header_length]
                )
            remaining = len(data) - offset
            if remaining < header.length:
                log.warning(
                    "Invalid packet length: expected %d, got %d", header.length, remaining
                )
                break
            if header.length < header_length:
                raise InvalidHeaderError(
                    f"Invalid header: packet length {header.length} is shorter than its header"
                )
            body = data[offset + header_length : offset + header.length]
            offset += header.length
            with _protocol_errors():
                body = _decompress(header.compression, body)

            queue_packet = True
            if header.id is FromServerPacketId.Bundle:
                queue_packet = False
                await self._process_bundle(body)
            if header.id is FromServerPacketId.SetEncKey:
                self._set_encryption_key(body)

            self._update_checksum(header.checksum)

            if queue_packet:
                async with self._queue_lock:
                    self._queue.append(Packet(header.id, body))
            else:
                log.debug("Ignoring packet %s of size %d", header.id, header.length)

    async def read_from_stream(self) -> None:
        """Read one packet (or bundle) from the stream and queue what it holds."""
        header_length = self._format.header_length
        header_bytes = await self._read_encrypted(header_length)
        with _protocol_errors():
            header = self._format.parse_header(PacketDirection.INCOMING, header_bytes)
        if header.length < header_length:
            raise InvalidHeaderError(
                f"Invalid header: packet length {header.length} is shorter than its header"
            )
        body = await self._read_encrypted(header.length - header_length)
        await self._process_bundle(header_bytes + body)

    async def send_packet(self, packet: Packet) -> None:
        """Write a packet with its header, compressing large payloads with zlib."""
        data = bytes(packet.data)
        compression = CompressionV6.NONE
        with _protocol_errors():
            if len(data) > _COMPRESS_THRESHOLD:
                data = compress_zlib(data)
                compression = CompressionV6.ZLIB
            checksum = self._to_server_checksum
            header = PacketHeader(
                compression=compression,
                checksum=checksum,
                length=self._format.header_length + len(data),
                id=packet.id,
            )
            header_bytes = self._format.create_header(header)
            self._to_server_checksum = 0 if checksum == 255 else checksum + 1
            async with self._writer_lock:
                await self._writer.write_bytes(header_bytes + data)
                await self._writer.flush()

    async def send_handshake(self) -> None:
        """Queue the protocol string; it goes out with the next flush."""
        async with self._writer_lock:
            try:
                await self._writer.write_bytes(V6_PROTOCOL_STRING.encode("ascii"))
            except GraalIoError as exc:
                raise ProtocolError(f"GraalIo error: {exc}") from exc

    async def read(self) -> Packet:
        """Return the next packet, reading from the stream until one is queued."""
        while True:
            async with self._queue_lock:
                if self._queue:
                    return self._queue.popleft()
            try:
                await self.read_from_stream()
            except EmptyPacketQueueError:
                pass
            async with self._queue_lock:
                if self._queue:
                    return self._queue.popleft()
            await asyncio.sleep(_RETRY_DELAY)

    async def write(self, packet: Packet) -> None:
        """Send a packet."""
        await self.send_packet(packet)

    def version(self) -> int:
        return 6