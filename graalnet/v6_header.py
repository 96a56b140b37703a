"""Configurable packet headers of the v6 protocol."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from .packets import FromClientPacketId
from .protocol import InvalidCompressionError, InvalidHeaderError, InvalidHeaderFormatError
from .server_packets import FromServerPacketId

__all__ = ["CompressionV6", "HeaderFormat", "PacketDirection", "PacketHeader"]

_FIELD_CHARS = "EILT"


class CompressionV6(IntEnum):
    """Compression types of the v6 protocol."""

    NONE = 0
    ZLIB = 1
    BZIP2 = 2

    @classmethod
    def from_value(cls, value: int) -> CompressionV6:
        try:
            return cls(value)
        except ValueError:
            raise InvalidCompressionError(value & 0xFF) from None


class PacketDirection(Enum):
    """Whether a packet comes from the server or from the client."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"


@dataclass(frozen=True)
class PacketHeader:
    """A parsed header for a single packet."""

    compression: CompressionV6
    checksum: int
    length: int
    id: Any


def _num_from_buffer(buffer: bytes, index: int, size: int) -> int:
    if index + size > len(buffer):
        raise InvalidHeaderFormatError("Invalid header format: Buffer too short")
    return int.from_bytes(buffer[index : index + size], "big")


def _buffer_from_num(value: int, size: int) -> bytes:
    return (value & ((1 << (8 * size)) - 1)).to_bytes(size, "big")


@dataclass(frozen=True)
class HeaderFormat:
    """Where each header field sits, as given by a format string of E, I, L and T.

    E is the compression type, I the checksum, L the length and T the packet type.
    """

    header_length: int
    compression_index: int
    compression_size: int
    checksum_index: int
    checksum_size: int
    length_index: int
    length_size: int
    type_index: int
    type_size: int

    @classmethod
    def parse(cls, spec: str) -> HeaderFormat:
        """Build a format from a string such as ``"EILLT"``."""
        if any(char not in _FIELD_CHARS for char in spec) or any(
            char not in spec for char in _FIELD_CHARS
        ):
            raise InvalidHeaderFormatError(f"Invalid header format: {spec}")
        return cls(
            header_length=len(spec),
            compression_index=spec.index("E"),
            compression_size=spec.count("E"),
            checksum_index=spec.index("I"),
            checksum_size=spec.count("I"),
            length_index=spec.index("L"),
            length_size=spec.count("L"),
            type_index=spec.index("T"),
            type_size=spec.count("T"),
        )

    def parse_header(self, direction: PacketDirection, buffer: bytes) -> PacketHeader:
        """Parse a header; the direction decides which packet ids apply."""
        if len(buffer) != self.header_length:
            raise InvalidHeaderError(
                f"Invalid header: Invalid header length: {len(buffer)} != {self.header_length}"
            )
        compression = CompressionV6.from_value(
            _num_from_buffer(buffer, self.compression_index, self.compression_size)
        )
        checksum = _num_from_buffer(buffer, self.checksum_index, self.checksum_size)
        length = _num_from_buffer(buffer, self.length_index, self.length_size)
        raw_id = _num_from_buffer(buffer, self.type_index, self.type_size)
        if direction is PacketDirection.INCOMING:
            packet_id = FromServerPacketId.from_value(raw_id)
        else:
            packet_id = FromClientPacketId.from_value(raw_id)
        return PacketHeader(
            compression=compression,
            checksum=checksum & 0xFF,
            length=length,
            id=packet_id,
        )

    def create_header(self, header: PacketHeader) -> bytes:
        """Return the header bytes for a packet header."""
        buffer = bytearray(self.header_length)
        fields = (
            (self.compression_index, self.compression_size, int(header.compression)),
            (self.checksum_index, self.checksum_size, header.checksum),
            (self.length_index, self.length_size, header.length),
            (self.type_index, self.type_size, int(header.id.value)),
        )
        for index, size, value in fields:
            buffer[index : index + size] = _buffer_from_num(value, size)
        return bytes(buffer)