"""The protocol interface and its errors."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .packets import Packet

__all__ = [
    "DecryptionError",
    "EmptyPacketQueueError",
    "InvalidCompressionError",
    "InvalidHeaderError",
    "InvalidHeaderFormatError",
    "InvalidPacketLengthError",
    "Protocol",
    "ProtocolError",
]


class ProtocolError(Exception):
    """Raised when a protocol cannot read or write a packet."""


class InvalidCompressionError(ProtocolError):
    """Raised for an unknown compression type."""

    def __init__(self, value: int) -> None:
        super().__init__(f"Invalid compression value: {value}")
        self.value = value


class EmptyPacketQueueError(ProtocolError):
    """Raised when the packet queue is unexpectedly empty."""

    def __init__(self) -> None:
        super().__init__("Unexpected empty packet queue")


class InvalidHeaderFormatError(ProtocolError):
    """Raised for a header format that cannot be used."""


class InvalidHeaderError(ProtocolError):
    """Raised for a packet header that cannot be parsed."""


class InvalidPacketLengthError(ProtocolError):
    """Raised when a packet is longer than allowed."""

    def __init__(self, length: int, maximum: int) -> None:
        super().__init__(f"Invalid packet length. {length} > {maximum}")
        self.length = length
        self.maximum = maximum


class DecryptionError(ProtocolError):
    """Raised when incoming data cannot be decrypted."""


class Protocol(ABC):
    """A wire protocol that reads and writes packets."""

    @abstractmethod
    async def read(self) -> Packet:
        """Return the next packet from the stream."""

    @abstractmethod
    async def write(self, packet: Packet) -> None:
        """Send a packet."""

    @abstractmethod
    def version(self) -> int:
        """Return the protocol version number."""