"""The Graal integer encoding and its errors."""

from __future__ import annotations

__all__ = [
    "GUINT8_MAX",
    "GUINT16_MAX",
    "GUINT24_MAX",
    "GUINT32_MAX",
    "GUINT40_MAX",
    "GraalIoError",
    "ValueExceedsMaximumError",
    "decode_bits",
    "encode_bits",
    "guint_max",
]

GUINT8_MAX = 0xDF
GUINT16_MAX = 0x705F
GUINT24_MAX = 0x38305F
GUINT32_MAX = 0x1C18305F
GUINT40_MAX = 0xFFFFFFFF

_MAXIMA = {
    1: GUINT8_MAX,
    2: GUINT16_MAX,
    3: GUINT24_MAX,
    4: GUINT32_MAX,
    5: GUINT40_MAX,
}


class GraalIoError(Exception):
    """Raised when reading or writing Graal-encoded data fails."""


class ValueExceedsMaximumError(GraalIoError):
    """Raised when a value is too large for its Graal-encoded width."""

    def __init__(self, value: int, maximum: int) -> None:
        super().__init__(
            "Value exceeds maximum for Graal-encoded integer. "
            f"Value was {value}, but cannot exceed {maximum}."
        )
        self.value = value
        self.maximum = maximum


def guint_max(byte_count: int) -> int:
    """Return the largest value allowed for a Graal integer of `byte_count` bytes."""
    try:
        return _MAXIMA[byte_count]
    except KeyError:
        raise GraalIoError(f"Unsupported byte count: {byte_count}") from None


def decode_bits(data: bytes) -> int:
    """Decode Graal-encoded bytes (7 bits per byte, offset by 32) into an integer."""
    value = 0
    for byte in data:
        value = (value << 7) + ((byte - 32) & 0xFF)
    return value


def encode_bits(value: int, byte_count: int) -> bytes:
    """Encode `value` into `byte_count` Graal-encoded bytes."""
    out = bytearray()
    for shift in range(7 * (byte_count - 1), -1, -7):
        chunk = (value >> shift) & 0x7F
        out.append(chunk + 32)
        value -= chunk << shift
    return bytes(out)