"""String wrappers with Graal wire encodings."""

from __future__ import annotations

from dataclasses import dataclass

from .codec import GraalIoError
from .sync_io import GraalWriter

__all__ = ["GScript", "GString", "GraalSerializationError"]


class GraalSerializationError(Exception):
    """Raised when a value cannot be serialized for the wire."""


@dataclass(frozen=True)
class GString:
    """A string serialized with a Graal-encoded one-byte length prefix."""

    value: str

    def __str__(self) -> str:
        return self.value

    def encode_graal(self) -> bytes:
        """Return the length-prefixed wire bytes."""
        writer = GraalWriter()
        try:
            writer.write_gstring(self.value)
        except GraalIoError as exc:
            raise GraalSerializationError(f"IO error: {exc}") from exc
        return writer.getvalue()


@dataclass(frozen=True)
class GScript:
    """A script serialized with carriage returns dropped and newlines sent as 0xA7."""

    value: str

    def __str__(self) -> str:
        return self.value

    def encode_graal(self) -> bytes:
        """Return the script's wire bytes."""
        data = self.value.replace("\r", "").encode("utf-8")
        return data.replace(b"\n", b"\xa7")