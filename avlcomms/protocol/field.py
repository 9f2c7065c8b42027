"""Descriptor-tagged, length-prefixed field.

Wire layout:
    [length (2 bytes, little-endian, includes itself)] [descriptor (1 byte)] [data]

``length`` is derived from ``data`` and is never stored, so it cannot drift
from the payload it describes.
"""

from __future__ import annotations

from typing import Self

import msgspec
from construct import ConstructError

from ..errors import MalformedFieldError
from ..util import byte_to_hex
from . import protocol


def _validate_descriptor(descriptor: int) -> int:
    if not 0 <= descriptor <= protocol.UINT8_MAX:
        raise ValueError(f"Field descriptor {descriptor} outside 8-bit range")
    return int(descriptor)


def _coerce_data(data: bytes | bytearray | memoryview) -> bytes:
    raw = bytes(data)
    if len(raw) > protocol.MAX_FIELD_DATA_SIZE:
        raise ValueError(f"Field data too large ({len(raw)} bytes); max is {protocol.MAX_FIELD_DATA_SIZE}")
    return raw


class Field(msgspec.Struct):
    """One field of a packet.

    Attributes:
        descriptor: Field type, scoped to the packet type carrying it.
        data: Raw field payload, possibly empty.
    """

    descriptor: int = 0
    data: bytes = b""

    def __post_init__(self) -> None:
        self.descriptor = _validate_descriptor(self.descriptor)
        self.data = _coerce_data(self.data)

    @property
    def length(self) -> int:
        """Total encoded size, including the length prefix itself."""
        return protocol.FIELD_PREFIX_SIZE + len(self.data)

    @classmethod
    def from_bytes(cls, raw: bytes | bytearray | memoryview) -> Self:
        """Parse a single encoded field; the length prefix must match ``raw``."""
        data_bytes = bytes(raw)
        if len(data_bytes) < protocol.FIELD_PREFIX_SIZE:
            raise MalformedFieldError(
                f"Field too short: {len(data_bytes)} bytes, need at least {protocol.FIELD_PREFIX_SIZE}"
            )
        try:
            prefix = protocol.FIELD_PREFIX_STRUCT.parse(data_bytes)
        except ConstructError as exc:
            raise MalformedFieldError(f"Field prefix parsing failed: {exc}") from exc

        if prefix.length != len(data_bytes):
            raise MalformedFieldError(
                f"Field length mismatch: prefix says {prefix.length} bytes, buffer has {len(data_bytes)}"
            )
        return cls(prefix.descriptor, data_bytes[protocol.FIELD_PREFIX_SIZE :])

    def to_bytes(self) -> bytes:
        prefix = protocol.FIELD_PREFIX_STRUCT.build({"length": self.length, "descriptor": self.descriptor})
        return prefix + self.data

    def get_length(self) -> int:
        return self.length

    def get_descriptor(self) -> int:
        return self.descriptor

    def get_data(self) -> bytes:
        return self.data

    def set_data(self, data: bytes | bytearray | memoryview) -> None:
        self.data = _coerce_data(data)

    def set_descriptor(self, descriptor: int) -> None:
        self.descriptor = _validate_descriptor(descriptor)

    def to_hex_string(self) -> str:
        return byte_to_hex(self.to_bytes())


__all__ = ["Field"]
