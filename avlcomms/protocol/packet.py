"""Packet framing, validation and multi-packet stream parsing.

Packet layout (all multi-byte integers little-endian):

    [0x75 0x65] [descriptor (1)] [payload_length (2)] [fields ...] [checksum (2)]

The checksum is a two-accumulator running sum over every byte from the
header through the last field byte, emitted MSB accumulator first.

Some field payloads are themselves encoded packets (tasks inside a mission
APPEND field, a parameter list inside a RESPONSE DATA field). They stay
opaque bytes here; consumers re-parse them with :meth:`Packet.parse_stream`.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Self

import msgspec
from construct import ConstructError

from ..errors import (
    ChecksumMismatchError,
    FieldNotFoundError,
    HeaderMismatchError,
    IncompletePacketError,
    MalformedFieldError,
    PayloadLengthMismatchError,
)
from ..util import byte_to_hex
from . import protocol
from .field import Field


def compute_checksum(data: bytes | bytearray | memoryview) -> bytes:
    """Return the two checksum bytes (MSB accumulator, LSB accumulator)."""
    msb = 0
    lsb = 0
    for value in bytes(data):
        msb = (msb + value) & 0xFF
        lsb = (lsb + msb) & 0xFF
    return protocol.CHECKSUM_STRUCT.build({"msb": msb, "lsb": lsb})


def _peel_fields(payload: bytes) -> list[Field]:
    fields: list[Field] = []
    offset = 0
    end = len(payload)
    while offset < end:
        if end - offset < protocol.FIELD_PREFIX_SIZE:
            raise MalformedFieldError(
                f"Malformed field data: {end - offset} trailing bytes at offset {offset}"
            )
        length = int.from_bytes(payload[offset : offset + protocol.LENGTH_SIZE], "little")
        if length < protocol.FIELD_PREFIX_SIZE or offset + length > end:
            raise MalformedFieldError(
                f"Malformed field data: field at offset {offset} claims {length} bytes, "
                f"{end - offset} available"
            )
        fields.append(Field.from_bytes(payload[offset : offset + length]))
        offset += length
    return fields


class Packet(msgspec.Struct):
    """A framed, checksummed collection of fields.

    Attributes:
        descriptor: Packet type (see :class:`~avlcomms.protocol.protocol.PacketType`).
        fields: Fields in wire order. Duplicate descriptors are allowed;
            lookups return the first match.
    """

    descriptor: int = 0
    fields: list[Field] = []

    def __post_init__(self) -> None:
        if not 0 <= self.descriptor <= protocol.UINT8_MAX:
            raise ValueError(f"Packet descriptor {self.descriptor} outside 8-bit range")
        self.descriptor = int(self.descriptor)
        self.fields = list(self.fields)
        if self.payload_length > protocol.MAX_PAYLOAD_SIZE:
            raise ValueError(
                f"Payload too large ({self.payload_length} bytes); max is {protocol.MAX_PAYLOAD_SIZE}"
            )

    @property
    def payload_length(self) -> int:
        return sum(field.length for field in self.fields)

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        payload_length = self.payload_length
        # Field.set_data can grow a field after add_field checked the bound.
        if payload_length > protocol.MAX_PAYLOAD_SIZE:
            raise ValueError(f"Payload too large ({payload_length} bytes); max is {protocol.MAX_PAYLOAD_SIZE}")
        prefix = protocol.PACKET_PREFIX_STRUCT.build(
            {
                "header": protocol.PACKET_HEADER,
                "descriptor": self.descriptor,
                "payload_length": payload_length,
            }
        )
        body = prefix + b"".join(field.to_bytes() for field in self.fields)
        return body + compute_checksum(body)

    def to_hex_string(self) -> str:
        return byte_to_hex(self.to_bytes())

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    @classmethod
    def from_bytes(cls, raw: bytes | bytearray | memoryview) -> Self:
        """Parse and validate exactly one encoded packet."""
        data_bytes = bytes(raw)
        total_len = len(data_bytes)

        if data_bytes[: protocol.HEADER_SIZE] != protocol.PACKET_HEADER:
            raise HeaderMismatchError(
                f"Header mismatch: expected {protocol.PACKET_HEADER.hex(' ').upper()}, "
                f"got {data_bytes[: protocol.HEADER_SIZE].hex(' ').upper() or 'nothing'}"
            )
        if total_len < protocol.MIN_PACKET_SIZE:
            raise PayloadLengthMismatchError(
                f"Packet too short: {total_len} bytes, need at least {protocol.MIN_PACKET_SIZE}"
            )

        try:
            prefix = protocol.PACKET_PREFIX_STRUCT.parse(data_bytes)
        except ConstructError as exc:
            raise PayloadLengthMismatchError(f"Packet prefix parsing failed: {exc}") from exc

        if prefix.payload_length != total_len - protocol.PACKET_OVERHEAD:
            raise PayloadLengthMismatchError(
                f"Payload length mismatch: header says {prefix.payload_length} bytes, "
                f"buffer holds {total_len - protocol.PACKET_OVERHEAD}"
            )

        body = data_bytes[: -protocol.CHECKSUM_SIZE]
        received = data_bytes[-protocol.CHECKSUM_SIZE :]
        calculated = compute_checksum(body)
        if received != calculated:
            raise ChecksumMismatchError(
                f"Checksum mismatch: expected 0x{calculated.hex().upper()}, got 0x{received.hex().upper()}"
            )

        try:
            fields = _peel_fields(body[protocol.PACKET_PREFIX_SIZE :])
        except MalformedFieldError:
            raise
        except ValueError as exc:
            raise MalformedFieldError(f"Malformed field data: {exc}") from exc

        return cls(prefix.descriptor, fields)

    @classmethod
    def read_one(cls, buffer: bytes | bytearray | memoryview) -> tuple[Self, int]:
        """Parse the packet at the start of ``buffer``.

        Returns the packet and the number of bytes it occupied. Raises
        :class:`IncompletePacketError` when ``buffer`` holds only part of it.
        """
        available = len(buffer)
        prefix = bytes(buffer[: protocol.PACKET_PREFIX_SIZE])
        head = prefix[: protocol.HEADER_SIZE]
        if head != protocol.PACKET_HEADER[: len(head)]:
            raise HeaderMismatchError(
                f"Header mismatch: expected {protocol.PACKET_HEADER.hex(' ').upper()}, "
                f"got {head.hex(' ').upper()}"
            )
        if available < protocol.PACKET_PREFIX_SIZE:
            raise IncompletePacketError(
                f"Incomplete packet: {available} bytes buffered, prefix needs {protocol.PACKET_PREFIX_SIZE}",
                needed=protocol.PACKET_PREFIX_SIZE - available,
            )

        payload_length = int.from_bytes(prefix[protocol.PAYLOAD_LENGTH_OFFSET :], "little")
        total = protocol.PACKET_OVERHEAD + payload_length
        if available < total:
            raise IncompletePacketError(
                f"Incomplete packet: {available} of {total} bytes buffered",
                needed=total - available,
            )
        return cls.from_bytes(buffer[:total]), total

    @classmethod
    def iter_stream(cls, data: bytes | bytearray | memoryview) -> Iterator[Self]:
        """Yield back-to-back packets; a truncated tail raises IncompletePacketError."""
        view = memoryview(bytes(data))
        offset = 0
        while offset < len(view):
            packet, consumed = cls.read_one(view[offset:])
            offset += consumed
            yield packet

    @classmethod
    def parse_stream(cls, data: bytes | bytearray | memoryview) -> list[Self]:
        """Parse every packet in ``data``; any bad packet aborts the batch."""
        return list(cls.iter_stream(data))

    parse_multiple = parse_stream

    @classmethod
    def split_stream(cls, data: bytes | bytearray | memoryview) -> tuple[list[Self], bytes]:
        """Parse complete packets and return them with the undecoded tail."""
        data_bytes = bytes(data)
        view = memoryview(data_bytes)
        packets: list[Self] = []
        offset = 0
        while offset < len(view):
            try:
                packet, consumed = cls.read_one(view[offset:])
            except IncompletePacketError:
                break
            packets.append(packet)
            offset += consumed
        return packets, data_bytes[offset:]

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    def get_descriptor(self) -> int:
        return self.descriptor

    def set_descriptor(self, descriptor: int) -> None:
        if not 0 <= descriptor <= protocol.UINT8_MAX:
            raise ValueError(f"Packet descriptor {descriptor} outside 8-bit range")
        self.descriptor = int(descriptor)

    def has_field(self, descriptor: int) -> bool:
        return self.get_field_index(descriptor) is not None

    def get_field_index(self, descriptor: int) -> int | None:
        for index, field in enumerate(self.fields):
            if field.descriptor == descriptor:
                return index
        return None

    def get_field(self, descriptor: int) -> Field:
        index = self.get_field_index(descriptor)
        if index is None:
            raise FieldNotFoundError(descriptor)
        return self.fields[index]

    def get_fields(self, descriptor: int) -> list[Field]:
        return [field for field in self.fields if field.descriptor == descriptor]

    def get_num_fields(self) -> int:
        return len(self.fields)

    def add_field(self, field: Field | int, data: bytes | bytearray | memoryview | None = None) -> None:
        """Append a field, given either as a Field or as a descriptor plus data."""
        if isinstance(field, Field):
            if data is not None:
                raise TypeError("data must not be given together with a Field")
            new_field = field
        else:
            new_field = Field(field, b"" if data is None else data)

        new_length = self.payload_length + new_field.length
        if new_length > protocol.MAX_PAYLOAD_SIZE:
            raise ValueError(f"Payload too large ({new_length} bytes); max is {protocol.MAX_PAYLOAD_SIZE}")
        self.fields.append(new_field)

    def clear_fields(self) -> None:
        self.fields.clear()

    def copy(self) -> Packet:
        return Packet(self.descriptor, [Field(field.descriptor, field.data) for field in self.fields])


__all__ = ["Packet", "compute_checksum"]
