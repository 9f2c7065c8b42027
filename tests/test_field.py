"""Tests for field framing."""

from __future__ import annotations

import pytest

from avlcomms.errors import MalformedFieldError, MalformedPacketError
from avlcomms.protocol import protocol
from avlcomms.protocol.field import Field


def test_empty_field_is_prefix_only() -> None:
    field = Field(0x05)
    assert field.length == protocol.FIELD_PREFIX_SIZE
    assert field.data == b""
    assert field.to_bytes() == b"\x03\x00\x05"


def test_field_encoding() -> None:
    field = Field(0x05, b"abc")
    assert field.length == 6
    assert field.to_bytes() == b"\x06\x00\x05abc"
    assert field.to_hex_string() == "0x06 0x00 0x05 0x61 0x62 0x63"


def test_field_decoding() -> None:
    assert Field.from_bytes(b"\x06\x00\x05abc") == Field(0x05, b"abc")
    assert Field.from_bytes(bytearray(b"\x03\x00\xff")) == Field(0xFF)


def test_field_accepts_buffer_types() -> None:
    field = Field(1, memoryview(b"\x01\x02"))
    assert isinstance(field.data, bytes)
    assert field.data == b"\x01\x02"


@pytest.mark.parametrize(
    "raw",
    [
        b"",
        b"\x03\x00",
        b"\x07\x00\x05abc",
        b"\x05\x00\x05abc",
        b"\x02\x00\x05",
    ],
)
def test_malformed_field_is_rejected(raw: bytes) -> None:
    with pytest.raises(MalformedFieldError):
        Field.from_bytes(raw)


def test_malformed_field_error_is_a_malformed_packet() -> None:
    with pytest.raises(MalformedPacketError):
        Field.from_bytes(b"\x09\x00\x01")


def test_length_follows_data() -> None:
    field = Field(0x02, b"x")
    field.set_data(b"hello")
    assert field.get_length() == 8
    assert field.get_data() == b"hello"

    field.set_descriptor(0x09)
    assert field.get_descriptor() == 0x09
    assert field.get_length() == 8


@pytest.mark.parametrize("descriptor", [-1, 256])
def test_descriptor_must_fit_in_a_byte(descriptor: int) -> None:
    with pytest.raises(ValueError):
        Field(descriptor)
    field = Field(0)
    with pytest.raises(ValueError):
        field.set_descriptor(descriptor)


def test_data_size_is_bounded() -> None:
    largest = Field(1, bytes(protocol.MAX_FIELD_DATA_SIZE))
    assert largest.length == protocol.UINT16_MAX
    with pytest.raises(ValueError, match="too large"):
        Field(1, bytes(protocol.MAX_FIELD_DATA_SIZE + 1))
