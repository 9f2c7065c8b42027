"""Fixed-width scalar <-> bytes conversion.

All multi-byte values are little-endian on the wire. ``reverse=True`` flips
the byte order of each value, which turns the little-endian encoding into a
big-endian one.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Final

from construct import (  # type: ignore
    Construct,
    ConstructError,
    Flag,
    Float32l,
    Float64l,
    Int8sl,
    Int8ul,
    Int16sl,
    Int16ul,
    Int32sl,
    Int32ul,
    Int64sl,
    Int64ul,
)

from ..errors import ConversionError

SCALAR_FORMATS: Final[dict[str, Construct[Any, Any]]] = {
    "bool": Flag,
    "int8": Int8sl,
    "uint8": Int8ul,
    "int16": Int16sl,
    "uint16": Int16ul,
    "int32": Int32sl,
    "uint32": Int32ul,
    "int64": Int64sl,
    "uint64": Int64ul,
    "float": Float32l,
    "double": Float64l,
}

BytesLike = bytes | bytearray | memoryview


def _format(kind: str) -> Construct[Any, Any]:
    try:
        return SCALAR_FORMATS[kind]
    except KeyError as exc:
        raise ConversionError(f"Unknown scalar kind '{kind}'") from exc


def sizeof(kind: str) -> int:
    """Return the encoded width of ``kind`` in bytes."""
    return int(_format(kind).sizeof())


def to_bytes(value: Any, kind: str = "double", reverse: bool = False) -> bytes:
    """Encode one scalar as ``kind``."""
    fmt = _format(kind)
    try:
        encoded = fmt.build(value)
    except ConstructError as exc:
        raise ConversionError(f"Cannot encode {value!r} as {kind}: {exc}") from exc
    return encoded[::-1] if reverse else encoded


def from_bytes(data: BytesLike, kind: str = "double", reverse: bool = False) -> Any:
    """Decode exactly one ``kind`` value; the byte count must match its width."""
    fmt = _format(kind)
    raw = bytes(data)
    width = fmt.sizeof()
    if len(raw) != width:
        raise ConversionError(f"Cannot decode {kind} from {len(raw)} bytes; expected {width}")
    if reverse:
        raw = raw[::-1]
    try:
        return fmt.parse(raw)
    except ConstructError as exc:
        raise ConversionError(f"Cannot decode {kind}: {exc}") from exc


def vector_to_bytes(values: Sequence[Any], kind: str = "double", reverse: bool = False) -> bytes:
    """Encode ``values`` back to back."""
    return b"".join(to_bytes(value, kind, reverse) for value in values)


def vector_from_bytes(data: BytesLike, kind: str = "double", reverse: bool = False) -> list[Any]:
    """Split ``data`` into ``kind``-sized chunks and decode each one.

    ``reverse`` flips the bytes inside every element; element order is kept.
    """
    raw = bytes(data)
    width = sizeof(kind)
    if len(raw) % width:
        raise ConversionError(f"Cannot split {len(raw)} bytes into {kind} values of {width} bytes")
    return [from_bytes(raw[offset : offset + width], kind, reverse) for offset in range(0, len(raw), width)]


def byte_to_hex(data: BytesLike) -> str:
    """Render bytes as space separated ``0xHH`` tokens."""
    return " ".join(f"0x{byte:02X}" for byte in bytes(data))


__all__ = [
    "SCALAR_FORMATS",
    "byte_to_hex",
    "from_bytes",
    "sizeof",
    "to_bytes",
    "vector_from_bytes",
    "vector_to_bytes",
]
