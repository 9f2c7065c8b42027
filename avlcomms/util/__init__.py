"""General-purpose utilities for the AVL comms stack."""

from __future__ import annotations

import logging
from collections.abc import Iterable, MutableSequence, Sequence
from typing import TypeVar

from ..errors import SubsequenceRangeError
from .byte import (
    SCALAR_FORMATS,
    byte_to_hex,
    from_bytes,
    sizeof,
    to_bytes,
    vector_from_bytes,
    vector_to_bytes,
)

__all__ = [
    "SCALAR_FORMATS",
    "append",
    "byte_to_hex",
    "chunk_bytes",
    "from_bytes",
    "log_hexdump",
    "parse_bool",
    "remove",
    "sizeof",
    "subvector",
    "to_bytes",
    "vector_from_bytes",
    "vector_to_bytes",
]

SeqT = TypeVar("SeqT", bound=Sequence[object])


def _check_window(length: int, start: int, count: int) -> None:
    if start < 0 or count < 0 or start > length or start + count > length:
        raise SubsequenceRangeError(
            f"Window start={start} count={count} is outside a sequence of length {length}"
        )


def subvector(seq: SeqT, start: int, count: int) -> SeqT:
    """Return ``count`` elements of ``seq`` starting at ``start``.

    An empty window ending exactly at ``len(seq)`` is valid.
    """
    _check_window(len(seq), start, count)
    return seq[start : start + count]  # type: ignore[return-value]


def append(dst: MutableSequence[int], src: Iterable[int]) -> None:
    """Extend ``dst`` with ``src`` in place."""
    dst.extend(src)


def remove(seq: MutableSequence[int], start: int, count: int) -> None:
    """Delete ``count`` elements of ``seq`` starting at ``start``, in place."""
    _check_window(len(seq), start, count)
    del seq[start : start + count]


def chunk_bytes(payload: bytes, chunk_size: int) -> list[bytes]:
    """Split payload into fixed-size chunks."""
    if not payload:
        return []
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [payload[index : index + chunk_size] for index in range(0, len(payload), chunk_size)]


def log_hexdump(logger_instance: logging.Logger, level: int, label: str, data: bytes) -> None:
    """Log binary data as space-separated hex bytes.

    Format: [HEXDUMP] %s: %s
    """
    if not logger_instance.isEnabledFor(level):
        return

    hex_str = data.hex(" ").upper()
    logger_instance.log(level, "[HEXDUMP] %s: %s", label, hex_str)


_TRUE_STRINGS = frozenset({"1", "yes", "on", "true", "enable", "enabled"})


def parse_bool(value: object) -> bool:
    """Parse a boolean value safely from various types."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if value is None:
        return False
    s = str(value).lower().strip()
    return s in _TRUE_STRINGS
