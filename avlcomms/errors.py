"""Exception taxonomy for the AVL binary protocol.

Every error raised by the codec derives from :class:`ProtocolError`, which
itself is a :class:`ValueError` so callers that already guard parse calls
with ``except ValueError`` keep working.

Malformed input (bad header, bad lengths, bad checksum) and incomplete input
(the stream simply has not delivered the rest of a packet yet) are kept
apart: the first means drop or resync, the second means wait for more bytes.
"""

from __future__ import annotations


class ProtocolError(ValueError):
    """Base class for every protocol codec failure."""


class MalformedPacketError(ProtocolError):
    """Bytes cannot be a valid packet or field."""


class HeaderMismatchError(MalformedPacketError):
    """The first two bytes are not the packet header constant."""


class PayloadLengthMismatchError(MalformedPacketError):
    """The declared payload length disagrees with the buffer size."""


class ChecksumMismatchError(MalformedPacketError):
    """The trailing checksum does not match the recomputed one."""


class MalformedFieldError(MalformedPacketError):
    """A field length prefix disagrees with the bytes it frames."""


class IncompletePacketError(ProtocolError):
    """The buffer ends in the middle of a packet; retry with more data."""

    def __init__(self, message: str, *, needed: int | None = None) -> None:
        super().__init__(message)
        self.needed = needed


class FieldNotFoundError(ProtocolError, LookupError):
    """A packet does not carry the requested field descriptor."""

    def __init__(self, descriptor: int) -> None:
        super().__init__(f"Field 0x{descriptor:02X} not found in packet")
        self.descriptor = descriptor


class ConversionError(ProtocolError):
    """Bytes cannot be converted to (or from) the requested value type."""


class SubsequenceRangeError(ProtocolError, IndexError):
    """A sub-sequence window falls outside its source sequence."""


__all__ = [
    "ChecksumMismatchError",
    "ConversionError",
    "FieldNotFoundError",
    "HeaderMismatchError",
    "IncompletePacketError",
    "MalformedFieldError",
    "MalformedPacketError",
    "PayloadLengthMismatchError",
    "ProtocolError",
    "SubsequenceRangeError",
]
