"""Reassembly of packets from an unframed byte stream.

TCP and radio links deliver bytes in arbitrary chunks. The buffer keeps a
trailing partial packet until the rest arrives and, when resync is enabled,
skips ahead to the next packet header after malformed input instead of
dropping the connection.
"""

from __future__ import annotations

import logging

from ..config.const import DEFAULT_MAX_BUFFER_BYTES, DEFAULT_RESYNC_ON_ERROR
from ..errors import ChecksumMismatchError, IncompletePacketError, MalformedPacketError
from ..protocol import protocol
from ..protocol.packet import Packet
from ..state.stats import LinkStatistics

logger = logging.getLogger("avlcomms.transport.stream")


class PacketStreamBuffer:
    """Accumulates inbound bytes and yields complete packets."""

    def __init__(
        self,
        max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES,
        resync: bool = DEFAULT_RESYNC_ON_ERROR,
        stats: LinkStatistics | None = None,
    ) -> None:
        if max_buffer_bytes < protocol.MIN_PACKET_SIZE:
            raise ValueError(
                f"max_buffer_bytes must hold at least one empty packet ({protocol.MIN_PACKET_SIZE} bytes)"
            )
        self.max_buffer_bytes = max_buffer_bytes
        self.resync = resync
        self.stats = stats if stats is not None else LinkStatistics()
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Bytes held back waiting for the rest of a packet."""
        return len(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()

    def feed(self, chunk: bytes | bytearray | memoryview) -> list[Packet]:
        """Add ``chunk`` and return every packet it completes.

        With resync disabled, malformed input clears the buffer and the
        error propagates. Packets completed earlier in the same call are
        returned first; the malformed bytes stay buffered and raise on the
        next call.
        """
        self.stats.record_rx_bytes(len(chunk))
        self._buffer.extend(chunk)
        packets: list[Packet] = []
        held_error = False

        while self._buffer:
            try:
                packet, consumed = Packet.read_one(self._buffer)
            except IncompletePacketError:
                break
            except MalformedPacketError as exc:
                if packets and not self.resync:
                    held_error = True
                    break
                if isinstance(exc, ChecksumMismatchError):
                    self.stats.record_checksum_error()
                self.stats.record_malformed_packet()
                if not self.resync:
                    self._buffer.clear()
                    raise
                discarded = self._skip_to_next_header()
                self.stats.record_resync(discarded)
                logger.warning("Malformed packet (%s); skipped %d bytes", exc, discarded)
                continue

            del self._buffer[:consumed]
            self.stats.record_rx_packet()
            packets.append(packet)

        if not held_error and len(self._buffer) > self.max_buffer_bytes:
            self.stats.record_buffer_overflow()
            logger.warning("Stream buffer exceeded %d bytes, flushed.", self.max_buffer_bytes)
            self._buffer.clear()

        return packets

    def _skip_to_next_header(self) -> int:
        index = self._buffer.find(protocol.PACKET_HEADER, 1)
        if index < 0:
            # A lone trailing first header byte may be the start of the next packet.
            keep = 1 if self._buffer.endswith(protocol.PACKET_HEADER[:1]) else 0
            index = len(self._buffer) - keep
        del self._buffer[:index]
        return index


__all__ = ["PacketStreamBuffer"]
