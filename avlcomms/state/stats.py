"""Per-link counters for observability."""

from __future__ import annotations

import time
from typing import Any

import msgspec


class LinkStatistics(msgspec.Struct):
    """Packet link counters for one vehicle connection.

    Counters only ever increase.
    """

    bytes_sent: int = 0
    bytes_received: int = 0
    packets_sent: int = 0
    packets_received: int = 0
    checksum_errors: int = 0
    malformed_packets: int = 0
    resync_discarded_bytes: int = 0
    buffer_overflows: int = 0
    decode_errors: int = 0
    status_decode_warnings: int = 0
    unhandled_packets: int = 0
    last_tx_unix: float = 0.0
    last_rx_unix: float = 0.0

    def record_tx(self, nbytes: int) -> None:
        self.bytes_sent += nbytes
        self.packets_sent += 1
        self.last_tx_unix = time.time()

    def record_rx_bytes(self, nbytes: int) -> None:
        self.bytes_received += nbytes

    def record_rx_packet(self) -> None:
        self.packets_received += 1
        self.last_rx_unix = time.time()

    def record_checksum_error(self) -> None:
        self.checksum_errors += 1

    def record_malformed_packet(self) -> None:
        self.malformed_packets += 1

    def record_resync(self, discarded: int) -> None:
        self.resync_discarded_bytes += discarded

    def record_buffer_overflow(self) -> None:
        self.buffer_overflows += 1

    def record_decode_error(self) -> None:
        self.decode_errors += 1

    def record_status_warnings(self, count: int) -> None:
        self.status_decode_warnings += count

    def record_unhandled_packet(self) -> None:
        self.unhandled_packets += 1

    def as_dict(self) -> dict[str, Any]:
        return msgspec.structs.asdict(self)
