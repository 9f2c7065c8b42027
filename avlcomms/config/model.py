"""Data model for AVL link configuration."""

from __future__ import annotations

from dataclasses import dataclass

from ..protocol.protocol import CommsChannel
from .const import (
    DEFAULT_COMMS_CHANNEL,
    DEFAULT_DEBUG_LOGGING,
    DEFAULT_HEXDUMP_PACKETS,
    DEFAULT_MAX_BUFFER_BYTES,
    DEFAULT_RESYNC_ON_ERROR,
)


@dataclass(slots=True)
class LinkConfig:
    """Strongly typed configuration for a vehicle link."""

    resync_on_error: bool = DEFAULT_RESYNC_ON_ERROR
    max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES
    default_comms_channel: str = DEFAULT_COMMS_CHANNEL
    debug_logging: bool = DEFAULT_DEBUG_LOGGING
    hexdump_packets: bool = DEFAULT_HEXDUMP_PACKETS

    @property
    def comms_channel(self) -> CommsChannel:
        return CommsChannel[self.default_comms_channel.upper()]
