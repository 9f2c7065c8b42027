"""Default configuration values for AVL links."""

from __future__ import annotations

from typing import Final

from ..protocol.protocol import MAX_PACKET_SIZE, MIN_PACKET_SIZE

CONFIG_SECTION: Final[str] = "avlcomms"
CONFIG_PATH_ENV: Final[str] = "AVLCOMMS_CONFIG"
DEBUG_ENV: Final[str] = "AVLCOMMS_DEBUG"

DEFAULT_RESYNC_ON_ERROR: Final[bool] = True
DEFAULT_MAX_BUFFER_BYTES: Final[int] = MAX_PACKET_SIZE
MIN_BUFFER_BYTES: Final[int] = MIN_PACKET_SIZE
DEFAULT_COMMS_CHANNEL: Final[str] = "radio"
COMMS_CHANNEL_CHOICES: Final[tuple[str, ...]] = ("radio", "acomms", "iridium")
DEFAULT_DEBUG_LOGGING: Final[bool] = False
DEFAULT_HEXDUMP_PACKETS: Final[bool] = False
