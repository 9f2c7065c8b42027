"""AVL packet protocol: framing, descriptor catalog and record codecs."""

from . import protocol, commands, decoder, structures
from .field import Field
from .packet import Packet, compute_checksum

__all__ = [
    "Field",
    "Packet",
    "commands",
    "compute_checksum",
    "decoder",
    "protocol",
    "structures",
]
