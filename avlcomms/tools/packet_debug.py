"""Packet inspection utility for AVL link developers.

Decodes one or more back-to-back packets from a hex dump (for example a
capture copied out of a log) and prints their framing, each field with its
symbolic name, and the decoded message when the packet type is handled.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass

import msgspec

from avlcomms.config import load_link_config
from avlcomms.config.logging import configure_logging
from avlcomms.errors import ProtocolError
from avlcomms.protocol import protocol
from avlcomms.protocol.decoder import decode_packet
from avlcomms.protocol.packet import Packet
from avlcomms.util import chunk_bytes, log_hexdump

logger = logging.getLogger("avlcomms.tools.packet_debug")

_HEX_LINE_BYTES = 16


@dataclass(slots=True)
class FieldSnapshot:
    descriptor: int
    name: str
    length: int
    data: bytes

    def render(self) -> str:
        lines = [f"  field 0x{self.descriptor:02X} ({self.name}) len={self.length}"]
        for chunk in chunk_bytes(self.data, _HEX_LINE_BYTES):
            lines.append(f"    {_hex_with_spacing(chunk)}")
        return "\n".join(lines)


@dataclass(slots=True)
class PacketDebugSnapshot:
    descriptor: int
    packet_name: str
    payload_length: int
    checksum: bytes
    raw_length: int
    fields: list[FieldSnapshot]
    decoded: str | None

    def render(self) -> str:
        lines = [
            "[PacketDebug] --- Snapshot ---",
            f"packet=0x{self.descriptor:02X} ({self.packet_name})",
            f"payload_len={self.payload_length}",
            f"checksum={_hex_with_spacing(self.checksum)}",
            f"raw_len={self.raw_length}",
            f"fields={len(self.fields)}",
        ]
        lines.extend(field.render() for field in self.fields)
        if self.decoded is not None:
            lines.append(f"decoded={self.decoded}")
        return "\n".join(lines)


def _parse_hex(hex_string: str) -> bytes:
    compact = "".join(hex_string.replace("0x", "").replace("0X", "").replace(",", " ").split())
    if len(compact) % 2:
        raise ValueError("hex input must contain an even number of digits")
    try:
        return bytes.fromhex(compact)
    except ValueError as exc:
        raise ValueError(f"Invalid hex '{hex_string}': {exc}") from exc


def _hex_with_spacing(data: bytes) -> str:
    return " ".join(f"{byte:02X}" for byte in data)


def _describe_decoded(packet: Packet) -> str | None:
    try:
        message = decode_packet(packet)
    except ProtocolError as exc:
        return f"<undecodable: {exc}>"
    if message is None:
        return None
    return msgspec.json.encode(message).decode("utf-8")


def build_snapshot(packet: Packet, decode: bool = True) -> PacketDebugSnapshot:
    raw = packet.to_bytes()
    return PacketDebugSnapshot(
        descriptor=packet.descriptor,
        packet_name=protocol.packet_name(packet.descriptor),
        payload_length=packet.payload_length,
        checksum=raw[-protocol.CHECKSUM_SIZE :],
        raw_length=len(raw),
        fields=[
            FieldSnapshot(
                descriptor=field.descriptor,
                name=protocol.field_name(packet.descriptor, field.descriptor),
                length=field.length,
                data=field.data,
            )
            for field in packet.fields
        ],
        decoded=_describe_decoded(packet) if decode else None,
    )


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Decode AVL packets from a hex dump.",
    )
    parser.add_argument(
        "hex",
        nargs="*",
        help="Packet bytes as hex (spaces, commas and 0x prefixes allowed). Reads stdin when omitted.",
    )
    parser.add_argument(
        "--no-decode",
        action="store_true",
        help="Only show framing and fields, skip message decoding.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Link configuration TOML file (defaults to $AVLCOMMS_CONFIG).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log at DEBUG level, including a hexdump of the input.",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Write log records to stderr as JSON lines.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    try:
        config = load_link_config(args.config)
    except ValueError as exc:
        parser.error(str(exc))
    if args.debug:
        config.debug_logging = True
    configure_logging(config, json_output=args.log_json)

    source = " ".join(args.hex) if args.hex else sys.stdin.read()
    try:
        data = _parse_hex(source)
    except ValueError as exc:
        parser.error(str(exc))
    log_hexdump(logger, logging.DEBUG, "input", data)

    try:
        packets = Packet.parse_stream(data)
    except ProtocolError as exc:
        print(f"[PacketDebug] {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    logger.debug("Decoded %d packet(s) from %d bytes", len(packets), len(data))

    for packet in packets:
        print(build_snapshot(packet, decode=not args.no_decode).render())
    return 0


if __name__ == "__main__":
    sys.exit(main())
