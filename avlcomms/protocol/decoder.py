"""Turn inbound packets into typed messages.

Handlers are registered per packet type. Every handled packet must carry a
VEHICLE_ID field; packets without one, and packet types nobody handles,
decode to ``None``. Malformed nested payloads raise :class:`ProtocolError`
and are left to the caller to count and drop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import msgspec

from ..util import from_bytes, subvector
from . import protocol
from .packet import Packet
from .protocol import GlobalField, MissionField, PacketType, ParameterListField, ResponseField
from .structures import Mission, Parameter, VehicleStatus, decode_parameter_list, decode_status

logger = logging.getLogger("avlcomms.protocol.decoder")


class StatusReport(msgspec.Struct, frozen=True, tag="status"):
    vehicle_id: int
    status: VehicleStatus
    warnings: tuple[str, ...] = ()


class MissionReport(msgspec.Struct, frozen=True, tag="mission"):
    vehicle_id: int
    mission: Mission


class ParameterReport(msgspec.Struct, frozen=True, tag="parameters"):
    vehicle_id: int
    parameters: list[Parameter]
    warnings: tuple[str, ...] = ()


class TextResponse(msgspec.Struct, frozen=True, tag="response"):
    """Free-form reply to a command.

    Attributes:
        packet_descriptor: Packet type of the command being answered, if sent.
        field_descriptor: Field descriptor of the command being answered, if sent.
    """

    vehicle_id: int
    text: str
    packet_descriptor: int | None = None
    field_descriptor: int | None = None


InboundMessage = StatusReport | MissionReport | ParameterReport | TextResponse
PacketHandler = Callable[[Packet, int], InboundMessage | None]

_HANDLERS: dict[int, PacketHandler] = {}


def _handles(packet_type: PacketType) -> Callable[[PacketHandler], PacketHandler]:
    def register(handler: PacketHandler) -> PacketHandler:
        _HANDLERS[packet_type] = handler
        return handler

    return register


def _optional_uint8(packet: Packet, descriptor: int) -> int | None:
    if not packet.has_field(descriptor):
        return None
    return int(from_bytes(subvector(packet.get_field(descriptor).data, 0, 1), "uint8"))


def _answers(requested: int | None, expected: PacketType) -> bool:
    return requested is None or requested == expected


@_handles(PacketType.STATUS)
def _handle_status(packet: Packet, vehicle_id: int) -> InboundMessage | None:
    result = decode_status(packet)
    return StatusReport(vehicle_id, result.status, result.warnings)


@_handles(PacketType.RESPONSE)
def _handle_response(packet: Packet, vehicle_id: int) -> InboundMessage | None:
    packet_descriptor = _optional_uint8(packet, ResponseField.PACKET_DESCRIPTOR)
    field_descriptor = _optional_uint8(packet, ResponseField.FIELD_DESCRIPTOR)
    if not packet.has_field(ResponseField.DATA):
        logger.debug("Response from vehicle %d carries no data", vehicle_id)
        return None
    data = packet.get_field(ResponseField.DATA).data

    if field_descriptor == MissionField.READ_ALL and _answers(packet_descriptor, PacketType.MISSION):
        return MissionReport(vehicle_id, Mission.from_stream(data))

    if field_descriptor == ParameterListField.REQUEST and _answers(packet_descriptor, PacketType.PARAMETER_LIST):
        parameters, warnings = decode_parameter_list(Packet.from_bytes(data))
        return ParameterReport(vehicle_id, parameters, warnings)

    return TextResponse(
        vehicle_id,
        data.decode("utf-8", errors="replace"),
        packet_descriptor=packet_descriptor,
        field_descriptor=field_descriptor,
    )


def decode_packet(packet: Packet) -> InboundMessage | None:
    """Decode one inbound packet, or return ``None`` when it is not handled."""
    handler = _HANDLERS.get(packet.descriptor)
    if handler is None:
        logger.debug("Ignoring %s packet", protocol.packet_name(packet.descriptor))
        return None

    vehicle_id = _optional_uint8(packet, GlobalField.VEHICLE_ID)
    if vehicle_id is None:
        logger.info("Ignoring %s packet with no vehicle ID field", protocol.packet_name(packet.descriptor))
        return None

    return handler(packet, vehicle_id)


__all__ = [
    "InboundMessage",
    "MissionReport",
    "ParameterReport",
    "StatusReport",
    "TextResponse",
    "decode_packet",
]
