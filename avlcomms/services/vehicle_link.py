"""Command and telemetry facade for one vehicle.

The link owns no socket. Outbound packets are addressed, serialized and
handed to the ``send`` callable; inbound byte chunks from the transport are
passed to :meth:`VehicleLink.receive`, which reassembles packets and decodes
them into messages.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from ..config.model import LinkConfig
from ..errors import ProtocolError
from ..protocol import commands
from ..protocol.decoder import InboundMessage, StatusReport, decode_packet
from ..protocol.field import Field
from ..protocol.packet import Packet
from ..protocol.protocol import CommsChannel, Mode, packet_name
from ..protocol.structures import Mission, Parameter, parameter_list_packet_for
from ..state.stats import LinkStatistics
from ..transport.stream import PacketStreamBuffer
from ..util import log_hexdump

logger = logging.getLogger("avlcomms.link")

PacketSender = Callable[[bytes], object]


class VehicleLink:
    """Per-vehicle command/response endpoint.

    Attributes:
        vehicle_id: Id stamped on every outbound packet.
        comms_channel: Channel used when a command does not name one.
        stats: Counters shared with the stream buffer.
    """

    def __init__(
        self,
        vehicle_id: int,
        send: PacketSender,
        *,
        comms_channel: CommsChannel | None = None,
        config: LinkConfig | None = None,
        stats: LinkStatistics | None = None,
    ) -> None:
        self.vehicle_id = vehicle_id
        self.config = config if config is not None else LinkConfig()
        self.comms_channel = comms_channel if comms_channel is not None else self.config.comms_channel
        self.stats = stats if stats is not None else LinkStatistics()
        self.buffer = PacketStreamBuffer(
            max_buffer_bytes=self.config.max_buffer_bytes,
            resync=self.config.resync_on_error,
            stats=self.stats,
        )
        self._send = send

    # ------------------------------------------------------------------
    # Raw packet I/O
    # ------------------------------------------------------------------

    def send_packet(self, packet: Packet, *, channel: CommsChannel | None = None) -> bytes:
        """Address ``packet`` to this vehicle, send it and return the bytes sent."""
        addressed = commands.address_packet(
            packet,
            self.vehicle_id,
            channel if channel is not None else self.comms_channel,
        )
        raw = addressed.to_bytes()
        if self.config.hexdump_packets:
            log_hexdump(logger, logging.DEBUG, f"TX {packet_name(packet.descriptor)}", raw)
        self._send(raw)
        self.stats.record_tx(len(raw))
        return raw

    def receive(self, chunk: bytes | bytearray | memoryview) -> list[InboundMessage]:
        """Feed transport bytes and return the messages they complete."""
        messages: list[InboundMessage] = []
        for packet in self.buffer.feed(chunk):
            if self.config.hexdump_packets:
                log_hexdump(logger, logging.DEBUG, f"RX {packet_name(packet.descriptor)}", packet.to_bytes())
            try:
                message = decode_packet(packet)
            except ProtocolError as exc:
                self.stats.record_decode_error()
                logger.warning("Ignoring invalid %s packet (%s)", packet_name(packet.descriptor), exc)
                continue

            if message is None:
                self.stats.record_unhandled_packet()
                continue
            if isinstance(message, StatusReport) and message.warnings:
                self.stats.record_status_warnings(len(message.warnings))
            messages.append(message)
        return messages

    def _send_fields(self, packet: Packet, fields: Iterable[Field], channel: CommsChannel | None) -> bytes:
        for field in fields:
            packet.add_field(field)
        return self.send_packet(packet, channel=channel)

    def _action(self, field: Field, channel: CommsChannel | None) -> bytes:
        return self._send_fields(commands.action_packet(), (field,), channel)

    def _mission(self, field: Field, channel: CommsChannel | None) -> bytes:
        return self._send_fields(commands.mission_packet(), (field,), channel)

    def _helm(self, field: Field, channel: CommsChannel | None) -> bytes:
        return self._send_fields(commands.helm_packet(), (field,), channel)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def ping(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_ping(), channel)

    def emergency_stop(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_emergency_stop(), channel)

    def set_mode(self, mode: Mode, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_set_mode(mode.name), channel)

    def enable_helm_mode(self, *, channel: CommsChannel | None = None) -> bytes:
        return self.set_mode(Mode.MANUAL, channel=channel)

    def disable_helm_mode(self, *, channel: CommsChannel | None = None) -> bytes:
        return self.set_mode(Mode.AUTONOMOUS, channel=channel)

    def enable_magnetometer_stream(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_set_mag_stream(True), channel)

    def disable_magnetometer_stream(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_set_mag_stream(False), channel)

    def set_magnetometer_calibration(
        self,
        matrix: Sequence[float],
        offset: Sequence[float],
        *,
        channel: CommsChannel | None = None,
    ) -> bytes:
        return self._action(commands.action_set_mag_cal(matrix, offset), channel)

    def zero_pressure_sensor(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_tare_pressure(), channel)

    def reset_safety_node(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_reset_safety(), channel)

    def start_lbl_pings(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_start_lbl_pings(), channel)

    def start_owtt_pings(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_start_owtt_pings(), channel)

    def stop_acoustic_pings(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_stop_acoustic_pings(), channel)

    def set_geofence(
        self,
        points: Iterable[tuple[float, float]],
        *,
        channel: CommsChannel | None = None,
    ) -> bytes:
        """Send a geofence given as (lat, lon) vertices."""
        vertices = list(points)
        lats = [lat for lat, _ in vertices]
        lons = [lon for _, lon in vertices]
        return self._action(commands.action_set_geofence(lats, lons), channel)

    def enable_lights(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_enable_strobe(), channel)

    def disable_lights(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_disable_strobe(), channel)

    def enable_sonar(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_enable_sonar(), channel)

    def disable_sonar(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_disable_sonar(), channel)

    def start_sonar_recording(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_start_sonar_recording(), channel)

    def stop_sonar_recording(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._action(commands.action_stop_sonar_recording(), channel)

    # ------------------------------------------------------------------
    # Missions
    # ------------------------------------------------------------------

    def start_mission(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._mission(commands.mission_start(), channel)

    def advance_mission(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._mission(commands.mission_advance(), channel)

    def stop_mission(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._mission(commands.mission_stop(), channel)

    def clear_mission(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._mission(commands.mission_clear(), channel)

    def read_mission(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._mission(commands.mission_read_all(), channel)

    def add_mission(self, mission: Mission, *, channel: CommsChannel | None = None) -> bytes:
        return self.send_packet(mission.to_packet(), channel=channel)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def read_params(self, *, channel: CommsChannel | None = None) -> bytes:
        return self._send_fields(commands.parameter_list_packet(), (commands.parameter_list_request(),), channel)

    def write_params(self, parameters: Iterable[Parameter], *, channel: CommsChannel | None = None) -> bytes:
        return self.send_packet(parameter_list_packet_for(parameters), channel=channel)

    # ------------------------------------------------------------------
    # Helm
    # ------------------------------------------------------------------

    def helm_throttle(self, percent: float, *, channel: CommsChannel | None = None) -> bytes:
        return self._helm(commands.helm_throttle(percent), channel)

    def helm_rudder(self, angle: float, *, channel: CommsChannel | None = None) -> bytes:
        return self._helm(commands.helm_rudder(angle), channel)

    def helm_elevator(self, angle: float, *, channel: CommsChannel | None = None) -> bytes:
        return self._helm(commands.helm_elevator(angle), channel)


__all__ = ["PacketSender", "VehicleLink"]
