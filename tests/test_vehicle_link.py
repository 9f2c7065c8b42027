"""Tests for the per-vehicle command and telemetry facade."""

from __future__ import annotations

import logging
import struct

import pytest

from avlcomms.config.model import LinkConfig
from avlcomms.protocol import commands
from avlcomms.protocol.decoder import StatusReport, TextResponse
from avlcomms.protocol.field import Field
from avlcomms.protocol.packet import Packet
from avlcomms.protocol.protocol import (
    ActionField,
    CommsChannel,
    GlobalField,
    HelmField,
    MissionField,
    Mode,
    PacketType,
    ParameterListField,
    StatusField,
)
from avlcomms.protocol.structures import (
    BoolValue,
    DoubleValue,
    Mission,
    Parameter,
    Task,
    VehicleStatus,
    decode_parameter_list,
)
from avlcomms.services.vehicle_link import VehicleLink
from avlcomms.state.stats import LinkStatistics

from tests.test_constants import TEST_VEHICLE_ID


def _last_packet(sent_frames: list[bytes]) -> Packet:
    return Packet.from_bytes(sent_frames[-1])


def _payload_descriptors(packet: Packet) -> list[int]:
    routing = {GlobalField.VEHICLE_ID, GlobalField.COMMS_CHANNEL}
    return [field.descriptor for field in packet.fields if field.descriptor not in routing]


class TestOutbound:
    def test_emergency_stop(self, vehicle_link: VehicleLink, sent_frames: list[bytes]) -> None:
        raw = vehicle_link.emergency_stop()
        assert sent_frames == [raw]

        packet = _last_packet(sent_frames)
        assert packet.descriptor == PacketType.ACTION
        assert [field.descriptor for field in packet.fields] == [
            ActionField.EMERGENCY_STOP,
            GlobalField.VEHICLE_ID,
            GlobalField.COMMS_CHANNEL,
        ]
        assert packet.get_field(GlobalField.VEHICLE_ID).data == bytes([TEST_VEHICLE_ID])
        assert packet.get_field(GlobalField.COMMS_CHANNEL).data == bytes([CommsChannel.RADIO])

    def test_channel_override(self, vehicle_link: VehicleLink, sent_frames: list[bytes]) -> None:
        vehicle_link.ping(channel=CommsChannel.IRIDIUM)
        packet = _last_packet(sent_frames)
        assert packet.get_field(GlobalField.COMMS_CHANNEL).data == b"\x02"
        assert vehicle_link.comms_channel == CommsChannel.RADIO

    def test_configured_default_channel(self, sent_frames: list[bytes]) -> None:
        link = VehicleLink(TEST_VEHICLE_ID, sent_frames.append, config=LinkConfig(default_comms_channel="acomms"))
        link.ping()
        assert _last_packet(sent_frames).get_field(GlobalField.COMMS_CHANNEL).data == b"\x01"

    @pytest.mark.parametrize(
        ("method", "mode"),
        [
            ("enable_helm_mode", b"MANUAL"),
            ("disable_helm_mode", b"AUTONOMOUS"),
        ],
    )
    def test_helm_mode(self, vehicle_link: VehicleLink, sent_frames: list[bytes], method: str, mode: bytes) -> None:
        getattr(vehicle_link, method)()
        assert _last_packet(sent_frames).get_field(ActionField.SET_MODE).data == mode

    def test_set_mode(self, vehicle_link: VehicleLink, sent_frames: list[bytes]) -> None:
        vehicle_link.set_mode(Mode.AUTONOMOUS)
        assert _last_packet(sent_frames).get_field(ActionField.SET_MODE).data == b"AUTONOMOUS"

    @pytest.mark.parametrize(
        ("method", "descriptor"),
        [
            ("ping", ActionField.PING),
            ("zero_pressure_sensor", ActionField.TARE_PRESSURE),
            ("reset_safety_node", ActionField.RESET_SAFETY),
            ("start_lbl_pings", ActionField.START_LBL_PINGS),
            ("start_owtt_pings", ActionField.START_OWTT_PINGS),
            ("stop_acoustic_pings", ActionField.STOP_ACOUSTIC_PINGS),
            ("enable_lights", ActionField.ENABLE_STROBE),
            ("disable_lights", ActionField.DISABLE_STROBE),
            ("enable_sonar", ActionField.ENABLE_SONAR),
            ("disable_sonar", ActionField.DISABLE_SONAR),
            ("start_sonar_recording", ActionField.START_SONAR_RECORDING),
            ("stop_sonar_recording", ActionField.STOP_SONAR_RECORDING),
        ],
    )
    def test_marker_actions(
        self, vehicle_link: VehicleLink, sent_frames: list[bytes], method: str, descriptor: int
    ) -> None:
        getattr(vehicle_link, method)()
        packet = _last_packet(sent_frames)
        assert packet.descriptor == PacketType.ACTION
        assert _payload_descriptors(packet) == [descriptor]
        assert packet.get_field(descriptor).data == b""

    def test_magnetometer(self, vehicle_link: VehicleLink, sent_frames: list[bytes]) -> None:
        vehicle_link.enable_magnetometer_stream()
        assert _last_packet(sent_frames).get_field(ActionField.SET_MAG_STREAM).data == b"\x01"
        vehicle_link.disable_magnetometer_stream()
        assert _last_packet(sent_frames).get_field(ActionField.SET_MAG_STREAM).data == b"\x00"

        vehicle_link.set_magnetometer_calibration([1.0] * 9, [0.0] * 3)
        assert len(_last_packet(sent_frames).get_field(ActionField.SET_MAG_CAL).data) == 12 * 8

    def test_geofence(self, vehicle_link: VehicleLink, sent_frames: list[bytes]) -> None:
        vehicle_link.set_geofence([(10.0, 20.0), (11.0, 21.0), (12.0, 22.0)])
        data = _last_packet(sent_frames).get_field(ActionField.SET_GEOFENCE).data
        assert struct.unpack("<6d", data) == (10.0, 20.0, 11.0, 21.0, 12.0, 22.0)

    @pytest.mark.parametrize(
        ("method", "descriptor"),
        [
            ("start_mission", MissionField.START),
            ("advance_mission", MissionField.ADVANCE),
            ("stop_mission", MissionField.STOP),
            ("clear_mission", MissionField.CLEAR),
            ("read_mission", MissionField.READ_ALL),
        ],
    )
    def test_mission_commands(
        self, vehicle_link: VehicleLink, sent_frames: list[bytes], method: str, descriptor: int
    ) -> None:
        getattr(vehicle_link, method)()
        packet = _last_packet(sent_frames)
        assert packet.descriptor == PacketType.MISSION
        assert _payload_descriptors(packet) == [descriptor]

    def test_add_mission(self, vehicle_link: VehicleLink, sent_frames: list[bytes]) -> None:
        vehicle_link.add_mission(Mission([Task(duration=5.0), Task(depth=2.0)]))
        packet = _last_packet(sent_frames)
        assert packet.descriptor == PacketType.MISSION
        nested = Packet.parse_stream(packet.get_field(MissionField.APPEND).data)
        assert [task.descriptor for task in nested] == [PacketType.TASK, PacketType.TASK]

    def test_parameters(self, vehicle_link: VehicleLink, sent_frames: list[bytes]) -> None:
        vehicle_link.read_params()
        packet = _last_packet(sent_frames)
        assert packet.descriptor == PacketType.PARAMETER_LIST
        assert _payload_descriptors(packet) == [ParameterListField.REQUEST]

        parameters = [Parameter("gain", DoubleValue(0.25)), Parameter("armed", BoolValue(False))]
        vehicle_link.write_params(parameters)
        packet = _last_packet(sent_frames)
        assert packet.get_field(ParameterListField.SIZE).data == struct.pack("<i", 2)
        assert decode_parameter_list(packet)[0] == parameters

    @pytest.mark.parametrize(
        ("method", "descriptor"),
        [
            ("helm_throttle", HelmField.THROTTLE),
            ("helm_rudder", HelmField.RUDDER),
            ("helm_elevator", HelmField.ELEVATOR),
        ],
    )
    def test_helm(self, vehicle_link: VehicleLink, sent_frames: list[bytes], method: str, descriptor: int) -> None:
        getattr(vehicle_link, method)(12.5)
        packet = _last_packet(sent_frames)
        assert packet.descriptor == PacketType.HELM
        assert packet.get_field(descriptor).data == struct.pack("<d", 12.5)

    def test_tx_statistics(self, vehicle_link: VehicleLink, sent_frames: list[bytes]) -> None:
        vehicle_link.ping()
        vehicle_link.emergency_stop()
        assert vehicle_link.stats.packets_sent == 2
        assert vehicle_link.stats.bytes_sent == sum(len(frame) for frame in sent_frames)
        assert vehicle_link.stats.last_tx_unix > 0

    def test_hexdump_logging(self, sent_frames: list[bytes], caplog: pytest.LogCaptureFixture) -> None:
        link = VehicleLink(TEST_VEHICLE_ID, sent_frames.append, config=LinkConfig(hexdump_packets=True))
        with caplog.at_level(logging.DEBUG, logger="avlcomms.link"):
            link.ping()
        assert "[HEXDUMP] TX ACTION: 75 65 02" in caplog.text


class TestInbound:
    def test_status_report(self, vehicle_link: VehicleLink) -> None:
        raw = VehicleStatus(vehicle_id=TEST_VEHICLE_ID, mode="MANUAL", voltage=14.8).to_packet().to_bytes()

        assert vehicle_link.receive(raw[:10]) == []
        messages = vehicle_link.receive(raw[10:])
        assert len(messages) == 1
        assert isinstance(messages[0], StatusReport)
        assert messages[0].status.voltage == 14.8
        assert vehicle_link.stats.packets_received == 1
        assert vehicle_link.stats.bytes_received == len(raw)

    def test_status_warnings_are_counted(self, vehicle_link: VehicleLink) -> None:
        packet = commands.status_packet()
        packet.add_field(Field(StatusField.DEPTH, b"\x00"))
        packet = commands.address_packet(packet, TEST_VEHICLE_ID, CommsChannel.RADIO)

        messages = vehicle_link.receive(packet.to_bytes())
        assert isinstance(messages[0], StatusReport)
        assert vehicle_link.stats.status_decode_warnings == 1

    def test_text_response(self, vehicle_link: VehicleLink) -> None:
        packet = commands.response_packet()
        packet.add_field(commands.response_data(b"mission accepted"))
        packet = commands.address_packet(packet, TEST_VEHICLE_ID, CommsChannel.RADIO)

        messages = vehicle_link.receive(packet.to_bytes())
        assert messages == [TextResponse(TEST_VEHICLE_ID, "mission accepted")]

    def test_undecodable_packet_is_counted(
        self, vehicle_link: VehicleLink, caplog: pytest.LogCaptureFixture
    ) -> None:
        packet = commands.response_packet()
        packet.add_field(commands.response_field_descriptor(MissionField.READ_ALL))
        packet.add_field(commands.response_data(b"not a task"))
        packet = commands.address_packet(packet, TEST_VEHICLE_ID, CommsChannel.RADIO)

        with caplog.at_level(logging.WARNING, logger="avlcomms.link"):
            assert vehicle_link.receive(packet.to_bytes()) == []
        assert vehicle_link.stats.decode_errors == 1
        assert "Ignoring invalid RESPONSE packet" in caplog.text

    def test_unhandled_packet_is_counted(self, vehicle_link: VehicleLink) -> None:
        packet = commands.address_packet(commands.helm_packet(), TEST_VEHICLE_ID, CommsChannel.RADIO)
        assert vehicle_link.receive(packet.to_bytes()) == []
        assert vehicle_link.stats.unhandled_packets == 1

    def test_shared_statistics(self, sent_frames: list[bytes]) -> None:
        stats = LinkStatistics()
        link = VehicleLink(TEST_VEHICLE_ID, sent_frames.append, stats=stats)
        link.receive(b"\x00\x00")
        assert link.buffer.stats is stats
        assert stats.bytes_received == 2
