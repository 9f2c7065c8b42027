"""Packet constructors and field builders for every catalogued command.

Each packet constructor returns an empty :class:`Packet` stamped with its
type. Each field builder is a pure function from native values to a
:class:`Field` carrying the right descriptor and encoded payload:

* markers carry no data;
* scalar numbers are little-endian doubles, vectors are doubles back to back;
* counts, ids and enumerations are single unsigned bytes;
* flags are one byte (``0x00``/``0x01``);
* strings are raw UTF-8 with no extra length prefix;
* list fields concatenate element encodings (geofence points are
  interleaved lat/lon, nested packets are self-delimiting).

Routing metadata (VEHICLE_ID, COMMS_CHANNEL) is added by
:func:`address_packet`, never by the builders themselves.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from ..util import to_bytes, vector_to_bytes
from .field import Field
from .packet import Packet
from .protocol import (
    AcousticPingField,
    ActionField,
    GlobalField,
    HelmField,
    MissionField,
    PacketType,
    ParameterField,
    ParameterListField,
    ResponseField,
    StatusField,
    TaskField,
)

MAG_CAL_MATRIX_SIZE = 9
MAG_CAL_VECTOR_SIZE = 3


def _double(descriptor: int, value: float) -> Field:
    return Field(descriptor, to_bytes(value, "double"))


def _doubles(descriptor: int, *values: float) -> Field:
    return Field(descriptor, vector_to_bytes(values, "double"))


def _uint8(descriptor: int, value: int) -> Field:
    return Field(descriptor, to_bytes(int(value), "uint8"))


def _flag(descriptor: int, value: bool) -> Field:
    return Field(descriptor, to_bytes(bool(value), "bool"))


def _text(descriptor: int, value: str) -> Field:
    return Field(descriptor, value.encode("utf-8"))


def _packets(descriptor: int, packets: Iterable[Packet]) -> Field:
    return Field(descriptor, b"".join(packet.to_bytes() for packet in packets))


# ----------------------------------------------------------------------
# Packets
# ----------------------------------------------------------------------


def response_packet() -> Packet:
    return Packet(PacketType.RESPONSE)


def status_packet() -> Packet:
    return Packet(PacketType.STATUS)


def action_packet() -> Packet:
    return Packet(PacketType.ACTION)


def helm_packet() -> Packet:
    return Packet(PacketType.HELM)


def acoustic_ping_packet() -> Packet:
    return Packet(PacketType.ACOUSTIC_PING)


def mission_packet() -> Packet:
    return Packet(PacketType.MISSION)


def task_packet() -> Packet:
    return Packet(PacketType.TASK)


def parameter_packet() -> Packet:
    return Packet(PacketType.PARAMETER)


def parameter_list_packet() -> Packet:
    return Packet(PacketType.PARAMETER_LIST)


# ----------------------------------------------------------------------
# Routing
# ----------------------------------------------------------------------


def comms_channel(channel: int) -> Field:
    return _uint8(GlobalField.COMMS_CHANNEL, channel)


def vehicle_id(identifier: int) -> Field:
    return _uint8(GlobalField.VEHICLE_ID, identifier)


def address_packet(packet: Packet, vehicle: int, channel: int) -> Packet:
    """Return a copy of ``packet`` with VEHICLE_ID then COMMS_CHANNEL appended."""
    addressed = packet.copy()
    addressed.add_field(vehicle_id(vehicle))
    addressed.add_field(comms_channel(channel))
    return addressed


# ----------------------------------------------------------------------
# RESPONSE
# ----------------------------------------------------------------------


def response_packet_descriptor(packet_descriptor: int) -> Field:
    return _uint8(ResponseField.PACKET_DESCRIPTOR, packet_descriptor)


def response_field_descriptor(field_descriptor: int) -> Field:
    return _uint8(ResponseField.FIELD_DESCRIPTOR, field_descriptor)


def response_data(data: bytes | bytearray | memoryview) -> Field:
    return Field(ResponseField.DATA, data)


# ----------------------------------------------------------------------
# STATUS
# ----------------------------------------------------------------------


def status_mode(mode: str) -> Field:
    return _text(StatusField.MODE, mode)


def status_operational_status(operational_status: str) -> Field:
    return _text(StatusField.OPERATIONAL_STATUS, operational_status)


def status_attitude(roll: float, pitch: float, yaw: float) -> Field:
    return _doubles(StatusField.ATTITUDE, roll, pitch, yaw)


def status_velocity(vx: float, vy: float, vz: float) -> Field:
    return _doubles(StatusField.VELOCITY, vx, vy, vz)


def status_position(lat: float, lon: float, alt: float) -> Field:
    return _doubles(StatusField.POSITION, lat, lon, alt)


def status_depth(depth: float) -> Field:
    return _double(StatusField.DEPTH, depth)


def status_height(height: float) -> Field:
    return _double(StatusField.HEIGHT, height)


def status_rpm(rpm: float) -> Field:
    return _double(StatusField.RPM, rpm)


def status_voltage(voltage: float) -> Field:
    return _double(StatusField.VOLTAGE, voltage)


def status_mag_flux(mx: float, my: float, mz: float) -> Field:
    return _doubles(StatusField.MAG_FLUX, mx, my, mz)


def status_umodem_synced(synced: bool) -> Field:
    return _flag(StatusField.UMODEM_SYNCED, synced)


def status_gps_sats(num_sats: int) -> Field:
    return _uint8(StatusField.GPS_SATS, num_sats)


def status_iridium_strength(strength: int) -> Field:
    return _uint8(StatusField.IRIDIUM_STRENGTH, strength)


def status_task(task_num: int, num_tasks: int, percent: float) -> Field:
    """Current task number, task count and completion percentage."""
    payload = to_bytes(task_num, "uint8") + to_bytes(num_tasks, "uint8") + to_bytes(percent, "double")
    return Field(StatusField.TASK, payload)


# ----------------------------------------------------------------------
# ACTION
# ----------------------------------------------------------------------


def action_ping() -> Field:
    return Field(ActionField.PING)


def action_emergency_stop() -> Field:
    return Field(ActionField.EMERGENCY_STOP)


def action_power_cycle() -> Field:
    return Field(ActionField.POWER_CYCLE)


def action_restart_ros() -> Field:
    return Field(ActionField.RESTART_ROS)


def action_reset_safety() -> Field:
    return Field(ActionField.RESET_SAFETY)


def action_set_mode(mode: str) -> Field:
    return _text(ActionField.SET_MODE, mode)


def action_set_mag_stream(enable: bool) -> Field:
    return _flag(ActionField.SET_MAG_STREAM, enable)


def action_set_mag_cal(matrix: Sequence[float], offset: Sequence[float]) -> Field:
    """Soft iron matrix (9 values, row-major) followed by hard iron vector (3 values)."""
    if len(matrix) != MAG_CAL_MATRIX_SIZE or len(offset) != MAG_CAL_VECTOR_SIZE:
        raise ValueError(
            f"Magnetometer calibration needs {MAG_CAL_MATRIX_SIZE} matrix and "
            f"{MAG_CAL_VECTOR_SIZE} vector values, got {len(matrix)} and {len(offset)}"
        )
    return Field(ActionField.SET_MAG_CAL, vector_to_bytes([*matrix, *offset], "double"))


def action_tare_pressure() -> Field:
    return Field(ActionField.TARE_PRESSURE)


def action_start_lbl_pings() -> Field:
    return Field(ActionField.START_LBL_PINGS)


def action_start_owtt_pings() -> Field:
    return Field(ActionField.START_OWTT_PINGS)


def action_stop_acoustic_pings() -> Field:
    return Field(ActionField.STOP_ACOUSTIC_PINGS)


def action_enable_back_seat_driver() -> Field:
    return Field(ActionField.ENABLE_BACK_SEAT_DRIVER)


def action_disable_back_seat_driver() -> Field:
    return Field(ActionField.DISABLE_BACK_SEAT_DRIVER)


def action_set_geofence(lats: Sequence[float], lons: Sequence[float]) -> Field:
    """Geofence vertices, sent as interleaved lat, lon pairs."""
    if len(lats) != len(lons):
        raise ValueError(f"Geofence needs matching coordinates, got {len(lats)} lats and {len(lons)} lons")
    interleaved = [coordinate for pair in zip(lats, lons) for coordinate in pair]
    return Field(ActionField.SET_GEOFENCE, vector_to_bytes(interleaved, "double"))


def action_enable_strobe() -> Field:
    return Field(ActionField.ENABLE_STROBE)


def action_disable_strobe() -> Field:
    return Field(ActionField.DISABLE_STROBE)


def action_enable_sonar() -> Field:
    return Field(ActionField.ENABLE_SONAR)


def action_disable_sonar() -> Field:
    return Field(ActionField.DISABLE_SONAR)


def action_start_sonar_recording() -> Field:
    return Field(ActionField.START_SONAR_RECORDING)


def action_stop_sonar_recording() -> Field:
    return Field(ActionField.STOP_SONAR_RECORDING)


# ----------------------------------------------------------------------
# MISSION
# ----------------------------------------------------------------------


def mission_start() -> Field:
    return Field(MissionField.START)


def mission_stop() -> Field:
    return Field(MissionField.STOP)


def mission_clear() -> Field:
    return Field(MissionField.CLEAR)


def mission_advance() -> Field:
    return Field(MissionField.ADVANCE)


def mission_set(task: Packet) -> Field:
    return Field(MissionField.SET, task.to_bytes())


def mission_append(tasks: Iterable[Packet]) -> Field:
    return _packets(MissionField.APPEND, tasks)


def mission_read_current() -> Field:
    return Field(MissionField.READ_CURRENT)


def mission_read_all() -> Field:
    return Field(MissionField.READ_ALL)


# ----------------------------------------------------------------------
# TASK
# ----------------------------------------------------------------------


def task_duration(duration: float) -> Field:
    return _double(TaskField.DURATION, duration)


def task_type(type_: int) -> Field:
    return _uint8(TaskField.TYPE, type_)


def task_attitude(roll: float, pitch: float, yaw: float) -> Field:
    return _doubles(TaskField.ATTITUDE, roll, pitch, yaw)


def task_velocity(vx: float, vy: float, vz: float) -> Field:
    return _doubles(TaskField.VELOCITY, vx, vy, vz)


def task_depth(depth: float) -> Field:
    return _double(TaskField.DEPTH, depth)


def task_height(height: float) -> Field:
    return _double(TaskField.HEIGHT, height)


def task_rpm(rpm: float) -> Field:
    return _double(TaskField.RPM, rpm)


def task_dive(dive: bool) -> Field:
    return _flag(TaskField.DIVE, dive)


def task_points(points: Sequence[float]) -> Field:
    """Flattened point values, 4 doubles per point (lat, lon, placeholder, command)."""
    return Field(TaskField.POINTS, vector_to_bytes(points, "double"))


def task_command(command: int) -> Field:
    return _uint8(TaskField.COMMAND, command)


# ----------------------------------------------------------------------
# HELM
# ----------------------------------------------------------------------


def helm_throttle(percent: float) -> Field:
    return _double(HelmField.THROTTLE, percent)


def helm_rudder(angle: float) -> Field:
    return _double(HelmField.RUDDER, angle)


def helm_elevator(angle: float) -> Field:
    return _double(HelmField.ELEVATOR, angle)


# ----------------------------------------------------------------------
# ACOUSTIC_PING
# ----------------------------------------------------------------------


def acoustic_ping_departure_time(departure_time: float) -> Field:
    return _double(AcousticPingField.DEPARTURE_TIME, departure_time)


def acoustic_ping_origin_position(lat: float, lon: float, alt: float) -> Field:
    return _doubles(AcousticPingField.ORIGIN_POSITION, lat, lon, alt)


# ----------------------------------------------------------------------
# PARAMETER / PARAMETER_LIST
# ----------------------------------------------------------------------


def parameter_name(name: str) -> Field:
    return _text(ParameterField.NAME, name)


def parameter_value(value: Any, kind: str | None = None) -> Field:
    """Encode a parameter value.

    Strings are sent as UTF-8. Other values are encoded as ``kind``; when
    ``kind`` is omitted it follows the Python type (bool, int32, double).
    """
    if isinstance(value, str):
        return _text(ParameterField.VALUE, value)
    if kind is None:
        if isinstance(value, bool):
            kind = "bool"
        elif isinstance(value, int):
            kind = "int32"
        else:
            kind = "double"
    return Field(ParameterField.VALUE, to_bytes(value, kind))


def parameter_type(type_name: str) -> Field:
    return _text(ParameterField.TYPE, type_name)


def parameter_list(parameters: Iterable[Packet]) -> Field:
    return _packets(ParameterListField.LIST, parameters)


def parameter_list_request() -> Field:
    return Field(ParameterListField.REQUEST)


def parameter_list_size(size: int) -> Field:
    return Field(ParameterListField.SIZE, to_bytes(size, "int32"))
