"""Semantic records carried by AVL packets.

Tasks, missions, vehicle status reports and parameters are msgspec structs
with explicit converters to and from :class:`Packet`. Every packet field is
decoded through the same byte codec used to build it, so a record survives
an encode/decode round trip unchanged.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable
from typing import Any, Self

import msgspec

from ..errors import ConversionError, ProtocolError
from ..util import from_bytes, subvector, vector_from_bytes
from . import commands, protocol
from .packet import Packet
from .protocol import (
    ActionType,
    CommsChannel,
    GlobalField,
    PacketType,
    ParameterField,
    ParameterListField,
    StatusField,
    TaskField,
    TaskType,
)

logger = logging.getLogger("avlcomms.protocol.structures")

DOUBLE_SIZE = 8
UNKNOWN_CHANNEL = "UNKNOWN"


def _require_type(packet: Packet, expected: PacketType) -> None:
    if packet.descriptor != expected:
        raise ConversionError(
            f"Expected {expected.name} packet, got {protocol.packet_name(packet.descriptor)}"
        )


def _double_triple(data: bytes) -> tuple[float, float, float]:
    return (
        from_bytes(subvector(data, 0, DOUBLE_SIZE), "double"),
        from_bytes(subvector(data, DOUBLE_SIZE, DOUBLE_SIZE), "double"),
        from_bytes(subvector(data, 2 * DOUBLE_SIZE, DOUBLE_SIZE), "double"),
    )


def _enum_value(enum_type: type[Any], value: int) -> Any:
    try:
        return enum_type(value)
    except ValueError as exc:
        raise ConversionError(f"Unknown {enum_type.__name__} value {value}") from exc


def _text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


# ----------------------------------------------------------------------
# Tasks and missions
# ----------------------------------------------------------------------


class TaskPoint(msgspec.Struct, frozen=True):
    """A task waypoint and the command run on arrival."""

    lat: float
    lon: float
    command: ActionType = ActionType.NO_ACTION


class Task(msgspec.Struct, kw_only=True):
    """One mission step.

    Numeric attributes left unset are NaN. They are still sent, and a NaN on
    the wire tells the vehicle the value is not constrained.
    """

    type: TaskType = TaskType.PRIMITIVE
    duration: float = math.nan
    roll: float = math.nan
    pitch: float = math.nan
    yaw: float = math.nan
    vx: float = math.nan
    vy: float = math.nan
    vz: float = math.nan
    depth: float = math.nan
    height: float = math.nan
    rpm: float = math.nan
    dive: bool = False
    points: list[TaskPoint] = []
    command: ActionType = ActionType.NO_ACTION

    def flattened_points(self) -> list[float]:
        flat: list[float] = []
        for point in self.points:
            flat.extend((point.lat, point.lon, math.nan, float(point.command)))
        return flat

    def to_packet(self) -> Packet:
        packet = commands.task_packet()
        packet.add_field(commands.task_duration(self.duration))
        packet.add_field(commands.task_type(self.type))
        packet.add_field(commands.task_attitude(self.roll, self.pitch, self.yaw))
        packet.add_field(commands.task_velocity(self.vx, self.vy, self.vz))
        packet.add_field(commands.task_depth(self.depth))
        packet.add_field(commands.task_height(self.height))
        packet.add_field(commands.task_rpm(self.rpm))
        packet.add_field(commands.task_dive(self.dive))
        packet.add_field(commands.task_points(self.flattened_points()))
        packet.add_field(commands.task_command(self.command))
        return packet

    get_packet = to_packet

    @classmethod
    def from_packet(cls, packet: Packet) -> Self:
        """Rebuild a task from a TASK packet.

        Every field is optional; absent fields keep their defaults. A field
        that is present but cannot be decoded raises a ProtocolError.
        """
        _require_type(packet, PacketType.TASK)
        task = cls()

        if packet.has_field(TaskField.DURATION):
            task.duration = from_bytes(packet.get_field(TaskField.DURATION).data, "double")
        if packet.has_field(TaskField.TYPE):
            raw_type = from_bytes(packet.get_field(TaskField.TYPE).data, "uint8")
            task.type = _enum_value(TaskType, raw_type)
        if packet.has_field(TaskField.ATTITUDE):
            task.roll, task.pitch, task.yaw = _double_triple(packet.get_field(TaskField.ATTITUDE).data)
        if packet.has_field(TaskField.VELOCITY):
            task.vx, task.vy, task.vz = _double_triple(packet.get_field(TaskField.VELOCITY).data)
        if packet.has_field(TaskField.DEPTH):
            task.depth = from_bytes(packet.get_field(TaskField.DEPTH).data, "double")
        if packet.has_field(TaskField.HEIGHT):
            task.height = from_bytes(packet.get_field(TaskField.HEIGHT).data, "double")
        if packet.has_field(TaskField.RPM):
            task.rpm = from_bytes(packet.get_field(TaskField.RPM).data, "double")
        if packet.has_field(TaskField.DIVE):
            task.dive = from_bytes(packet.get_field(TaskField.DIVE).data, "bool")
        if packet.has_field(TaskField.POINTS):
            task.points = _decode_points(packet.get_field(TaskField.POINTS).data)
        if packet.has_field(TaskField.COMMAND):
            raw_command = from_bytes(packet.get_field(TaskField.COMMAND).data, "uint8")
            task.command = _enum_value(ActionType, raw_command)
        return task


def _decode_points(data: bytes) -> list[TaskPoint]:
    values = vector_from_bytes(data, "double")
    stride = protocol.TASK_POINT_STRIDE
    if len(values) % stride:
        raise ConversionError(f"Task points hold {len(values)} values, not a multiple of {stride}")

    points: list[TaskPoint] = []
    for index in range(0, len(values), stride):
        lat, lon, _placeholder, raw_command = values[index : index + stride]
        if math.isnan(raw_command):
            command = ActionType.NO_ACTION
        elif math.isfinite(raw_command) and raw_command.is_integer():
            command = _enum_value(ActionType, int(raw_command))
        else:
            raise ConversionError(f"Task point command {raw_command} is not an action code")
        points.append(TaskPoint(lat, lon, command))
    return points


def packet_to_task(packet: Packet) -> Task:
    return Task.from_packet(packet)


class Mission(msgspec.Struct):
    """Ordered list of tasks uploaded to a vehicle."""

    tasks: list[Task] = []

    def __len__(self) -> int:
        return len(self.tasks)

    def append(self, task: Task) -> None:
        self.tasks.append(task)

    def task_packets(self) -> list[Packet]:
        """TASK packets for every task the vehicle executes (zones are map-only)."""
        return [task.to_packet() for task in self.tasks if task.type != TaskType.ZONE]

    def to_packet(self) -> Packet:
        packet = commands.mission_packet()
        packet.add_field(commands.mission_append(self.task_packets()))
        return packet

    @classmethod
    def from_stream(cls, data: bytes | bytearray | memoryview) -> Self:
        """Rebuild a mission from back-to-back TASK packets."""
        return cls([Task.from_packet(packet) for packet in Packet.parse_stream(data)])


# ----------------------------------------------------------------------
# Vehicle status
# ----------------------------------------------------------------------


class VehicleStatus(msgspec.Struct, kw_only=True):
    comms_channel: str = CommsChannel.RADIO.name
    vehicle_id: int = 0
    mode: str = "NONE"
    operational_status: str = "NONE"
    umodem_synced: bool = False
    roll: float = math.nan
    pitch: float = math.nan
    yaw: float = math.nan
    vx: float = math.nan
    vy: float = math.nan
    vz: float = math.nan
    lat: float = math.nan
    lon: float = math.nan
    alt: float = math.nan
    depth: float = math.nan
    height: float = math.nan
    rpm: float = math.nan
    voltage: float = math.nan
    mag_x: float = math.nan
    mag_y: float = math.nan
    mag_z: float = math.nan
    num_gps_sats: int = 0
    iridium_strength: int = 0
    current_task: int = 0
    total_tasks: int = 0
    task_percent: float = 0.0

    def to_packet(self) -> Packet:
        """Encode as an addressed STATUS packet, the way a vehicle reports it."""
        try:
            channel = CommsChannel[self.comms_channel]
        except KeyError as exc:
            raise ConversionError(f"Unknown comms channel '{self.comms_channel}'") from exc

        packet = commands.status_packet()
        packet.add_field(commands.status_mode(self.mode))
        packet.add_field(commands.status_operational_status(self.operational_status))
        packet.add_field(commands.status_attitude(self.roll, self.pitch, self.yaw))
        packet.add_field(commands.status_velocity(self.vx, self.vy, self.vz))
        packet.add_field(commands.status_position(self.lat, self.lon, self.alt))
        packet.add_field(commands.status_depth(self.depth))
        packet.add_field(commands.status_height(self.height))
        packet.add_field(commands.status_rpm(self.rpm))
        packet.add_field(commands.status_voltage(self.voltage))
        packet.add_field(commands.status_mag_flux(self.mag_x, self.mag_y, self.mag_z))
        packet.add_field(commands.status_umodem_synced(self.umodem_synced))
        packet.add_field(commands.status_gps_sats(self.num_gps_sats))
        packet.add_field(commands.status_iridium_strength(self.iridium_strength))
        packet.add_field(commands.status_task(self.current_task, self.total_tasks, self.task_percent))
        return commands.address_packet(packet, self.vehicle_id, channel)

    @classmethod
    def from_packet(cls, packet: Packet) -> VehicleStatus:
        return decode_status(packet).status


class StatusDecodeResult(msgspec.Struct, frozen=True):
    """A status report and the fields that could not be decoded."""

    status: VehicleStatus
    warnings: tuple[str, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.warnings


def _channel_name(data: bytes) -> dict[str, Any]:
    raw = from_bytes(subvector(data, 0, 1), "uint8")
    try:
        return {"comms_channel": CommsChannel(raw).name}
    except ValueError:
        return {"comms_channel": UNKNOWN_CHANNEL}


def _triple(*names: str) -> Callable[[bytes], dict[str, Any]]:
    def decode(data: bytes) -> dict[str, Any]:
        return dict(zip(names, _double_triple(data)))

    return decode


def _scalar(name: str, kind: str) -> Callable[[bytes], dict[str, Any]]:
    def decode(data: bytes) -> dict[str, Any]:
        return {name: from_bytes(data, kind)}

    return decode


def _string(name: str) -> Callable[[bytes], dict[str, Any]]:
    def decode(data: bytes) -> dict[str, Any]:
        return {name: _text(data)}

    return decode


def _task_progress(data: bytes) -> dict[str, Any]:
    return {
        "current_task": from_bytes(subvector(data, 0, 1), "uint8"),
        "total_tasks": from_bytes(subvector(data, 1, 1), "uint8"),
        "task_percent": from_bytes(subvector(data, 2, DOUBLE_SIZE), "double"),
    }


_STATUS_DECODERS: tuple[tuple[int, Callable[[bytes], dict[str, Any]]], ...] = (
    (GlobalField.COMMS_CHANNEL, _channel_name),
    (GlobalField.VEHICLE_ID, lambda data: {"vehicle_id": from_bytes(subvector(data, 0, 1), "uint8")}),
    (StatusField.MODE, _string("mode")),
    (StatusField.OPERATIONAL_STATUS, _string("operational_status")),
    (StatusField.UMODEM_SYNCED, lambda data: {"umodem_synced": from_bytes(subvector(data, 0, 1), "bool")}),
    (StatusField.ATTITUDE, _triple("roll", "pitch", "yaw")),
    (StatusField.VELOCITY, _triple("vx", "vy", "vz")),
    (StatusField.POSITION, _triple("lat", "lon", "alt")),
    (StatusField.DEPTH, _scalar("depth", "double")),
    (StatusField.HEIGHT, _scalar("height", "double")),
    (StatusField.RPM, _scalar("rpm", "double")),
    (StatusField.VOLTAGE, _scalar("voltage", "double")),
    (StatusField.MAG_FLUX, _triple("mag_x", "mag_y", "mag_z")),
    (StatusField.GPS_SATS, _scalar("num_gps_sats", "uint8")),
    (StatusField.IRIDIUM_STRENGTH, _scalar("iridium_strength", "uint8")),
    (StatusField.TASK, _task_progress),
)


def decode_status(packet: Packet) -> StatusDecodeResult:
    """Best-effort decode of a STATUS packet.

    Each present field is decoded on its own. A field that fails to decode
    leaves its attributes at their defaults and adds a warning; the rest of
    the report is still returned.
    """
    _require_type(packet, PacketType.STATUS)
    values: dict[str, Any] = {}
    warnings: list[str] = []

    for descriptor, decoder in _STATUS_DECODERS:
        if not packet.has_field(descriptor):
            continue
        try:
            values.update(decoder(packet.get_field(descriptor).data))
        except ProtocolError as exc:
            name = protocol.field_name(PacketType.STATUS, descriptor)
            warnings.append(f"{name}: {exc}")
            logger.warning("Dropping malformed status field %s: %s", name, exc)

    return StatusDecodeResult(VehicleStatus(**values), tuple(warnings))


# ----------------------------------------------------------------------
# Parameters
# ----------------------------------------------------------------------


class _TypedValue(msgspec.Struct, frozen=True, tag_field="type"):
    pass


class BoolValue(_TypedValue, tag="bool"):
    value: bool


class IntValue(_TypedValue, tag="int"):
    """32-bit signed integer."""

    value: int


class FloatValue(_TypedValue, tag="float"):
    """Single precision float."""

    value: float


class DoubleValue(_TypedValue, tag="double"):
    value: float


class StringValue(_TypedValue, tag="string"):
    value: str


ParameterValue = BoolValue | IntValue | FloatValue | DoubleValue | StringValue

STRING_TYPE_ALIASES = frozenset({"string", "std::string"})


def parameter_type_name(value: ParameterValue) -> str:
    return str(type(value).__struct_config__.tag)


class Parameter(msgspec.Struct, frozen=True):
    """A named vehicle parameter."""

    name: str
    value: ParameterValue

    @property
    def type_name(self) -> str:
        return parameter_type_name(self.value)

    def to_packet(self) -> Packet:
        packet = commands.parameter_packet()
        packet.add_field(commands.parameter_name(self.name))
        packet.add_field(commands.parameter_type(self.type_name))
        match self.value:
            case BoolValue(value=flag):
                packet.add_field(commands.parameter_value(flag, "bool"))
            case IntValue(value=number):
                packet.add_field(commands.parameter_value(number, "int32"))
            case FloatValue(value=number):
                packet.add_field(commands.parameter_value(number, "float"))
            case DoubleValue(value=number):
                packet.add_field(commands.parameter_value(number, "double"))
            case StringValue(value=text):
                packet.add_field(commands.parameter_value(text))
        return packet

    @classmethod
    def from_packet(cls, packet: Packet) -> Self:
        """Decode a PARAMETER packet; NAME, TYPE and VALUE are all required."""
        _require_type(packet, PacketType.PARAMETER)
        name = _text(packet.get_field(ParameterField.NAME).data)
        type_name = _text(packet.get_field(ParameterField.TYPE).data)
        data = packet.get_field(ParameterField.VALUE).data

        value: ParameterValue
        match type_name:
            case "bool":
                value = BoolValue(from_bytes(data, "bool"))
            case "int":
                value = IntValue(from_bytes(data, "int32"))
            case "float":
                value = FloatValue(from_bytes(data, "float"))
            case "double":
                value = DoubleValue(from_bytes(data, "double"))
            case alias if alias in STRING_TYPE_ALIASES:
                value = StringValue(_text(data))
            case _:
                raise ConversionError(f"Unknown parameter type '{type_name}' for '{name}'")
        return cls(name, value)


def parameter_list_packet_for(parameters: Iterable[Parameter]) -> Packet:
    """PARAMETER_LIST packet carrying every parameter and the list size."""
    parameter_packets = [parameter.to_packet() for parameter in parameters]
    packet = commands.parameter_list_packet()
    packet.add_field(commands.parameter_list(parameter_packets))
    packet.add_field(commands.parameter_list_size(len(parameter_packets)))
    return packet


def decode_parameter_list(packet: Packet) -> tuple[list[Parameter], tuple[str, ...]]:
    """Decode the parameters of a PARAMETER_LIST packet.

    Parameters that cannot be decoded are skipped and reported as warnings.
    """
    _require_type(packet, PacketType.PARAMETER_LIST)
    if not packet.has_field(ParameterListField.LIST):
        return [], ()

    parameters: list[Parameter] = []
    warnings: list[str] = []
    for parameter_packet in Packet.parse_stream(packet.get_field(ParameterListField.LIST).data):
        try:
            parameters.append(Parameter.from_packet(parameter_packet))
        except ProtocolError as exc:
            warnings.append(str(exc))
            logger.warning("Skipping undecodable parameter: %s", exc)
    return parameters, tuple(warnings)


__all__ = [
    "BoolValue",
    "DoubleValue",
    "FloatValue",
    "IntValue",
    "Mission",
    "Parameter",
    "ParameterValue",
    "StatusDecodeResult",
    "StringValue",
    "Task",
    "TaskPoint",
    "VehicleStatus",
    "decode_parameter_list",
    "decode_status",
    "packet_to_task",
    "parameter_list_packet_for",
    "parameter_type_name",
]
