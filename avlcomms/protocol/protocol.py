"""Wire constants and descriptor tables for the AVL packet protocol.

Descriptor values are the interoperability contract with vehicle firmware.
Field descriptors are scoped to their packet type, so the same number means
different things in different packets (``0x01`` is STATUS operational status
but ACTION emergency stop).
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final

from construct import Bytes, Int8ul, Int16ul, Struct as BinStruct  # type: ignore

PACKET_HEADER: Final[bytes] = bytes([0x75, 0x65])
HEADER_SIZE: Final[int] = 2
DESCRIPTOR_SIZE: Final[int] = 1
LENGTH_SIZE: Final[int] = 2
CHECKSUM_SIZE: Final[int] = 2

# header + descriptor + payload length
PACKET_PREFIX_SIZE: Final[int] = HEADER_SIZE + DESCRIPTOR_SIZE + LENGTH_SIZE
PACKET_OVERHEAD: Final[int] = PACKET_PREFIX_SIZE + CHECKSUM_SIZE
MIN_PACKET_SIZE: Final[int] = PACKET_OVERHEAD

FIELD_PREFIX_SIZE: Final[int] = LENGTH_SIZE + DESCRIPTOR_SIZE
UINT8_MAX: Final[int] = 255
UINT16_MAX: Final[int] = 65535
MAX_PAYLOAD_SIZE: Final[int] = UINT16_MAX
MAX_FIELD_DATA_SIZE: Final[int] = UINT16_MAX - FIELD_PREFIX_SIZE
MAX_PACKET_SIZE: Final[int] = PACKET_OVERHEAD + MAX_PAYLOAD_SIZE

# Offset of the payload length inside a packet
PAYLOAD_LENGTH_OFFSET: Final[int] = HEADER_SIZE + DESCRIPTOR_SIZE

# Points are sent as lat, lon, placeholder, command
TASK_POINT_STRIDE: Final[int] = 4

PACKET_PREFIX_STRUCT: Final = BinStruct(
    "header" / Bytes(HEADER_SIZE),
    "descriptor" / Int8ul,
    "payload_length" / Int16ul,
)

FIELD_PREFIX_STRUCT: Final = BinStruct(
    "length" / Int16ul,
    "descriptor" / Int8ul,
)

CHECKSUM_STRUCT: Final = BinStruct(
    "msb" / Int8ul,
    "lsb" / Int8ul,
)


class PacketType(IntEnum):
    RESPONSE = 0x00
    STATUS = 0x01
    ACTION = 0x02
    HELM = 0x03
    ACOUSTIC_PING = 0x04
    MISSION = 0x05
    TASK = 0x07
    PARAMETER = 0x08
    PARAMETER_LIST = 0x09


class GlobalField(IntEnum):
    """Routing fields that may appear in any packet."""

    COMMS_CHANNEL = 0xFE
    VEHICLE_ID = 0xFF


class ResponseField(IntEnum):
    PACKET_DESCRIPTOR = 0x00
    FIELD_DESCRIPTOR = 0x01
    DATA = 0x02


class StatusField(IntEnum):
    MODE = 0x00
    OPERATIONAL_STATUS = 0x01
    ATTITUDE = 0x02
    VELOCITY = 0x03
    POSITION = 0x04
    DEPTH = 0x05
    HEIGHT = 0x06
    RPM = 0x07
    VOLTAGE = 0x08
    MAG_FLUX = 0x09
    UMODEM_SYNCED = 0x0A
    GPS_SATS = 0x0B
    IRIDIUM_STRENGTH = 0x0C
    TASK = 0x0D


class ActionField(IntEnum):
    PING = 0x00
    EMERGENCY_STOP = 0x01
    POWER_CYCLE = 0x02
    RESTART_ROS = 0x03
    RESET_SAFETY = 0x04
    SET_MODE = 0x05
    SET_MAG_STREAM = 0x06
    SET_MAG_CAL = 0x07
    TARE_PRESSURE = 0x08
    START_LBL_PINGS = 0x09
    START_OWTT_PINGS = 0x0A
    STOP_ACOUSTIC_PINGS = 0x0B
    ENABLE_BACK_SEAT_DRIVER = 0x0C
    DISABLE_BACK_SEAT_DRIVER = 0x0D
    SET_GEOFENCE = 0x0E
    ENABLE_STROBE = 0x0F
    DISABLE_STROBE = 0x10
    ENABLE_SONAR = 0x11
    DISABLE_SONAR = 0x12
    START_SONAR_RECORDING = 0x13
    STOP_SONAR_RECORDING = 0x14


class HelmField(IntEnum):
    THROTTLE = 0x00
    RUDDER = 0x01
    ELEVATOR = 0x02


class AcousticPingField(IntEnum):
    DEPARTURE_TIME = 0x00
    ORIGIN_POSITION = 0x01


class MissionField(IntEnum):
    START = 0x01
    STOP = 0x02
    CLEAR = 0x03
    ADVANCE = 0x04
    SET = 0x05
    APPEND = 0x06
    READ_CURRENT = 0x07
    READ_ALL = 0x08


class TaskField(IntEnum):
    DURATION = 0x00
    TYPE = 0x01
    ATTITUDE = 0x02
    VELOCITY = 0x03
    DEPTH = 0x04
    HEIGHT = 0x05
    RPM = 0x06
    DIVE = 0x07
    POINTS = 0x08
    COMMAND = 0x09


class ParameterField(IntEnum):
    NAME = 0x00
    VALUE = 0x01
    TYPE = 0x02


class ParameterListField(IntEnum):
    LIST = 0x00
    REQUEST = 0x01
    SIZE = 0x02


class Mode(IntEnum):
    MANUAL = 0
    AUTONOMOUS = 1


class CommsChannel(IntEnum):
    RADIO = 0
    ACOMMS = 1
    IRIDIUM = 2


class TaskType(IntEnum):
    PRIMITIVE = 0
    WAYPOINT = 1
    PATH = 2
    ZONE = 3


class ActionType(IntEnum):
    """Commands a task or task point can trigger on arrival."""

    PING = 0x00
    EMERGENCY_STOP = 0x01
    POWER_CYCLE = 0x02
    RESTART_ROS = 0x03
    RESET_SAFETY = 0x04
    SET_MODE = 0x05
    ENABLE_MAG_STREAM = 0x06
    DISABLE_MAG_STREAM = 0x07
    TARE_PRESSURE = 0x08
    START_LBL_PINGS = 0x09
    START_OWTT_PINGS = 0x0A
    STOP_ACOUSTIC_PINGS = 0x0B
    ENABLE_BACK_SEAT_DRIVER = 0x0C
    DISABLE_BACK_SEAT_DRIVER = 0x0D
    SET_GEOFENCE = 0x0E
    ENABLE_STROBE = 0x0F
    DISABLE_STROBE = 0x10
    ENABLE_SONAR = 0x11
    DISABLE_SONAR = 0x12
    START_SONAR_RECORDING = 0x13
    STOP_SONAR_RECORDING = 0x14
    NO_ACTION = 0x15


FIELD_ENUMS: Final[dict[PacketType, type[IntEnum]]] = {
    PacketType.RESPONSE: ResponseField,
    PacketType.STATUS: StatusField,
    PacketType.ACTION: ActionField,
    PacketType.HELM: HelmField,
    PacketType.ACOUSTIC_PING: AcousticPingField,
    PacketType.MISSION: MissionField,
    PacketType.TASK: TaskField,
    PacketType.PARAMETER: ParameterField,
    PacketType.PARAMETER_LIST: ParameterListField,
}


def packet_name(descriptor: int) -> str:
    try:
        return PacketType(descriptor).name
    except ValueError:
        return f"UNKNOWN(0x{descriptor:02X})"


def field_name(packet_descriptor: int, field_descriptor: int) -> str:
    """Resolve a field descriptor to its symbolic name within a packet type."""
    try:
        return GlobalField(field_descriptor).name
    except ValueError:
        pass
    try:
        enum_type = FIELD_ENUMS[PacketType(packet_descriptor)]
        return enum_type(field_descriptor).name
    except (KeyError, ValueError):
        return f"UNKNOWN(0x{field_descriptor:02X})"


__all__ = [
    "AcousticPingField",
    "ActionField",
    "ActionType",
    "CHECKSUM_SIZE",
    "CHECKSUM_STRUCT",
    "CommsChannel",
    "FIELD_ENUMS",
    "FIELD_PREFIX_SIZE",
    "FIELD_PREFIX_STRUCT",
    "GlobalField",
    "HelmField",
    "MAX_FIELD_DATA_SIZE",
    "MAX_PACKET_SIZE",
    "MAX_PAYLOAD_SIZE",
    "MIN_PACKET_SIZE",
    "MissionField",
    "Mode",
    "PACKET_HEADER",
    "PACKET_OVERHEAD",
    "PACKET_PREFIX_SIZE",
    "PACKET_PREFIX_STRUCT",
    "PAYLOAD_LENGTH_OFFSET",
    "PacketType",
    "ParameterField",
    "ParameterListField",
    "ResponseField",
    "StatusField",
    "TASK_POINT_STRIDE",
    "TaskField",
    "TaskType",
    "field_name",
    "packet_name",
]
