import random

import pytest

from avlcomms.errors import ProtocolError
from avlcomms.protocol.decoder import decode_packet
from avlcomms.protocol.packet import Packet
from avlcomms.protocol.structures import Task, VehicleStatus
from avlcomms.transport.stream import PacketStreamBuffer

from tests.test_constants import TEST_EMERGENCY_STOP_FRAME, TEST_RANDOM_SEED, TEST_VEHICLE_ID

FUZZ_ITERATIONS = 5000


@pytest.mark.fuzz
def test_packet_parsing_resilience_to_fuzzing():
    """Packet.from_bytes must only ever raise ProtocolError on garbage."""
    random.seed(TEST_RANDOM_SEED)

    for i in range(FUZZ_ITERATIONS):
        length = random.randint(0, 200)
        # Half the inputs start with a real header so the length and checksum paths run too.
        prefix = b"\x75\x65" if i % 2 else b""
        raw_data = prefix + random.randbytes(length)

        try:
            _ = Packet.from_bytes(raw_data)
        except ProtocolError:
            pass
        except Exception as exc:
            pytest.fail(
                f"Packet.from_bytes crashed on iteration {i} with unhandled exception: "
                f"{type(exc).__name__}: {exc}. Data hex: {raw_data.hex()}"
            )


@pytest.mark.fuzz
def test_mutated_packets_decode_or_fail_cleanly():
    """Single-byte mutations of valid packets never escape the error taxonomy."""
    random.seed(TEST_RANDOM_SEED)
    seeds = [
        TEST_EMERGENCY_STOP_FRAME,
        VehicleStatus(vehicle_id=TEST_VEHICLE_ID, mode="AUTONOMOUS", depth=3.0).to_packet().to_bytes(),
        Task(duration=10.0).to_packet().to_bytes(),
    ]

    for i in range(FUZZ_ITERATIONS):
        raw_data = bytearray(random.choice(seeds))
        raw_data[random.randrange(len(raw_data))] = random.randrange(256)

        try:
            packet = Packet.from_bytes(raw_data)
            decode_packet(packet)
        except ProtocolError:
            pass
        except Exception as exc:
            pytest.fail(
                f"Mutated packet crashed on iteration {i}: {type(exc).__name__}: {exc}. "
                f"Data hex: {bytes(raw_data).hex()}"
            )


@pytest.mark.fuzz
def test_stream_buffer_survives_noise():
    """With resync enabled, noise never raises and valid packets still get through."""
    random.seed(TEST_RANDOM_SEED)
    buffer = PacketStreamBuffer()

    received = 0
    for _ in range(500):
        noise = random.randbytes(random.randint(0, 40)).replace(b"\x75", b"\x00")
        received += len(buffer.feed(noise))
        received += len(buffer.feed(TEST_EMERGENCY_STOP_FRAME))

    assert received == 500
    assert buffer.stats.packets_received == 500
