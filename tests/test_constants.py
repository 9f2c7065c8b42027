"""Centralized constants for testing purposes.
Do not use in production code.
"""

from typing import Final

TEST_RANDOM_SEED: Final[int] = 3735928559
TEST_VEHICLE_ID: Final[int] = 7
TEST_OTHER_VEHICLE_ID: Final[int] = 12

# ACTION packet carrying one empty EMERGENCY_STOP field.
TEST_EMERGENCY_STOP_FRAME: Final[bytes] = bytes(
    [0x75, 0x65, 0x02, 0x03, 0x00, 0x03, 0x00, 0x01, 0xE3, 0x90]
)
